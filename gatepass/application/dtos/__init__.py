"""Application DTOs (use case inputs and results)."""
