"""Application use cases: one entry point per workflow."""

from gatepass.application.use_cases.guest_passes import GuestPassOperations

__all__ = ["GuestPassOperations"]
