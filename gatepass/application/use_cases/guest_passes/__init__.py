"""Guest pass use cases."""

from gatepass.application.use_cases.guest_passes.operations import GuestPassOperations

__all__ = ["GuestPassOperations"]
