"""FastAPI dependencies for v1 routes."""

from gatepass.api.v1.dependencies.guest_passes import (
    build_guest_pass_operations,
    get_firestore,
    get_guest_pass_operations,
    get_object_store,
    require_policy_admin,
)
from gatepass.api.v1.dependencies.identity import get_user_id

__all__ = [
    "build_guest_pass_operations",
    "get_firestore",
    "get_guest_pass_operations",
    "get_object_store",
    "get_user_id",
    "require_policy_admin",
]
