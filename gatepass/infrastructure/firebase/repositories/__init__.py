"""Firestore-backed repository implementations."""

from gatepass.infrastructure.firebase.repositories.guest_pass_repo_firestore import (
    FirestoreGuestPassRepository,
)
from gatepass.infrastructure.firebase.repositories.policy_repo_firestore import (
    FirestorePolicyRepository,
)
from gatepass.infrastructure.firebase.repositories.quota_ledger_firestore import (
    FirestoreQuotaLedger,
)
from gatepass.infrastructure.firebase.repositories.user_repo_firestore import (
    FirestoreUserDirectory,
)

__all__ = [
    "FirestoreGuestPassRepository",
    "FirestorePolicyRepository",
    "FirestoreQuotaLedger",
    "FirestoreUserDirectory",
]
