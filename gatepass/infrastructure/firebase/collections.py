"""Firestore collection names and document paths (schema-in-code).

Firestore has no DDL or migrations. Collections are created automatically
when you first write a document. Use these helpers so paths stay
consistent and act as the single source of truth for the layout:

    projects/{projectId}                              project policy
    projects/{projectId}/unitPolicies/{unit}          unit policy + usage aggregate
    projects/{projectId}/userPolicies/{userId}        deprecated per-user block
    projects/{projectId}/guestPasses/{passId}         guest pass record
    projects/{projectId}/quotaLedger/{userId}_{YYYY-MM}  reservation ledger
    users/{userId}                                    user + project memberships
"""

COLLECTION_PROJECTS = "projects"
COLLECTION_USERS = "users"

SUBCOLLECTION_UNIT_POLICIES = "unitPolicies"
SUBCOLLECTION_USER_POLICIES = "userPolicies"
SUBCOLLECTION_GUEST_PASSES = "guestPasses"
SUBCOLLECTION_QUOTA_LEDGER = "quotaLedger"


def safe_doc_id(value: str) -> str:
    """Firestore document ID from a free-form key (cannot contain '/')."""
    return value.replace("/", "_")


def ledger_doc_id(user_id: str, period: str) -> str:
    return safe_doc_id(f"{user_id}_{period}")
