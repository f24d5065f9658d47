"""Firestore-backed user directory (implements IUserDirectory)."""

from __future__ import annotations

from typing import Any

from gatepass.domain.entities.policy import Membership, UserAccount
from gatepass.infrastructure.firebase._rest_client import FirestoreRESTClient
from gatepass.infrastructure.firebase.collections import COLLECTION_USERS, safe_doc_id


def _display_name(data: dict[str, Any]) -> str:
    if data.get("fullName"):
        return str(data["fullName"])
    return f"{data.get('firstName') or ''} {data.get('lastName') or ''}".strip()


def _memberships(data: dict[str, Any]) -> tuple[Membership, ...]:
    out: list[Membership] = []
    for entry in data.get("projects") or []:
        if not isinstance(entry, dict):
            continue
        project_id = entry.get("projectId") or entry.get("id")
        if not project_id:
            continue
        out.append(
            Membership(
                project_id=str(project_id),
                unit=str(entry.get("unit") or ""),
                role=str(entry.get("role") or ""),
            )
        )
    return tuple(out)


class FirestoreUserDirectory:
    """Reads users/{userId} documents and their project memberships."""

    def __init__(self, client: FirestoreRESTClient) -> None:
        self._client = client
        self._coll = client.collection(COLLECTION_USERS)

    def _to_account(self, doc_id: str, data: dict[str, Any]) -> UserAccount:
        return UserAccount(
            id=doc_id,
            name=_display_name(data),
            email=str(data.get("email") or ""),
            unit=str(data.get("unit") or ""),
            role=str(data.get("role") or ""),
            memberships=_memberships(data),
        )

    async def get_user(self, user_id: str) -> UserAccount | None:
        """Return user by ID."""
        doc = await self._coll.document(safe_doc_id(user_id)).get()
        if not doc:
            return None
        return self._to_account(doc.id, doc.to_dict())
