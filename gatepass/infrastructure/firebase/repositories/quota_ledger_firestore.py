"""Firestore-backed quota reservation ledger (implements IQuotaLedger).

One document per (project, user, period); writes are guarded by the
document's updateTime so concurrent reservations serialize.
"""

from __future__ import annotations

from gatepass.application.dtos.guest_pass import LedgerEntry
from gatepass.infrastructure.firebase._rest_client import (
    DocumentExistsError,
    DocumentReference,
    FirestoreRESTClient,
    PreconditionFailedError,
)
from gatepass.infrastructure.firebase.collections import (
    COLLECTION_PROJECTS,
    SUBCOLLECTION_QUOTA_LEDGER,
    ledger_doc_id,
    safe_doc_id,
)
from gatepass.shared.utils.datetime import utc_now


class FirestoreQuotaLedger:
    def __init__(self, client: FirestoreRESTClient) -> None:
        self._client = client
        self._projects = client.collection(COLLECTION_PROJECTS)

    def _coll(self, project_id: str):
        return self._projects.document(safe_doc_id(project_id)).collection(
            SUBCOLLECTION_QUOTA_LEDGER
        )

    def _doc(self, project_id: str, user_id: str, period: str) -> DocumentReference:
        return self._coll(project_id).document(ledger_doc_id(user_id, period))

    async def get(self, project_id: str, user_id: str, period: str) -> LedgerEntry | None:
        snapshot = await self._doc(project_id, user_id, period).get()
        if snapshot is None:
            return None
        reserved = snapshot.to_dict().get("reserved") or 0
        return LedgerEntry(reserved=int(reserved), version=snapshot.update_time)

    async def create(
        self, project_id: str, user_id: str, period: str, reserved: int
    ) -> bool:
        try:
            await self._coll(project_id).create(
                ledger_doc_id(user_id, period),
                {
                    "userId": user_id,
                    "period": period,
                    "reserved": reserved,
                    "updatedAt": utc_now(),
                },
            )
        except DocumentExistsError:
            return False
        return True

    async def compare_and_set(
        self,
        project_id: str,
        user_id: str,
        period: str,
        reserved: int,
        expected_version: str | None,
    ) -> bool:
        try:
            return await self._doc(project_id, user_id, period).update(
                {"reserved": reserved, "updatedAt": utc_now()},
                update_time=expected_version,
            )
        except PreconditionFailedError:
            return False
