"""Firestore-backed guest pass repository (implements IGuestPassRepository)."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from gatepass.application.dtos.guest_pass import PeriodUsage
from gatepass.domain.entities.guest_pass import GuestPass
from gatepass.domain.enums import QuotaScope
from gatepass.domain.exceptions import (
    ConcurrencyConflictException,
    ValidationException,
)
from gatepass.infrastructure.firebase._rest_client import (
    CollectionReference,
    DocumentExistsError,
    DocumentReference,
    DocumentSnapshot,
    FirestoreRESTClient,
    PreconditionFailedError,
)
from gatepass.infrastructure.firebase.collections import (
    COLLECTION_PROJECTS,
    SUBCOLLECTION_GUEST_PASSES,
    safe_doc_id,
)
from gatepass.shared.telemetry.logging import get_logger
from gatepass.shared.utils.datetime import coerce_datetime, to_timestamp_ms

logger = get_logger(__name__)


def pass_to_record(guest_pass: GuestPass) -> dict[str, Any]:
    """GuestPass -> stored document fields."""
    return {
        "id": guest_pass.id,
        "projectId": guest_pass.project_id,
        "userId": guest_pass.user_id,
        "userName": guest_pass.user_name,
        "unit": guest_pass.unit,
        "guestName": guest_pass.guest_name,
        "purpose": guest_pass.purpose,
        "phoneNumber": guest_pass.phone_number,
        "validFrom": guest_pass.valid_from,
        "validUntil": guest_pass.valid_until,
        "createdAt": guest_pass.created_at,
        "updatedAt": guest_pass.updated_at,
        "sentStatus": guest_pass.sent_status,
        "sentAt": guest_pass.sent_at,
        "used": guest_pass.used,
        "usedAt": guest_pass.used_at,
        "verificationToken": guest_pass.verification_token,
        "deleted": guest_pass.deleted,
        "credentialLocator": guest_pass.credential_locator,
    }


def pass_from_snapshot(project_id: str, snapshot: DocumentSnapshot) -> GuestPass:
    """Stored document -> GuestPass. Raises ValidationException on bad records."""
    data = snapshot.to_dict()
    created_at = coerce_datetime(data.get("createdAt"))
    valid_from = coerce_datetime(data.get("validFrom")) or created_at
    valid_until = coerce_datetime(data.get("validUntil"))
    if created_at is None or valid_from is None or valid_until is None:
        raise ValidationException(
            f"Guest pass {snapshot.id} is missing timestamps", field="createdAt"
        )
    return GuestPass(
        id=data.get("id") or snapshot.id,
        project_id=data.get("projectId") or project_id,
        user_id=data.get("userId", ""),
        user_name=data.get("userName") or "",
        unit=data.get("unit") or "",
        guest_name=data.get("guestName", ""),
        purpose=data.get("purpose", ""),
        phone_number=data.get("phoneNumber"),
        valid_from=valid_from,
        valid_until=valid_until,
        created_at=created_at,
        updated_at=coerce_datetime(data.get("updatedAt")) or created_at,
        verification_token=data.get("verificationToken", ""),
        sent_status=data.get("sentStatus") is True,
        sent_at=coerce_datetime(data.get("sentAt")),
        used=data.get("used") is True,
        used_at=coerce_datetime(data.get("usedAt")),
        deleted=data.get("deleted") is True,
        credential_locator=data.get("credentialLocator") or data.get("qrCodeUrl"),
        version=snapshot.update_time,
        document_id=snapshot.id,
    )


class FirestoreGuestPassRepository:
    """Guest passes under projects/{projectId}/guestPasses.

    New passes are keyed by their id; reads and writes go through the id
    field so records stored under other keys stay reachable.
    """

    def __init__(self, client: FirestoreRESTClient) -> None:
        self._client = client
        self._projects = client.collection(COLLECTION_PROJECTS)

    def _coll(self, project_id: str) -> CollectionReference:
        return self._projects.document(safe_doc_id(project_id)).collection(
            SUBCOLLECTION_GUEST_PASSES
        )

    async def create(self, guest_pass: GuestPass) -> None:
        """Create-only insert; an existing pass ID is never overwritten."""
        try:
            await self._coll(guest_pass.project_id).create(
                guest_pass.id, pass_to_record(guest_pass)
            )
        except DocumentExistsError as e:
            raise ConcurrencyConflictException("guest_pass", 1) from e

    async def find_by_pass_id(self, project_id: str, pass_id: str) -> GuestPass | None:
        query = self._coll(project_id).where("id", "==", pass_id).limit(1)
        async for snapshot in query.stream():
            return pass_from_snapshot(project_id, snapshot)
        return None

    async def count_since(
        self,
        project_id: str,
        scope: QuotaScope,
        scope_value: str,
        since: datetime,
    ) -> PeriodUsage:
        """Count passes created at or after since.

        Older clients stored createdAt as epoch milliseconds. Range filters
        never match across value types, so timestamp and numeric records are
        counted by separate queries.
        """
        active = deleted = 0
        for bound in (since, to_timestamp_ms(since)):
            query = (
                self._coll(project_id)
                .where(scope.value, "==", scope_value)
                .where("createdAt", ">=", bound)
            )
            async for snapshot in query.stream():
                if snapshot.to_dict().get("deleted") is True:
                    deleted += 1
                else:
                    active += 1
        return PeriodUsage(active=active, deleted=deleted)

    async def list_for_scope(
        self, project_id: str, scope: QuotaScope, scope_value: str
    ) -> list[GuestPass]:
        passes: list[GuestPass] = []
        query = self._coll(project_id).where(scope.value, "==", scope_value)
        async for snapshot in query.stream():
            try:
                passes.append(pass_from_snapshot(project_id, snapshot))
            except ValidationException as e:
                logger.warning("Skipping malformed guest pass %s: %s", snapshot.id, e.message)
        return passes

    async def _document_for(
        self, project_id: str, pass_id: str, document_id: str | None = None
    ) -> DocumentReference | None:
        """Reference to the stored pass; looked up by its id field when the key is unknown."""
        coll = self._coll(project_id)
        if document_id:
            return coll.document(document_id)
        async for snapshot in coll.where("id", "==", pass_id).limit(1).stream():
            return coll.document(snapshot.id)
        return None

    async def mark_sent(self, project_id: str, pass_id: str, sent_at: datetime) -> bool:
        ref = await self._document_for(project_id, pass_id)
        if ref is None:
            return False
        return await ref.update(
            {"sentStatus": True, "sentAt": sent_at, "updatedAt": sent_at}
        )

    async def mark_used(
        self,
        project_id: str,
        pass_id: str,
        used_at: datetime,
        expected_version: str | None,
        *,
        document_id: str | None = None,
    ) -> bool:
        ref = await self._document_for(project_id, pass_id, document_id)
        if ref is None:
            return False
        try:
            return await ref.update(
                {"used": True, "usedAt": used_at, "updatedAt": used_at},
                update_time=expected_version,
            )
        except PreconditionFailedError:
            return False
