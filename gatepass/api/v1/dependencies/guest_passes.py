"""Guest pass dependencies (composition root).

Builds GuestPassOperations from the Firestore repositories, the configured
credential storage and the JSON credential renderer. Routes depend only on
get_guest_pass_operations, never on infrastructure directly.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from gatepass.api.v1.dependencies.identity import get_user_id
from gatepass.application.services import (
    PassIssuer,
    PassVerifier,
    PolicyResolver,
    QuotaCounter,
)
from gatepass.application.use_cases import GuestPassOperations
from gatepass.core.config import get_settings
from gatepass.infrastructure.exceptions import StoreUnavailableError
from gatepass.infrastructure.external.credentials import JsonCredentialRenderer
from gatepass.infrastructure.external.storage import StorageProtocol, create_credential_store
from gatepass.infrastructure.firebase import get_firestore_client
from gatepass.infrastructure.firebase._rest_client import FirestoreRESTClient
from gatepass.infrastructure.firebase.repositories import (
    FirestoreGuestPassRepository,
    FirestorePolicyRepository,
    FirestoreQuotaLedger,
    FirestoreUserDirectory,
)
from gatepass.shared.utils.datetime import SystemClock


def get_firestore() -> FirestoreRESTClient:
    """Firestore client initialized at startup; 503 when not configured."""
    client = get_firestore_client()
    if client is None:
        raise StoreUnavailableError("not_configured", "Firestore client is not initialized")
    return client


def get_object_store(request: Request) -> StorageProtocol:
    store = getattr(request.app.state, "object_store", None)
    if store is None:
        store = create_credential_store()
        request.app.state.object_store = store
    return store


def build_guest_pass_operations(
    client: FirestoreRESTClient, object_store: StorageProtocol
) -> GuestPassOperations:
    """Wire the guest pass services over one Firestore client."""
    settings = get_settings()
    clock = SystemClock()
    policies = FirestorePolicyRepository(client)
    passes = FirestoreGuestPassRepository(client)
    resolver = PolicyResolver(
        FirestoreUserDirectory(client),
        policies,
        legacy_user_block_enabled=settings.legacy_user_block_enabled,
    )
    quota = QuotaCounter(
        passes,
        FirestoreQuotaLedger(client),
        clock,
        tz_name=settings.quota_period_timezone,
        max_attempts=settings.quota_reservation_attempts,
    )
    issuer = PassIssuer(
        resolver,
        quota,
        passes,
        policies,
        JsonCredentialRenderer(),
        object_store,
        clock,
        storage_prefix=settings.storage_prefix,
    )
    return GuestPassOperations(
        resolver=resolver,
        quota=quota,
        issuer=issuer,
        verifier=PassVerifier(passes, clock),
        passes=passes,
        policy_writer=policies,
        unit_usage=policies,
        clock=clock,
        admin_roles=tuple(settings.policy_admin_roles.split(",")),
    )


async def get_guest_pass_operations(
    client: Annotated[FirestoreRESTClient, Depends(get_firestore)],
    object_store: Annotated[StorageProtocol, Depends(get_object_store)],
) -> GuestPassOperations:
    return build_guest_pass_operations(client, object_store)


async def require_policy_admin(
    project_id: str,
    user_id: Annotated[str, Depends(get_user_id)],
    ops: Annotated[GuestPassOperations, Depends(get_guest_pass_operations)],
) -> str:
    """Caller ID, once confirmed to hold a policy admin role in project_id (else 403)."""
    await ops.require_policy_admin(project_id, user_id)
    return user_id
