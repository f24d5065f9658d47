"""Pytest configuration and fixtures for gatepass.

Env is set before any gatepass import so Settings validation passes without
real credentials. Service tests run against the in-memory fakes below; HTTP
tests run against gatepass.main:create_app() with get_guest_pass_operations
overridden to the same fakes.
"""

import asyncio
import json
import os
import tempfile
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime, timedelta

os.environ.setdefault(
    "FIREBASE_SERVICE_ACCOUNT_KEY",
    json.dumps({"type": "service_account", "project_id": "gatepass-test"}),
)
os.environ.setdefault("STORAGE_ROOT", tempfile.mkdtemp(prefix="gatepass-test-"))
os.environ.setdefault("TELEMETRY_ENABLED", "false")

import pytest
from httpx import ASGITransport, AsyncClient

from gatepass.application.dtos.guest_pass import (
    LedgerEntry,
    PeriodUsage,
    ProjectPolicyUpdate,
    UnitPolicyUpdate,
)
from gatepass.application.interfaces.repositories import PolicyUnavailableError
from gatepass.application.services import (
    PassIssuer,
    PassVerifier,
    PolicyResolver,
    QuotaCounter,
)
from gatepass.application.use_cases import GuestPassOperations
from gatepass.core.config import get_settings
from gatepass.domain.entities.guest_pass import GuestPass
from gatepass.domain.entities.policy import (
    LegacyUserBlock,
    Membership,
    ProjectPolicy,
    UnitPolicy,
    UserAccount,
)
from gatepass.domain.enums import QuotaScope
from gatepass.domain.exceptions import ConcurrencyConflictException
from gatepass.infrastructure.external.credentials import JsonCredentialRenderer

get_settings.cache_clear()

PROJECT_ID = "proj-1"
NOW = datetime(2026, 3, 15, 12, 0, tzinfo=UTC)


class FixedClock:
    """Clock that only moves when told to."""

    def __init__(self, now: datetime = NOW) -> None:
        self.current = now

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)


class FakeUserDirectory:
    def __init__(self) -> None:
        self.users: dict[str, UserAccount] = {}

    def add(
        self,
        user_id: str,
        project_id: str = PROJECT_ID,
        unit: str = "A-101",
        role: str = "owner",
        name: str = "Resident",
    ) -> UserAccount:
        user = UserAccount(
            id=user_id,
            name=name,
            email=f"{user_id}@example.com",
            memberships=(Membership(project_id=project_id, unit=unit, role=role),),
        )
        self.users[user_id] = user
        return user

    async def get_user(self, user_id: str) -> UserAccount | None:
        return self.users.get(user_id)


class FakePolicyStore:
    """Policy provider, writer and unit usage aggregate in one, like the Firestore repo."""

    def __init__(self) -> None:
        self.projects: dict[str, ProjectPolicy] = {}
        self.units: dict[tuple[str, str], UnitPolicy] = {}
        self.legacy: dict[tuple[str, str], LegacyUserBlock] = {}
        self.fail_project = False
        self.fail_unit = False
        self.fail_legacy = False
        self.fail_usage = False
        self.increments: list[tuple[str, str, str]] = []
        self.sets: list[tuple[str, str, int, str]] = []

    async def get_project_policy(self, project_id: str) -> ProjectPolicy | None:
        if self.fail_project:
            raise PolicyUnavailableError("projects unavailable")
        return self.projects.get(project_id)

    async def get_unit_policy(self, project_id: str, unit: str) -> UnitPolicy | None:
        if self.fail_unit:
            raise PolicyUnavailableError("units unavailable")
        return self.units.get((project_id, unit))

    async def get_legacy_user_block(
        self, project_id: str, user_id: str
    ) -> LegacyUserBlock | None:
        if self.fail_legacy:
            raise PolicyUnavailableError("user policies unavailable")
        return self.legacy.get((project_id, user_id))

    async def update_project_policy(
        self, project_id: str, changes: ProjectPolicyUpdate, updated_at: datetime
    ) -> None:
        current = self.projects.get(project_id, ProjectPolicy())
        values = {k: v for k, v in vars(changes).items() if v is not None}
        self.projects[project_id] = replace(current, **values)

    async def update_unit_policy(
        self,
        project_id: str,
        unit: str,
        changes: UnitPolicyUpdate,
        updated_at: datetime,
    ) -> None:
        current = self.units.get((project_id, unit), UnitPolicy(unit=unit))
        values: dict = {"updated_at": updated_at}
        if changes.blocked is not None:
            values["blocked"] = changes.blocked
            values["blocked_reason"] = changes.blocked_reason if changes.blocked else None
            values["blocked_at"] = updated_at if changes.blocked else None
        if changes.monthly_limit is not None:
            values["monthly_limit"] = changes.monthly_limit
        if changes.clear_monthly_limit:
            values["monthly_limit"] = None
        self.units[(project_id, unit)] = replace(current, **values)

    async def increment_usage(
        self,
        project_id: str,
        unit: str,
        created_by: str,
        created_by_name: str,
        at: datetime,
    ) -> None:
        if self.fail_usage:
            raise RuntimeError("usage write failed")
        self.increments.append((project_id, unit, created_by))
        current = self.units.get((project_id, unit), UnitPolicy(unit=unit))
        self.units[(project_id, unit)] = replace(
            current,
            used_this_month=current.used_this_month + 1,
            last_pass_created_by=created_by,
            last_pass_created_by_name=created_by_name,
        )

    async def set_usage(
        self,
        project_id: str,
        unit: str,
        used: int,
        period: str,
        at: datetime,
        created_by: str | None = None,
        created_by_name: str | None = None,
    ) -> None:
        if self.fail_usage:
            raise RuntimeError("usage write failed")
        self.sets.append((project_id, unit, used, period))
        current = self.units.get((project_id, unit), UnitPolicy(unit=unit))
        self.units[(project_id, unit)] = replace(
            current,
            used_this_month=used,
            usage_period=period,
            last_pass_created_by=created_by or current.last_pass_created_by,
            last_pass_created_by_name=created_by_name or current.last_pass_created_by_name,
        )


class FakeGuestPassRepository:
    """Versioned in-memory pass store; mark_used is a compare-and-set on the version."""

    def __init__(self) -> None:
        self.records: dict[tuple[str, str], GuestPass] = {}
        self.versions: dict[tuple[str, str], int] = {}
        self.fail_count = False
        self.fail_create = False

    def seed(self, guest_pass: GuestPass) -> GuestPass:
        key = (guest_pass.project_id, guest_pass.id)
        self.records[key] = replace(guest_pass, version=None)
        self.versions[key] = 1
        return guest_pass

    async def create(self, guest_pass: GuestPass) -> None:
        if self.fail_create:
            raise RuntimeError("write failed")
        key = (guest_pass.project_id, guest_pass.id)
        if key in self.records:
            raise ConcurrencyConflictException("guest_pass", 1)
        self.seed(guest_pass)

    async def find_by_pass_id(self, project_id: str, pass_id: str) -> GuestPass | None:
        key = (project_id, pass_id)
        record = self.records.get(key)
        snapshot = None if record is None else replace(record, version=str(self.versions[key]))
        # Yield after reading so concurrent callers can work from the same snapshot.
        await asyncio.sleep(0)
        return snapshot

    def _scoped(self, project_id: str, scope: QuotaScope, scope_value: str) -> list[GuestPass]:
        attr = "user_id" if scope is QuotaScope.USER else "unit"
        return [
            p
            for (pid, _), p in self.records.items()
            if pid == project_id and getattr(p, attr) == scope_value
        ]

    async def count_since(
        self,
        project_id: str,
        scope: QuotaScope,
        scope_value: str,
        since: datetime,
    ) -> PeriodUsage:
        if self.fail_count:
            raise RuntimeError("count failed")
        recent = [p for p in self._scoped(project_id, scope, scope_value) if p.created_at >= since]
        deleted = sum(1 for p in recent if p.deleted)
        return PeriodUsage(active=len(recent) - deleted, deleted=deleted)

    async def list_for_scope(
        self, project_id: str, scope: QuotaScope, scope_value: str
    ) -> list[GuestPass]:
        return list(self._scoped(project_id, scope, scope_value))

    async def mark_sent(self, project_id: str, pass_id: str, sent_at: datetime) -> bool:
        key = (project_id, pass_id)
        if key not in self.records:
            return False
        self.records[key] = replace(self.records[key], sent_status=True, sent_at=sent_at)
        self.versions[key] += 1
        return True

    async def mark_used(
        self,
        project_id: str,
        pass_id: str,
        used_at: datetime,
        expected_version: str | None,
        *,
        document_id: str | None = None,
    ) -> bool:
        await asyncio.sleep(0)
        key = (project_id, pass_id)
        if key not in self.records or str(self.versions[key]) != expected_version:
            return False
        self.records[key] = replace(self.records[key], used=True, used_at=used_at)
        self.versions[key] += 1
        return True


class FakeQuotaLedger:
    def __init__(self) -> None:
        self.entries: dict[tuple[str, str, str], tuple[int, int]] = {}
        self.always_conflict = False

    def reserved(self, project_id: str, user_id: str, period: str) -> int | None:
        entry = self.entries.get((project_id, user_id, period))
        return entry[0] if entry else None

    async def get(self, project_id: str, user_id: str, period: str) -> LedgerEntry | None:
        await asyncio.sleep(0)
        entry = self.entries.get((project_id, user_id, period))
        if entry is None:
            return None
        return LedgerEntry(reserved=entry[0], version=str(entry[1]))

    async def create(
        self, project_id: str, user_id: str, period: str, reserved: int
    ) -> bool:
        key = (project_id, user_id, period)
        if self.always_conflict or key in self.entries:
            return False
        self.entries[key] = (reserved, 1)
        return True

    async def compare_and_set(
        self,
        project_id: str,
        user_id: str,
        period: str,
        reserved: int,
        expected_version: str | None,
    ) -> bool:
        key = (project_id, user_id, period)
        entry = self.entries.get(key)
        if self.always_conflict or entry is None or str(entry[1]) != expected_version:
            return False
        self.entries[key] = (reserved, entry[1] + 1)
        return True


class FakeObjectStore:
    def __init__(self) -> None:
        self.objects: dict[str, bytes] = {}
        self.metadata: dict[str, dict] = {}
        self.fail = False

    async def put(
        self,
        storage_ref: str,
        data: bytes,
        content_type: str,
        metadata: dict | None = None,
    ) -> str:
        if self.fail:
            raise RuntimeError("upload failed")
        self.objects[storage_ref] = data
        self.metadata[storage_ref] = metadata or {}
        return f"mem://{storage_ref}"

    async def delete(self, storage_ref: str) -> bool:
        self.metadata.pop(storage_ref, None)
        return self.objects.pop(storage_ref, None) is not None


@dataclass
class Harness:
    """Fakes plus the real services wired over them."""

    clock: FixedClock = field(default_factory=FixedClock)
    users: FakeUserDirectory = field(default_factory=FakeUserDirectory)
    policies: FakePolicyStore = field(default_factory=FakePolicyStore)
    passes: FakeGuestPassRepository = field(default_factory=FakeGuestPassRepository)
    ledger: FakeQuotaLedger = field(default_factory=FakeQuotaLedger)
    store: FakeObjectStore = field(default_factory=FakeObjectStore)

    def __post_init__(self) -> None:
        self.resolver = PolicyResolver(self.users, self.policies)
        self.quota = QuotaCounter(self.passes, self.ledger, self.clock)
        self.issuer = PassIssuer(
            self.resolver,
            self.quota,
            self.passes,
            self.policies,
            JsonCredentialRenderer(),
            self.store,
            self.clock,
        )
        self.verifier = PassVerifier(self.passes, self.clock)
        self.ops = GuestPassOperations(
            resolver=self.resolver,
            quota=self.quota,
            issuer=self.issuer,
            verifier=self.verifier,
            passes=self.passes,
            policy_writer=self.policies,
            unit_usage=self.policies,
            clock=self.clock,
        )

    @property
    def period(self) -> str:
        return self.quota.period_key(self.quota.current_period_start())

    def make_pass(self, pass_id: str = "GP-TEST0001", **overrides) -> GuestPass:
        """Seed a pass created now for user u1 in unit A-101."""
        now = self.clock.now()
        values = dict(
            id=pass_id,
            project_id=PROJECT_ID,
            user_id="u1",
            user_name="Resident",
            unit="A-101",
            guest_name="Alice",
            purpose="Dinner",
            valid_from=now,
            valid_until=now + timedelta(hours=2),
            created_at=now,
            updated_at=now,
            verification_token="tok-" + pass_id,
        )
        values.update(overrides)
        return self.passes.seed(GuestPass(**values))


@pytest.fixture
def harness() -> Harness:
    """Services over fresh fakes, with member u1 (unit A-101, owner) in proj-1."""
    h = Harness()
    h.users.add("u1")
    return h


@pytest.fixture
async def client(harness: Harness) -> AsyncClient:
    """Async HTTP client against the FastAPI app, backed by the harness fakes."""
    from gatepass.api.v1.dependencies import get_guest_pass_operations
    from gatepass.core.limiter import limiter
    from gatepass.main import create_app

    app = create_app()
    app.dependency_overrides[get_guest_pass_operations] = lambda: harness.ops
    limiter.enabled = False
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    limiter.enabled = True


@pytest.fixture
async def bare_client() -> AsyncClient:
    """Client with no dependency overrides (Firestore never initialized)."""
    from gatepass.main import create_app

    transport = ASGITransport(app=create_app())
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
