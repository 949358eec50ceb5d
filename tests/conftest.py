"""Shared test fixtures for the compliance tracker test suite."""

import os

# Point the app at in-memory SQLite before settings are first imported.
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["APP_ENV"] = "test"

from collections.abc import AsyncGenerator, Callable  # noqa: E402
from dataclasses import dataclass  # noqa: E402
from datetime import datetime, timedelta, timezone  # noqa: E402
from typing import Any  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from jose import jwt  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from compliance_tracker.auth.guard import AccessGuard  # noqa: E402
from compliance_tracker.core.config import settings  # noqa: E402
from compliance_tracker.core.database import Base, get_db  # noqa: E402
from compliance_tracker.core.periods import get_now  # noqa: E402
from compliance_tracker.main import app  # noqa: E402
from compliance_tracker.models import (  # noqa: E402
    Client,
    ClientLawGroupAssignment,
    Compliance,
    ComplianceStatus,
    ComplianceStatusEntry,
    Frequency,
    LawGroup,
    User,
    UserClientAssignment,
    UserRole,
)
from compliance_tracker.schemas.auth import CurrentUser  # noqa: E402
from compliance_tracker.store import ComplianceStore  # noqa: E402

# 10 June 2025: current period is (2025, 6), current day-of-month is 10.
FIXED_NOW = datetime(2025, 6, 10, 9, 30, tzinfo=timezone.utc)


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def now() -> datetime:
    """Request clock; override in a test module to move "today"."""
    return FIXED_NOW


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine]:
    """Fresh in-memory database per test; StaticPool keeps the one connection alive."""
    eng = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
async def db(engine: AsyncEngine) -> AsyncGenerator[AsyncSession]:
    session = AsyncSession(bind=engine, expire_on_commit=False)
    try:
        yield session
    finally:
        await session.close()


# ── Tokens & HTTP clients ─────────────────────────────────────────────────


def make_token(user_id: int, expires_in: timedelta = timedelta(hours=1)) -> str:
    payload = {
        "sub": str(user_id),
        "exp": int((datetime.now(timezone.utc) + expires_in).timestamp()),
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


@pytest.fixture
async def api(db: AsyncSession, now: datetime) -> AsyncGenerator[Callable[[User], AsyncClient]]:
    """Factory of authenticated clients sharing the test session and clock."""
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_now] = lambda: now
    opened: list[AsyncClient] = []

    def client_for(user: User) -> AsyncClient:
        ac = AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
            headers={"Authorization": f"Bearer {make_token(user.id)}"},
        )
        opened.append(ac)
        return ac

    yield client_for

    for ac in opened:
        await ac.aclose()
    app.dependency_overrides.pop(get_db, None)
    app.dependency_overrides.pop(get_now, None)


@pytest.fixture
async def anon_client(db: AsyncSession) -> AsyncGenerator[AsyncClient]:
    app.dependency_overrides[get_db] = lambda: db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.pop(get_db, None)


# ── Sample data ───────────────────────────────────────────────────────────


class Factory:
    """Row builders bound to the test session. Every builder flushes."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def _add(self, obj: Any) -> Any:
        self.db.add(obj)
        await self.db.flush()
        return obj

    async def user(self, name: str, role: UserRole, **kw: Any) -> User:
        email = kw.pop("email", f"{name.lower().replace(' ', '.')}@example.com")
        return await self._add(User(name=name, email=email, role=role, **kw))

    async def client(self, name: str, **kw: Any) -> Client:
        return await self._add(Client(name=name, **kw))

    async def law_group(self, name: str, display_order: int = 0, **kw: Any) -> LawGroup:
        return await self._add(LawGroup(name=name, display_order=display_order, **kw))

    async def compliance(self, name: str, **kw: Any) -> Compliance:
        kw.setdefault("frequency", Frequency.MONTHLY)
        return await self._add(Compliance(name=name, **kw))

    async def assign(self, user: User, *clients: Client) -> None:
        for c in clients:
            await self._add(UserClientAssignment(user_id=user.id, client_id=c.id))

    async def subscribe(self, client: Client, *law_groups: LawGroup) -> None:
        for lg in law_groups:
            await self._add(ClientLawGroupAssignment(client_id=client.id, law_group_id=lg.id))

    async def status(
        self,
        client: Client,
        compliance: Compliance,
        year: int,
        month: int,
        status: ComplianceStatus,
        notes: str | None = None,
    ) -> ComplianceStatusEntry:
        return await self._add(
            ComplianceStatusEntry(
                client_id=client.id,
                compliance_id=compliance.id,
                period_year=year,
                period_month=month,
                status=status,
                notes=notes,
            )
        )


@pytest.fixture
def make(db: AsyncSession) -> Factory:
    return Factory(db)


@dataclass
class World:
    admin: User
    partner: User
    manager: User
    member: User
    acme: Client
    beta: Client
    zeta: Client
    dormant: Client
    gst: LawGroup
    income_tax: LawGroup
    gstr1: Compliance
    gstr3b: Compliance
    tds: Compliance
    annual: Compliance
    minutes: Compliance


@pytest.fixture
async def world(make: Factory) -> World:
    """A small firm: four staff, three active clients, two law groups, five compliances.

    The member is assigned Beta only; the manager Acme and Beta; nobody Zeta.
    Only Zeta is subscribed to Income Tax, so the manager cannot reach it.
    """
    admin = await make.user("Ada Admin", UserRole.ADMIN)
    partner = await make.user("Pat Partner", UserRole.PARTNER)
    manager = await make.user("Max Manager", UserRole.MANAGER)
    member = await make.user("Tess Member", UserRole.TEAM_MEMBER)

    zeta = await make.client("Zeta LLC")
    acme = await make.client("Acme Ltd", industry="Retail")
    beta = await make.client("Beta Corp")
    dormant = await make.client("Dormant Inc", is_active=False)

    await make.assign(member, beta)
    await make.assign(manager, acme, beta)

    income_tax = await make.law_group("Income Tax", display_order=2)
    gst = await make.law_group("GST", display_order=1)
    await make.subscribe(acme, gst)
    await make.subscribe(beta, gst)
    await make.subscribe(zeta, gst, income_tax)

    gstr1 = await make.compliance("GSTR-1", law_group_id=gst.id, deadline_day=11, display_order=1)
    gstr3b = await make.compliance("GSTR-3B", law_group_id=gst.id, deadline_day=20, display_order=2)
    tds = await make.compliance(
        "TDS Return", law_group_id=income_tax.id, frequency=Frequency.QUARTERLY, deadline_day=7
    )
    annual = await make.compliance(
        "Annual Return",
        law_group_id=income_tax.id,
        frequency=Frequency.YEARLY,
        deadline_day=30,
        deadline_month=6,
    )
    minutes = await make.compliance("Board Minutes")

    return World(
        admin=admin,
        partner=partner,
        manager=manager,
        member=member,
        acme=acme,
        beta=beta,
        zeta=zeta,
        dormant=dormant,
        gst=gst,
        income_tax=income_tax,
        gstr1=gstr1,
        gstr3b=gstr3b,
        tds=tds,
        annual=annual,
        minutes=minutes,
    )


def current_user_for(user: User) -> CurrentUser:
    return CurrentUser(user_id=user.id, role=user.role, email=user.email, name=user.name)


@pytest.fixture
def guard_for(db: AsyncSession, now: datetime) -> Callable[..., AccessGuard]:
    """Build an AccessGuard for a seeded user, optionally at another instant."""

    def build(user: User, at: datetime | None = None) -> AccessGuard:
        return AccessGuard(ComplianceStore(db), current_user_for(user), at or now)

    return build
