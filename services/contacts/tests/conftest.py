import os
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
import pytest_asyncio
from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool
from sqlmodel import SQLModel

os.environ.setdefault("DB_URL_CONTACTS", "sqlite:///unused-contacts.db")

from services.contacts import settings as contacts_settings  # noqa: E402
from services.contacts.models import Company, Contact  # noqa: E402

ORG = "org-1"
OTHER_ORG = "org-2"


@pytest.fixture(autouse=True)
def reset_settings(monkeypatch):
    """Give every test a fresh settings object."""
    monkeypatch.setattr(contacts_settings, "_settings", None)
    yield


@pytest.fixture
def db_path():
    """Create a temporary file-based SQLite database with all tables."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as tmp:
        path = tmp.name

    sync_engine = create_engine(f"sqlite:///{path}")
    SQLModel.metadata.create_all(sync_engine)
    sync_engine.dispose()

    yield path

    Path(path).unlink(missing_ok=True)


@pytest.fixture
def session_factory(db_path):
    # NullPool: TestClient drives requests from its own event loop
    engine = create_async_engine(f"sqlite+aiosqlite:///{db_path}", poolclass=NullPool)
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


def make_contact(**overrides) -> Contact:
    """Build a contact row with sensible defaults."""
    values = dict(
        organization_id=ORG,
        first_name="Test",
        last_name="User",
        email="test@example.com",
        created_at=datetime(2025, 1, 1, tzinfo=timezone.utc),
        updated_at=datetime(2025, 1, 1, tzinfo=timezone.utc),
    )
    values.update(overrides)
    return Contact(**values)


def make_company(**overrides) -> Company:
    values = dict(organization_id=ORG, name="Acme")
    values.update(overrides)
    return Company(**values)


@pytest_asyncio.fixture
async def companies(session):
    """Two companies in ORG and one in OTHER_ORG."""
    acme = make_company(id="co-acme", name="Acme")
    globex = make_company(id="co-globex", name="Globex")
    foreign = make_company(id="co-foreign", name="Initech", organization_id=OTHER_ORG)
    session.add_all([acme, globex, foreign])
    await session.commit()
    return {"acme": acme, "globex": globex, "foreign": foreign}


@pytest_asyncio.fixture
async def five_contacts(session, companies):
    """Five ORG contacts created one hour apart, plus one foreign contact."""
    base = datetime(2025, 3, 1, 9, 0, tzinfo=timezone.utc)
    rows = [
        make_contact(
            id="c-1",
            first_name="Jane",
            last_name="Smith",
            email="jane.smith@acme.test",
            company_id="co-acme",
            status="active",
            created_at=base,
        ),
        make_contact(
            id="c-2",
            first_name="John",
            last_name="Smithers",
            email="john@globex.test",
            company_id="co-globex",
            status="inactive",
            created_at=base + timedelta(hours=1),
        ),
        make_contact(
            id="c-3",
            first_name="Janet",
            last_name="Doe",
            email="janet@example.test",
            phone="+33 1 23 45 67 89",
            assigned_to="user-7",
            status="active",
            created_at=base + timedelta(hours=2),
        ),
        make_contact(
            id="c-4",
            first_name="Marie",
            last_name="Curie",
            email="marie@jane-labs.test",
            company_id="co-missing",
            status="inactive",
            created_at=base + timedelta(hours=3),
        ),
        make_contact(
            id="c-5",
            first_name="Pierre",
            last_name="Martin",
            email="pierre@acme.test",
            mobile="06 50% off",
            company_id="co-foreign",
            assigned_to="user-7",
            status="active",
            created_at=base + timedelta(hours=4),
        ),
        make_contact(
            id="c-foreign",
            organization_id=OTHER_ORG,
            first_name="Jane",
            last_name="Smith",
            email="jane@other.test",
            created_at=base + timedelta(hours=5),
        ),
    ]
    session.add_all(rows)
    await session.commit()
    return rows


@pytest.fixture
def contact_factory():
    return make_contact
