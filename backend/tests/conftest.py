"""
Test configuration and fixtures
"""
import os
import uuid
from typing import Any, AsyncGenerator, Dict, List, Optional, Sequence, Tuple

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

# Set test environment
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["DEBUG"] = "true"
os.environ["SAGA_COMPENSATE_ON_FAILURE"] = "false"

from app.db.database import Base, get_db
from app.main import app
from app.db.models import (
    AuditCategory, AuditStandard, AuditStandardItem, AuditTemplate, Profile, FieldType
)
from app.wizard.item_tree import StandardItem


# Test database setup
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture(scope="function")
async def async_engine():
    """Create async engine for tests"""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(async_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create database session for tests"""
    async_session = async_sessionmaker(
        async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )

    async with async_session() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession, sample_profile: Profile) -> AsyncGenerator[AsyncClient, None]:
    """Test client acting as sample_profile's user"""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        ac.headers.update({"X-User-Id": str(sample_profile.user_id)})
        yield ac

    app.dependency_overrides.clear()


# === Sample Data Fixtures ===

@pytest_asyncio.fixture
async def sample_profile(db_session: AsyncSession) -> Profile:
    """User attached to a company"""
    profile = Profile(company_id=uuid.uuid4(), full_name="Ana Auditor")
    db_session.add(profile)
    await db_session.commit()
    await db_session.refresh(profile)
    return profile


@pytest_asyncio.fixture
async def orphan_profile(db_session: AsyncSession) -> Profile:
    """User without a company"""
    profile = Profile(company_id=None, full_name="No Company")
    db_session.add(profile)
    await db_session.commit()
    await db_session.refresh(profile)
    return profile


@pytest_asyncio.fixture
async def sample_standard(db_session: AsyncSession) -> AuditStandard:
    """
    ISO 9001 with a small hierarchy:

        4 Context (section)
          4.1 Understanding the organization (question)
          4.2 Interested parties (section)
            4.2.1 Needs and expectations (question)
        5 Leadership (question)
    """
    standard = AuditStandard(code="ISO9001", name="ISO 9001", version="2015")
    db_session.add(standard)
    await db_session.flush()

    context = AuditStandardItem(
        standard_id=standard.id, item_number="4", title="Context",
        field_type=FieldType.SECTION.value, display_order=0,
    )
    leadership = AuditStandardItem(
        standard_id=standard.id, item_number="5", title="Leadership",
        field_type=FieldType.QUESTION.value, display_order=1,
    )
    db_session.add_all([context, leadership])
    await db_session.flush()

    understanding = AuditStandardItem(
        standard_id=standard.id, parent_id=context.id, item_number="4.1",
        title="Understanding the organization", field_type=FieldType.QUESTION.value, display_order=0,
    )
    parties = AuditStandardItem(
        standard_id=standard.id, parent_id=context.id, item_number="4.2",
        title="Interested parties", field_type=FieldType.SECTION.value, display_order=1,
    )
    db_session.add_all([understanding, parties])
    await db_session.flush()

    needs = AuditStandardItem(
        standard_id=standard.id, parent_id=parties.id, item_number="4.2.1",
        title="Needs and expectations", field_type=FieldType.QUESTION.value, display_order=0,
    )
    db_session.add(needs)
    await db_session.commit()
    await db_session.refresh(standard)
    return standard


@pytest_asyncio.fixture
async def second_standard(db_session: AsyncSession) -> AuditStandard:
    """ISO 14001 with two flat questions"""
    standard = AuditStandard(code="ISO14001", name="ISO 14001", version="2015")
    db_session.add(standard)
    await db_session.flush()
    db_session.add_all([
        AuditStandardItem(
            standard_id=standard.id, item_number="6.1", title="Environmental aspects",
            field_type=FieldType.QUESTION.value, display_order=0,
        ),
        AuditStandardItem(
            standard_id=standard.id, item_number="6.2", title="Objectives",
            field_type=FieldType.QUESTION.value, display_order=1,
        ),
    ])
    await db_session.commit()
    await db_session.refresh(standard)
    return standard


@pytest_asyncio.fixture
async def empty_standard(db_session: AsyncSession) -> AuditStandard:
    """Standard with only a grouping node"""
    standard = AuditStandard(code="EMPTY", name="Empty Standard")
    db_session.add(standard)
    await db_session.flush()
    db_session.add(AuditStandardItem(
        standard_id=standard.id, item_number="1", title="Scope",
        field_type=FieldType.SECTION.value, display_order=0,
    ))
    await db_session.commit()
    await db_session.refresh(standard)
    return standard


@pytest_asyncio.fixture
async def sample_categories(db_session: AsyncSession) -> Tuple[AuditCategory, AuditCategory]:
    """Two categories with one template each"""
    quality = AuditCategory(title="Quality")
    safety = AuditCategory(title="Safety")
    db_session.add_all([quality, safety])
    await db_session.flush()
    db_session.add_all([
        AuditTemplate(name="Quality checklist", category_id=quality.id),
        AuditTemplate(name="Safety walk", category_id=safety.id),
    ])
    await db_session.commit()
    return quality, safety


# === In-memory tree fixtures ===

@pytest.fixture
def item_tree() -> Tuple[StandardItem, ...]:
    """
    s1 tree:
        1 Governance (group)
          1.1 Policy documented? (question)   id=i1
          1.2 Roles (group)
            1.2.1 Roles assigned? (question)  id=i2
        2 Records retained? (question)        id=i3
    """
    return (
        StandardItem(
            id="g1", standard_id="s1", item_number="1", title="Governance", field_type="section",
            children=(
                StandardItem(id="i1", standard_id="s1", item_number="1.1", title="Policy documented?"),
                StandardItem(
                    id="g2", standard_id="s1", item_number="1.2", title="Roles", field_type="section",
                    children=(
                        StandardItem(id="i2", standard_id="s1", item_number="1.2.1", title="Roles assigned?"),
                    ),
                ),
            ),
        ),
        StandardItem(id="i3", standard_id="s1", item_number="2", title="Records retained?"),
    )


# === Saga writer double ===

class RecordingWriter:
    """
    In-memory AuditWriter recording every call in order.

    fail_on = ("insert_session", 1) makes the first insert_session call raise.
    """

    def __init__(self, company_id: Optional[str] = "org-1"):
        self.company_id = company_id
        self.calls: List[Tuple[str, Any]] = []
        self.audits: Dict[str, Dict[str, Any]] = {}
        self.standard_links: List[Dict[str, Any]] = []
        self.sessions: Dict[str, Dict[str, Any]] = {}
        self.session_items: List[Dict[str, Any]] = []
        self.fail_on: Optional[Tuple[str, int]] = None
        self._counts: Dict[str, int] = {}

    def _enter(self, name: str, payload: Any) -> None:
        self.calls.append((name, payload))
        self._counts[name] = self._counts.get(name, 0) + 1
        if self.fail_on and self.fail_on[0] == name and self.fail_on[1] == self._counts[name]:
            raise RuntimeError(f"{name} rejected by backend")

    def call_names(self) -> List[str]:
        return [name for name, _ in self.calls]

    async def resolve_user_org(self, user_id):
        self._enter("resolve_user_org", user_id)
        return self.company_id if user_id else None

    async def insert_audit(self, fields):
        self._enter("insert_audit", dict(fields))
        audit_id = f"audit-{uuid.uuid4().hex[:8]}"
        self.audits[audit_id] = dict(fields, id=audit_id, total_items=0)
        return self.audits[audit_id]

    async def insert_standard_links(self, audit_id, links: Sequence[Tuple[str, int]]):
        self._enter("insert_standard_links", (audit_id, list(links)))
        rows = [{"audit_id": audit_id, "standard_id": s, "display_order": o} for s, o in links]
        self.standard_links.extend(rows)
        return rows

    async def insert_session(self, audit_id, fields, order, total_items):
        self._enter("insert_session", (audit_id, dict(fields), order, total_items))
        session_id = f"session-{uuid.uuid4().hex[:8]}"
        self.sessions[session_id] = dict(
            fields, id=session_id, audit_id=audit_id, display_order=order, total_items=total_items
        )
        return self.sessions[session_id]

    async def insert_session_item_links(self, session_id, links: Sequence[Tuple[str, int]]):
        self._enter("insert_session_item_links", (session_id, list(links)))
        rows = [{"session_id": session_id, "item_id": i, "display_order": o} for i, o in links]
        self.session_items.extend(rows)
        return rows

    async def update_audit_total_items(self, audit_id, total):
        self._enter("update_audit_total_items", (audit_id, total))
        self.audits[audit_id]["total_items"] = total
        return self.audits[audit_id]

    async def delete_audit(self, audit_id):
        self._enter("delete_audit", audit_id)
        self.audits.pop(audit_id, None)

    async def delete_standard_links(self, audit_id):
        self._enter("delete_standard_links", audit_id)
        self.standard_links = [r for r in self.standard_links if r["audit_id"] != audit_id]

    async def delete_session(self, session_id):
        self._enter("delete_session", session_id)
        self.sessions.pop(session_id, None)

    async def delete_session_item_links(self, session_id):
        self._enter("delete_session_item_links", session_id)
        self.session_items = [r for r in self.session_items if r["session_id"] != session_id]


@pytest.fixture
def recording_writer() -> RecordingWriter:
    return RecordingWriter()
