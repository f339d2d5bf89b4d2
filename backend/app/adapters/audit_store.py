"""
SQL persistence for the audit creation saga.

Every method commits its own unit of work: a failure in a later saga step
does not roll back rows written by earlier steps.
"""
import logging
import uuid
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models import (
    Audit, AuditSession, AuditSessionItem, AuditStandardLink, Profile, SessionStatus
)

logger = logging.getLogger(__name__)


def as_uuid(value: Any) -> Optional[uuid.UUID]:
    """Coerce an id (str or UUID) to UUID; None stays None."""
    if value is None or value == "":
        return None
    if isinstance(value, uuid.UUID):
        return value
    return uuid.UUID(str(value))


def _audit_row(audit: Audit) -> Dict[str, Any]:
    return {
        "id": str(audit.id),
        "company_id": str(audit.company_id),
        "title": audit.title,
        "status": audit.status,
        "total_items": audit.total_items,
    }


class SqlAuditWriter:
    """AuditWriter backed by an AsyncSession"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _commit(self) -> None:
        try:
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

    async def resolve_user_org(self, user_id: Optional[str]) -> Optional[str]:
        if not user_id:
            return None
        try:
            key = as_uuid(user_id)
        except ValueError:
            return None
        result = await self.db.execute(select(Profile.company_id).where(Profile.user_id == key))
        company_id = result.scalar_one_or_none()
        return str(company_id) if company_id else None

    async def insert_audit(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        audit = Audit(
            company_id=as_uuid(fields["company_id"]),
            created_by=as_uuid(fields.get("created_by")),
            title=fields["title"],
            description=fields.get("description"),
            audit_type=fields.get("audit_type") or "internal",
            category_id=as_uuid(fields.get("category_id")),
            template_id=as_uuid(fields.get("template_id")),
            target_entity=fields.get("target_entity"),
            target_entity_type=fields.get("target_entity_type"),
            start_date=fields.get("start_date"),
            end_date=fields.get("end_date"),
            lead_auditor_id=as_uuid(fields.get("lead_auditor_id")),
            status=fields["status"],
            total_items=0,
        )
        self.db.add(audit)
        await self._commit()
        await self.db.refresh(audit)
        return _audit_row(audit)

    async def insert_standard_links(self, audit_id: str, links: Sequence[Tuple[str, int]]) -> List[Dict[str, Any]]:
        rows = [
            AuditStandardLink(
                audit_id=as_uuid(audit_id),
                standard_id=as_uuid(standard_id),
                display_order=order,
            )
            for standard_id, order in links
        ]
        self.db.add_all(rows)
        await self._commit()
        return [
            {"id": str(r.id), "standard_id": str(r.standard_id), "display_order": r.display_order}
            for r in rows
        ]

    async def insert_session(
        self, audit_id: str, fields: Dict[str, Any], order: int, total_items: int
    ) -> Dict[str, Any]:
        session = AuditSession(
            audit_id=as_uuid(audit_id),
            name=fields["name"],
            description=fields.get("description"),
            session_date=fields.get("session_date"),
            start_time=fields.get("start_time"),
            end_time=fields.get("end_time"),
            location=fields.get("location"),
            status=SessionStatus.PENDING.value,
            display_order=order,
            total_items=total_items,
            responded_items=0,
        )
        self.db.add(session)
        await self._commit()
        await self.db.refresh(session)
        return {
            "id": str(session.id),
            "name": session.name,
            "display_order": session.display_order,
            "total_items": session.total_items,
        }

    async def insert_session_item_links(self, session_id: str, links: Sequence[Tuple[str, int]]) -> List[Dict[str, Any]]:
        rows = [
            AuditSessionItem(
                session_id=as_uuid(session_id),
                standard_item_id=as_uuid(item_id),
                display_order=order,
            )
            for item_id, order in links
        ]
        self.db.add_all(rows)
        await self._commit()
        return [
            {"id": str(r.id), "standard_item_id": str(r.standard_item_id), "display_order": r.display_order}
            for r in rows
        ]

    async def update_audit_total_items(self, audit_id: str, total: int) -> Dict[str, Any]:
        result = await self.db.execute(select(Audit).where(Audit.id == as_uuid(audit_id)))
        audit = result.scalar_one_or_none()
        if audit is None:
            raise LookupError(f"Audit {audit_id} not found")
        audit.total_items = total
        await self._commit()
        return _audit_row(audit)

    # === Undo actions ===

    async def delete_audit(self, audit_id: str) -> None:
        await self.db.execute(delete(Audit).where(Audit.id == as_uuid(audit_id)))
        await self._commit()

    async def delete_standard_links(self, audit_id: str) -> None:
        await self.db.execute(delete(AuditStandardLink).where(AuditStandardLink.audit_id == as_uuid(audit_id)))
        await self._commit()

    async def delete_session(self, session_id: str) -> None:
        await self.db.execute(delete(AuditSession).where(AuditSession.id == as_uuid(session_id)))
        await self._commit()

    async def delete_session_item_links(self, session_id: str) -> None:
        await self.db.execute(delete(AuditSessionItem).where(AuditSessionItem.session_id == as_uuid(session_id)))
        await self._commit()
