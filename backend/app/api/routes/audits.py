"""
Audit routes: create an audit from a wizard draft, list and read audits
"""
import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, Header, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.adapters.audit_store import SqlAuditWriter
from app.adapters.catalog import CatalogReader
from app.api.schemas.audit import (
    AuditCreatedResponse, AuditDetailResponse, AuditDraftIn, AuditSessionResponse,
    AuditSummary, LinkedStandard,
)
from app.db import get_db
from app.db.models import Audit, AuditSession, AuditStandard
from app.wizard.controller import WizardController
from app.wizard.errors import SessionValidationError, StepGateError
from app.wizard.saga import STEP_RESOLVE_ORG, CreationSaga

router = APIRouter()

# Failures raised before any row is written
PRECONDITION_STEPS = {STEP_RESOLVE_ORG, "validate_draft"}


def _str(value: Optional[uuid.UUID]) -> Optional[str]:
    return str(value) if value is not None else None


def _fill_wizard(wizard: WizardController, data: AuditDraftIn, templates: List[dict]) -> None:
    """Replay a posted draft through the wizard, step by step, so every gate applies."""
    state = wizard.state
    state.set_templates(templates)

    state.update_general(
        title=data.title,
        description=data.description,
        audit_type=data.audit_type,
        category_id=_str(data.category_id),
        target_entity=data.target_entity,
        target_entity_type=data.target_entity_type,
        start_date=data.start_date,
        end_date=data.end_date,
        lead_auditor_id=_str(data.lead_auditor_id),
    )
    # Template after category: a category change clears it
    state.update_general(template_id=_str(data.template_id))
    wizard.next_step()

    state.set_standards([str(s) for s in data.standard_ids])
    wizard.next_step()

    for session in data.sessions:
        state.session_editor.open_new()
        state.session_editor.update(
            name=session.name,
            description=session.description,
            session_date=session.session_date,
            start_time=session.start_time,
            end_time=session.end_time,
            location=session.location,
            item_ids=[str(i) for i in session.item_ids],
        )
        state.save_session()
    wizard.next_step()


@router.post("", response_model=AuditCreatedResponse, status_code=201)
async def create_audit(
    data: AuditDraftIn,
    x_user_id: Optional[str] = Header(None),
    db: AsyncSession = Depends(get_db),
):
    """
    Create an audit with its standards, sessions and session items.

    The writes are sequential and not atomic: on a write failure the rows
    committed before it remain.
    """
    standard_ids = [str(s) for s in data.standard_ids]
    reader = CatalogReader(db)
    catalog = await reader.load_catalog(standard_ids)
    templates = await reader.fetch_templates()
    saga = CreationSaga(SqlAuditWriter(db), catalog=catalog)
    wizard = WizardController(saga, user_id=x_user_id)
    wizard.open()

    try:
        _fill_wizard(wizard, data, templates)
    except StepGateError as e:
        raise HTTPException(status_code=422, detail=e.reason)
    except SessionValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))

    result = await wizard.submit()

    if not result.ok:
        if result.failed_step in PRECONDITION_STEPS:
            raise HTTPException(status_code=400, detail=result.error)
        raise HTTPException(status_code=500, detail=f"Failed to create audit: {result.error}")

    audit = await db.get(Audit, uuid.UUID(result.audit_id))
    return AuditCreatedResponse(
        id=audit.id,
        title=audit.title,
        status=audit.status,
        total_items=audit.total_items,
        session_ids=result.session_ids,
    )


@router.get("", response_model=List[AuditSummary])
async def list_audits(
    x_user_id: Optional[str] = Header(None),
    db: AsyncSession = Depends(get_db),
):
    """List audits of the acting user's company, newest first"""
    company_id = await SqlAuditWriter(db).resolve_user_org(x_user_id)
    if company_id is None:
        raise HTTPException(status_code=400, detail="No organization found for user")

    result = await db.execute(
        select(Audit)
        .where(Audit.company_id == uuid.UUID(company_id))
        .order_by(Audit.created_at.desc())
    )
    return [
        AuditSummary(
            id=a.id,
            title=a.title,
            status=a.status,
            audit_type=a.audit_type,
            total_items=a.total_items,
            start_date=a.start_date,
            end_date=a.end_date,
            created_at=a.created_at.isoformat(),
        )
        for a in result.scalars().all()
    ]


@router.get("/{audit_id}", response_model=AuditDetailResponse)
async def get_audit(audit_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    """Audit with linked standards and sessions, in display order"""
    result = await db.execute(
        select(Audit)
        .options(
            selectinload(Audit.standard_links),
            selectinload(Audit.sessions).selectinload(AuditSession.items),
        )
        .where(Audit.id == audit_id)
        .execution_options(populate_existing=True)
    )
    audit = result.scalar_one_or_none()
    if not audit:
        raise HTTPException(status_code=404, detail="Audit not found")

    links = sorted(audit.standard_links, key=lambda link: link.display_order)
    standards_map = {}
    if links:
        std_result = await db.execute(
            select(AuditStandard).where(AuditStandard.id.in_([link.standard_id for link in links]))
        )
        standards_map = {s.id: s for s in std_result.scalars().all()}

    standards = []
    for link in links:
        standard = standards_map.get(link.standard_id)
        standards.append(LinkedStandard(
            standard_id=link.standard_id,
            display_order=link.display_order,
            code=standard.code if standard else None,
            name=standard.name if standard else None,
        ))

    sessions = []
    for s in sorted(audit.sessions, key=lambda s: s.display_order):
        items = sorted(s.items, key=lambda i: i.display_order)
        sessions.append(AuditSessionResponse(
            id=s.id,
            name=s.name,
            description=s.description,
            session_date=s.session_date,
            start_time=s.start_time,
            end_time=s.end_time,
            location=s.location,
            status=s.status,
            display_order=s.display_order,
            total_items=s.total_items,
            responded_items=s.responded_items,
            item_ids=[i.standard_item_id for i in items],
        ))

    return AuditDetailResponse(
        id=audit.id,
        title=audit.title,
        status=audit.status,
        audit_type=audit.audit_type,
        total_items=audit.total_items,
        start_date=audit.start_date,
        end_date=audit.end_date,
        created_at=audit.created_at.isoformat(),
        description=audit.description,
        category_id=audit.category_id,
        template_id=audit.template_id,
        target_entity=audit.target_entity,
        target_entity_type=audit.target_entity_type,
        lead_auditor_id=audit.lead_auditor_id,
        standards=standards,
        sessions=sessions,
    )
