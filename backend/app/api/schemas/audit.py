"""
Pydantic schemas for the audit wizard API
"""
from datetime import date, time
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


# === Catalog ===

class StandardResponse(BaseModel):
    id: UUID
    code: str
    name: str
    version: Optional[str] = None


class StandardItemNode(BaseModel):
    id: UUID
    item_number: Optional[str] = None
    title: str
    field_type: str
    children: List["StandardItemNode"] = Field(default_factory=list)


StandardItemNode.model_rebuild()


class StandardItemsResponse(BaseModel):
    standard_id: UUID
    search: Optional[str] = None
    question_count: int = 0
    show_bulk_toggle: bool = False
    items: List[StandardItemNode] = Field(default_factory=list)


class CategoryResponse(BaseModel):
    id: UUID
    title: str


class TemplateResponse(BaseModel):
    id: UUID
    name: str
    category_id: UUID


# === Draft (wizard payload) ===

class SessionDraftIn(BaseModel):
    name: str
    description: Optional[str] = None
    session_date: Optional[date] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    location: Optional[str] = None
    item_ids: List[UUID] = Field(default_factory=list)


class AuditDraftIn(BaseModel):
    # Step 1
    title: str
    description: Optional[str] = None
    audit_type: Optional[str] = None
    category_id: Optional[UUID] = None
    template_id: Optional[UUID] = None
    target_entity: Optional[str] = None
    target_entity_type: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    lead_auditor_id: Optional[UUID] = None
    # Step 2
    standard_ids: List[UUID] = Field(default_factory=list)
    # Step 3
    sessions: List[SessionDraftIn] = Field(default_factory=list)


# === Audits ===

class AuditCreatedResponse(BaseModel):
    id: UUID
    title: str
    status: str
    total_items: int
    session_ids: List[UUID] = Field(default_factory=list)


class AuditSummary(BaseModel):
    id: UUID
    title: str
    status: str
    audit_type: str
    total_items: int
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    created_at: str


class LinkedStandard(BaseModel):
    standard_id: UUID
    display_order: int
    code: Optional[str] = None
    name: Optional[str] = None


class AuditSessionResponse(BaseModel):
    id: UUID
    name: str
    description: Optional[str] = None
    session_date: Optional[date] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    location: Optional[str] = None
    status: str
    display_order: int
    total_items: int
    responded_items: int
    item_ids: List[UUID] = Field(default_factory=list)


class AuditDetailResponse(AuditSummary):
    description: Optional[str] = None
    category_id: Optional[UUID] = None
    template_id: Optional[UUID] = None
    target_entity: Optional[str] = None
    target_entity_type: Optional[str] = None
    lead_auditor_id: Optional[UUID] = None
    standards: List[LinkedStandard] = Field(default_factory=list)
    sessions: List[AuditSessionResponse] = Field(default_factory=list)
