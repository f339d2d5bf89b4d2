"""
Database models for audit planning (standards catalog, audits, sessions)
"""
import uuid
from datetime import date, datetime, time
from enum import Enum
from typing import Optional, List

from sqlalchemy import (
    String, Text, Integer, Boolean, Date, Time, DateTime, ForeignKey, Enum as SQLEnum
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from app.db.database import Base


# === ENUMS ===

class AuditStatus(str, Enum):
    PLANNING = "planning"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class SessionStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class FieldType(str, Enum):
    QUESTION = "question"
    SECTION = "section"


# === ORGANISATION ===

class Profile(Base):
    """User profile linking an acting user to its owning company"""
    __tablename__ = "profiles"

    user_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    company_id: Mapped[Optional[uuid.UUID]] = mapped_column(UUID(as_uuid=True), nullable=True)
    full_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)


# === CATALOG ===

class AuditCategory(Base):
    """Audit category (templates are scoped to exactly one category)"""
    __tablename__ = "audit_categories"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    company_id: Mapped[Optional[uuid.UUID]] = mapped_column(UUID(as_uuid=True), nullable=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    # Relationships
    templates: Mapped[List["AuditTemplate"]] = relationship(back_populates="category", cascade="all, delete-orphan")


class AuditTemplate(Base):
    __tablename__ = "audit_templates"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    company_id: Mapped[Optional[uuid.UUID]] = mapped_column(UUID(as_uuid=True), nullable=True)
    category_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("audit_categories.id"), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    # Relationships
    category: Mapped["AuditCategory"] = relationship(back_populates="templates")


class AuditStandard(Base):
    """Checklist/regulatory standard (e.g. ISO 9001)"""
    __tablename__ = "audit_standards"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    company_id: Mapped[Optional[uuid.UUID]] = mapped_column(UUID(as_uuid=True), nullable=True)
    code: Mapped[str] = mapped_column(String(50), nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    version: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    # Relationships
    items: Mapped[List["AuditStandardItem"]] = relationship(back_populates="standard", cascade="all, delete-orphan")


class AuditStandardItem(Base):
    """
    One node of a standard's hierarchy.

    Stored flat (parent_id), nested on read. Only field_type="question"
    rows are selectable.
    """
    __tablename__ = "audit_standard_items"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    standard_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("audit_standards.id", ondelete="CASCADE"), nullable=False)
    parent_id: Mapped[Optional[uuid.UUID]] = mapped_column(UUID(as_uuid=True), ForeignKey("audit_standard_items.id", ondelete="CASCADE"), nullable=True)
    item_number: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)  # "4.1.2"
    title: Mapped[str] = mapped_column(Text, nullable=False)
    field_type: Mapped[str] = mapped_column(String(30), default=FieldType.QUESTION.value)
    display_order: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    # Relationships
    standard: Mapped["AuditStandard"] = relationship(back_populates="items")


# === AUDITS ===

class Audit(Base):
    """Audit root record"""
    __tablename__ = "audits"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    company_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    created_by: Mapped[Optional[uuid.UUID]] = mapped_column(UUID(as_uuid=True), nullable=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    audit_type: Mapped[str] = mapped_column(String(50), default="internal")
    category_id: Mapped[Optional[uuid.UUID]] = mapped_column(UUID(as_uuid=True), ForeignKey("audit_categories.id"), nullable=True)
    template_id: Mapped[Optional[uuid.UUID]] = mapped_column(UUID(as_uuid=True), ForeignKey("audit_templates.id"), nullable=True)
    target_entity: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    target_entity_type: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)  # department, supplier, site...
    start_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    end_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    lead_auditor_id: Mapped[Optional[uuid.UUID]] = mapped_column(UUID(as_uuid=True), nullable=True)
    status: Mapped[str] = mapped_column(String(30), default=AuditStatus.PLANNING.value)
    total_items: Mapped[int] = mapped_column(Integer, default=0)  # Sum of session item counts, written after sessions
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    standard_links: Mapped[List["AuditStandardLink"]] = relationship(back_populates="audit", cascade="all, delete-orphan")
    sessions: Mapped[List["AuditSession"]] = relationship(back_populates="audit", cascade="all, delete-orphan")


class AuditStandardLink(Base):
    """Audit <-> standard link, ordered as the user selected them"""
    __tablename__ = "audit_standards_link"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    audit_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("audits.id", ondelete="CASCADE"), nullable=False)
    standard_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("audit_standards.id"), nullable=False)
    display_order: Mapped[int] = mapped_column(Integer, nullable=False)

    # Relationships
    audit: Mapped["Audit"] = relationship(back_populates="standard_links")


class AuditSession(Base):
    """Grouping of selected questions with optional schedule/location"""
    __tablename__ = "audit_sessions"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    audit_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("audits.id", ondelete="CASCADE"), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    session_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    start_time: Mapped[Optional[time]] = mapped_column(Time, nullable=True)
    end_time: Mapped[Optional[time]] = mapped_column(Time, nullable=True)
    location: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    status: Mapped[str] = mapped_column(String(30), default=SessionStatus.PENDING.value)
    display_order: Mapped[int] = mapped_column(Integer, nullable=False)
    total_items: Mapped[int] = mapped_column(Integer, default=0)
    responded_items: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    # Relationships
    audit: Mapped["Audit"] = relationship(back_populates="sessions")
    items: Mapped[List["AuditSessionItem"]] = relationship(back_populates="session", cascade="all, delete-orphan")


class AuditSessionItem(Base):
    """Session <-> standard item link, ordered as the user selected them"""
    __tablename__ = "audit_session_items"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    session_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("audit_sessions.id", ondelete="CASCADE"), nullable=False)
    standard_item_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("audit_standard_items.id"), nullable=False)
    display_order: Mapped[int] = mapped_column(Integer, nullable=False)

    # Relationships
    session: Mapped["AuditSession"] = relationship(back_populates="items")
