"""
Audit creation saga.

Turns a finished AuditDraft into persisted rows with five sequential,
dependent writes:

1. resolve the acting user's company (nothing is written if this fails)
2. insert the audit root (status "planning")
3. insert audit <-> standard links, display_order = selection position
4. per session: insert the session, then its session <-> item links
5. write the audit's total_items (sum of all session item counts)

The writes are NOT one transaction. The first failure aborts the rest and
already committed rows stay in place unless compensation is enabled, in
which case the recorded undo actions run in reverse order. Running the
same draft twice creates two audits.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol, Sequence, Tuple

from app.core.config import settings
from app.wizard.errors import (
    AuditCreationError,
    AuditWriteError,
    DraftValidationError,
    OrganizationNotFoundError,
)
from app.wizard.item_tree import ItemCatalog
from app.wizard.state import AuditDraft

logger = logging.getLogger(__name__)


# Step names (also used in AuditWriteError.step and SagaResult.completed_steps)
STEP_RESOLVE_ORG = "resolve_org"
STEP_INSERT_AUDIT = "insert_audit"
STEP_INSERT_STANDARD_LINKS = "insert_standard_links"
STEP_INSERT_SESSION = "insert_session"
STEP_INSERT_SESSION_ITEMS = "insert_session_items"
STEP_UPDATE_TOTAL_ITEMS = "update_total_items"


class AuditWriter(Protocol):
    """Persistence contract of the saga. Each insert returns the stored row (with "id")."""

    async def resolve_user_org(self, user_id: Optional[str]) -> Optional[str]: ...

    async def insert_audit(self, fields: Dict[str, Any]) -> Dict[str, Any]: ...

    async def insert_standard_links(self, audit_id: str, links: Sequence[Tuple[str, int]]) -> List[Dict[str, Any]]: ...

    async def insert_session(
        self, audit_id: str, fields: Dict[str, Any], order: int, total_items: int
    ) -> Dict[str, Any]: ...

    async def insert_session_item_links(self, session_id: str, links: Sequence[Tuple[str, int]]) -> List[Dict[str, Any]]: ...

    async def update_audit_total_items(self, audit_id: str, total: int) -> Dict[str, Any]: ...

    # Undo actions, used only when compensation is enabled
    async def delete_audit(self, audit_id: str) -> None: ...

    async def delete_standard_links(self, audit_id: str) -> None: ...

    async def delete_session(self, session_id: str) -> None: ...

    async def delete_session_item_links(self, session_id: str) -> None: ...


@dataclass
class SagaResult:
    """Outcome of one saga run"""
    ok: bool
    audit_id: Optional[str] = None
    session_ids: List[str] = field(default_factory=list)
    total_items: int = 0
    error: Optional[str] = None
    failed_step: Optional[str] = None
    completed_steps: List[str] = field(default_factory=list)
    compensated: bool = False


def ordered(ids: Sequence[str]) -> List[Tuple[str, int]]:
    """Pair each id with its position: [(id, 0), (id, 1), ...]."""
    return [(item_id, index) for index, item_id in enumerate(ids)]


class CreationSaga:
    """Sequential multi-table commit of one audit draft"""

    def __init__(
        self,
        writer: AuditWriter,
        catalog: Optional[ItemCatalog] = None,
        compensate: Optional[bool] = None,
        initial_status: Optional[str] = None,
        default_audit_type: Optional[str] = None,
    ):
        self.writer = writer
        self.catalog = catalog
        self.compensate = settings.SAGA_COMPENSATE_ON_FAILURE if compensate is None else compensate
        self.initial_status = initial_status or settings.INITIAL_AUDIT_STATUS
        self.default_audit_type = default_audit_type or settings.DEFAULT_AUDIT_TYPE

    async def run(self, draft: AuditDraft, user_id: Optional[str]) -> SagaResult:
        """
        Execute the saga and report the outcome instead of raising.

        Args:
            draft: Frozen wizard snapshot
            user_id: Acting user

        Returns:
            SagaResult with ok=True and audit_id, or ok=False with the error message
        """
        result = SagaResult(ok=False)
        undo: List[Tuple[str, Callable[[], Awaitable[None]]]] = []
        try:
            await self._execute(draft, user_id, result, undo)
        except AuditCreationError as e:
            result.ok = False
            result.error = str(e)
            result.failed_step = getattr(e, "step", None) or _precondition_step(e)
            logger.error(f"Audit creation failed at {result.failed_step}: {e}")
            if self.compensate and undo:
                result.compensated = await self._compensate(undo)
            return result

        result.ok = True
        logger.info(
            f"Audit {result.audit_id} created: {len(draft.standard_ids)} standards, "
            f"{len(result.session_ids)} sessions, {result.total_items} items"
        )
        return result

    async def _execute(
        self,
        draft: AuditDraft,
        user_id: Optional[str],
        result: SagaResult,
        undo: List[Tuple[str, Callable[[], Awaitable[None]]]],
    ) -> None:
        writer = self.writer

        # 1. Precondition: company of the acting user
        company_id = await self._call(STEP_RESOLVE_ORG, writer.resolve_user_org, user_id)
        if not company_id:
            raise OrganizationNotFoundError(user_id)
        result.completed_steps.append(STEP_RESOLVE_ORG)

        self._validate_against_catalog(draft)

        # 2. Audit root
        fields = draft.audit_fields()
        fields["audit_type"] = fields.get("audit_type") or self.default_audit_type
        fields.update(company_id=company_id, created_by=user_id, status=self.initial_status)
        audit = await self._call(STEP_INSERT_AUDIT, writer.insert_audit, fields)
        audit_id = str(audit["id"])
        result.audit_id = audit_id
        result.completed_steps.append(STEP_INSERT_AUDIT)
        undo.append((STEP_INSERT_AUDIT, lambda: writer.delete_audit(audit_id)))
        logger.info(f"Audit {audit_id} inserted for company {company_id}")

        # 3. Standard links, in selection order
        if draft.standard_ids:
            await self._call(
                STEP_INSERT_STANDARD_LINKS,
                writer.insert_standard_links,
                audit_id,
                ordered(draft.standard_ids),
            )
            result.completed_steps.append(STEP_INSERT_STANDARD_LINKS)
            undo.append((STEP_INSERT_STANDARD_LINKS, lambda: writer.delete_standard_links(audit_id)))

        # 4. Sessions and their items
        total = 0
        for index, session in enumerate(draft.sessions):
            item_ids = session.item_ids.as_list()
            session_fields = {
                "name": session.name,
                "description": session.description,
                "session_date": session.session_date,
                "start_time": session.start_time,
                "end_time": session.end_time,
                "location": session.location,
            }
            row = await self._call(
                STEP_INSERT_SESSION, writer.insert_session, audit_id, session_fields, index, len(item_ids)
            )
            session_id = str(row["id"])
            result.session_ids.append(session_id)
            undo.append((STEP_INSERT_SESSION, _bind(writer.delete_session, session_id)))

            if item_ids:
                await self._call(
                    STEP_INSERT_SESSION_ITEMS,
                    writer.insert_session_item_links,
                    session_id,
                    ordered(item_ids),
                )
                undo.append((STEP_INSERT_SESSION_ITEMS, _bind(writer.delete_session_item_links, session_id)))
            total += len(item_ids)
            logger.info(f"Session {index} ({session.name}) inserted with {len(item_ids)} items")

        if draft.sessions:
            result.completed_steps.append(STEP_INSERT_SESSION)

        # 5. Derived total, written once after all sessions
        await self._call(STEP_UPDATE_TOTAL_ITEMS, writer.update_audit_total_items, audit_id, total)
        result.total_items = total
        result.completed_steps.append(STEP_UPDATE_TOTAL_ITEMS)

    def _validate_against_catalog(self, draft: AuditDraft) -> None:
        if self.catalog is None:
            return
        allowed = self.catalog.question_ids(draft.standard_ids)
        for session in draft.sessions:
            stray = [i for i in session.item_ids if i not in allowed]
            if stray:
                raise DraftValidationError(
                    f"Session '{session.name}' has {len(stray)} item(s) outside the selected standards"
                )

    async def _call(self, step: str, fn: Callable[..., Awaitable[Any]], *args: Any) -> Any:
        try:
            return await fn(*args)
        except AuditCreationError:
            raise
        except Exception as e:
            raise AuditWriteError(step, str(e)) from e

    async def _compensate(self, undo: List[Tuple[str, Callable[[], Awaitable[None]]]]) -> bool:
        """Run undo actions newest first; returns False if any of them failed."""
        clean = True
        for step, action in reversed(undo):
            try:
                await action()
                logger.warning(f"Compensated {step}")
            except Exception as e:
                clean = False
                logger.error(f"Compensation of {step} failed: {e}")
        return clean


def _bind(fn: Callable[[str], Awaitable[None]], value: str) -> Callable[[], Awaitable[None]]:
    return lambda: fn(value)


def _precondition_step(error: AuditCreationError) -> Optional[str]:
    if isinstance(error, OrganizationNotFoundError):
        return STEP_RESOLVE_ORG
    if isinstance(error, DraftValidationError):
        return "validate_draft"
    return None
