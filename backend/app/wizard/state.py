"""
Wizard state: the audit draft being assembled step by step.

WizardState is the single mutable object of the flow and is only changed
through its own update methods (driven by WizardController). The creation
saga never sees it directly: it receives a frozen AuditDraft snapshot.
"""
from dataclasses import dataclass, field
from datetime import date
from enum import IntEnum
from typing import Any, List, Mapping, Optional, Sequence, Tuple

from app.wizard.sessions import (
    DeleteConfirmation,
    SessionDraft,
    SessionEditor,
    append_session,
    replace_session,
    sessions_total_items,
)


class WizardStep(IntEnum):
    GENERAL = 1
    STANDARDS = 2
    SESSIONS = 3
    REVIEW = 4


FIRST_STEP = WizardStep.GENERAL
LAST_STEP = WizardStep.REVIEW


@dataclass(frozen=True)
class AuditDraft:
    """Frozen snapshot of the wizard's data, consumed once by the creation saga"""
    title: str
    description: Optional[str] = None
    audit_type: Optional[str] = None
    category_id: Optional[str] = None
    template_id: Optional[str] = None
    target_entity: Optional[str] = None
    target_entity_type: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    lead_auditor_id: Optional[str] = None
    standard_ids: Tuple[str, ...] = ()
    sessions: Tuple[SessionDraft, ...] = ()

    @property
    def total_items(self) -> int:
        return sessions_total_items(self.sessions)

    def audit_fields(self) -> dict:
        """Columns of the audit root row (status/company are added by the saga)."""
        return {
            "title": self.title.strip(),
            "description": self.description,
            "audit_type": self.audit_type,
            "category_id": self.category_id,
            "template_id": self.template_id,
            "target_entity": self.target_entity,
            "target_entity_type": self.target_entity_type,
            "start_date": self.start_date,
            "end_date": self.end_date,
            "lead_auditor_id": self.lead_auditor_id,
        }


def _template_value(template: Any, key: str) -> Optional[str]:
    if isinstance(template, Mapping):
        value = template.get(key)
    else:
        value = getattr(template, key, None)
    return str(value) if value is not None else None


def filter_templates(templates: Sequence[Any], category_id: Optional[str]) -> List[Any]:
    """Templates of the chosen category, or all of them when none is chosen."""
    if not category_id:
        return list(templates)
    return [t for t in templates if _template_value(t, "category_id") == str(category_id)]


@dataclass
class WizardState:
    step: WizardStep = FIRST_STEP

    # Step 1 - general
    title: str = ""
    description: Optional[str] = None
    audit_type: Optional[str] = None
    category_id: Optional[str] = None
    template_id: Optional[str] = None
    target_entity: Optional[str] = None
    target_entity_type: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    lead_auditor_id: Optional[str] = None

    # Step 2 - standards (ordered, no duplicates)
    standard_ids: Tuple[str, ...] = ()

    # Step 3 - sessions
    sessions: Tuple[SessionDraft, ...] = ()
    session_editor: SessionEditor = field(default_factory=SessionEditor)
    delete_confirmation: DeleteConfirmation = field(default_factory=DeleteConfirmation)

    # Templates the step-1 picker was loaded with; None skips the category check
    templates: Optional[Tuple[Any, ...]] = field(default=None, repr=False)

    # --- step 1 ---

    def update_general(self, **fields) -> None:
        """
        Update general fields.

        Changing category_id always clears template_id: a template belongs
        to exactly one category.
        """
        allowed = {
            "title", "description", "audit_type", "category_id", "template_id",
            "target_entity", "target_entity_type", "start_date", "end_date",
            "lead_auditor_id",
        }
        unknown = set(fields) - allowed
        if unknown:
            raise AttributeError(f"Unknown wizard field(s): {', '.join(sorted(unknown))}")

        if "category_id" in fields:
            self.set_category(fields.pop("category_id"))
        for key, value in fields.items():
            setattr(self, key, value)

    def set_category(self, category_id: Optional[str]) -> None:
        self.category_id = category_id
        self.template_id = None

    def set_templates(self, templates: Sequence[Any]) -> None:
        self.templates = tuple(templates)

    def template_matches_category(self) -> bool:
        if not self.template_id or self.templates is None:
            return True
        allowed = {_template_value(t, "id") for t in filter_templates(self.templates, self.category_id)}
        return str(self.template_id) in allowed

    # --- step 2 ---

    def toggle_standard(self, standard_id: str) -> None:
        if standard_id in self.standard_ids:
            self.standard_ids = tuple(s for s in self.standard_ids if s != standard_id)
        else:
            self.standard_ids = self.standard_ids + (standard_id,)

    def set_standards(self, standard_ids: Sequence[str]) -> None:
        self.standard_ids = tuple(dict.fromkeys(standard_ids))

    # --- step 3 ---

    def save_session(self) -> SessionDraft:
        """Save the open editor: append when new, replace by index when editing."""
        index = self.session_editor.edit_index
        draft = self.session_editor.save()
        if index is None:
            self.sessions = append_session(self.sessions, draft)
        else:
            self.sessions = replace_session(self.sessions, index, draft)
        # The list changed under any pending delete; it must be requested again
        self.delete_confirmation.cancel()
        return draft

    def edit_session(self, index: int) -> None:
        self.session_editor.open_edit(index, self.sessions[index])

    def request_session_delete(self, index: int) -> None:
        if not 0 <= index < len(self.sessions):
            raise IndexError(f"No session at index {index}")
        self.delete_confirmation.request_delete(index)

    def confirm_session_delete(self) -> None:
        self.sessions = self.delete_confirmation.confirm_delete(self.sessions)

    # --- gating ---

    @property
    def total_items(self) -> int:
        return sessions_total_items(self.sessions)

    def gate_reason(self, step: WizardStep) -> Optional[str]:
        """Why a step blocks forward navigation, or None when it is passable."""
        if step == WizardStep.GENERAL:
            if not self.title.strip():
                return "Audit title is required"
            if not self.template_matches_category():
                return "Template does not belong to the selected category"
        if step == WizardStep.STANDARDS and not self.standard_ids:
            return "Select at least one standard"
        return None

    def is_step_complete(self, step: WizardStep) -> bool:
        return self.gate_reason(step) is None

    def is_complete(self) -> bool:
        return all(self.is_step_complete(s) for s in WizardStep)

    def snapshot(self) -> AuditDraft:
        return AuditDraft(
            title=self.title,
            description=self.description,
            audit_type=self.audit_type,
            category_id=self.category_id,
            template_id=self.template_id,
            target_entity=self.target_entity,
            target_entity_type=self.target_entity_type,
            start_date=self.start_date,
            end_date=self.end_date,
            lead_auditor_id=self.lead_auditor_id,
            standard_ids=tuple(self.standard_ids),
            sessions=tuple(self.sessions),
        )
