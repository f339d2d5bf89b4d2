"""
Session drafts and the session editor model.

The editor works on its own copy of a draft. Nothing reaches the wizard's
session list until save() hands back a complete SessionDraft, so an
abandoned edit leaves the previous snapshot untouched.
"""
from dataclasses import dataclass, field, replace
from datetime import date, time
from typing import Dict, Optional, Sequence, Tuple

from app.wizard.errors import SessionValidationError
from app.wizard.item_tree import StandardItem, toggle_all_in_standard
from app.wizard.selection import SelectionSet


@dataclass(frozen=True)
class SessionDraft:
    """In-memory session; id is set only once the session is persisted"""
    name: str
    description: Optional[str] = None
    session_date: Optional[date] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    location: Optional[str] = None
    item_ids: SelectionSet = field(default_factory=SelectionSet)
    id: Optional[str] = None

    @property
    def total_items(self) -> int:
        return len(self.item_ids)


def validate_session(draft: SessionDraft) -> Dict[str, str]:
    """Per-field error messages; empty when the draft can be saved."""
    errors: Dict[str, str] = {}
    if not (draft.name or "").strip():
        errors["name"] = "Session name is required"
    return errors


def append_session(sessions: Sequence[SessionDraft], draft: SessionDraft) -> Tuple[SessionDraft, ...]:
    return tuple(sessions) + (draft,)


def replace_session(sessions: Sequence[SessionDraft], index: int, draft: SessionDraft) -> Tuple[SessionDraft, ...]:
    if not 0 <= index < len(sessions):
        raise IndexError(f"No session at index {index}")
    return tuple(draft if i == index else s for i, s in enumerate(sessions))


def remove_session(sessions: Sequence[SessionDraft], index: int) -> Tuple[SessionDraft, ...]:
    if not 0 <= index < len(sessions):
        raise IndexError(f"No session at index {index}")
    return tuple(s for i, s in enumerate(sessions) if i != index)


class SessionEditor:
    """
    Modal editor for one session draft.

    open_new() starts from blank fields, open_edit() from an existing draft.
    Field edits and item toggles only change the editor's working copy.
    """

    def __init__(self):
        self.is_open: bool = False
        self.edit_index: Optional[int] = None
        self.working: SessionDraft = SessionDraft(name="")
        self.errors: Dict[str, str] = {}

    @property
    def is_editing(self) -> bool:
        return self.edit_index is not None

    def open_new(self) -> None:
        self.is_open = True
        self.edit_index = None
        self.working = SessionDraft(name="")
        self.errors = {}

    def open_edit(self, index: int, draft: SessionDraft) -> None:
        self.is_open = True
        self.edit_index = index
        self.working = draft
        self.errors = {}

    def update(self, **fields) -> None:
        """Set one or more draft fields (name, description, session_date, ...)."""
        if "item_ids" in fields and not isinstance(fields["item_ids"], SelectionSet):
            fields["item_ids"] = SelectionSet(fields["item_ids"])
        self.working = replace(self.working, **fields)
        for key in fields:
            self.errors.pop(key, None)

    def toggle_item(self, item_id: str) -> None:
        self.working = replace(self.working, item_ids=self.working.item_ids.toggle(item_id))

    def toggle_standard(self, tree: Sequence[StandardItem]) -> None:
        self.working = replace(self.working, item_ids=toggle_all_in_standard(tree, self.working.item_ids))

    def save(self) -> SessionDraft:
        """
        Validate and return the finished draft, closing the editor.

        Raises:
            SessionValidationError: name is blank (editor stays open)
        """
        errors = validate_session(self.working)
        if errors:
            self.errors = errors
            raise SessionValidationError(errors)
        draft = replace(self.working, name=self.working.name.strip())
        self.close()
        return draft

    def cancel(self) -> None:
        self.close()

    def close(self) -> None:
        self.is_open = False
        self.edit_index = None
        self.working = SessionDraft(name="")
        self.errors = {}


class DeleteConfirmation:
    """Two-step delete: request_delete() marks, confirm_delete() removes."""

    def __init__(self):
        self.pending_index: Optional[int] = None

    def request_delete(self, index: int) -> None:
        self.pending_index = index

    def cancel(self) -> None:
        self.pending_index = None

    def confirm_delete(self, sessions: Sequence[SessionDraft]) -> Tuple[SessionDraft, ...]:
        if self.pending_index is None:
            return tuple(sessions)
        index = self.pending_index
        self.pending_index = None
        return remove_session(sessions, index)


def sessions_total_items(sessions: Sequence[SessionDraft]) -> int:
    return sum(s.total_items for s in sessions)
