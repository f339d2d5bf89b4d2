"""
Audit creation wizard: item selection, step gating and the creation saga.
"""
from app.wizard.controller import WizardController
from app.wizard.item_tree import (
    ItemCatalog,
    StandardItem,
    build_tree,
    collect_question_ids,
    count_questions,
    filter_by_search,
    toggle_all_in_standard,
)
from app.wizard.saga import CreationSaga, SagaResult
from app.wizard.selection import SelectionSet, toggle_one
from app.wizard.sessions import SessionDraft, SessionEditor
from app.wizard.state import AuditDraft, WizardState, WizardStep

__all__ = [
    "AuditDraft",
    "CreationSaga",
    "ItemCatalog",
    "SagaResult",
    "SelectionSet",
    "SessionDraft",
    "SessionEditor",
    "StandardItem",
    "WizardController",
    "WizardState",
    "WizardStep",
    "build_tree",
    "collect_question_ids",
    "count_questions",
    "filter_by_search",
    "toggle_all_in_standard",
    "toggle_one",
]
