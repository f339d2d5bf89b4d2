"""
Wizard controller: step navigation, gating and submission.

Steps are linear (GENERAL -> STANDARDS -> SESSIONS -> REVIEW). Forward
moves require the current step's gate to be open; from REVIEW the user may
jump back to any earlier step. submit() runs the creation saga on a frozen
snapshot and holds an in-flight latch so a second submit is refused while
the first one runs.
"""
import logging
from typing import Optional

from app.core.events import AuditEvents, Notification, audit_events
from app.wizard.errors import StepGateError
from app.wizard.saga import CreationSaga, SagaResult
from app.wizard.state import FIRST_STEP, LAST_STEP, WizardState, WizardStep

logger = logging.getLogger(__name__)


class WizardController:

    def __init__(
        self,
        saga: CreationSaga,
        events: Optional[AuditEvents] = None,
        user_id: Optional[str] = None,
    ):
        self.saga = saga
        self.events = events or audit_events
        self.user_id = user_id
        self.state = WizardState()
        self.is_open = False
        self.is_creating = False

    @property
    def step(self) -> WizardStep:
        return self.state.step

    # --- lifecycle ---

    def open(self) -> None:
        self.reset()
        self.is_open = True

    def close(self) -> None:
        """Cancel or post-success close: the draft never survives into the next open."""
        self.is_open = False
        self.reset()

    def reset(self) -> None:
        self.state = WizardState()

    # --- navigation ---

    def can_proceed(self) -> bool:
        return self.state.is_step_complete(self.state.step)

    def next_step(self) -> WizardStep:
        reason = self.state.gate_reason(self.state.step)
        if reason:
            raise StepGateError(self.state.step, reason)
        if self.state.step < LAST_STEP:
            self.state.step = WizardStep(self.state.step + 1)
        return self.state.step

    def prev_step(self) -> WizardStep:
        if self.state.step > FIRST_STEP:
            self.state.step = WizardStep(self.state.step - 1)
        return self.state.step

    def edit_step(self, step: WizardStep) -> WizardStep:
        """Jump from the review step back to an earlier step."""
        step = WizardStep(step)
        if self.state.step != WizardStep.REVIEW:
            raise StepGateError(self.state.step, "Direct jumps are only allowed from the review step")
        if step >= WizardStep.REVIEW:
            raise StepGateError(step, "Can only jump back to an earlier step")
        self.state.step = step
        return step

    # --- submission ---

    def can_submit(self) -> bool:
        return not self.is_creating and self.state.is_complete()

    async def submit(self) -> SagaResult:
        """
        Commit the draft through the creation saga.

        On success the wizard closes and the created audit id is emitted;
        on failure the wizard stays open with the draft intact. Both
        outcomes invalidate the audits list.

        Raises:
            StepGateError: a gate is closed, or a submission is already running
        """
        if self.is_creating:
            raise StepGateError(self.state.step, "Audit creation already in progress")
        for step in WizardStep:
            reason = self.state.gate_reason(step)
            if reason:
                raise StepGateError(step, reason)

        draft = self.state.snapshot()
        self.is_creating = True
        try:
            result = await self.saga.run(draft, self.user_id)
        finally:
            self.is_creating = False

        if result.ok:
            self.events.notify(Notification(
                level="success",
                title="Audit created",
                message=f"'{draft.title.strip()}' was created with {result.total_items} items",
                audit_id=result.audit_id,
            ))
            self.events.created(result.audit_id)
            self.close()
        else:
            self.events.notify(Notification(
                level="error",
                title="Failed to create audit",
                message=result.error or "Unknown error",
            ))
        self.events.invalidate()
        return result
