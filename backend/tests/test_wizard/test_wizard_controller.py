"""
Tests for wizard gating and navigation
"""
import pytest

from app.core.events import AuditEvents
from app.wizard.controller import WizardController
from app.wizard.errors import StepGateError
from app.wizard.saga import CreationSaga
from app.wizard.state import WizardState, WizardStep, filter_templates


@pytest.fixture
def events():
    captured = {"created": [], "notifications": [], "invalidated": []}
    hub = AuditEvents(
        on_created=[captured["created"].append],
        on_notify=[captured["notifications"].append],
        on_invalidate=[captured["invalidated"].append],
    )
    hub.captured = captured
    return hub


@pytest.fixture
def wizard(recording_writer, events):
    controller = WizardController(CreationSaga(recording_writer), events=events, user_id="user-1")
    controller.open()
    return controller


def _fill(wizard: WizardController):
    wizard.state.update_general(title="ISO 9001 Audit")
    wizard.next_step()
    wizard.state.set_standards(["s1", "s2"])
    wizard.next_step()
    wizard.state.session_editor.open_new()
    wizard.state.session_editor.update(name="Session A", item_ids=["i1", "i2"])
    wizard.state.save_session()
    wizard.next_step()


class TestGating:
    """Forward navigation gates"""

    @pytest.mark.parametrize("title", ["", "   ", "\t\n"])
    def test_blank_title_blocks_step_one(self, wizard, title):
        wizard.state.update_general(title=title)

        assert wizard.can_proceed() is False
        with pytest.raises(StepGateError):
            wizard.next_step()
        assert wizard.step == WizardStep.GENERAL

    @pytest.mark.parametrize("title", ["A", "  ISO 9001 Audit  "])
    def test_non_blank_title_opens_step_one(self, wizard, title):
        wizard.state.update_general(title=title)
        assert wizard.can_proceed() is True

    def test_standards_required(self, wizard):
        wizard.state.update_general(title="Audit")
        wizard.next_step()

        assert wizard.can_proceed() is False
        wizard.state.toggle_standard("s1")
        assert wizard.can_proceed() is True
        wizard.state.toggle_standard("s1")
        assert wizard.can_proceed() is False

    def test_sessions_step_always_passable(self, wizard):
        wizard.state.update_general(title="Audit")
        wizard.next_step()
        wizard.state.toggle_standard("s1")
        wizard.next_step()

        # An open editor with an invalid session does not block navigation
        wizard.state.session_editor.open_new()
        assert wizard.can_proceed() is True
        assert wizard.next_step() == WizardStep.REVIEW

    def test_standards_are_a_set_in_insertion_order(self):
        state = WizardState()
        state.toggle_standard("s2")
        state.toggle_standard("s1")
        state.set_standards(["s2", "s1", "s2"])

        assert state.standard_ids == ("s2", "s1")


class TestNavigation:
    """Linear moves and review jumps"""

    def test_prev_step_stops_at_first(self, wizard):
        assert wizard.prev_step() == WizardStep.GENERAL

    def test_edit_step_from_review(self, wizard):
        _fill(wizard)
        assert wizard.step == WizardStep.REVIEW

        assert wizard.edit_step(WizardStep.STANDARDS) == WizardStep.STANDARDS

    def test_no_jump_outside_review(self, wizard):
        wizard.state.update_general(title="Audit")
        wizard.next_step()

        with pytest.raises(StepGateError):
            wizard.edit_step(WizardStep.GENERAL)

    def test_close_resets_everything(self, wizard):
        _fill(wizard)
        wizard.close()

        assert not wizard.is_open
        assert wizard.step == WizardStep.GENERAL
        assert wizard.state.title == ""
        assert wizard.state.standard_ids == ()
        assert wizard.state.sessions == ()


class TestCategoryTemplate:
    """Template is scoped to the category"""

    def test_category_change_clears_template(self):
        state = WizardState()
        state.update_general(category_id="c1", template_id="t1")
        assert state.template_id == "t1"

        state.update_general(category_id="c2")
        assert state.template_id is None

    def test_same_category_still_clears_template(self):
        state = WizardState()
        state.update_general(category_id="c1")
        state.update_general(template_id="t1")

        state.set_category("c1")
        assert state.template_id is None

    def test_template_list_filtered_by_category(self):
        templates = [
            {"id": "t1", "category_id": "c1"},
            {"id": "t2", "category_id": "c2"},
        ]

        assert [t["id"] for t in filter_templates(templates, "c1")] == ["t1"]
        assert [t["id"] for t in filter_templates(templates, None)] == ["t1", "t2"]

    def test_template_from_other_category_blocks_step_one(self):
        state = WizardState(title="Audit")
        state.set_templates([
            {"id": "t1", "category_id": "c1"},
            {"id": "t2", "category_id": "c2"},
        ])
        state.update_general(category_id="c1", template_id="t2")

        assert state.gate_reason(WizardStep.GENERAL) == "Template does not belong to the selected category"

        state.update_general(template_id="t1")
        assert state.is_step_complete(WizardStep.GENERAL)

    def test_unknown_template_blocks_step_one(self):
        state = WizardState(title="Audit")
        state.set_templates([{"id": "t1", "category_id": "c1"}])
        state.update_general(template_id="nope")

        assert not state.is_step_complete(WizardStep.GENERAL)

    def test_template_unchecked_without_catalog(self):
        state = WizardState(title="Audit")
        state.update_general(category_id="c1", template_id="t9")

        assert state.is_step_complete(WizardStep.GENERAL)

    def test_unknown_field_rejected(self):
        with pytest.raises(AttributeError):
            WizardState().update_general(colour="blue")


class TestSubmit:
    """submit() runs the saga and notifies collaborators"""

    @pytest.mark.asyncio
    async def test_success_closes_and_emits(self, wizard, events, recording_writer):
        _fill(wizard)

        result = await wizard.submit()

        assert result.ok
        assert events.captured["created"] == [result.audit_id]
        assert events.captured["notifications"][0].level == "success"
        assert events.captured["invalidated"] == ["audits"]
        assert not wizard.is_open
        assert wizard.state.title == ""

    @pytest.mark.asyncio
    async def test_failure_keeps_draft(self, wizard, events, recording_writer):
        _fill(wizard)
        recording_writer.fail_on = ("insert_session", 1)

        result = await wizard.submit()

        assert not result.ok
        assert wizard.is_open
        assert wizard.is_creating is False  # latch released for a retry
        assert wizard.state.title == "ISO 9001 Audit"
        assert len(wizard.state.sessions) == 1
        notification = events.captured["notifications"][0]
        assert notification.level == "error"
        assert "rejected by backend" in notification.message
        assert events.captured["created"] == []
        assert events.captured["invalidated"] == ["audits"]

    @pytest.mark.asyncio
    async def test_gate_checked_on_submit(self, wizard, recording_writer):
        with pytest.raises(StepGateError):
            await wizard.submit()
        assert recording_writer.calls == []

    @pytest.mark.asyncio
    async def test_in_flight_submit_refused(self, wizard, recording_writer):
        _fill(wizard)
        wizard.is_creating = True

        with pytest.raises(StepGateError):
            await wizard.submit()
        assert recording_writer.calls == []
