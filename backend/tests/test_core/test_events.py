"""
Tests for AuditEvents
"""
from app.core.events import AUDITS_LIST_KEY, AuditEvents, Notification


def test_callbacks_receive_payloads():
    created, notes, keys = [], [], []
    events = AuditEvents(on_created=[created.append], on_notify=[notes.append], on_invalidate=[keys.append])

    events.created("audit-1")
    events.notify(Notification(level="success", title="Audit created", message="ok", audit_id="audit-1"))
    events.invalidate()

    assert created == ["audit-1"]
    assert notes[0].audit_id == "audit-1"
    assert keys == [AUDITS_LIST_KEY]


def test_no_subscribers_is_fine():
    events = AuditEvents()
    events.created("audit-1")
    events.invalidate("other")
