import logging

from timepay.audit.model import AuditedResult
from timepay.audit.recorder import AuditRecorder, audited
from timepay.core.context import Actor
from timepay.core.enums import AuditAction, Role

ACTOR = Actor(user_id=7, role=Role.OWNER, company_id=1, ip_address="10.0.0.1", user_agent="pytest")


class BrokenSink:
    def record(self, event):
        raise RuntimeError("audit table is gone")


class Widgets:
    def __init__(self, audit):
        self._audit = audit

    @audited(AuditAction.UPDATE, "Widget")
    def rename(self, *, actor, widget_id, name):
        return AuditedResult(value=name, entity_id=widget_id, before={"name": "old"}, after={"name": name})


def test_audited_method_returns_value_and_records_event(audit, audit_sink):
    assert Widgets(audit).rename(actor=ACTOR, widget_id=3, name="new") == "new"

    (event,) = audit_sink.events
    assert event.action == AuditAction.UPDATE
    assert event.entity_type == "Widget"
    assert event.entity_id == 3
    assert event.actor_id == 7
    assert event.company_id == 1
    assert event.before == {"name": "old"}
    assert event.after == {"name": "new"}
    assert event.ip_address == "10.0.0.1"
    assert event.user_agent == "pytest"


def test_failing_sink_is_logged_not_raised(caplog):
    widgets = Widgets(AuditRecorder(BrokenSink()))
    with caplog.at_level(logging.ERROR, logger="timepay.audit.recorder"):
        assert widgets.rename(actor=ACTOR, widget_id=3, name="new") == "new"
    assert "Failed to write audit event" in caplog.text


def test_recorder_without_sink_is_silent():
    assert Widgets(AuditRecorder()).rename(actor=ACTOR, widget_id=1, name="x") == "x"
