from __future__ import annotations

from datetime import datetime, timezone

import pytest

from stockdb.apps.audit import models as audit_models
from stockdb.apps.workflow import WORKFLOWS, allowed_targets, apply_transition
from stockdb.errors import InvalidTransition


def test_count_workflow_is_strictly_linear():
    assert allowed_targets("inventory_count", "open") == ["in_progress"]
    assert allowed_targets("inventory_count", "in_progress") == ["completed"]
    assert allowed_targets("inventory_count", "completed") == ["approved"]
    assert allowed_targets("inventory_count", "approved") == []


def test_unknown_workflow_or_state_has_no_targets():
    assert allowed_targets("purchase_order", "open") == []
    assert allowed_targets("inventory_count", "archived") == []
    assert "inventory_count" in WORKFLOWS


def test_apply_transition_writes_audit_event(db_session, manager_user):
    apply_transition(
        db_session,
        actor_user_id=manager_user.id,
        entity_type="inventory_count",
        entity_id="7",
        from_state="open",
        to_state="in_progress",
        before_obj={},
        after_obj={},
        correlation_id="req-1",
    )
    db_session.commit()

    event = db_session.query(audit_models.AuditEvent).one()
    assert event.action == "transition"
    assert event.entity_type == "inventory_count"
    assert event.entity_id == "7"
    assert event.before == {"status": "open"}
    assert event.after == {"status": "in_progress"}
    assert event.correlation_id == "req-1"


def test_unregistered_edge_is_rejected_without_audit(db_session):
    with pytest.raises(InvalidTransition) as excinfo:
        apply_transition(
            db_session,
            actor_user_id=None,
            entity_type="inventory_count",
            entity_id="7",
            from_state="open",
            to_state="approved",
            before_obj={},
            after_obj={},
        )

    assert excinfo.value.reason_code == "invalid_transition"
    assert excinfo.value.detail["problems"][0]["field"] == "status"
    assert db_session.query(audit_models.AuditEvent).count() == 0


def test_unknown_entity_type_is_rejected(db_session):
    with pytest.raises(InvalidTransition):
        apply_transition(
            db_session,
            actor_user_id=None,
            entity_type="purchase_order",
            entity_id="1",
            from_state="draft",
            to_state="sent",
            before_obj=None,
            after_obj=None,
        )


def test_completion_guard_requires_completion_time(db_session):
    with pytest.raises(InvalidTransition) as excinfo:
        apply_transition(
            db_session,
            actor_user_id=None,
            entity_type="inventory_count",
            entity_id="7",
            from_state="in_progress",
            to_state="completed",
            before_obj={},
            after_obj={"completed_at": None},
        )

    assert excinfo.value.reason_code == "missing_requirements"
    assert [p["field"] for p in excinfo.value.problems] == ["completed_at"]


def test_approval_guard_reports_every_missing_field(db_session):
    with pytest.raises(InvalidTransition) as excinfo:
        apply_transition(
            db_session,
            actor_user_id=None,
            entity_type="inventory_count",
            entity_id="7",
            from_state="completed",
            to_state="approved",
            before_obj={"completed_at": None},
            after_obj={"approved_by": None, "approved_at": None},
        )

    fields = {p["field"] for p in excinfo.value.problems}
    assert fields == {"approved_by", "approved_at", "completed_at"}
    assert db_session.query(audit_models.AuditEvent).count() == 0


def test_approval_guard_passes_with_approver(db_session, admin_user):
    now = datetime.now(timezone.utc).isoformat()

    apply_transition(
        db_session,
        actor_user_id=admin_user.id,
        entity_type="inventory_count",
        entity_id="7",
        from_state="completed",
        to_state="approved",
        before_obj={"completed_at": now},
        after_obj={"approved_by": admin_user.id, "approved_at": now},
    )

    event = db_session.query(audit_models.AuditEvent).one()
    assert event.after["approved_by"] == admin_user.id
