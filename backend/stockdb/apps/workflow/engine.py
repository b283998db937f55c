from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from stockdb.apps.audit import services as audit_services
from stockdb.errors import InvalidTransition

from .registry import WORKFLOWS

logger = logging.getLogger(__name__)


def allowed_targets(entity_type: str, from_state: str) -> List[str]:
    workflow = WORKFLOWS.get(entity_type) or {}
    return list(workflow.get("transitions", {}).get(from_state, {}).keys())


def apply_transition(
    db: Session,
    *,
    actor_user_id: Optional[str],
    entity_type: str,
    entity_id: str,
    from_state: str,
    to_state: str,
    before_obj: Any,
    after_obj: Any,
    correlation_id: Optional[str] = None,
    critical: bool = True,
) -> None:
    """
    Validate ``from_state -> to_state`` against the registry, run the guards
    for that edge and record the transition in the audit trail.

    Raises ``InvalidTransition`` without writing anything when the edge is
    not registered or a guard reports problems.
    """
    workflow = WORKFLOWS.get(entity_type)
    if not workflow:
        raise InvalidTransition(
            f"No workflow registered for {entity_type}",
            problems=[{"field": "entity_type", "reason": f"No workflow registered for {entity_type}"}],
        )

    transitions = workflow.get("transitions", {})
    allowed = transitions.get(from_state, {})
    guards = allowed.get(to_state)

    if guards is None:
        raise InvalidTransition(
            f"Cannot transition from {from_state} to {to_state}",
            problems=[{"field": "status", "reason": f"Cannot transition from {from_state} to {to_state}"}],
        )

    failures: List[Dict[str, str]] = []
    for guard in guards:
        failures.extend(
            guard(
                db,
                before_obj=before_obj,
                after_obj=after_obj,
                from_state=from_state,
                to_state=to_state,
            )
        )

    if failures:
        raise InvalidTransition(
            f"Requirements for {to_state} not met",
            reason_code="missing_requirements",
            problems=failures,
        )

    before_payload: Dict[str, Any] = {"status": from_state}
    after_payload: Dict[str, Any] = {"status": to_state}
    if isinstance(before_obj, dict):
        before_payload.update(before_obj)
    if isinstance(after_obj, dict):
        after_payload.update(after_obj)

    audit_services.log_event(
        db,
        actor_user_id=actor_user_id,
        entity_type=entity_type,
        entity_id=entity_id,
        action="transition",
        before=before_payload,
        after=after_payload,
        correlation_id=correlation_id,
        metadata={"workflow": entity_type},
        critical=critical,
    )
    logger.info(
        "Workflow transition applied",
        extra={
            "entity_type": entity_type,
            "entity_id": entity_id,
            "from_state": from_state,
            "to_state": to_state,
            "actor_user_id": actor_user_id,
        },
    )
