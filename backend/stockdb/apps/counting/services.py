from __future__ import annotations

import logging
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from stockdb.apps.accounts import models as account_models
from stockdb.apps.audit import services as audit_services
from stockdb.apps.catalog import models as catalog_models
from stockdb.apps.catalog import services as catalog_services
from stockdb.apps.inventory import models as inventory_models
from stockdb.apps.workflow import allowed_targets, apply_transition
from stockdb.errors import InvalidQuantity, InvalidTransition, NotDeletable, NotFound, PermissionDenied

from . import aggregator, models, schemas

logger = logging.getLogger(__name__)

WORKFLOW = "inventory_count"
ENTITY_TYPE = "InventoryCount"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


# ---------------------------------------------------------------------------
# LOADERS
# ---------------------------------------------------------------------------


def _session_query(db: Session, *, count_id: int, for_update: bool = False):
    query = db.query(models.InventoryCount).filter(models.InventoryCount.id == count_id)
    if for_update:
        # OF keeps the lock off the eager-loaded category outer join.
        query = query.with_for_update(of=models.InventoryCount).populate_existing()
    return query


def _line_query(db: Session, *, item_id: int, for_update: bool = False):
    query = db.query(models.InventoryCountItem).filter(models.InventoryCountItem.id == item_id)
    if for_update:
        query = query.with_for_update(of=models.InventoryCountItem).populate_existing()
    return query


def get_session(db: Session, *, count_id: int, for_update: bool = False) -> models.InventoryCount:
    count = _session_query(db, count_id=count_id, for_update=for_update).first()
    if not count:
        raise NotFound("Inventory count not found.")
    return count


def _get_line(db: Session, *, item_id: int, for_update: bool = False) -> models.InventoryCountItem:
    line = _line_query(db, item_id=item_id, for_update=for_update).first()
    if not line:
        raise NotFound("Inventory count item not found.")
    return line


def _stock_snapshot(query) -> Dict[int, int]:
    """
    Map article id -> current stock for the articles selected by ``query``.

    Articles and their stock rows are read in one statement so every line of
    a session sees the ledger at the same point in time. Articles without a
    stock row count as zero.
    """
    rows = (
        query.outerjoin(
            inventory_models.StockLevel,
            inventory_models.StockLevel.article_id == catalog_models.Article.id,
        )
        .with_entities(catalog_models.Article.id, inventory_models.StockLevel.current_stock)
        .all()
    )
    return {article_id: current_stock or 0 for article_id, current_stock in rows}


# ---------------------------------------------------------------------------
# SESSION LIFECYCLE
# ---------------------------------------------------------------------------


def create_session(
    db: Session,
    *,
    payload: schemas.InventoryCountCreate,
    created_by: Optional[str],
) -> models.InventoryCount:
    """
    Open a count session and populate one line per matching article.

    Lines are flushed in the same transaction as the session, so the session
    only becomes visible together with its lines. A filter that matches no
    article yields a valid, empty session; an unknown category_id raises
    NotFound.
    """
    location_filter = (payload.location_filter or "").strip() or None
    if payload.category_id is not None:
        catalog_services.get_category(db, category_id=payload.category_id)

    count = models.InventoryCount(
        title=payload.title.strip(),
        description=payload.description,
        status=models.InventoryCountStatus.OPEN,
        category_id=payload.category_id,
        location_filter=location_filter,
        created_by=created_by,
    )
    db.add(count)

    snapshot = _stock_snapshot(
        catalog_services.filter_articles(db, category_id=payload.category_id, location=location_filter)
    )
    for article_id, expected in snapshot.items():
        count.items.append(models.InventoryCountItem(article_id=article_id, expected_quantity=expected))
    db.flush()

    audit_services.log_event(
        db,
        actor_user_id=created_by,
        entity_type=ENTITY_TYPE,
        entity_id=str(count.id),
        action="create",
        after={
            "status": count.status.value,
            "category_id": count.category_id,
            "location_filter": count.location_filter,
            "total_items": len(snapshot),
        },
    )
    logger.info(
        "Inventory count created",
        extra={"inventory_count_id": count.id, "total_items": len(snapshot)},
    )
    return count


def add_lines(
    db: Session,
    *,
    count_id: int,
    article_ids: Iterable[int],
    actor_user_id: Optional[str],
) -> List[models.InventoryCountItem]:
    """
    Add lines for further articles to a session that is still being counted.

    Each new line snapshots the article's stock at this moment. Articles that
    already have a line in the session are skipped.
    """
    count = get_session(db, count_id=count_id, for_update=True)
    if count.status not in models.EXTENDABLE_STATUSES:
        raise InvalidTransition(
            f"Lines cannot be added to a {count.status.value} inventory count.",
            reason_code="session_locked",
            problems=[{"field": "status", "reason": f"session is {count.status.value}"}],
        )

    requested = list(dict.fromkeys(article_ids))
    snapshot = _stock_snapshot(
        db.query(catalog_models.Article).filter(catalog_models.Article.id.in_(requested))
    )
    missing = [article_id for article_id in requested if article_id not in snapshot]
    if missing:
        raise NotFound(f"Article(s) not found: {', '.join(str(a) for a in missing)}")

    existing = {line.article_id for line in count.items}
    added: List[models.InventoryCountItem] = []
    for article_id in requested:
        if article_id in existing:
            continue
        line = models.InventoryCountItem(article_id=article_id, expected_quantity=snapshot[article_id])
        count.items.append(line)
        added.append(line)
    db.flush()

    if added:
        audit_services.log_event(
            db,
            actor_user_id=actor_user_id,
            entity_type=ENTITY_TYPE,
            entity_id=str(count.id),
            action="add_items",
            after={"article_ids": [line.article_id for line in added]},
        )
    return added


def advance_status(
    db: Session,
    *,
    count_id: int,
    target_status: str,
    acting_user: account_models.User,
) -> models.InventoryCount:
    """
    Move a session one step along open -> in_progress -> completed -> approved.

    Anything else (same state, backwards, skipping, unknown status) raises
    InvalidTransition. Approval additionally needs an elevated role.
    """
    count = get_session(db, count_id=count_id, for_update=True)
    current = count.status

    try:
        target = models.InventoryCountStatus(target_status)
    except ValueError:
        raise InvalidTransition(
            f"Unknown inventory count status {target_status!r}.",
            problems=[{"field": "status", "reason": f"unknown status {target_status!r}"}],
        )

    if target.value not in allowed_targets(WORKFLOW, current.value):
        raise InvalidTransition(
            f"Cannot transition from {current.value} to {target.value}",
            problems=[{"field": "status", "reason": f"Cannot transition from {current.value} to {target.value}"}],
        )

    if target == models.InventoryCountStatus.APPROVED and not acting_user.is_elevated():
        raise PermissionDenied("Only administrators and project managers can approve inventory counts.")

    now = _utcnow()
    completed_at = now if target == models.InventoryCountStatus.COMPLETED else count.completed_at
    approved_by = acting_user.id if target == models.InventoryCountStatus.APPROVED else count.approved_by
    approved_at = now if target == models.InventoryCountStatus.APPROVED else count.approved_at

    apply_transition(
        db,
        actor_user_id=acting_user.id,
        entity_type=WORKFLOW,
        entity_id=str(count.id),
        from_state=current.value,
        to_state=target.value,
        before_obj={
            "completed_at": _iso(count.completed_at),
            "approved_by": count.approved_by,
            "approved_at": _iso(count.approved_at),
        },
        after_obj={
            "completed_at": _iso(completed_at),
            "approved_by": approved_by,
            "approved_at": _iso(approved_at),
        },
    )

    count.status = target
    count.completed_at = completed_at
    count.approved_by = approved_by
    count.approved_at = approved_at
    db.flush()
    return count


def delete_session(db: Session, *, count_id: int, actor_user_id: Optional[str]) -> None:
    """Delete an open session and, through the cascade, all of its lines."""
    count = get_session(db, count_id=count_id, for_update=True)
    if count.status != models.InventoryCountStatus.OPEN:
        raise NotDeletable(f"Only open inventory counts can be deleted (status is {count.status.value}).")

    total_items = len(count.items)
    audit_services.log_event(
        db,
        actor_user_id=actor_user_id,
        entity_type=ENTITY_TYPE,
        entity_id=str(count.id),
        action="delete",
        before={"status": count.status.value, "title": count.title, "total_items": total_items},
        critical=True,
    )
    db.delete(count)
    db.flush()
    logger.info("Inventory count deleted", extra={"inventory_count_id": count_id, "total_items": total_items})


# ---------------------------------------------------------------------------
# LINE RECONCILIATION
# ---------------------------------------------------------------------------


def record_count(
    db: Session,
    *,
    item_id: int,
    counted_quantity: int,
    notes: Optional[str],
    counted_by: Optional[str],
) -> models.InventoryCountItem:
    """
    Record the physical count for one line.

    Re-submitting overwrites the previous count, notes and deviation; no
    history is kept on the line. The stock ledger is not touched.
    """
    if counted_quantity is None or counted_quantity < 0:
        raise InvalidQuantity("Counted quantity must be zero or positive.")

    # Lock order is session, then line, as in add_lines and delete_session;
    # an approval waits for in-flight counts and vice versa.
    count_id = _get_line(db, item_id=item_id).inventory_count_id
    count = get_session(db, count_id=count_id, for_update=True)
    if count.status not in models.COUNTABLE_STATUSES:
        raise InvalidTransition(
            f"Counts cannot be recorded on an {count.status.value} inventory count.",
            reason_code="session_locked",
            problems=[{"field": "status", "reason": f"session is {count.status.value}"}],
        )
    line = _get_line(db, item_id=item_id, for_update=True)

    before = {"counted_quantity": line.counted_quantity, "deviation": line.deviation}
    line.counted_quantity = counted_quantity
    line.deviation = counted_quantity - line.expected_quantity
    line.notes = notes
    line.counted_by = counted_by
    line.counted_at = _utcnow()
    db.flush()

    audit_services.log_event(
        db,
        actor_user_id=counted_by,
        entity_type="InventoryCountItem",
        entity_id=str(line.id),
        action="count",
        before=before,
        after={"counted_quantity": line.counted_quantity, "deviation": line.deviation},
        metadata={"inventory_count_id": line.inventory_count_id},
    )
    logger.debug(
        "Inventory count recorded",
        extra={"inventory_count_item_id": line.id, "deviation": line.deviation},
    )
    return line


def list_lines(db: Session, *, count_id: int) -> List[models.InventoryCountItem]:
    get_session(db, count_id=count_id)
    return (
        db.query(models.InventoryCountItem)
        .join(catalog_models.Article, catalog_models.Article.id == models.InventoryCountItem.article_id)
        .filter(models.InventoryCountItem.inventory_count_id == count_id)
        .order_by(catalog_models.Article.article_number.asc())
        .all()
    )


def deviation_report(db: Session, *, count_id: int) -> List[models.InventoryCountItem]:
    return [line for line in list_lines(db, count_id=count_id) if aggregator.has_deviation(line)]


# ---------------------------------------------------------------------------
# READ MODELS
# ---------------------------------------------------------------------------


def _detail(count: models.InventoryCount, lines: List[models.InventoryCountItem]) -> schemas.InventoryCountDetail:
    rollup = aggregator.summarize(lines)
    base = schemas.InventoryCountRead.model_validate(count).model_dump()
    return schemas.InventoryCountDetail(
        **base,
        items=[schemas.InventoryCountItemRead.model_validate(line) for line in lines],
        **asdict(rollup),
    )


def get_session_detail(db: Session, *, count_id: int) -> schemas.InventoryCountDetail:
    count = get_session(db, count_id=count_id)
    return _detail(count, list_lines(db, count_id=count.id))


def list_sessions(db: Session) -> List[schemas.InventoryCountDetail]:
    counts = (
        db.query(models.InventoryCount)
        .order_by(models.InventoryCount.created_at.desc(), models.InventoryCount.id.desc())
        .all()
    )
    return [_detail(count, list_lines(db, count_id=count.id)) for count in counts]
