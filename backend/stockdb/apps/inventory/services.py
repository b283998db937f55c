from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from stockdb.apps.audit import services as audit_services
from stockdb.apps.catalog import services as catalog_services
from stockdb.errors import InsufficientStock, InvalidQuantity, NotFound, ValidationFailed

from . import models, schemas

logger = logging.getLogger(__name__)

DEFAULT_MOVEMENT_LIMIT = 50


def _stock_level_query(db: Session, *, article_id: int, for_update: bool = False):
    query = db.query(models.StockLevel).filter(models.StockLevel.article_id == article_id)
    if for_update:
        # Lock only stock_levels; PostgreSQL refuses FOR UPDATE on the nullable
        # side of the eager-loaded article/category outer joins.
        query = query.with_for_update(of=models.StockLevel).populate_existing()
    return query


def _lock_stock_level(db: Session, *, article_id: int) -> models.StockLevel:
    """
    Load the stock row with ``SELECT ... FOR UPDATE OF stock_levels``.

    Concurrent movements against the same article queue on this lock until
    the holder commits, so read-check-write below never interleaves.
    populate_existing() discards any stale copy held in the identity map.
    """
    level = _stock_level_query(db, article_id=article_id, for_update=True).first()
    if not level:
        raise NotFound("Article inventory not found.")
    return level


def _signed_quantity(movement_type: models.StockMovementTypeEnum, quantity: int) -> int:
    if movement_type == models.StockMovementTypeEnum.CHECKOUT:
        return -quantity
    # checkin and adjustment both add stock
    return quantity


def get_stock_level(db: Session, *, article_id: int) -> models.StockLevel:
    level = _stock_level_query(db, article_id=article_id).first()
    if not level:
        raise NotFound("Article inventory not found.")
    return level


def apply_movement(
    db: Session,
    *,
    payload: schemas.StockMovementCreate,
    actor_user_id: Optional[str],
) -> Tuple[models.StockLevel, models.StockMovement]:
    """
    Apply one check-in, check-out or adjustment and return the new stock
    level together with the recorded movement.

    Check-outs never take stock below zero: a request for more than is on
    hand raises ``InsufficientStock`` and leaves the level untouched.
    """
    if payload.quantity is None or payload.quantity <= 0:
        raise InvalidQuantity("Quantity must be positive.")

    catalog_services.get_article(db, article_id=payload.article_id)

    cost_center = None
    if payload.type == models.StockMovementTypeEnum.CHECKOUT:
        if payload.cost_center_id is None:
            raise ValidationFailed("Cost center is required for checkout operations.")
    if payload.cost_center_id is not None:
        cost_center = catalog_services.get_cost_center(db, cost_center_id=payload.cost_center_id)

    level = _lock_stock_level(db, article_id=payload.article_id)
    before = level.current_stock

    if payload.type == models.StockMovementTypeEnum.CHECKOUT and payload.quantity > level.current_stock:
        logger.warning(
            "Checkout rejected: insufficient stock",
            extra={
                "article_id": payload.article_id,
                "available": level.current_stock,
                "requested": payload.quantity,
            },
        )
        raise InsufficientStock(available=level.current_stock, requested=payload.quantity)

    level.current_stock = before + _signed_quantity(payload.type, payload.quantity)
    level.last_updated = datetime.now(timezone.utc)

    movement = models.StockMovement(
        article_id=payload.article_id,
        type=payload.type,
        quantity=payload.quantity,
        stock_after=level.current_stock,
        cost_center_id=cost_center.id if cost_center else None,
        user_id=actor_user_id,
        notes=payload.notes,
    )
    db.add(movement)
    db.flush()

    audit_services.log_event(
        db,
        actor_user_id=actor_user_id,
        entity_type="StockLevel",
        entity_id=str(payload.article_id),
        action=payload.type.value,
        before={"current_stock": before},
        after={"current_stock": level.current_stock},
        metadata={"stock_movement_id": movement.id, "quantity": payload.quantity},
    )
    logger.info(
        "Stock movement applied",
        extra={
            "article_id": payload.article_id,
            "type": payload.type.value,
            "quantity": payload.quantity,
            "stock_after": level.current_stock,
        },
    )
    return level, movement


def list_movements(
    db: Session,
    *,
    article_id: Optional[int] = None,
    limit: int = DEFAULT_MOVEMENT_LIMIT,
) -> List[models.StockMovement]:
    query = db.query(models.StockMovement)
    if article_id is not None:
        query = query.filter(models.StockMovement.article_id == article_id)
    return (
        query.order_by(models.StockMovement.created_at.desc(), models.StockMovement.id.desc())
        .limit(limit)
        .all()
    )


def replay_stock(db: Session, *, article_id: int) -> int:
    """
    Recompute on-hand stock from the movement records:
    sum(checkin) + sum(adjustment) - sum(checkout).
    """
    movements = (
        db.query(models.StockMovement)
        .filter(models.StockMovement.article_id == article_id)
        .order_by(models.StockMovement.id.asc())
        .all()
    )
    return sum(_signed_quantity(m.type, m.quantity) for m in movements)
