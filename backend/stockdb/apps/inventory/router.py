from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from stockdb.security import get_current_active_user
from stockdb.database import get_db, get_read_db
from stockdb.apps.accounts import models as account_models

from . import schemas, services

router = APIRouter(prefix="", tags=["inventory"])


@router.post(
    "/stock-movements",
    response_model=schemas.StockMovementRead,
    status_code=status.HTTP_201_CREATED,
)
def create_stock_movement(
    payload: schemas.StockMovementCreate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(get_current_active_user),
):
    _, movement = services.apply_movement(db, payload=payload, actor_user_id=current_user.id)
    db.commit()
    db.refresh(movement)
    return movement


@router.get(
    "/stock-movements",
    response_model=List[schemas.StockMovementRead],
)
def list_stock_movements(
    limit: int = services.DEFAULT_MOVEMENT_LIMIT,
    db: Session = Depends(get_read_db),
    current_user: account_models.User = Depends(get_current_active_user),
):
    return services.list_movements(db, limit=limit)


@router.get(
    "/stock-movements/article/{article_id}",
    response_model=List[schemas.StockMovementRead],
)
def list_article_stock_movements(
    article_id: int,
    limit: Optional[int] = services.DEFAULT_MOVEMENT_LIMIT,
    db: Session = Depends(get_read_db),
    current_user: account_models.User = Depends(get_current_active_user),
):
    return services.list_movements(db, article_id=article_id, limit=limit)


@router.get(
    "/inventory/{article_id}",
    response_model=schemas.StockLevelRead,
)
def get_stock_level(
    article_id: int,
    db: Session = Depends(get_read_db),
    current_user: account_models.User = Depends(get_current_active_user),
):
    return services.get_stock_level(db, article_id=article_id)
