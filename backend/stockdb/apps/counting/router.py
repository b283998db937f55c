from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from stockdb.security import get_current_active_user, require_elevated
from stockdb.database import get_db, get_read_db
from stockdb.apps.accounts import models as account_models

from . import schemas, services

router = APIRouter(prefix="", tags=["inventory-counts"])


@router.get(
    "/inventory-counts",
    response_model=List[schemas.InventoryCountDetail],
)
def list_inventory_counts(
    db: Session = Depends(get_read_db),
    current_user: account_models.User = Depends(get_current_active_user),
):
    return services.list_sessions(db)


@router.get(
    "/inventory-counts/{count_id}",
    response_model=schemas.InventoryCountDetail,
)
def get_inventory_count(
    count_id: int,
    db: Session = Depends(get_read_db),
    current_user: account_models.User = Depends(get_current_active_user),
):
    return services.get_session_detail(db, count_id=count_id)


@router.post(
    "/inventory-counts",
    response_model=schemas.InventoryCountDetail,
    status_code=status.HTTP_201_CREATED,
)
def create_inventory_count(
    payload: schemas.InventoryCountCreate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_elevated),
):
    count = services.create_session(db, payload=payload, created_by=current_user.id)
    db.commit()
    return services.get_session_detail(db, count_id=count.id)


@router.put(
    "/inventory-counts/{count_id}/status",
    response_model=schemas.InventoryCountDetail,
)
def update_inventory_count_status(
    count_id: int,
    payload: schemas.InventoryCountStatusUpdate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(get_current_active_user),
):
    count = services.advance_status(
        db,
        count_id=count_id,
        target_status=payload.status,
        acting_user=current_user,
    )
    db.commit()
    return services.get_session_detail(db, count_id=count.id)


@router.delete(
    "/inventory-counts/{count_id}",
    status_code=status.HTTP_200_OK,
)
def delete_inventory_count(
    count_id: int,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_elevated),
):
    services.delete_session(db, count_id=count_id, actor_user_id=current_user.id)
    db.commit()
    return {"message": "Inventory count deleted successfully"}


@router.post(
    "/inventory-counts/{count_id}/items",
    response_model=List[schemas.InventoryCountItemRead],
    status_code=status.HTTP_201_CREATED,
)
def add_inventory_count_items(
    count_id: int,
    payload: schemas.InventoryCountItemsAdd,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_elevated),
):
    items = services.add_lines(
        db,
        count_id=count_id,
        article_ids=payload.article_ids,
        actor_user_id=current_user.id,
    )
    db.commit()
    for item in items:
        db.refresh(item)
    return items


@router.get(
    "/inventory-counts/{count_id}/items",
    response_model=List[schemas.InventoryCountItemRead],
)
def list_inventory_count_items(
    count_id: int,
    db: Session = Depends(get_read_db),
    current_user: account_models.User = Depends(get_current_active_user),
):
    return services.list_lines(db, count_id=count_id)


@router.get(
    "/inventory-counts/{count_id}/deviations",
    response_model=List[schemas.InventoryCountItemRead],
)
def get_inventory_count_deviations(
    count_id: int,
    db: Session = Depends(get_read_db),
    current_user: account_models.User = Depends(get_current_active_user),
):
    return services.deviation_report(db, count_id=count_id)


@router.put(
    "/inventory-count-items/{item_id}",
    response_model=schemas.InventoryCountItemRead,
)
def update_inventory_count_item(
    item_id: int,
    payload: schemas.InventoryCountItemUpdate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(get_current_active_user),
):
    item = services.record_count(
        db,
        item_id=item_id,
        counted_quantity=payload.counted_quantity,
        notes=payload.notes,
        counted_by=current_user.id,
    )
    db.commit()
    db.refresh(item)
    return item
