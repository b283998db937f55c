from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from . import models


class StockMovementCreate(BaseModel):
    article_id: int
    type: models.StockMovementTypeEnum
    # Range is checked by the ledger so the domain error is raised consistently.
    quantity: int
    cost_center_id: Optional[int] = None
    notes: Optional[str] = None


class StockMovementRead(BaseModel):
    id: int
    article_id: int
    type: models.StockMovementTypeEnum
    quantity: int
    stock_after: int
    cost_center_id: Optional[int] = None
    user_id: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class StockLevelRead(BaseModel):
    article_id: int
    current_stock: int
    reserved_stock: int
    last_updated: datetime

    class Config:
        from_attributes = True
