from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from . import models


class InventoryCountCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    category_id: Optional[int] = None
    location_filter: Optional[str] = Field(None, max_length=100)


class InventoryCountStatusUpdate(BaseModel):
    # Free string so unknown targets surface as InvalidTransition, not a 422.
    status: str


class InventoryCountItemsAdd(BaseModel):
    article_ids: List[int] = Field(..., min_length=1)


class InventoryCountItemUpdate(BaseModel):
    counted_quantity: int
    notes: Optional[str] = None


class CountArticleRead(BaseModel):
    id: int
    article_number: str
    name: str
    location: Optional[str] = None
    category_id: int

    class Config:
        from_attributes = True


class InventoryCountItemRead(BaseModel):
    id: int
    inventory_count_id: int
    article_id: int
    expected_quantity: int
    counted_quantity: Optional[int] = None
    deviation: Optional[int] = None
    notes: Optional[str] = None
    counted_by: Optional[str] = None
    counted_at: Optional[datetime] = None
    created_at: datetime
    article: Optional[CountArticleRead] = None

    class Config:
        from_attributes = True


class InventoryCountRead(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    status: models.InventoryCountStatus
    category_id: Optional[int] = None
    location_filter: Optional[str] = None
    created_by: Optional[str] = None
    approved_by: Optional[str] = None
    created_at: datetime
    completed_at: Optional[datetime] = None
    approved_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class InventoryCountDetail(InventoryCountRead):
    """Session read model with embedded lines and freshly computed rollups."""

    items: List[InventoryCountItemRead] = Field(default_factory=list)
    total_items: int = 0
    completed_items: int = 0
    total_deviations: int = 0
    has_deviations: bool = False
