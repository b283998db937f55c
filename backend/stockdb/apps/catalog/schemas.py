from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class CategoryCreate(BaseModel):
    code: str = Field(..., min_length=1, max_length=10)
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None


class CategoryRead(CategoryCreate):
    id: int
    created_at: datetime

    class Config:
        from_attributes = True


class CostCenterCreate(BaseModel):
    code: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None


class CostCenterRead(CostCenterCreate):
    id: int
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class ArticleCreate(BaseModel):
    article_number: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    category_id: int
    barcode: Optional[str] = None
    location: Optional[str] = None
    minimum_stock: int = Field(0, ge=0)
    unit_price: Optional[Decimal] = None


class ArticleRead(ArticleCreate):
    id: int
    created_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
