from __future__ import annotations

import enum
from datetime import datetime, timezone

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from stockdb.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StockMovementTypeEnum(str, enum.Enum):
    CHECKIN = "checkin"
    CHECKOUT = "checkout"
    ADJUSTMENT = "adjustment"


class StockLevel(Base):
    """
    On-hand quantity for one article. Only the stock ledger service writes
    to this table, always under a row lock.
    """

    __tablename__ = "stock_levels"
    __table_args__ = (
        CheckConstraint("current_stock >= 0", name="ck_stock_levels_current_non_negative"),
        CheckConstraint("reserved_stock >= 0", name="ck_stock_levels_reserved_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True)
    article_id = Column(
        Integer,
        ForeignKey("articles.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
    )
    current_stock = Column(Integer, nullable=False, default=0)
    reserved_stock = Column(Integer, nullable=False, default=0)
    last_updated = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    article = relationship("Article", lazy="joined")


class StockMovement(Base):
    __tablename__ = "stock_movements"
    __table_args__ = (
        Index("ix_stock_movements_article_date", "article_id", "created_at"),
        CheckConstraint("quantity > 0", name="ck_stock_movements_quantity_positive"),
    )

    id = Column(Integer, primary_key=True, index=True)
    article_id = Column(Integer, ForeignKey("articles.id"), nullable=False, index=True)
    type = Column(
        SAEnum(
            StockMovementTypeEnum,
            name="stock_movement_type_enum",
            native_enum=False,
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
        ),
        nullable=False,
        index=True,
    )
    quantity = Column(Integer, nullable=False)
    stock_after = Column(Integer, nullable=False)
    cost_center_id = Column(Integer, ForeignKey("cost_centers.id", ondelete="SET NULL"), nullable=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    article = relationship("Article", lazy="joined")
    cost_center = relationship("CostCenter", lazy="joined")
