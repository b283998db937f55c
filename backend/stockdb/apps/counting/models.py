from __future__ import annotations

import enum
from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from stockdb.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InventoryCountStatus(str, enum.Enum):
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    APPROVED = "approved"


# Approved sessions are frozen; corrections before approval are still accepted.
COUNTABLE_STATUSES = frozenset(
    {InventoryCountStatus.OPEN, InventoryCountStatus.IN_PROGRESS, InventoryCountStatus.COMPLETED}
)
# New lines only while the count is still running.
EXTENDABLE_STATUSES = frozenset({InventoryCountStatus.OPEN, InventoryCountStatus.IN_PROGRESS})


class InventoryCount(Base):
    """
    One counting exercise over a filtered set of articles.
    """

    __tablename__ = "inventory_counts"
    __table_args__ = (Index("ix_inventory_counts_status_created", "status", "created_at"),)

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(
        SAEnum(
            InventoryCountStatus,
            name="inventory_count_status_enum",
            native_enum=False,
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
        ),
        nullable=False,
        default=InventoryCountStatus.OPEN,
        index=True,
    )
    category_id = Column(Integer, ForeignKey("categories.id", ondelete="SET NULL"), nullable=True)
    location_filter = Column(String(100), nullable=True)

    created_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    approved_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)

    category = relationship("Category", lazy="joined")
    items = relationship(
        "InventoryCountItem",
        back_populates="inventory_count",
        lazy="selectin",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class InventoryCountItem(Base):
    """
    Expected-vs-counted comparison for one article within a session.

    expected_quantity is a copy of the article's stock at the time the line
    was created and is never refreshed from the ledger.
    """

    __tablename__ = "inventory_count_items"
    __table_args__ = (
        UniqueConstraint("inventory_count_id", "article_id", name="uq_inventory_count_item_article"),
        Index("ix_inventory_count_items_count", "inventory_count_id"),
    )

    id = Column(Integer, primary_key=True, index=True)
    inventory_count_id = Column(
        Integer,
        ForeignKey("inventory_counts.id", ondelete="CASCADE"),
        nullable=False,
    )
    article_id = Column(Integer, ForeignKey("articles.id"), nullable=False, index=True)
    expected_quantity = Column(Integer, nullable=False)
    counted_quantity = Column(Integer, nullable=True)
    deviation = Column(Integer, nullable=True)  # counted - expected, null until counted
    notes = Column(Text, nullable=True)
    counted_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    counted_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    inventory_count = relationship("InventoryCount", back_populates="items")
    article = relationship("Article", lazy="joined")
