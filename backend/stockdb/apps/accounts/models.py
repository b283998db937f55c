# backend/stockdb/apps/accounts/models.py

from __future__ import annotations

import enum
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum,
    String,
    Index,
)

from stockdb.database import Base
from stockdb.utils.identifiers import generate_uuid7


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# ENUMS
# ---------------------------------------------------------------------------


class AccountRole(str, enum.Enum):
    """Roles used across the warehouse.

    ADMIN and PROJECT_MANAGER are elevated: they maintain reference data,
    open and delete count sessions, and approve completed counts.
    """

    ADMIN = "ADMIN"
    PROJECT_MANAGER = "PROJECT_MANAGER"
    TECHNICIAN = "TECHNICIAN"


ELEVATED_ROLES = frozenset({AccountRole.ADMIN, AccountRole.PROJECT_MANAGER})


# ---------------------------------------------------------------------------
# USERS
# ---------------------------------------------------------------------------


class User(Base):
    """
    Warehouse user. Credentials and sessions are handled by the
    authentication service; this table only carries identity and role.
    """

    __tablename__ = "users"
    __table_args__ = (Index("idx_users_role_active", "role", "is_active"),)

    id = Column(String(36), primary_key=True, default=generate_uuid7)
    email = Column(String(255), nullable=False, unique=True, index=True)
    first_name = Column(String(128), nullable=True)
    last_name = Column(String(128), nullable=True)

    role = Column(
        Enum(AccountRole, name="account_role_enum"),
        nullable=False,
        default=AccountRole.TECHNICIAN,
        index=True,
    )

    is_active = Column(Boolean, nullable=False, default=True, index=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
    )

    def is_elevated(self) -> bool:
        return self.role in ELEVATED_ROLES

    def __repr__(self) -> str:
        return f"<User {self.email} ({self.role})>"
