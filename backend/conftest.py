from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

ROOT = Path(__file__).resolve().parent
sys.path.append(str(ROOT))

os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["DATABASE_WRITE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["SECRET_KEY"] = "test-secret-key"

from stockdb.database import Base  # noqa: E402
from stockdb.apps.accounts import models as account_models  # noqa: E402
from stockdb.apps.catalog import models as catalog_models  # noqa: E402
from stockdb.apps.inventory import models as inventory_models  # noqa: E402
from stockdb.apps.counting import models as counting_models  # noqa: E402
from stockdb.apps.audit import models as audit_models  # noqa: E402


@pytest.fixture()
def db_session():
    engine = create_engine("sqlite+pysqlite:///:memory:")
    Base.metadata.create_all(
        bind=engine,
        tables=[
            account_models.User.__table__,
            catalog_models.Category.__table__,
            catalog_models.CostCenter.__table__,
            catalog_models.Article.__table__,
            inventory_models.StockLevel.__table__,
            inventory_models.StockMovement.__table__,
            counting_models.InventoryCount.__table__,
            counting_models.InventoryCountItem.__table__,
            audit_models.AuditEvent.__table__,
        ],
    )
    TestingSession = sessionmaker(
        bind=engine,
        autoflush=False,
        autocommit=False,
        expire_on_commit=False,
    )
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()


def _create_user(db, *, email: str, role: account_models.AccountRole) -> account_models.User:
    user = account_models.User(
        email=email,
        first_name=role.value.title(),
        last_name="User",
        role=role,
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture()
def admin_user(db_session):
    return _create_user(db_session, email="admin@example.com", role=account_models.AccountRole.ADMIN)


@pytest.fixture()
def manager_user(db_session):
    return _create_user(
        db_session,
        email="manager@example.com",
        role=account_models.AccountRole.PROJECT_MANAGER,
    )


@pytest.fixture()
def technician_user(db_session):
    return _create_user(
        db_session,
        email="technician@example.com",
        role=account_models.AccountRole.TECHNICIAN,
    )
