# backend/stockdb/__init__.py
"""
Import ORM models from each app so that:

- Alembic and Base.metadata.create_all() see all tables.
- String relationship targets ("Article", "CostCenter", ...) resolve.

The actual model classes are kept in stockdb/apps/*/models.py.
"""

from .apps.accounts import models as accounts_models          # users / roles
from .apps.catalog import models as catalog_models            # categories, cost centers, articles
from .apps.inventory import models as inventory_models        # stock levels + movements
from .apps.counting import models as counting_models          # count sessions + lines
from .apps.audit import models as audit_models                # audit trail

__all__ = [
    "accounts_models",
    "catalog_models",
    "inventory_models",
    "counting_models",
    "audit_models",
]
