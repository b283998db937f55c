"""
Catalog module.

Reference data for the warehouse: categories, cost centers and articles.
"""

from . import models  # noqa: F401
