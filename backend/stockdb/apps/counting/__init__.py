"""
Inventory counting module.

Count sessions snapshot expected stock, collect physical counts per article
and roll up deviations for review and approval.
"""

from . import models  # noqa: F401
