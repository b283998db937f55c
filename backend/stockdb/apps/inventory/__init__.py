"""
Inventory module.

Holds the stock ledger: on-hand levels per article and the movements
(check-in, check-out, adjustment) that change them.
"""

from . import models  # noqa: F401
