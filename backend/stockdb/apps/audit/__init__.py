"""
Audit module.

Append-only trail of who changed stock and count sessions, and when.
"""

from . import models  # noqa: F401
