"""
Accounts module.

Holds user identity and roles. Login and password handling live in the
external authentication service.
"""

from . import models  # noqa: F401
