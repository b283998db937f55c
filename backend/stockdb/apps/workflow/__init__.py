from .engine import allowed_targets, apply_transition
from .registry import WORKFLOWS

__all__ = ["WORKFLOWS", "allowed_targets", "apply_transition"]
