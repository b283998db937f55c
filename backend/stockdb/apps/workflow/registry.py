from __future__ import annotations

from stockdb.apps.counting.models import InventoryCountStatus

from .guards import guard_count_approval, guard_count_completion

_COUNT = InventoryCountStatus

# Allowed next states per state, each edge with its guards.
# A state mapped to {} is terminal.
WORKFLOWS = {
    "inventory_count": {
        "transitions": {
            _COUNT.OPEN.value: {
                _COUNT.IN_PROGRESS.value: [],
            },
            _COUNT.IN_PROGRESS.value: {
                _COUNT.COMPLETED.value: [guard_count_completion],
            },
            _COUNT.COMPLETED.value: {
                _COUNT.APPROVED.value: [guard_count_approval],
            },
            _COUNT.APPROVED.value: {},
        }
    },
}
