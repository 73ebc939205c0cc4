from __future__ import annotations

from .guards import (
    guard_training_completion,
    guard_training_start,
    guard_training_unlock,
)

# "overdue" is reachable only through data written by other tools; the
# training service never moves an assignment into it. "removed" is a soft
# delete and is terminal.
WORKFLOWS = {
    "training_assignment": {
        "transitions": {
            "assigned": {
                "unlocked": [guard_training_unlock],
                "removed": [],
            },
            "overdue": {
                "unlocked": [guard_training_unlock],
                "removed": [],
            },
            "unlocked": {
                "in_progress": [guard_training_start],
                "completed": [guard_training_completion],
                "removed": [],
            },
            "in_progress": {
                "completed": [guard_training_completion],
                "removed": [],
            },
            "completed": {
                "removed": [],
            },
            "removed": {},
        }
    },
}
