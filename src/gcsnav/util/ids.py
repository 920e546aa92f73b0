from __future__ import annotations

import random

_activity_ids = random.Random()


def new_activity_id() -> int:
    """Generate an id that groups the progress records of one bulk operation."""
    return _activity_ids.randint(1, 2**31 - 1)
