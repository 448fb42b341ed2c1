"""
SM-2 Spaced Repetition Scheduler

Modified SuperMemo-2 recurrence that maps a recall grade (0-5) and an item's
current scheduling state to its next scheduling state.

Differences from textbook SM-2:
- Bootstrap intervals depend on the grade: the first successful review gives
  4/2/1 days for grade 5/4/3, the second gives 10/6/4 days.
- Due times are normalized to 04:00 local time of the target day, so an item
  scheduled late in the evening becomes available early the next morning
  rather than at the same wall-clock time.

The scheduler is pure apart from the wall clock (`now` is injectable) and
never raises: malformed inputs fall back to the initial state.

Usage:
    from neurolex.services.learning.sm2 import compute_next_review

    result = compute_next_review(
        grade=4,
        previous_repetition=progress.repetition,
        previous_efactor=progress.efactor,
        previous_interval=progress.interval,
    )
    progress.interval = result.interval
    progress.next_review_at = result.next_review_at
"""

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Optional

from neurolex.enums.learning import Grade

MIN_EFACTOR = 1.3
DEFAULT_EFACTOR = 2.5
PASSING_GRADE = Grade.DIFFICULT
DUE_HOUR = 4

# Interval (days) by grade for the first and second successful review
FIRST_REVIEW_INTERVALS = {5: 4, 4: 2}
SECOND_REVIEW_INTERVALS = {5: 10, 4: 6}


@dataclass(frozen=True)
class ReviewResult:
    """New scheduling state produced by one review."""

    interval: int  # days
    repetition: int
    efactor: float
    next_review_at: int  # epoch ms, 04:00 local time


def _coerce_number(value: Any, default: float) -> float:
    """
    Coerce a possibly-malformed numeric input.

    Missing, non-numeric, non-finite and zero values all fall back to the
    default.
    """
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(number) or number == 0:
        return default
    return number


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (2.5 -> 3, not 2)."""
    return int(math.floor(value + 0.5))


def due_timestamp(interval: int, now: Optional[datetime] = None) -> int:
    """
    Epoch ms for 04:00 on the day `interval` days after `now`.

    Naive datetimes are treated as local time; aware datetimes keep their
    own zone. Calendar arithmetic keeps the 04:00 wall-clock time across
    DST changes.
    """
    now = now or datetime.now()
    target = (now + timedelta(days=interval)).replace(
        hour=DUE_HOUR, minute=0, second=0, microsecond=0
    )
    return int(target.timestamp() * 1000)


def compute_next_review(
    grade: Any,
    previous_repetition: Any = 0,
    previous_efactor: Any = DEFAULT_EFACTOR,
    previous_interval: Any = 0,
    now: Optional[datetime] = None,
) -> ReviewResult:
    """
    Compute the next scheduling state for an item.

    Args:
        grade: Recall quality, normally 0-5 (callers clamp; not clamped here)
        previous_repetition: Consecutive successful reviews so far
        previous_efactor: Current easiness factor
        previous_interval: Current interval in days
        now: Reference time (defaults to the local wall clock)

    Returns:
        ReviewResult with interval >= 1, repetition >= 0, efactor >= 1.3
    """
    grade = _coerce_number(grade, 0)
    repetition = max(int(_coerce_number(previous_repetition, 0)), 0)
    efactor = _coerce_number(previous_efactor, DEFAULT_EFACTOR)
    interval = _coerce_number(previous_interval, 0)

    if grade >= PASSING_GRADE:
        if repetition == 0:
            interval = FIRST_REVIEW_INTERVALS.get(grade, 1)
        elif repetition == 1:
            interval = SECOND_REVIEW_INTERVALS.get(grade, 4)
        else:
            interval = round_half_up(interval * efactor)
        repetition += 1
    else:
        repetition = 0
        interval = 1

    interval = max(int(interval), 1)

    efactor = efactor + (0.1 - (5 - grade) * (0.08 + (5 - grade) * 0.02))
    efactor = max(efactor, MIN_EFACTOR)

    return ReviewResult(
        interval=interval,
        repetition=repetition,
        efactor=efactor,
        next_review_at=due_timestamp(interval, now),
    )
