"""Recurrence expansion for class scheduling.

``expand`` turns one base occurrence into the ordered list of occurrences a
recurrence rule describes. Every occurrence keeps the base time of day and
duration; only the calendar date moves, and each step is taken from the
previously generated date rather than the base date.

Weekly rules may carry a weekday selector (0=Sunday .. 6=Saturday). The
selector filters the fixed weekly cadence: a skipped occurrence does not count
toward ``count`` but does count toward the iteration ceiling.
"""

import logging
from dataclasses import dataclass
from datetime import UTC, date, datetime, time, timedelta
from typing import FrozenSet, List, Optional, Tuple

from dateutil.relativedelta import relativedelta

logger = logging.getLogger(__name__)

FREQUENCIES = ("daily", "weekly", "monthly")
MAX_ITERATIONS = 500

Occurrence = Tuple[datetime, datetime]


@dataclass(frozen=True)
class RecurrenceRule:
    enabled: bool = False
    frequency: str = "weekly"
    interval: int = 1
    weekdays: Optional[FrozenSet[int]] = None
    count: Optional[int] = None
    until: Optional[datetime] = None

    @classmethod
    def from_payload(cls, payload, base_start: Optional[datetime] = None) -> "RecurrenceRule":
        """Build a rule from the API recurrence schema (or ``None``)."""
        if payload is None or not payload.enabled:
            return cls(enabled=False)

        count = payload.count if payload.end_type == "count" else None
        until = None
        if payload.end_type == "date" and payload.until is not None:
            until = _as_until(payload.until, base_start)
        weekdays = frozenset(payload.weekdays) if payload.weekdays else None
        return cls(
            enabled=True,
            frequency=payload.frequency,
            interval=max(1, payload.interval or 1),
            weekdays=weekdays,
            count=count,
            until=until,
        )


def _as_until(value, base_start: Optional[datetime]) -> datetime:
    # A bare date limit includes the whole day, in the base occurrence's timezone
    tzinfo = base_start.tzinfo if base_start is not None and base_start.tzinfo is not None else UTC
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=tzinfo)
        return value
    return datetime.combine(value, time.max, tzinfo=tzinfo)


def js_weekday(value: date) -> int:
    """Weekday with Sunday as 0, the numbering the scheduling UI sends."""
    return (value.weekday() + 1) % 7


def add_months(value: datetime, months: int) -> datetime:
    """Add calendar months, letting a day past the month end roll into the next month.

    Jan 31 + 1 month is Mar 3 (Mar 2 in a leap year), not Feb 28.
    """
    first_of_month = value.replace(day=1) + relativedelta(months=months)
    return first_of_month + timedelta(days=value.day - 1)


def _advance(current: datetime, frequency: str, interval: int) -> Optional[datetime]:
    if frequency == "daily":
        return current + timedelta(days=interval)
    if frequency == "weekly":
        return current + timedelta(days=7 * interval)
    if frequency == "monthly":
        return add_months(current, interval)
    return None


def expand(
    start: datetime,
    end: datetime,
    rule: Optional[RecurrenceRule],
    max_iterations: int = MAX_ITERATIONS,
) -> List[Occurrence]:
    if rule is None or not rule.enabled or start is None or end is None:
        return [(start, end)]

    duration = end - start
    interval = max(1, rule.interval or 1)
    occurrences: List[Occurrence] = []
    current: Optional[datetime] = start
    iterations = 0

    while current is not None and iterations < max_iterations:
        if rule.until is not None and current > rule.until:
            break
        iterations += 1

        skipped = (
            rule.frequency == "weekly"
            and rule.weekdays
            and js_weekday(current) not in rule.weekdays
        )
        if not skipped:
            occurrences.append((current, current + duration))
            if rule.count is not None and len(occurrences) >= rule.count:
                break

        current = _advance(current, rule.frequency, interval)
        if current is None:
            logger.warning("Unknown recurrence frequency %r; stopping expansion", rule.frequency)

    if iterations >= max_iterations:
        logger.info("Recurrence expansion hit the %s iteration ceiling", max_iterations)
    return occurrences
