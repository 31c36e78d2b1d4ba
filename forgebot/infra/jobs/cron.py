"""
Cron schedules and job definitions.

Schedules use six fields, seconds first, with an optional seventh year field:

    sec  min  hour  day-of-month  month  day-of-week  [year]
    0    30   11    *             *      FRI          *

Month and day names (JAN, FRI) are accepted. Numeric days of the week
follow standard cron: 0 and 7 are Sunday. When both day-of-month and
day-of-week are restricted a time matches if either one does.
"""

from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from croniter import croniter

# Any instant works; it only has to let croniter find a first match
_VALIDATION_BASE = datetime(2000, 1, 1, tzinfo=UTC)


class InvalidSchedule(ValueError):
    """Raised when a cron expression cannot be parsed."""

    def __init__(self, expression: str, reason: str):
        self.expression = expression
        super().__init__(f"Invalid cron expression '{expression}': {reason}")


def _as_utc(instant: datetime) -> datetime:
    if instant.tzinfo is None:
        return instant.replace(tzinfo=UTC)
    return instant.astimezone(UTC)


@dataclass(frozen=True)
class CronSchedule:
    """A parsed cron expression able to list its upcoming occurrences."""

    expression: str
    _croniter_expression: str = field(repr=False, compare=False)

    @classmethod
    def parse(cls, expression: str) -> "CronSchedule":
        fields = expression.split()
        if len(fields) not in (6, 7):
            raise InvalidSchedule(
                expression, f"expected 6 or 7 fields, got {len(fields)}"
            )

        second, minute, hour, day, month, weekday = fields[:6]
        # croniter wants seconds after day-of-week, then the optional year
        parts = [minute, hour, day, month, weekday, second]
        if len(fields) == 7 and fields[6] != "*":
            parts.append(fields[6])
        translated = " ".join(parts)

        try:
            croniter(translated, _VALIDATION_BASE).get_next(datetime)
        except (ValueError, KeyError) as e:
            raise InvalidSchedule(expression, str(e)) from e

        return cls(expression=expression, _croniter_expression=translated)

    def _iter(self, start: datetime) -> croniter:
        return croniter(self._croniter_expression, _as_utc(start))

    def after(self, instant: datetime, count: int = 1) -> list[datetime]:
        """The next ``count`` occurrences strictly after ``instant``, in UTC."""
        it = self._iter(instant)
        return [it.get_next(datetime) for _ in range(count)]

    def between(self, start: datetime, end: datetime) -> Iterator[datetime]:
        """Occurrences in the half-open window ``(start, end]``, in UTC."""
        end = _as_utc(end)
        it = self._iter(start)
        while True:
            occurrence = it.get_next(datetime)
            if occurrence > end:
                return
            yield occurrence

    def __str__(self) -> str:
        return self.expression


@dataclass(frozen=True)
class JobDefinition:
    """
    A named recurring job: its cron schedule and opaque configuration.

    The metadata is only interpreted by the job's own ``run``; the
    scheduler copies it into every queue entry it creates.
    """

    name: str
    schedule: CronSchedule
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def create(
        cls, name: str, schedule: str, metadata: dict[str, Any] | None = None
    ) -> "JobDefinition":
        """Build a definition, parsing ``schedule``; an invalid one raises."""
        return cls(
            name=name, schedule=CronSchedule.parse(schedule), metadata=metadata or {}
        )
