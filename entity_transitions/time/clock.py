"""
Transitions Time — Clocks for Timestamping Mutations
=======================================================
A mutation that stamps "updated_at" / "funded_at" is handed its clock
when the rule is declared. Nothing here is process-global: a rule
without an explicit clock gets its own SystemClock.

Every clock answers in UTC. Aware datetimes in other zones are
converted; naive datetimes are refused.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Protocol, Union, runtime_checkable


def _as_utc(moment: datetime) -> datetime:
    if not isinstance(moment, datetime):
        raise TypeError(f"Expected datetime, got {type(moment).__name__}.")
    if moment.tzinfo is None or moment.utcoffset() is None:
        raise ValueError("Clock times must be timezone-aware datetimes.")
    return moment.astimezone(timezone.utc)


@runtime_checkable
class Clock(Protocol):
    """Anything with now_utc() can stamp a transition."""

    def now_utc(self) -> datetime:
        ...  # pragma: no cover


def require_clock(candidate: Any) -> Clock:
    """Return candidate if it can tell the time, else raise TypeError."""
    if not isinstance(candidate, Clock):
        raise TypeError(
            f"clock must provide now_utc(), got {type(candidate).__name__}."
        )
    return candidate


class SystemClock:
    """Wall-clock time of the worker process."""

    def now_utc(self) -> datetime:
        return datetime.now(timezone.utc)

    def __repr__(self) -> str:
        return "SystemClock()"


class FixedClock:
    """
    A clock that only moves when told to.

    Lets a test pin the value a transition stamps, or step it forward
    between two invocations of the same rule:

        clock = FixedClock(datetime(2025, 1, 1, tzinfo=timezone.utc))
        rule = TransitionRule(..., mutation=stamp_updated(clock=clock))
        clock.advance(timedelta(days=1))
    """

    def __init__(self, moment: datetime) -> None:
        self._moment = _as_utc(moment)

    def now_utc(self) -> datetime:
        return self._moment

    def advance(self, step: Union[timedelta, float]) -> datetime:
        """Move forward by a timedelta or a number of seconds."""
        if not isinstance(step, timedelta):
            step = timedelta(seconds=step)
        if step < timedelta(0):
            raise ValueError("FixedClock cannot move backwards.")
        self._moment += step
        return self._moment

    def __repr__(self) -> str:
        return f"FixedClock({self._moment.isoformat()})"
