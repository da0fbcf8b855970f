from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timezone

from fahrplan.errors import EmptyInputError


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _distance(value: datetime | float, now: datetime | float) -> float:
    if isinstance(value, datetime):
        if not isinstance(now, datetime):
            now = datetime.fromtimestamp(now, timezone.utc)
        return abs((_as_utc(value) - _as_utc(now)).total_seconds())
    if isinstance(now, datetime):
        now = _as_utc(now).timestamp()
    return abs(float(value) - float(now))


def nearest_index(
    timestamps: Iterable[datetime | float],
    now: datetime | float | None = None,
) -> int:
    """Return the index of the timestamp closest to ``now``.

    Input order is not assumed to be sorted. Ties go to the first index.
    """
    reference = now_utc() if now is None else now
    best_index = -1
    best_distance = 0.0
    for index, value in enumerate(timestamps):
        distance = _distance(value, reference)
        if best_index < 0 or distance < best_distance:
            best_index = index
            best_distance = distance
    if best_index < 0:
        raise EmptyInputError("cannot pick the nearest of zero timestamps")
    return best_index
