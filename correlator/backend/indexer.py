"""Per-analyst partitioning of tickets and calls."""

from collections import defaultdict
from datetime import datetime
from typing import Callable, Iterable, TypeVar

from .models import Call, Ticket

T = TypeVar("T")

_LATEST = datetime.max


def index_by_analyst(records: Iterable[T],
                     key: Callable[[T], str] = lambda r: r.analyst) -> dict[str, list[T]]:
    """Group records by analyst, keeping first-seen analyst order and the
    input order inside each list."""
    grouped: dict[str, list[T]] = {}
    for rec in records:
        grouped.setdefault(key(rec), []).append(rec)
    return grouped


def _sorted_by(records: list[T], ts: Callable[[T], datetime | None]) -> list[T]:
    # Stable; records without a timestamp go last
    return sorted(records, key=lambda r: ts(r) or _LATEST)


def index_tickets(tickets: Iterable[Ticket]) -> dict[str, list[Ticket]]:
    """Tickets by analyst, each list ordered by open time."""
    return {
        analyst: _sorted_by(recs, lambda t: t.open_at)
        for analyst, recs in index_by_analyst(tickets).items()
    }


def index_calls(calls: Iterable[Call]) -> dict[str, list[Call]]:
    """Calls by canonical analyst name, each list in chronological order."""
    return {
        analyst: _sorted_by(recs, lambda c: c.open_at)
        for analyst, recs in index_by_analyst(calls).items()
    }


def tickets_for_call(call: Call, ticket_map: dict[str, list[Ticket]]) -> list[Ticket] | None:
    """The analyst's tickets, looked up by canonical then recorded name."""
    if call.analyst in ticket_map:
        return ticket_map[call.analyst]
    return ticket_map.get(call.analyst_raw)


def calls_per_analyst(calls: Iterable[Call]) -> dict[str, int]:
    """Number of calls keyed by the recorded (call-table) analyst name."""
    counts: dict[str, int] = defaultdict(int)
    for c in calls:
        counts[c.analyst_raw] += 1
    return dict(counts)
