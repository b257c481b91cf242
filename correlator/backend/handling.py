"""Handling time: how long a call kept the analyst busy, ticket work included.

The answer time is when work on a call starts and each ticket's open time
is when work on that ticket stopped. A ticket opened more than the handling
maximum after the answer is credited with talk time plus a flat default
instead of the raw gap.
"""

from datetime import datetime

from .models import Ticket


def ticket_handling_secs(answer_at: datetime, ticket: Ticket, talk_secs: float,
                         max_hours: float, default_minutes: float) -> float:
    delta = (ticket.open_at - answer_at).total_seconds()
    if delta / 3600 > max_hours:
        return talk_secs + default_minutes * 60
    return delta


def handle_seconds(talk_secs: float, answer_at: datetime | None, tickets,
                   max_hours: float, default_minutes: float) -> float:
    """Largest of talk time and every per-ticket handling time."""
    if not tickets or answer_at is None:
        return talk_secs
    per_ticket = [
        ticket_handling_secs(answer_at, t, talk_secs, max_hours, default_minutes)
        for t in tickets
        if t.open_at is not None
    ]
    return max([talk_secs, *per_ticket])
