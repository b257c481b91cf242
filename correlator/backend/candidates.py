"""Candidate generation: tickets a call could plausibly have produced."""

from datetime import timedelta

from .models import Call, Ticket


def candidate_tickets(call: Call, tickets: list[Ticket] | None,
                      skew_minutes: float = 0) -> list[Ticket] | None:
    """Tickets opened no earlier than the call's answer minute and before
    its shift end.

    Returns None ("cannot compute") when the analyst has no ticket list or
    the call lacks an answer time or shift end; an empty list means the
    check ran and nothing qualified.
    """
    if tickets is None:
        return None
    answer_minute = call.answer_minute
    if answer_minute is None or call.shift_end is None:
        return None
    skew = timedelta(minutes=skew_minutes)
    return [
        t for t in tickets
        if t.open_at is not None
        and t.open_minute + skew >= answer_minute
        and t.open_at < call.shift_end
    ]
