"""Greedy ticket-to-call assignment for one analyst.

Rule: walking the analyst's calls in order, a call claims every candidate
ticket that no earlier call has claimed and that was opened no later than the
minute the next call was answered. A ticket filed after the next call began
belongs to that later call instead.

The rule gets it wrong when an analyst files tickets out of call order,
takes a second call before writing up the first, has a colleague file the
ticket, or leaves the write-up for the next shift. Those cases surface as
"No Ticket" calls and unassignable tickets in the diagnostics.
"""

from datetime import datetime

from . import config
from .models import Call, Decision, Ticket


def no_ticket_decision() -> Decision:
    sentinel = config.NO_TICKET_VALUE
    return Decision(level1=sentinel, level2=sentinel, level3=sentinel, service=sentinel)


def eligible_tickets(candidates: list[Ticket] | None, claimed: set[str],
                     next_answer_minute: datetime | None) -> list[Ticket]:
    if not candidates:
        return []
    return [
        t for t in candidates
        if t.id not in claimed
        and (next_answer_minute is None or t.open_minute <= next_answer_minute)
    ]


def distinct_level1(tickets: list[Ticket]) -> list[str]:
    # dict keeps first-seen order
    return list(dict.fromkeys(t.level1 for t in tickets))


def decide(tickets: list[Ticket]) -> Decision:
    """Classify a call from the tickets it claimed."""
    if not tickets:
        return no_ticket_decision()
    first = tickets[0]
    multiple = distinct_level1(tickets) if len(tickets) > 1 else None
    return Decision(
        level1=first.level1,
        level2=first.level2,
        level3=first.level3,
        service=first.service,
        ticket_id=first.id,
        multiple=multiple,
        last_ticket_open_at=tickets[-1].open_at,
        assigned_tickets=tuple(tickets),
    )


def resolve_analyst(calls: list[Call],
                    candidates: list[list[Ticket] | None]) -> list[Decision]:
    """Decide every call of one analyst; *candidates* is parallel to *calls*.

    The claimed-id set lives only for this walk. Ids are added once and never
    removed, so no ticket can land on two calls.
    """
    claimed: set[str] = set()
    decisions = []
    for i, call in enumerate(calls):
        next_call = calls[i + 1] if i + 1 < len(calls) else None
        next_minute = next_call.answer_minute if next_call is not None else None
        chosen = eligible_tickets(candidates[i], claimed, next_minute)
        claimed.update(t.id for t in chosen)
        decisions.append(decide(chosen))
    return decisions
