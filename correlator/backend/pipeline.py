"""Correlation pipeline: joins phone calls to phone tickets by timing alone.

The two datasets share no key. Tickets and calls are partitioned per analyst,
every call gets a shift end and a candidate list, and a greedy walk assigns
each ticket to at most one call. Analysts never interact, so the per-analyst
stage can fan out over a thread pool without changing the result.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

from . import config
from .assignment import resolve_analyst
from .candidates import candidate_tickets
from .handling import handle_seconds
from .indexer import calls_per_analyst, index_calls, index_tickets, tickets_for_call
from .models import Call, JoinedRecord, Ticket
from .normalizer import normalise_calls, normalise_tickets
from .settings import EngineSettings
from .shifts import attach_shift_ends
from .ticket_summary import build_summary_map, summary_fields

logger = logging.getLogger(__name__)


@dataclass
class AnalystResult:
    records: list[JoinedRecord]
    candidate_ids: set[str]
    claimed_ids: set[str]


@dataclass
class CorrelationResult:
    records: list[JoinedRecord]
    phone_tickets: list[Ticket]
    ticket_map: dict[str, list[Ticket]]
    total_tickets: int
    connected_calls: int
    outbound_calls: list[Call]
    candidate_ids: set[str] = field(default_factory=set)
    claimed_ids: set[str] = field(default_factory=set)


def correlate_analyst(calls: list[Call], ticket_map: dict[str, list[Ticket]],
                      settings: EngineSettings) -> AnalystResult:
    """Shift ends, candidates, assignment and handling time for one analyst.

    *calls* must already be in chronological order.
    """
    calls = attach_shift_ends(calls, settings.shift_gap_hours, settings.shift_wiggle_hours)
    candidates = [
        candidate_tickets(c, tickets_for_call(c, ticket_map), settings.ticket_skew_minutes)
        for c in calls
    ]
    decisions = resolve_analyst(calls, candidates)

    records = []
    for call, decision in zip(calls, decisions):
        secs = handle_seconds(
            call.talk_secs, call.answer_at, decision.assigned_tickets,
            settings.handling_max_hours, settings.default_ticket_handling_minutes,
        )
        records.append(JoinedRecord(call=call, decision=decision, handle_secs=secs))

    return AnalystResult(
        records=records,
        candidate_ids={t.id for cands in candidates if cands for t in cands},
        claimed_ids={t.id for d in decisions for t in d.assigned_tickets},
    )


def correlate(ticket_rows: list[dict], call_rows: list[dict],
              settings: EngineSettings | None = None,
              summary_rows: list[dict] | None = None,
              max_workers: int | None = None) -> CorrelationResult:
    """Join call rows to ticket rows (canonical field names, see config schemas).

    Pure apart from logging: the same input in the same order always yields
    the same records in the same order.
    """
    settings = settings or EngineSettings()

    tickets, total_tickets = normalise_tickets(
        ticket_rows, settings.analyst_denylist, config.PHONE_INCIDENT_TYPE
    )
    inbound, outbound, connected = normalise_calls(
        call_rows, settings.analyst_denylist, settings.call_name_corrections
    )

    ticket_map = index_tickets(tickets)
    call_map = index_calls(inbound)

    def run(analyst_calls):
        return correlate_analyst(analyst_calls, ticket_map, settings)

    if max_workers and max_workers > 1 and len(call_map) > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            per_analyst = list(pool.map(run, call_map.values()))
    else:
        per_analyst = [run(calls) for calls in call_map.values()]

    records = [rec for res in per_analyst for rec in res.records]
    candidate_ids = set().union(*(res.candidate_ids for res in per_analyst))
    claimed_ids = set().union(*(res.claimed_ids for res in per_analyst))

    if summary_rows is not None:
        summary_map = build_summary_map(summary_rows)
        n_calls = calls_per_analyst(inbound)
        records = [
            JoinedRecord(
                call=r.call, decision=r.decision, handle_secs=r.handle_secs,
                summary=summary_fields(r.call.analyst_raw, summary_map, n_calls),
            )
            for r in records
        ]

    logger.info(
        "Correlated %d inbound calls across %d analysts; %d of %d phone tickets matched",
        len(records), len(call_map), len(claimed_ids), len(tickets),
    )
    return CorrelationResult(
        records=records,
        phone_tickets=tickets,
        ticket_map=ticket_map,
        total_tickets=total_tickets,
        connected_calls=connected,
        outbound_calls=outbound,
        candidate_ids=candidate_ids,
        claimed_ids=claimed_ids,
    )
