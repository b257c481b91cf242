"""Diagnostics, flattening and the end-of-run report."""

import logging
from typing import Any

from .models import JoinedRecord, Ticket
from .pipeline import CorrelationResult

logger = logging.getLogger(__name__)


def flatten(records: list[JoinedRecord]) -> list[dict]:
    return [r.to_row() for r in records]


def unassignable_by_analyst(result: CorrelationResult) -> dict[str, list[Ticket]]:
    """Phone tickets no call claimed, per ticket-table analyst."""
    return {
        analyst: [t for t in tickets if t.id not in result.claimed_ids]
        for analyst, tickets in result.ticket_map.items()
    }


def unassignable_histogram(unassignable: dict[str, list[Ticket]]) -> list[dict]:
    """(analyst, count) pairs, largest first, analysts with none omitted."""
    histo = [
        {"name": analyst, "value": len(tickets)}
        for analyst, tickets in unassignable.items()
        if tickets
    ]
    histo.sort(key=lambda h: -h["value"])
    return histo


def build_diagnostics(result: CorrelationResult) -> dict[str, Any]:
    unassignable = unassignable_by_analyst(result)
    n_phone = len(result.phone_tickets)
    n_matched = sum(r.matched_count for r in result.records)
    n_unassignable = sum(len(v) for v in unassignable.values())
    n_never_candidate = sum(1 for t in result.phone_tickets if t.id not in result.candidate_ids)

    n_inbound = len(result.records)
    n_with = sum(1 for r in result.records if r.matched_count > 0)
    n_without = n_inbound - n_with
    min_without = n_inbound - n_phone

    return {
        "tickets": result.total_tickets,
        "phone_tickets": n_phone,
        "matched_tickets": n_matched,
        "unmatched_tickets": n_phone - n_matched,
        "unassignable_tickets": n_unassignable,
        "never_candidate_tickets": n_never_candidate,
        "unassignable_by_analyst": unassignable_histogram(unassignable),
        "connected_calls": result.connected_calls,
        "outbound_calls": len(result.outbound_calls),
        "inbound_calls": n_inbound,
        "inbound_with_tickets": n_with,
        "inbound_without_tickets": n_without,
        "min_possible_without_tickets": min_without,
        "possible_remaining_matches": n_without - min_without,
    }


def log_report(diag: dict[str, Any]) -> None:
    logger.info("************")
    logger.info("# Tickets: %d", diag["tickets"])
    logger.info("# Phone Tickets: %d", diag["phone_tickets"])
    logger.info("# Matched Phone Tickets: %d", diag["matched_tickets"])
    logger.info("# Unmatched Phone Tickets: %d", diag["unmatched_tickets"])
    logger.info("# Unassignable Phone Tickets: %d", diag["unassignable_tickets"])
    for entry in diag["unassignable_by_analyst"]:
        logger.info("  %s: %d", entry["name"], entry["value"])
    logger.info("# Never-candidate Phone Tickets: %d", diag["never_candidate_tickets"])
    logger.info("# Connected Calls: %d", diag["connected_calls"])
    logger.info("# Outbound Calls: %d", diag["outbound_calls"])
    logger.info("# Inbound Calls: %d", diag["inbound_calls"])
    logger.info("# Inbound Calls with Tickets: %d", diag["inbound_with_tickets"])
    logger.info("# Inbound Calls without Tickets: %d", diag["inbound_without_tickets"])
    logger.info("Minimum Possible Calls without Tickets: %d", diag["min_possible_without_tickets"])
    logger.info("Possible Remaining Ticket Matches: %d", diag["possible_remaining_matches"])
    logger.info("************")
