"""Per-analyst ticket summary enrichment.

The summary dataset has one row per analyst per month of ticket work, keyed
by the call-table analyst name. Rows are summed per analyst and then spread
over that analyst's calls so the metrics aggregate correctly per call.
"""

import logging
import math

from . import config

logger = logging.getLogger(__name__)

PREFIX = "summary_"


def _number(val) -> float:
    try:
        v = float(val)
    except (TypeError, ValueError):
        return 0.0
    return v if math.isfinite(v) else 0.0


def _ratio(num: float, den: float) -> float | None:
    if not den:
        return None
    return num / den


def build_summary_map(rows: list[dict] | None) -> dict[str, dict]:
    """Accumulate monthly rows into one record per analyst.

    Numeric columns are summed (hundredths); the role comes from the latest row.
    """
    summary: dict[str, dict] = {}
    for row in rows or []:
        analyst = (row.get(config.TICKET_SUMMARY_ANALYST_COLUMN) or "").strip()
        if not analyst:
            continue
        prev = summary.get(analyst, {})
        merged = {
            PREFIX + "role": (row.get(config.TICKET_SUMMARY_ROLE_COLUMN) or "").strip(),
        }
        for col in config.TICKET_SUMMARY_NUMERIC_COLUMNS:
            key = PREFIX + col
            merged[key] = round(prev.get(key, 0.0) + _number(row.get(col)), 2)
        summary[analyst] = merged
    logger.debug("Ticket summary covers %d analysts", len(summary))
    return summary


def work_per_call(total_secs: float, n_calls: int, role: str) -> float | None:
    """Ticket seconds per call, weighted by the share of the role spent on calls."""
    fraction = config.ROLE_CALL_FRACTION.get(role, 0)
    per_call = _ratio(total_secs, n_calls)
    return None if per_call is None else fraction * per_call


def empty_summary() -> dict:
    fields = {PREFIX + "role": ""}
    fields.update((PREFIX + col, 0.0) for col in config.TICKET_SUMMARY_NUMERIC_COLUMNS)
    return fields


def summary_fields(analyst: str, summary_map: dict[str, dict],
                   calls_per_analyst: dict[str, int]) -> dict:
    """Flat summary_* fields for one call of *analyst* (call-table name).

    Every call gets the same keys; analysts without summary rows get zeros.
    """
    data = {**empty_summary(), **(summary_map.get(analyst, {}) if analyst else {})}
    n_calls = calls_per_analyst.get(analyst, 0)
    total_secs = data.get(PREFIX + "tacttime", 0.0)
    days_worked = data.get(PREFIX + "dayswork", 0.0)
    role = data.get(PREFIX + "role", "")

    per_call = work_per_call(total_secs, n_calls, role)
    return {
        **data,
        PREFIX + "rawSecsPerCall": _ratio(total_secs, n_calls),
        PREFIX + "secsPerCall": per_call,
        PREFIX + "minutesPerCall": None if per_call is None else per_call / 60,
        PREFIX + "hoursPerCall": None if per_call is None else per_call / 3600,
        PREFIX + "daysWorkPerCall": _ratio(days_worked, n_calls),
        PREFIX + "utilization": _percent(total_secs, days_worked * config.WORKDAY_HOURS * 3600),
    }


def _percent(num: float, den: float) -> float | None:
    ratio = _ratio(num, den)
    return None if ratio is None else ratio * 100
