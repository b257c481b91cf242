"""Record normalisation: denylist filtering, name fixes, derived timestamps.

Every function here is a pure transform over row dicts. Anything that fails
to parse degrades to None (instants) or 0 (durations) so that a bad row can
never abort a run; it simply ends up with no candidate tickets downstream.
"""

import logging
from datetime import datetime, timedelta

from .models import Call, Ticket

logger = logging.getLogger(__name__)

_DATE_FORMATS = ("%m/%d/%Y", "%Y-%m-%d", "%m/%d/%y")
_TIME_FORMATS = ("%H:%M:%S", "%H:%M", "%I:%M:%S %p", "%I:%M %p")


# ─────────────────────────────────────────────
# Parsing helpers
# ─────────────────────────────────────────────

def _text(val) -> str:
    if val is None:
        return ""
    return str(val).strip()


def parse_timestamp(date_val, time_val=None) -> datetime | None:
    """Combine a date and optional time of day into a datetime.

    The date may itself carry a time ("12/30/2018 09:05"). A missing time
    means midnight. Returns None when nothing parses.
    """
    date_str = _text(date_val)
    time_str = _text(time_val)
    if not date_str:
        return None
    combined = f"{date_str} {time_str}" if time_str else date_str
    for dfmt in _DATE_FORMATS:
        candidates = [dfmt] + [f"{dfmt} {tfmt}" for tfmt in _TIME_FORMATS]
        candidates.append(f"{dfmt}T%H:%M:%S")
        for fmt in candidates:
            try:
                return datetime.strptime(combined, fmt)
            except ValueError:
                continue
    logger.debug("Unparsable timestamp: %r %r", date_str, time_str)
    return None


def hms_to_seconds(val) -> int:
    """Seconds in an HH:MM:SS string; anything malformed counts as 0."""
    parts = _text(val).split(":")
    if len(parts) != 3:
        return 0
    try:
        hh, mm, ss = (int(p) for p in parts)
    except ValueError:
        return 0
    return hh * 3600 + mm * 60 + ss


def ticket_analyst_name(name) -> str:
    """Call-table name in ticket-table form: first name plus last initial."""
    name = _text(name)
    split_name = name.split()
    if len(split_name) > 1:
        return f"{split_name[0]} {split_name[1][0]}"
    return name


# ─────────────────────────────────────────────
# Row filters
# ─────────────────────────────────────────────

def drop_denylisted(rows: list[dict], denylist) -> list[dict]:
    """Remove rows whose analyst is on the denylist (exact match).

    Ticket rows carry "First L" names, so a full call-table name on the
    denylist does not remove that analyst's tickets.
    """
    blocked = set(denylist)
    return [r for r in rows if r.get("analyst") not in blocked]


def correct_call_names(rows: list[dict], corrections: dict) -> list[dict]:
    out = []
    for r in rows:
        name = r.get("analyst")
        if name in corrections:
            r = {**r, "analyst": corrections[name]}
        out.append(r)
    return out


def phone_tickets(rows: list[dict], incident_type: str = "Phone") -> list[dict]:
    return [r for r in rows if r.get("incidentType") == incident_type]


# ─────────────────────────────────────────────
# Record builders
# ─────────────────────────────────────────────

def build_ticket(row: dict) -> Ticket:
    multiple = _text(row.get("multiple")) or None
    return Ticket(
        id=_text(row.get("id")),
        analyst=_text(row.get("analyst")),
        date=_text(row.get("date")),
        level1=_text(row.get("level1")),
        level2=_text(row.get("level2")),
        level3=_text(row.get("level3")),
        multiple=multiple,
        service=_text(row.get("service")),
        incident_type=_text(row.get("incidentType")),
        open_at=parse_timestamp(row.get("date"), row.get("time")),
    )


def build_call(row: dict) -> Call:
    """Derive call instants.

    The recorded start time is when the call was presented, so the answer
    time is backed out of the close time using talk time.
    """
    duration_secs = hms_to_seconds(row.get("duration"))
    talk_secs = hms_to_seconds(row.get("talk"))
    open_at = parse_timestamp(row.get("date"), row.get("time"))
    close_at = answer_at = None
    if open_at is not None:
        close_at = open_at + timedelta(seconds=duration_secs)
        answer_at = close_at - timedelta(seconds=talk_secs)
    raw_name = _text(row.get("analyst"))
    return Call(
        analyst_raw=raw_name,
        analyst=ticket_analyst_name(raw_name),
        date=_text(row.get("date")),
        time=_text(row.get("time")),
        duration=_text(row.get("duration")),
        talk=_text(row.get("talk")),
        wait=_text(row.get("wait")),
        duration_secs=duration_secs,
        talk_secs=talk_secs,
        wait_secs=hms_to_seconds(row.get("wait")),
        open_at=open_at,
        close_at=close_at,
        answer_at=answer_at,
    )


def normalise_tickets(rows: list[dict], denylist,
                      incident_type: str = "Phone") -> tuple[list[Ticket], int]:
    """Return (phone tickets, count of denylist-filtered tickets of any type)."""
    kept = drop_denylisted(rows, denylist)
    tickets = [build_ticket(r) for r in phone_tickets(kept, incident_type)]
    unparsable = sum(1 for t in tickets if t.open_at is None)
    if unparsable:
        logger.warning("%d phone tickets have no parsable open time", unparsable)
    return tickets, len(kept)


def normalise_calls(rows: list[dict], denylist,
                    corrections: dict) -> tuple[list[Call], list[Call], int]:
    """Return (inbound calls, outbound calls, count of connected calls).

    Outbound calls carry no target analyst and are never joined.
    """
    kept = correct_call_names(drop_denylisted(rows, denylist), corrections)
    calls = [build_call(r) for r in kept]
    inbound = [c for c in calls if c.analyst_raw]
    outbound = [c for c in calls if not c.analyst_raw]
    return inbound, outbound, len(kept)


def rows_for_analyst(ticket_rows: list[dict], call_rows: list[dict], analyst: str,
                     corrections: dict) -> tuple[list[dict], list[dict]]:
    """Ticket and call rows of a single analyst.

    *analyst* may be the ticket-table name or the (corrected) call-table
    name. Analysts never share tickets, so correlating these rows alone
    gives the same records as the full run restricted to that analyst.
    """
    analyst = _text(analyst)
    calls = [
        r for r in correct_call_names(call_rows, corrections)
        if analyst in (_text(r.get("analyst")), ticket_analyst_name(r.get("analyst")))
    ]
    names = {analyst}
    for r in calls:
        names.update((_text(r.get("analyst")), ticket_analyst_name(r.get("analyst"))))
    tickets = [r for r in ticket_rows if _text(r.get("analyst")) in names]
    return tickets, calls
