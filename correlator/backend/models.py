"""Record types flowing through the correlation pipeline."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class Ticket:
    id: str
    analyst: str
    date: str
    level1: str
    level2: str
    level3: str
    multiple: Optional[str]
    service: str
    incident_type: str
    open_at: Optional[datetime] = None

    @property
    def open_minute(self) -> Optional[datetime]:
        # Tickets only carry minute precision
        if self.open_at is None:
            return None
        return self.open_at.replace(second=0, microsecond=0)


@dataclass(frozen=True)
class Call:
    analyst_raw: str
    analyst: str
    date: str
    time: str
    duration: str
    talk: str
    wait: str
    duration_secs: int = 0
    talk_secs: int = 0
    wait_secs: int = 0
    open_at: Optional[datetime] = None
    close_at: Optional[datetime] = None
    answer_at: Optional[datetime] = None
    shift_end: Optional[datetime] = None

    @property
    def answer_minute(self) -> Optional[datetime]:
        if self.answer_at is None:
            return None
        return self.answer_at.replace(second=0, microsecond=0)


@dataclass(frozen=True)
class Decision:
    """Outcome of the assignment walk for one call."""
    level1: str
    level2: str
    level3: str
    service: str
    ticket_id: Optional[str] = None
    multiple: Optional[list] = None
    last_ticket_open_at: Optional[datetime] = None
    assigned_tickets: tuple = ()

    @property
    def matched_count(self) -> int:
        return len(self.assigned_tickets)


@dataclass(frozen=True)
class JoinedRecord:
    call: Call
    decision: Decision
    handle_secs: float
    summary: dict = field(default_factory=dict)

    @property
    def matched_count(self) -> int:
        return self.decision.matched_count

    @property
    def handle_minutes(self) -> float:
        return self.handle_secs / 60

    @property
    def handle_hours(self) -> float:
        return self.handle_secs / 3600

    def to_row(self) -> dict:
        """Flatten into a single dict, datetimes as ISO strings."""
        c, d = self.call, self.decision
        row = {
            "analyst": c.analyst,
            "callAnalyst": c.analyst_raw,
            "date": c.date,
            "time": c.time,
            "duration": c.duration,
            "talk": c.talk,
            "wait": c.wait,
            "durationSecs": c.duration_secs,
            "durationMinutes": c.duration_secs / 60,
            "talkSecs": c.talk_secs,
            "talkMinutes": c.talk_secs / 60,
            "talkHours": c.talk_secs / 3600,
            "waitSecs": c.wait_secs,
            "waitMinutes": c.wait_secs / 60,
            "waitHours": c.wait_secs / 3600,
            "callOpenDateTime": _iso(c.open_at),
            "callCloseDateTime": _iso(c.close_at),
            "answerDateTime": _iso(c.answer_at),
            "shiftEndDateTime": _iso(c.shift_end),
            "ticketId": d.ticket_id,
            "level1": d.level1,
            "level2": d.level2,
            "level3": d.level3,
            "service": d.service,
            "multiple": ", ".join(d.multiple) if d.multiple else None,
            "lastTicketOpenDateTime": _iso(d.last_ticket_open_at),
            "matchedCount": self.matched_count,
            "handleSecs": self.handle_secs,
            "handleMinutes": self.handle_minutes,
            "handleHours": self.handle_hours,
        }
        row.update(self.summary)
        return row


def _iso(ts: Optional[datetime]) -> Optional[str]:
    return ts.isoformat() if ts is not None else None
