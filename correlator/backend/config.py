"""Paths, schemas and engine defaults for the call/ticket correlator."""

from pathlib import Path

# ── Base directory (parent of correlator/) ──
BASE_DIR = Path(__file__).resolve().parent.parent.parent

# ── Data files (read-only inputs) ──
TICKETS_CSV = BASE_DIR / "data" / "TicketWithSubjectTree.csv"
CALLS_CSV = BASE_DIR / "data" / "Connected Calls FY19 Q1.csv"
TICKET_SUMMARY_CSV = BASE_DIR / "data" / "TicketSummaryFY19Q1.csv"
SETTINGS_OVERRIDES_JSON = BASE_DIR / "settings_overrides.json"

# ── Outputs ──
JOINED_CSV = BASE_DIR / "calls_with_tickets.csv"
SUMMARY_JSON = BASE_DIR / "correlation_summary.json"

# ── Server ──
HOST = "0.0.0.0"
PORT = 3000

# ── CSV schemas: canonical field -> source column ──
TICKET_SCHEMA = {
    "id": "Ticket #",
    "incidentType": "Incident Type",
    "analyst": "Assigned Account",
    "date": "Date Created",
    "level1": "Subject Level 1",
    "level2": "Subject Level 2",
    "level3": "Subject Level 3",
    "multiple": "Multiple",
    "service": "Incident S/A",
}

CALL_SCHEMA = {
    "analyst": "Target Name",
    "date": "Date",
    "time": "Time",
    "duration": "Duration",
    "talk": "Talk Time",
    "wait": "Wait Time",
}

TICKET_SUMMARY_ANALYST_COLUMN = "analyst"
TICKET_SUMMARY_NUMERIC_COLUMNS = ["dayswork", "tcreated", "tworked", "tixxday", "tacttime"]
TICKET_SUMMARY_ROLE_COLUMN = "Role"

PHONE_INCIDENT_TYPE = "Phone"
NO_TICKET_VALUE = "No Ticket"

# ── Analysts outside the TAC (recruit assist, trainees) ──
NON_TAC_ANALYSTS = frozenset([
    "Bill Snorgrass",
    "Janice Young",
    "Luis Martinez",
    "Tony Morton",
    "Rory Jones",
    "Shameka Sheppard",
    "Drake Farley",
    "Daniel Greene",
    "Unique Taylor",
])

# ── Misspellings in the call table -> ticket-table spelling ──
CALL_NAME_CORRECTIONS = {
    "Veronika Cruz": "Veranika Cruz",
}

# ── Engine defaults ──
TICKET_SKEW_MINUTES = 0
SHIFT_GAP_HOURS = 8
SHIFT_WIGGLE_HOURS = 24
HANDLING_MAX_HOURS = 2
DEFAULT_TICKET_HANDLING_MINUTES = 4

# ── Share of ticket work attributed to traveler calls, by role ──
ROLE_CALL_FRACTION = {
    "GEN": 1,
    "N/W": 1,
    "CTO": 0.5,
    "FIN": 0.5,
    "TECH": 0.5,
    "LEAD/SUPPORT": 1,
    "SUPPORT": 0.1,
    "NON-TAC": 0,
    "RA": 0,
}

WORKDAY_HOURS = 8
