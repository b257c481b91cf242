"""FastAPI app: correlation endpoints over the configured input CSVs."""

import csv
import io
import logging
import sys
from pathlib import Path

import uvicorn
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel

from . import config
from .data_reader import DatasetError, get_file_info, load_csv, load_dataset
from .normalizer import rows_for_analyst
from .pipeline import correlate
from .reporter import build_diagnostics, flatten, unassignable_by_analyst
from .settings import apply_overrides, load_settings

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
)
logger = logging.getLogger(__name__)


def _load_summary_rows() -> list[dict] | None:
    if not config.TICKET_SUMMARY_CSV.exists():
        return None
    rows, err = load_csv(config.TICKET_SUMMARY_CSV)
    if err:
        logger.warning("Ticket summary ignored: %s", err)
        return None
    return rows


def _run_correlation(settings=None, analyst=None):
    try:
        ticket_rows = load_dataset(config.TICKETS_CSV, config.TICKET_SCHEMA)
        call_rows = load_dataset(config.CALLS_CSV, config.CALL_SCHEMA)
    except DatasetError as e:
        logger.error("Correlation input unavailable: %s", e)
        raise HTTPException(status_code=404, detail=str(e))
    settings = settings or load_settings()
    if analyst:
        ticket_rows, call_rows = rows_for_analyst(
            ticket_rows, call_rows, analyst, settings.call_name_corrections
        )
    return correlate(ticket_rows, call_rows, settings, _load_summary_rows())


app = FastAPI(title="Call/Ticket Correlator API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


# Disable caching for all responses
@app.middleware("http")
async def disable_cache(request: Request, call_next):
    response = await call_next(request)
    response.headers["Cache-Control"] = "no-cache, no-store, must-revalidate"
    response.headers["Pragma"] = "no-cache"
    response.headers["Expires"] = "0"
    return response


# ── Global exception handler ──
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s", request.url)
    return JSONResponse(
        status_code=500,
        content={"error": str(exc), "detail": "Internal server error"},
    )


# ── Endpoints ──

@app.get("/api/correlation")
async def correlation_endpoint(analyst: str | None = None, include_records: bool = False):
    """Diagnostics for the joined dataset.

    Query params:
        analyst:         restrict diagnostics and records to one analyst
                         (ticket-table or call-table name, optional)
        include_records: include the flattened joined records
    """
    result = _run_correlation(analyst=analyst)
    payload = {"diagnostics": build_diagnostics(result)}
    if analyst:
        payload["analyst"] = analyst
    if include_records:
        payload["records"] = flatten(result.records)
    return payload


@app.get("/api/correlation-export")
async def correlation_export(analyst: str | None = None):
    """Download the joined dataset as CSV."""
    result = _run_correlation(analyst=analyst)
    rows = flatten(result.records)
    if not rows:
        raise HTTPException(status_code=404, detail="No data available")

    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=list(rows[0].keys()))
    writer.writeheader()
    writer.writerows(rows)

    safe_name = analyst.strip().replace(" ", "_") if analyst else "all"
    filename = f"calls_with_tickets_{safe_name}.csv"
    return StreamingResponse(
        iter([buf.getvalue()]),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


class SettingsOverride(BaseModel):
    ticket_skew_minutes: float | None = None
    shift_gap_hours: float | None = None
    shift_wiggle_hours: float | None = None
    handling_max_hours: float | None = None
    default_ticket_handling_minutes: float | None = None
    analyst_denylist: list[str] | None = None
    call_name_corrections: dict[str, str] | None = None


@app.post("/api/correlation/what-if")
async def correlation_what_if(body: SettingsOverride):
    """Diagnostics under overridden settings; nothing is persisted."""
    overrides = body.model_dump(exclude_none=True)
    settings = apply_overrides(load_settings(), overrides)
    result = _run_correlation(settings)
    return {"settings": settings.as_dict(), "diagnostics": build_diagnostics(result)}


@app.get("/api/unassignable")
async def unassignable_endpoint():
    """Phone tickets no call could claim, grouped by analyst."""
    result = _run_correlation()
    return {
        analyst: [
            {"id": t.id, "open": t.open_at.isoformat() if t.open_at else None,
             "level1": t.level1}
            for t in tickets
        ]
        for analyst, tickets in unassignable_by_analyst(result).items()
        if tickets
    }


@app.get("/api/settings")
async def get_settings():
    return load_settings().as_dict()


@app.get("/api/health")
async def health():
    return {
        "status": "ok",
        "tickets_csv": get_file_info(config.TICKETS_CSV),
        "calls_csv": get_file_info(config.CALLS_CSV),
        "ticket_summary_csv": get_file_info(config.TICKET_SUMMARY_CSV),
        "settings_overrides": get_file_info(config.SETTINGS_OVERRIDES_JSON),
    }


def main():
    logger.info("Starting Call/Ticket Correlator on http://localhost:%s", config.PORT)
    logger.info("Tickets: %s  Calls: %s", config.TICKETS_CSV, config.CALLS_CSV)
    uvicorn.run(app, host=config.HOST, port=config.PORT, log_level="info")


if __name__ == "__main__":
    # Allow running as `python -m correlator.backend.server` or directly
    sys.path.insert(0, str(Path(__file__).resolve().parent.parent.parent))
    main()
