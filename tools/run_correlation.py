#!/usr/bin/env python3
"""
Call/Ticket Correlation Batch
Joins connected phone calls to phone tickets and writes the joined dataset.

Usage:
    python tools/run_correlation.py <tickets.csv> <calls.csv> [ticket_summary.csv]

Output:
    calls_with_tickets.csv
    correlation_summary.json
    (same directory as the calls CSV)

Constraints:
- Any unreadable or mis-shaped input aborts the batch before correlation
- Settings come from settings_overrides.json when present
"""

import json
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import correlator_core  # noqa: E402
from correlator.backend import config  # noqa: E402
from correlator.backend.pipeline import correlate  # noqa: E402
from correlator.backend.reporter import build_diagnostics, flatten, log_report  # noqa: E402
from correlator.backend.settings import load_settings  # noqa: E402

logger = logging.getLogger("run_correlation")


def load_or_fail(path, schema):
    df = correlator_core.load_dataset_csv(path, schema)
    if df.attrs.get("error"):
        raise SystemExit(f"ERROR: {df.attrs['error']}")
    logger.info("Reading %s. input #rec=%d", Path(path).name, len(df))
    return correlator_core.frame_to_rows(df, schema)


def load_summary(path):
    summary_schema = {c: c for c in config.TICKET_SUMMARY_NUMERIC_COLUMNS}
    summary_schema[config.TICKET_SUMMARY_ANALYST_COLUMN] = config.TICKET_SUMMARY_ANALYST_COLUMN
    summary_schema[config.TICKET_SUMMARY_ROLE_COLUMN] = config.TICKET_SUMMARY_ROLE_COLUMN
    return load_or_fail(path, summary_schema)


def main(argv):
    if len(argv) < 3:
        print(__doc__)
        return 2

    tickets_path, calls_path = Path(argv[1]), Path(argv[2])
    ticket_rows = load_or_fail(tickets_path, config.TICKET_SCHEMA)
    call_rows = load_or_fail(calls_path, config.CALL_SCHEMA)
    summary_rows = load_summary(Path(argv[3])) if len(argv) > 3 else None

    result = correlate(ticket_rows, call_rows, load_settings(), summary_rows)
    diagnostics = build_diagnostics(result)
    log_report(diagnostics)

    joined = correlator_core.joined_frame(flatten(result.records))
    out_dir = calls_path.parent
    joined_path = correlator_core.write_joined_csv(joined, out_dir / config.JOINED_CSV.name)
    logger.info("Loaded %s. output #rec=%d", joined_path.name, len(joined))

    by_class = correlator_core.handling_by_classification(joined)
    for row in by_class.itertuples(index=False):
        logger.info("%s: %d calls, avg handle %s", row.level1, row.calls, row.avg_handle_human)

    summary_path = out_dir / config.SUMMARY_JSON.name
    with open(summary_path, "w", encoding="utf-8", newline="\n") as f:
        json.dump(diagnostics, f, indent=2)
        f.write("\n")
    logger.info("Wrote %s", summary_path.name)
    return 0


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )
    sys.exit(main(sys.argv))
