"""Input CSV loading with an mtime cache, plus schema remapping."""

import csv
import logging
import os
from datetime import datetime
from pathlib import Path

logger = logging.getLogger(__name__)


class DatasetError(Exception):
    """An input dataset is missing or does not match its schema."""


# ── mtime cache: path -> (mtime, rows) ──
_cache: dict[str, tuple[float, list[dict]]] = {}


def _parse_csv(path: Path) -> list[dict]:
    with open(path, "r", encoding="utf-8-sig", newline="") as f:
        return list(csv.DictReader(f))


def load_csv(path: Path) -> tuple[list[dict] | None, str | None]:
    """Rows of *path* as dicts keyed by header. Returns (rows, error).

    An unchanged file is served from the cache. When a changed file fails
    to parse, the previous rows come back together with a stale-cache error.
    """
    key = str(path)
    try:
        mtime = os.path.getmtime(path)
    except OSError:
        logger.warning("File not found: %s", path)
        return None, f"File not found: {path}"

    cached = _cache.get(key)
    if cached is not None and cached[0] == mtime:
        return cached[1], None

    try:
        rows = _parse_csv(path)
    except (OSError, UnicodeDecodeError, csv.Error) as e:
        logger.exception("Error reading %s", path)
        if cached is not None:
            return cached[1], f"Using stale cache: {e}"
        return None, str(e)
    _cache[key] = (mtime, rows)
    return rows, None


def get_file_info(path: Path) -> dict:
    """Existence, mtime and size of an input file for the health endpoint."""
    if not os.path.exists(path):
        return {"exists": False, "mtime": None, "size_bytes": 0}
    stat = os.stat(path)
    return {
        "exists": True,
        "mtime": datetime.fromtimestamp(stat.st_mtime).isoformat(),
        "size_bytes": stat.st_size,
    }

def remap_rows(rows: list[dict], schema: dict[str, str]) -> list[dict]:
    """Rename source columns to canonical field names.

    Columns absent from a row come through as None; columns not named in
    *schema* are dropped.
    """
    return [
        {field: row.get(column) for field, column in schema.items()}
        for row in rows
    ]


def require_columns(rows: list[dict], schema: dict[str, str], name: str) -> None:
    """Raise DatasetError when the header lacks any schema column."""
    if not rows:
        return
    header = set(rows[0].keys())
    missing = [c for c in schema.values() if c not in header]
    if missing:
        raise DatasetError(f"schema_mismatch: missing {missing} in {name}")


def load_dataset(path: Path, schema: dict[str, str]) -> list[dict]:
    """Load a CSV and remap it onto *schema*; any failure aborts the batch."""
    rows, err = load_csv(path)
    if rows is None:
        raise DatasetError(err or f"Could not read {path}")
    if err:
        # Stale data must never feed a batch run
        raise DatasetError(err)
    require_columns(rows, schema, Path(path).name)
    logger.info("Reading %s. input #rec=%d", Path(path).name, len(rows))
    return remap_rows(rows, schema)
