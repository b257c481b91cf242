from pathlib import Path

import pandas as pd

from correlator.backend import config


def load_dataset_csv(csv_path, schema):
    """Read a source CSV as strings; on any problem return an empty frame
    with attrs["error"] set."""
    expected = list(schema.values())
    empty = pd.DataFrame(columns=expected)
    try:
        if not Path(csv_path).exists():
            empty.attrs["error"] = f"missing: {csv_path}"
            return empty
        df = pd.read_csv(csv_path, dtype=str, keep_default_na=False, encoding="utf-8-sig")
        missing = [c for c in expected if c not in df.columns]
        if missing:
            empty.attrs["error"] = f"schema_mismatch: missing {missing} in {csv_path}"
            return empty
        df.attrs["error"] = None
        return df
    except (OSError, ValueError, pd.errors.ParserError) as e:
        empty.attrs["error"] = f"{e}"
        return empty


def frame_to_rows(df, schema):
    """Rows with canonical field names, in file order."""
    if df is None or df.empty:
        return []
    renamed = df[list(schema.values())].rename(columns={v: k for k, v in schema.items()})
    return renamed.to_dict(orient="records")


def format_duration_human(seconds_value):
    try:
        total = int(float(seconds_value))
    except (TypeError, ValueError):
        return ""
    if total < 0:
        total = 0
    days, rem = divmod(total, 86400)
    hours, rem = divmod(rem, 3600)
    minutes, seconds = divmod(rem, 60)
    parts = []
    if days:
        parts.append(f"{days}d")
    if hours:
        parts.append(f"{hours}h")
    if minutes:
        parts.append(f"{minutes}m")
    if seconds or not parts:
        parts.append(f"{seconds}s")
    return " ".join(parts)


def joined_frame(rows):
    return pd.DataFrame(rows)


def handling_by_classification(joined):
    """Calls, matched tickets and handling time per level-1 classification."""
    columns = ["level1", "calls", "matched_tickets", "avg_handle_secs",
               "total_handle_hours", "avg_handle_human"]
    if joined is None or joined.empty or "level1" not in joined.columns:
        return pd.DataFrame(columns=columns)
    grouped = joined.groupby("level1", sort=True).agg(
        calls=("handleSecs", "size"),
        matched_tickets=("matchedCount", "sum"),
        avg_handle_secs=("handleSecs", "mean"),
        total_handle_hours=("handleHours", "sum"),
    ).reset_index()
    grouped["avg_handle_human"] = grouped["avg_handle_secs"].apply(format_duration_human)
    return grouped.sort_values("calls", ascending=False, kind="stable").reset_index(drop=True)[columns]


def write_joined_csv(joined, path=None):
    path = Path(path or config.JOINED_CSV)
    path.parent.mkdir(parents=True, exist_ok=True)
    joined.to_csv(path, index=False)
    return path
