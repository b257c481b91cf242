"""Shift boundary detection over one analyst's chronological calls.

A shift is never stored; each call carries its own ``shift_end``: the close
time of the last call before an inactivity gap, plus a wiggle margin for
tickets written up after the shift.
"""

from dataclasses import replace
from datetime import datetime, timedelta
from itertools import islice

from .models import Call


def shift_end(calls: list[Call], start: int, gap: timedelta,
              wiggle: timedelta) -> datetime | None:
    """Shift end for calls[start], or None when it cannot be computed."""
    if start >= len(calls):
        return None
    last_time = calls[start].close_at
    if last_time is None:
        return None
    for call in islice(calls, start + 1, None):
        this_time = call.close_at
        if this_time is None:
            continue
        if this_time > last_time + gap:
            break
        last_time = this_time
    return last_time + wiggle


def attach_shift_ends(calls: list[Call], gap_hours: float, wiggle_hours: float) -> list[Call]:
    """Return copies of *calls* with shift_end set."""
    gap = timedelta(hours=gap_hours)
    wiggle = timedelta(hours=wiggle_hours)
    return [
        replace(call, shift_end=shift_end(calls, i, gap, wiggle))
        for i, call in enumerate(calls)
    ]
