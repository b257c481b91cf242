"""Effective engine settings: defaults from config plus validated overrides."""

import json
import logging
import math
from dataclasses import dataclass, field, fields, replace
from pathlib import Path

from . import config

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EngineSettings:
    ticket_skew_minutes: float = config.TICKET_SKEW_MINUTES
    shift_gap_hours: float = config.SHIFT_GAP_HOURS
    shift_wiggle_hours: float = config.SHIFT_WIGGLE_HOURS
    handling_max_hours: float = config.HANDLING_MAX_HOURS
    default_ticket_handling_minutes: float = config.DEFAULT_TICKET_HANDLING_MINUTES
    analyst_denylist: frozenset = field(default=config.NON_TAC_ANALYSTS)
    call_name_corrections: dict = field(
        default_factory=lambda: dict(config.CALL_NAME_CORRECTIONS)
    )

    def as_dict(self) -> dict:
        out = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, frozenset):
                value = sorted(value)
            elif isinstance(value, dict):
                value = dict(value)
            out[f.name] = value
        return out


def _is_number(value, *, allow_negative=False) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    if not math.isfinite(value):
        return False
    return allow_negative or value >= 0


def _is_name_list(value) -> bool:
    return isinstance(value, list) and all(isinstance(v, str) and v.strip() for v in value)


def _is_name_map(value) -> bool:
    return isinstance(value, dict) and all(
        isinstance(k, str) and k.strip() and isinstance(v, str) and v.strip()
        for k, v in value.items()
    )


ALLOWED_OVERRIDES = {
    "ticket_skew_minutes": lambda v: _is_number(v, allow_negative=True),
    "shift_gap_hours": lambda v: _is_number(v) and v > 0,
    "shift_wiggle_hours": _is_number,
    "handling_max_hours": lambda v: _is_number(v) and v > 0,
    "default_ticket_handling_minutes": _is_number,
    "analyst_denylist": _is_name_list,
    "call_name_corrections": _is_name_map,
}


def validate_overrides(overrides) -> dict:
    """Return only the override keys that pass their validator."""
    if not isinstance(overrides, dict):
        logger.warning("OVERRIDE_REJECT reason=not_object")
        return {}
    accepted = {}
    for key, value in overrides.items():
        validator = ALLOWED_OVERRIDES.get(key)
        if not validator:
            logger.warning("OVERRIDE_REJECT key=%s reason=not_allowed", key)
            continue
        if not validator(value):
            logger.warning("OVERRIDE_REJECT key=%s reason=invalid_value", key)
            continue
        logger.info("OVERRIDE_ACCEPT key=%s", key)
        accepted[key] = value
    return accepted


def apply_overrides(base: EngineSettings, overrides) -> EngineSettings:
    accepted = validate_overrides(overrides)
    if "analyst_denylist" in accepted:
        accepted["analyst_denylist"] = frozenset(
            name.strip() for name in accepted["analyst_denylist"]
        )
    if "call_name_corrections" in accepted:
        accepted["call_name_corrections"] = dict(accepted["call_name_corrections"])
    return replace(base, **accepted)


def load_settings(path: Path | None = None) -> EngineSettings:
    """Defaults merged with settings_overrides.json (missing file is fine)."""
    path = path or config.SETTINGS_OVERRIDES_JSON
    try:
        with open(path, "r", encoding="utf-8") as f:
            overrides = json.load(f)
    except FileNotFoundError:
        return EngineSettings()
    except (json.JSONDecodeError, OSError) as e:
        logger.warning("Settings overrides unreadable (%s): %s", path.name, e)
        return EngineSettings()
    return apply_overrides(EngineSettings(), overrides)
