"""Effective print configuration per scope.

Stored records are keyed by scope id ("area" or a cluster id) and may be
partial; anything missing comes from DEFAULT_PRINT_CONFIG.
"""

import dataclasses
import sqlite3

from .models import AREA, PrintConfig

DEFAULT_HEADER_TITLE = 'Student Academic Skills Competition'
DEFAULT_QR_BASE_URL = 'https://example.org/#/score-input?activityId={activity_id}'

DEFAULT_PRINT_CONFIG = PrintConfig(
    scope_id='',
    header_title=DEFAULT_HEADER_TITLE,
    score_columns=3,
    criteria_count=10,
    margin_top=10.0,
    margin_bottom=10.0,
    margin_left=10.0,
    margin_right=10.0,
    font='firago',
    include_venue_date=True,
    include_judges=True,
    qr_base_url=DEFAULT_QR_BASE_URL,
)

CONFIG_FIELDS = [f.name for f in dataclasses.fields(PrintConfig)]


def config_scope_id(stage: str, cluster_filter: str | None = None) -> str:
    """Scope key used to look up print configuration for a view."""
    if stage == AREA:
        return AREA
    return cluster_filter or ''


def config_to_record(config: PrintConfig) -> dict:
    return dataclasses.asdict(config)


def resolve_config(scope_id: str, store: dict | None) -> PrintConfig:
    """Merge the stored record for scope_id over the defaults.

    Never mutates the store. Fields stored as None or empty are treated
    as missing.
    """
    stored = (store or {}).get(scope_id or '')
    if isinstance(stored, PrintConfig):
        stored = config_to_record(stored)

    values = config_to_record(DEFAULT_PRINT_CONFIG)
    for name, value in (stored or {}).items():
        if name not in values or name == 'scope_id':
            continue
        if value is None or (isinstance(value, str) and not value.strip()):
            continue
        values[name] = coerce_value(name, value, values[name])
    values['scope_id'] = scope_id or ''
    return PrintConfig(**values)


def coerce_value(name: str, value, default):
    """Convert a stored value to the type of its default; keep default on failure."""
    try:
        if isinstance(default, bool):
            if isinstance(value, str):
                return value.strip().lower() in ('1', 'true', 'yes', 'on')
            return bool(value)
        if isinstance(default, int):
            number = int(float(value))
            return number if number >= 1 else default
        if isinstance(default, float):
            number = float(value)
            return number if number >= 0 else default
    except (TypeError, ValueError):
        print(f"Warning: Ignoring invalid print config value {name}={value!r}")
        return default
    return str(value)


def save_config(adapter, scope_id: str, config: PrintConfig) -> bool:
    """Persist the config for one scope through the adapter.

    Saving values identical to what is stored is a no-op that reports
    success. Returns False when the adapter fails to persist.
    """
    config = dataclasses.replace(config, scope_id=scope_id)
    record = config_to_record(config)
    try:
        existing = adapter.get_print_config().get(scope_id)
        if isinstance(existing, PrintConfig):
            existing = config_to_record(existing)
        if existing == record:
            return True
        return bool(adapter.save_print_config(scope_id, record))
    except (OSError, sqlite3.Error) as e:
        print(f"Warning: Could not save print config for '{scope_id}': {e}")
        return False
