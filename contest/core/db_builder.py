"""Build a SQLite copy of a competition dataset.

The database mirrors the JSON export: one table per record kind, with
members, stage info and levels kept as the raw JSON text they arrive as
(decoding happens in the adapter layer, so malformed values survive the
round trip unchanged). Venue schedules get their own table.
"""

import json
import os
import sqlite3

from ..adapters.records import (
    ACTIVITY_KEYS, CLUSTER_KEYS, JUDGE_KEYS, SCHEDULE_KEYS, SCHOOL_KEYS,
    TEAM_KEYS, VENUE_KEYS, get_field,
)
from .print_config import CONFIG_FIELDS

JSON_TEXT_FIELDS = {'members', 'stage_info', 'levels'}

TABLES = [
    ('activities', ACTIVITY_KEYS),
    ('teams', TEAM_KEYS),
    ('schools', SCHOOL_KEYS),
    ('clusters', CLUSTER_KEYS),
    ('judges', JUDGE_KEYS),
]


def _column_value(name: str, value):
    if value is None:
        return None
    if name in JSON_TEXT_FIELDS:
        return value if isinstance(value, str) else json.dumps(value, ensure_ascii=False)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value
    return str(value)


def create_schema(cur):
    """Create all tables. Column names are the canonical record field names."""
    for table, keys in TABLES:
        cols = ',\n        '.join(f'{name} TEXT' for name in keys)
        cur.execute(f'''CREATE TABLE IF NOT EXISTS {table} (
        row_id INTEGER PRIMARY KEY AUTOINCREMENT,
        {cols}
    )''')

    cur.execute('''CREATE TABLE IF NOT EXISTS venues (
        id TEXT PRIMARY KEY,
        name TEXT
    )''')
    cur.execute('''CREATE TABLE IF NOT EXISTS venue_schedules (
        row_id INTEGER PRIMARY KEY AUTOINCREMENT,
        venue_id TEXT,
        activity_id TEXT,
        date TEXT,
        time_range TEXT,
        room TEXT,
        building TEXT,
        floor TEXT
    )''')

    config_cols = ',\n        '.join(f'{name} TEXT' for name in CONFIG_FIELDS
                                     if name != 'scope_id')
    cur.execute(f'''CREATE TABLE IF NOT EXISTS print_config (
        scope_id TEXT PRIMARY KEY,
        {config_cols}
    )''')


def build_database(db_path: str, data: dict) -> str:
    """Build a SQLite database from a dataset dict (JSON export layout).

    Args:
        db_path: Path for the output SQLite database. Replaced if present.
        data: Dict with optional 'activities', 'teams', 'schools',
            'clusters', 'judges', 'venues' and 'print_config' sections.

    Returns:
        The db_path for convenience.
    """
    if os.path.exists(db_path):
        os.remove(db_path)

    conn = sqlite3.connect(db_path)
    cur = conn.cursor()
    create_schema(cur)

    counts = {}
    for table, keys in TABLES:
        names = list(keys)
        placeholders = ', '.join('?' for _ in names)
        rows = [r for r in (data.get(table) or []) if isinstance(r, dict)]
        for row in rows:
            cur.execute(
                f'INSERT INTO {table} ({", ".join(names)}) VALUES ({placeholders})',
                [_column_value(n, get_field(row, keys[n])) for n in names])
        counts[table] = len(rows)

    venues = [r for r in (data.get('venues') or []) if isinstance(r, dict)]
    schedule_count = 0
    for row in venues:
        venue_id = str(get_field(row, VENUE_KEYS['id'], '')).strip()
        cur.execute('INSERT OR REPLACE INTO venues (id, name) VALUES (?, ?)',
                    (venue_id, str(get_field(row, VENUE_KEYS['name'], '')).strip()))
        schedules = get_field(row, VENUE_KEYS['schedules']) or []
        if isinstance(schedules, str):
            try:
                schedules = json.loads(schedules)
            except json.JSONDecodeError:
                schedules = []
        for sched in schedules if isinstance(schedules, list) else []:
            if not isinstance(sched, dict):
                continue
            cur.execute('''INSERT INTO venue_schedules
                (venue_id, activity_id, date, time_range, room, building, floor)
                VALUES (?, ?, ?, ?, ?, ?, ?)''',
                [venue_id] + [_column_value(n, get_field(sched, SCHEDULE_KEYS[n]))
                              for n in SCHEDULE_KEYS])
            schedule_count += 1
    counts['venues'] = len(venues)

    for scope_id, record in (data.get('print_config') or {}).items():
        if isinstance(record, dict):
            write_print_config(cur, scope_id, record)

    conn.commit()
    conn.close()

    print(f"Built {db_path}: " + ', '.join(f'{n} {t}' for t, n in counts.items())
          + f", {schedule_count} venue_schedules")
    return db_path


def write_print_config(cur, scope_id: str, record: dict):
    """Insert or replace the print_config row for one scope."""
    names = [n for n in CONFIG_FIELDS if n != 'scope_id']
    values = [scope_id]
    for name in names:
        value = record.get(name)
        if isinstance(value, bool):
            value = 'true' if value else 'false'
        values.append(None if value is None else str(value))
    cur.execute(
        f'INSERT OR REPLACE INTO print_config (scope_id, {", ".join(names)}) '
        f'VALUES ({", ".join("?" for _ in values)})', values)
