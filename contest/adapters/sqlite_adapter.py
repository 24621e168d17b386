"""Adapter for a competition database built by core/db_builder.py."""

import sqlite3

from .base import BaseAdapter
from .records import (
    activity_from_row, cluster_from_row, judge_from_row, school_from_row,
    team_from_row, venue_from_row,
)
from ..core.db_builder import create_schema, write_print_config
from ..core.print_config import CONFIG_FIELDS, DEFAULT_PRINT_CONFIG, coerce_value


class SqliteAdapter(BaseAdapter):
    """Read records and print config from a SQLite database file."""

    def __init__(self, db_path: str):
        self.db_path = db_path

    def _connect(self):
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _rows(self, table: str) -> list[dict]:
        conn = self._connect()
        try:
            cur = conn.cursor()
            cur.execute(f'SELECT * FROM {table} ORDER BY rowid')
            return [dict(r) for r in cur.fetchall()]
        finally:
            conn.close()

    def list_activities(self) -> list:
        return [activity_from_row(r) for r in self._rows('activities')]

    def list_teams(self) -> list:
        return [team_from_row(r) for r in self._rows('teams')]

    def list_schools(self) -> list:
        return [school_from_row(r) for r in self._rows('schools')]

    def list_clusters(self) -> list:
        return [cluster_from_row(r) for r in self._rows('clusters')]

    def list_judges(self) -> list:
        return [judge_from_row(r) for r in self._rows('judges')]

    def list_venues(self) -> list:
        schedules = {}
        for row in self._rows('venue_schedules'):
            schedules.setdefault(row['venue_id'], []).append(row)
        return [venue_from_row({**r, 'schedules': schedules.get(r['id'], [])})
                for r in self._rows('venues')]

    def get_print_config(self) -> dict:
        defaults = DEFAULT_PRINT_CONFIG.__dict__
        store = {}
        for row in self._rows('print_config'):
            record = {}
            for name in CONFIG_FIELDS:
                value = row.get(name)
                if name == 'scope_id' or value is None:
                    record[name] = value
                else:
                    record[name] = coerce_value(name, value, defaults[name])
            store[row['scope_id']] = record
        return store

    def save_print_config(self, scope_id: str, record: dict) -> bool:
        conn = self._connect()
        try:
            cur = conn.cursor()
            create_schema(cur)
            write_print_config(cur, scope_id, record)
            conn.commit()
        finally:
            conn.close()
        return True
