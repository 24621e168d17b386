"""Adapter for competition data exported as a single JSON document.

Expected layout:
  {
    "activities": [...], "teams": [...], "schools": [...],
    "clusters": [...], "judges": [...], "venues": [...]
  }

Any section may be missing. Rows are decoded through records.py, so keys
may be camelCase (sheet export) or snake_case. Print configuration lives in
a sidecar file, print_config.json, next to the dataset unless a path is
given explicitly.
"""

import json
import os

from .base import BaseAdapter
from .records import (
    activity_from_row, cluster_from_row, judge_from_row, school_from_row,
    team_from_row, venue_from_row,
)

SECTIONS = ('activities', 'teams', 'schools', 'clusters', 'judges', 'venues')
CONFIG_FILENAME = 'print_config.json'


class JsonAdapter(BaseAdapter):
    """Read a dataset JSON file; persist print config to a JSON sidecar."""

    def __init__(self, data_path: str, config_path: str | None = None):
        self.data_path = data_path
        self.config_path = config_path or os.path.join(
            os.path.dirname(os.path.abspath(data_path)), CONFIG_FILENAME)
        self._data = None

    def _load(self) -> dict:
        if self._data is None:
            with open(self.data_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            if not isinstance(data, dict):
                raise ValueError(f"Dataset {self.data_path} must be a JSON object")
            self._data = data
        return self._data

    def _rows(self, section: str) -> list[dict]:
        rows = self._load().get(section) or []
        return [r for r in rows if isinstance(r, dict)]

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
        return [venue_from_row(r) for r in self._rows('venues')]

    def get_print_config(self) -> dict:
        if not os.path.exists(self.config_path):
            return {}
        with open(self.config_path, 'r', encoding='utf-8') as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError:
                print(f"Warning: Ignoring unreadable print config {self.config_path}")
                return {}
        if not isinstance(data, dict):
            return {}
        return {k: v for k, v in data.items() if isinstance(v, dict)}

    def save_print_config(self, scope_id: str, record: dict) -> bool:
        store = self.get_print_config()
        store[scope_id] = dict(record)
        tmp_path = self.config_path + '.tmp'
        with open(tmp_path, 'w', encoding='utf-8') as f:
            json.dump(store, f, ensure_ascii=False, indent=2, sort_keys=True)
        os.replace(tmp_path, self.config_path)
        return True
