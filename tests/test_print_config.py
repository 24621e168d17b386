"""Tests for print configuration resolution and persistence."""

import dataclasses
import os
import sqlite3
import sys

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, PROJECT_ROOT)

from contest.core.models import AREA, CLUSTER, PrintConfig
from contest.core.print_config import (
    DEFAULT_PRINT_CONFIG, config_scope_id, resolve_config, save_config,
)
from contest.adapters.json_adapter import JsonAdapter


class MemoryAdapter:
    """Print-config half of an adapter, counting writes."""

    def __init__(self, store=None, error=None):
        self.store = dict(store or {})
        self.error = error
        self.writes = 0

    def get_print_config(self):
        return dict(self.store)

    def save_print_config(self, scope_id, record):
        if self.error:
            raise self.error
        self.writes += 1
        self.store[scope_id] = dict(record)
        return True


class TestResolveConfig:
    def test_unknown_scope_gives_defaults(self):
        config = resolve_config('never-saved', {})
        assert dataclasses.replace(config, scope_id='') == DEFAULT_PRINT_CONFIG
        assert config.scope_id == 'never-saved'

    def test_none_store(self):
        config = resolve_config('C1', None)
        assert config.header_title == DEFAULT_PRINT_CONFIG.header_title
        assert config.score_columns == 3
        assert config.criteria_count == 10

    def test_partial_record_merges_over_defaults(self):
        store = {'C1': {'header_title': 'Cluster One Finals', 'score_columns': None,
                        'margin_left': '15'}}
        config = resolve_config('C1', store)
        assert config.header_title == 'Cluster One Finals'
        assert config.score_columns == 3
        assert config.margin_left == 15.0
        assert config.margin_top == 10.0

    def test_store_not_mutated(self):
        store = {'area': {'header_title': 'Area'}}
        resolve_config('area', store)
        assert store == {'area': {'header_title': 'Area'}}

    def test_invalid_values_fall_back(self):
        store = {'C1': {'score_columns': 'many', 'criteria_count': 0,
                        'include_judges': 'false', 'unknown_field': 1}}
        config = resolve_config('C1', store)
        assert config.score_columns == 3
        assert config.criteria_count == 10
        assert config.include_judges is False

    def test_printconfig_records_accepted(self):
        stored = dataclasses.replace(DEFAULT_PRINT_CONFIG, scope_id='C2', font='courier')
        assert resolve_config('C2', {'C2': stored}).font == 'courier'

    def test_scope_ids(self):
        assert config_scope_id(AREA, 'C1') == 'area'
        assert config_scope_id(CLUSTER, 'C1') == 'C1'
        assert config_scope_id(CLUSTER) == ''


class TestSaveConfig:
    def test_save_then_resolve(self):
        adapter = MemoryAdapter()
        config = dataclasses.replace(DEFAULT_PRINT_CONFIG, header_title='Finals')
        assert save_config(adapter, 'C1', config) is True
        assert resolve_config('C1', adapter.get_print_config()).header_title == 'Finals'

    def test_identical_save_is_noop(self):
        adapter = MemoryAdapter()
        config = dataclasses.replace(DEFAULT_PRINT_CONFIG, score_columns=5)
        assert save_config(adapter, 'C1', config)
        assert save_config(adapter, 'C1', config)
        assert adapter.writes == 1

    def test_storage_failure_returns_false(self):
        adapter = MemoryAdapter(error=sqlite3.OperationalError('database is locked'))
        assert save_config(adapter, 'C1', DEFAULT_PRINT_CONFIG) is False
        adapter = MemoryAdapter(error=PermissionError('read-only'))
        assert save_config(adapter, 'C1', DEFAULT_PRINT_CONFIG) is False


class TestJsonSidecar:
    def test_round_trip_through_sidecar(self, tmp_path):
        data_path = tmp_path / 'data.json'
        data_path.write_text('{}', encoding='utf-8')
        adapter = JsonAdapter(str(data_path))
        assert adapter.get_print_config() == {}

        config = PrintConfig(scope_id='', header_title='Area Finals', font='helvetica')
        assert save_config(adapter, 'area', config)
        assert os.path.exists(tmp_path / 'print_config.json')

        reloaded = JsonAdapter(str(data_path)).get_print_config()
        resolved = resolve_config('area', reloaded)
        assert resolved.header_title == 'Area Finals'
        assert resolved.font == 'helvetica'
        assert resolved.scope_id == 'area'
