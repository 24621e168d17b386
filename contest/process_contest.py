#!/usr/bin/env python3
"""CLI entry point for printing competition documents.

Usage:
    python process_contest.py --data contest_data.json --stage cluster \\
        --cluster C1 --doc-type full-set --output ./output/

    python process_contest.py --data contest.db --stage area \\
        --doc-type score-sheet --activities A1 A2 --output ./output/ \\
        --header-title "Area Finals" --save-config
"""

import argparse
import dataclasses
import json
import os
import sys

# Add parent directory to path for imports (skip when frozen by PyInstaller)
if not getattr(sys, 'frozen', False):
    sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from contest.core.db_builder import build_database
from contest.core.document_renderer import DOC_TYPES, FULL_SET
from contest.core.errors import OutputTargetUnavailable
from contest.core.models import STAGES
from contest.core.output_generator import generate_promotion_report, generate_results_csv
from contest.core.pipeline import Dataset, generate_documents
from contest.core.print_config import config_scope_id, resolve_config, save_config
from contest.adapters.json_adapter import JsonAdapter
from contest.adapters.sqlite_adapter import SqliteAdapter

# Options whose argparse dest matches a PrintConfig field
CONFIG_OPTIONS = (
    'header_title', 'score_columns', 'criteria_count', 'margin_top',
    'margin_bottom', 'margin_left', 'margin_right', 'font', 'qr_base_url',
)


def _select_adapter(args):
    source = args.source
    if source == 'auto':
        source = 'sqlite' if args.data.endswith(('.db', '.sqlite', '.sqlite3')) else 'json'

    if source == 'json' and args.build_db:
        with open(args.data, 'r', encoding='utf-8') as f:
            data = json.load(f)
        print(f"Building database at {args.build_db}...")
        build_database(args.build_db, data)
        return SqliteAdapter(args.build_db)
    if source == 'sqlite':
        return SqliteAdapter(args.data)
    return JsonAdapter(args.data, config_path=args.config_file)


def _config_overrides(args) -> dict:
    overrides = {}
    for name in CONFIG_OPTIONS:
        value = getattr(args, name)
        if value is not None:
            overrides[name] = value
    if args.no_venue_date:
        overrides['include_venue_date'] = False
    if args.no_judges:
        overrides['include_judges'] = False
    return overrides


def main(argv=None):
    parser = argparse.ArgumentParser(description='Print competition documents')
    parser.add_argument('--data', required=True,
                        help='Dataset JSON export or SQLite database')
    parser.add_argument('--source', default='auto', choices=['auto', 'json', 'sqlite'],
                        help='Data source type (default: by file extension)')
    parser.add_argument('--build-db', default=None,
                        help='Build a SQLite database from the JSON export and read from it')
    parser.add_argument('--config-file', default=None,
                        help='Print config sidecar for JSON data (default: print_config.json beside the data)')
    parser.add_argument('--stage', default='cluster', choices=list(STAGES),
                        help='Competition stage')
    parser.add_argument('--cluster', default=None,
                        help='Cluster id to restrict a cluster-stage view')
    parser.add_argument('--activities', nargs='+', default=None,
                        help='Activity ids to print, in order (default: all)')
    parser.add_argument('--doc-type', default=FULL_SET, choices=DOC_TYPES,
                        help='Document type to print')
    parser.add_argument('--output', required=True, help='Output directory for generated files')
    parser.add_argument('--pdf-name', default=None,
                        help='PDF file name (default: {doc-type}_{stage}.pdf)')
    parser.add_argument('--results-csv', action='store_true',
                        help='Also write the ranked results CSV')
    parser.add_argument('--promotion-report', action='store_true',
                        help='Also write the area promotion report')

    group = parser.add_argument_group('print configuration')
    group.add_argument('--header-title', default=None, help='Heading printed on every page')
    group.add_argument('--score-columns', type=int, default=None,
                       help='Judge score columns when no judges are on file (default 3)')
    group.add_argument('--criteria-count', type=int, default=None,
                       help='Criteria rows on individual score sheets (default 10)')
    group.add_argument('--margin-top', type=float, default=None, help='Top margin in mm')
    group.add_argument('--margin-bottom', type=float, default=None, help='Bottom margin in mm')
    group.add_argument('--margin-left', type=float, default=None, help='Left margin in mm')
    group.add_argument('--margin-right', type=float, default=None, help='Right margin in mm')
    group.add_argument('--font', default=None,
                       help='firago (default, covers Thai), times, helvetica, courier,'
                            ' or a path to a TTF/OTF font')
    group.add_argument('--qr-base-url', default=None,
                       help='Score-entry link template, {activity_id} is substituted')
    group.add_argument('--no-venue-date', action='store_true',
                       help='Leave venue and date lines off the pages')
    group.add_argument('--no-judges', action='store_true',
                       help='Ignore judges on file for score sheet columns')
    group.add_argument('--save-config', action='store_true',
                       help='Persist the print configuration options for this scope')

    args = parser.parse_args(argv)

    adapter = _select_adapter(args)
    print(f"Loading {args.data}...")
    dataset = Dataset.load(adapter)
    print(f"Loaded {len(dataset.activities)} activities, {len(dataset.teams)} teams, "
          f"{len(dataset.judges)} judges, {len(dataset.schools)} schools")

    scope_id = config_scope_id(args.stage, args.cluster)
    overrides = _config_overrides(args)
    if overrides:
        config = dataclasses.replace(resolve_config(scope_id, dataset.print_configs),
                                     **overrides)
        if args.save_config:
            if save_config(adapter, scope_id, config):
                print(f"Saved print config for scope '{scope_id}'")
                dataset.print_configs = adapter.get_print_config()
            else:
                print("Print config not saved; using stored settings")
        else:
            dataset.print_configs = {**dataset.print_configs,
                                     scope_id: dataclasses.asdict(config)}

    os.makedirs(args.output, exist_ok=True)
    pdf_name = args.pdf_name or f'{args.doc_type}_{args.stage}.pdf'
    pdf_path = os.path.join(args.output, pdf_name)
    try:
        document = generate_documents(dataset, pdf_path, args.doc_type, args.stage,
                                      cluster_filter=args.cluster,
                                      activity_ids=args.activities)
    except OutputTargetUnavailable as e:
        print(f"Error: {e}")
        return 1
    print(f"Generated {pdf_path} ({len(document.pages)} pages, "
          f"{document.activity_count} activities)")

    if args.results_csv:
        csv_path = os.path.join(args.output, f'results_{args.stage}.csv')
        count = generate_results_csv(dataset, csv_path, args.stage,
                                     cluster_filter=args.cluster,
                                     activity_ids=args.activities)
        print(f"Generated {csv_path} ({count} teams)")

    if args.promotion_report:
        report_path = os.path.join(args.output, 'promotion_report.txt')
        generate_promotion_report(dataset, report_path, activity_ids=args.activities)
        print(f"Generated {report_path}")

    return 0


if __name__ == '__main__':
    sys.exit(main())
