"""Results exports built from the same prepared lists as the printed documents.

Generates two output types:
  - Results CSV (one row per team, per activity, ranked by score)
  - Promotion report (text, the team promoted from each cluster)
"""

import csv

from .medal import auto_rank, medal_summary, resolve_team_medal, stage_score
from .models import AREA
from .pipeline import Dataset, prepare_lists
from .promotion import score_value

CSV_FIELDS = ['activity_id', 'activity', 'rank', 'team', 'school', 'cluster',
              'score', 'medal']


def _format_score(score) -> str:
    if score is None:
        return ''
    return f'{score:g}'


def results_rows(dataset: Dataset, stage: str, cluster_filter: str | None = None,
                 activity_ids: list[str] | None = None) -> list[dict]:
    """Rows for the results CSV, grouped by activity, score descending."""
    if activity_ids is None:
        activity_ids = dataset.activity_ids()
    directory = dataset.directory
    ordered_teams, _ = prepare_lists(dataset, activity_ids, stage, cluster_filter,
                                     directory=directory)
    names = {a.id: a.name for a in dataset.activities}

    rows = []
    for activity_id in activity_ids:
        teams = ordered_teams.get(activity_id, [])
        computed = auto_rank(teams, stage)
        # stable: equal scores keep display order
        teams = sorted(teams, key=lambda t: -score_value(stage_score(t, stage)))
        for team in teams:
            stored = team.stage_info.rank if stage == AREA else team.rank
            rank = stored or computed.get(team.id, '')
            rows.append({
                'activity_id': activity_id,
                'activity': names.get(activity_id, activity_id),
                'rank': rank,
                'team': team.name,
                'school': directory.school_name(team),
                'cluster': directory.team_cluster_name(team),
                'score': _format_score(stage_score(team, stage)),
                'medal': resolve_team_medal(team, stage),
            })
    return rows


def generate_results_csv(dataset: Dataset, output_path: str, stage: str,
                         cluster_filter: str | None = None,
                         activity_ids: list[str] | None = None) -> int:
    """Write the ranked results CSV. Returns the number of team rows."""
    rows = results_rows(dataset, stage, cluster_filter, activity_ids)
    with open(output_path, 'w', newline='', encoding='utf-8') as f:
        writer = csv.DictWriter(f, fieldnames=CSV_FIELDS)
        writer.writeheader()
        for row in rows:
            writer.writerow(row)
    return len(rows)


def promotion_report_lines(dataset: Dataset,
                           activity_ids: list[str] | None = None) -> list[str]:
    """Per activity: the team promoted from each cluster, plus medal counts."""
    if activity_ids is None:
        activity_ids = dataset.activity_ids()
    directory = dataset.directory
    ordered_teams, _ = prepare_lists(dataset, activity_ids, AREA, directory=directory)
    names = {a.id: a.name for a in dataset.activities}

    lines = []
    for activity_id in activity_ids:
        lines.append(f"{names.get(activity_id, activity_id)} [{activity_id}]")
        teams = ordered_teams.get(activity_id, [])
        if not teams:
            lines.append('  (no promoted teams)')
        for team in teams:
            cluster = directory.team_cluster_name(team) or '(unknown cluster)'
            lines.append(f"  {cluster}: {team.name} - {directory.school_name(team)}"
                         f" ({_format_score(team.score) or '-'})")
        summary = medal_summary(teams, AREA)
        lines.append(f"  Area results: {summary['total']} scored, "
                     f"{summary['gold']} gold, {summary['silver']} silver, "
                     f"{summary['bronze']} bronze")
        lines.append('')
    return lines


def generate_promotion_report(dataset: Dataset, output_path: str,
                              activity_ids: list[str] | None = None):
    lines = promotion_report_lines(dataset, activity_ids)
    with open(output_path, 'w', encoding='utf-8') as f:
        f.write('\n'.join(lines))
