"""Select the teams and judges visible for a stage and optional cluster."""

import math

from .directory import Directory
from .models import AREA, AREA_STATUS, STAGES, Judge, Team


def parse_rank(value) -> int | None:
    """Parse a stored rank ('1', 1, '1.0') to an int, None when absent."""
    if value is None or isinstance(value, bool):
        return None
    s = str(value).strip()
    if not s:
        return None
    try:
        number = float(s)
    except ValueError:
        return None
    if not math.isfinite(number) or number != int(number):
        return None
    return int(number)


def is_flagged(flag) -> bool:
    """True for the promotion flag values 'TRUE' (any case) and True."""
    if flag is True:
        return True
    return str(flag or '').strip().upper() == 'TRUE'


def is_area_team(team: Team) -> bool:
    """Team has reached the area stage, or is rank 1 with the promotion flag."""
    if team.stage_status == AREA_STATUS:
        return True
    return parse_rank(team.rank) == 1 and is_flagged(team.flag)


def _judge_matches_cluster(judge: Judge, cluster_filter: str) -> bool:
    if judge.cluster_key == cluster_filter:
        return True
    return bool(judge.cluster_label) and cluster_filter in judge.cluster_label


def resolve(teams: list[Team], judges: list[Judge], directory: Directory,
            stage: str, cluster_filter: str | None = None,
            activity_id: str | None = None) -> tuple[list[Team], list[Judge]]:
    """Filter teams and judges down to those eligible for the given view.

    Args:
        teams: All teams (or those of one activity).
        judges: All judges (or those of one activity).
        directory: School/cluster lookups.
        stage: 'cluster' or 'area'.
        cluster_filter: Cluster id restricting a cluster-stage view.
        activity_id: Optional activity restriction applied first.

    Returns:
        (eligible_teams, eligible_judges), each in input order.
    """
    if stage not in STAGES:
        raise ValueError(f'Unknown stage: {stage!r}')

    if activity_id is not None:
        teams = [t for t in teams if t.activity_id == activity_id]
        judges = [j for j in judges if j.activity_id == activity_id]

    if stage == AREA:
        eligible_teams = [t for t in teams if is_area_team(t)]
        eligible_judges = [j for j in judges if j.stage_scope == AREA]
        return eligible_teams, eligible_judges

    eligible_teams = list(teams)
    eligible_judges = [j for j in judges if j.stage_scope != AREA]
    if cluster_filter:
        # Teams with an unresolved school have no cluster and drop out here
        eligible_teams = [t for t in eligible_teams
                          if directory.cluster_id_for(t) == cluster_filter]
        eligible_judges = [j for j in eligible_judges
                           if _judge_matches_cluster(j, cluster_filter)]
    return eligible_teams, eligible_judges
