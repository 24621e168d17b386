"""Promotion and ordering of teams and judges.

Area-stage promotion keeps at most one team per cluster:
  1. Candidates are rank-1 flagged cluster teams plus teams already marked
     as having reached the area stage.
  2. Candidates are stably sorted by cluster-stage score, highest first.
  3. Walking that list once, the first team seen from each cluster is kept
     and later teams from the same cluster are dropped. Teams whose school
     or cluster cannot be resolved are always kept.

Display ordering then sorts by cluster name (area only), school name and
team name.
"""

from abc import ABC, abstractmethod

import pyuca

from .directory import Directory
from .models import AREA, AREA_STATUS, STAGES, Judge, Team
from .scope_resolver import is_area_team, is_flagged, parse_rank


def score_value(score) -> float:
    """Numeric score for sorting; missing or invalid scores count as 0."""
    if score is None or isinstance(score, bool):
        return 0.0
    try:
        value = float(score)
    except (TypeError, ValueError):
        return 0.0
    return value if value == value else 0.0


_collator = None


def collation_key(text: str):
    """Unicode collation sort key.

    Case is only a tie-breaker and Thai leading vowels sort after the
    consonant they precede, so results do not depend on the process locale.
    """
    global _collator
    if _collator is None:
        _collator = pyuca.Collator()
    return _collator.sort_key(text or '')


def promotion_stage_status(rank, flag) -> str:
    """Stage status to store with a cluster result: 'Area' when promoted."""
    return AREA_STATUS if parse_rank(rank) == 1 and is_flagged(flag) else ''


def promotion_candidates(teams: list[Team]) -> list[Team]:
    """Teams eligible for the area-stage pool, in input order."""
    return [t for t in teams if is_area_team(t)]


def select_one_per_cluster(candidates: list[Team], directory: Directory) -> list[Team]:
    """Keep the highest-scoring candidate of each cluster.

    Returns teams in descending score order (ties keep input order).
    """
    ranked = sorted(candidates, key=lambda t: -score_value(t.score))
    seen_clusters = set()
    selected = []
    for team in ranked:
        cluster_id = directory.cluster_id_for(team)
        if cluster_id is None:
            selected.append(team)
            continue
        if cluster_id in seen_clusters:
            continue
        seen_clusters.add(cluster_id)
        selected.append(team)
    return selected


def order_teams(teams: list[Team], directory: Directory, stage: str) -> list[Team]:
    """Sort teams for display and printing."""
    def sort_key(team):
        key = (collation_key(directory.school_name(team)),
               collation_key(team.name))
        if stage == AREA:
            cluster_name = directory.team_cluster_name(team)
            return (collation_key(cluster_name),) + key
        return key

    return sorted(teams, key=sort_key)


def aggregate(eligible_teams: list[Team], directory: Directory, stage: str) -> list[Team]:
    """Produce the ordered team list shared by result views and documents.

    Args:
        eligible_teams: Output of the scope resolver for one activity.
        directory: School/cluster lookups.
        stage: 'cluster' or 'area'.
    """
    if stage not in STAGES:
        raise ValueError(f'Unknown stage: {stage!r}')
    if stage == AREA:
        pool = select_one_per_cluster(promotion_candidates(eligible_teams), directory)
    else:
        pool = list(eligible_teams)
    return order_teams(pool, directory, stage)


# --- Judges ---

class RoleClassifier(ABC):
    """Maps a free-text judge role label to a sort priority (lower first)."""

    @abstractmethod
    def priority(self, role: str) -> int:
        pass


class KeywordRoleClassifier(RoleClassifier):
    """Keyword matching on Thai and English role labels.

    Priorities:
        1 - chair of the board
        2 - committee member
        3 - committee member and secretary
        4 - anything else
    """

    CHAIR_KEYWORDS = ('ประธาน', 'chair')
    COMMITTEE_KEYWORDS = ('กรรมการ', 'committee')
    SECRETARY_KEYWORDS = ('เลขา', 'secretary')

    def __init__(self, chair_keywords=None, committee_keywords=None,
                 secretary_keywords=None):
        self.chair_keywords = tuple(chair_keywords or self.CHAIR_KEYWORDS)
        self.committee_keywords = tuple(committee_keywords or self.COMMITTEE_KEYWORDS)
        self.secretary_keywords = tuple(secretary_keywords or self.SECRETARY_KEYWORDS)

    @staticmethod
    def _contains_any(text: str, keywords: tuple) -> bool:
        return any(k.casefold() in text for k in keywords)

    def priority(self, role: str) -> int:
        text = (role or '').casefold()
        if self._contains_any(text, self.chair_keywords):
            return 1
        if self._contains_any(text, self.committee_keywords):
            if self._contains_any(text, self.secretary_keywords):
                return 3
            return 2
        return 4


def order_judges(judges: list[Judge], classifier: RoleClassifier | None = None) -> list[Judge]:
    """Stable sort of judges by role priority."""
    classifier = classifier or KeywordRoleClassifier()
    return sorted(judges, key=lambda j: classifier.priority(j.role))


def find_chair(judges: list[Judge], classifier: RoleClassifier | None = None) -> Judge | None:
    """First judge whose role classifies as chair, if any."""
    classifier = classifier or KeywordRoleClassifier()
    for judge in judges:
        if classifier.priority(judge.role) == 1:
            return judge
    return None
