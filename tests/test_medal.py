"""Tests for medal tiers, overrides, auto ranking and score validation."""

import os
import sys

import pytest

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, PROJECT_ROOT)

from contest.core.medal import (
    BRONZE, GOLD, NOT_PARTICIPATING, PARTICIPANT, SILVER, UNKNOWN, auto_rank,
    medal_summary, resolve_area_medal, resolve_medal, resolve_team_medal,
    validate_score,
)
from contest.core.models import AREA, CLUSTER, StageInfo, Team
from contest.adapters.records import decode_stage_info


def team(team_id, score=None, override='', stage_info=None):
    return Team(id=team_id, activity_id='A1', name=team_id, school_id='S1',
                score=score, medal_override=override,
                stage_info=stage_info or StageInfo())


class TestMedalThresholds:
    @pytest.mark.parametrize('score,expected', [
        (100, GOLD), (80, GOLD), (79.99, SILVER), (70, SILVER),
        (69.99, BRONZE), (60, BRONZE), (59.99, PARTICIPANT), (0, PARTICIPANT),
        ('85', GOLD), (' 72.5 ', SILVER),
    ])
    def test_tiers(self, score, expected):
        assert resolve_medal(score) == expected

    def test_not_participating_ignores_override(self):
        assert resolve_medal(-1) == NOT_PARTICIPATING
        assert resolve_medal(-1, 'Gold') == NOT_PARTICIPATING
        assert resolve_medal('-1', 'Bronze') == NOT_PARTICIPATING

    def test_missing_score_is_unknown(self):
        assert resolve_medal(None) == UNKNOWN
        assert resolve_medal('') == UNKNOWN
        assert resolve_medal('n/a') == UNKNOWN


class TestManualOverride:
    def test_override_wins(self):
        assert resolve_medal(50, 'Gold') == 'Gold'
        assert resolve_medal(95, 'Honorable Mention') == 'Honorable Mention'
        assert resolve_medal(None, 'Silver') == 'Silver'

    @pytest.mark.parametrize('sentinel', [None, '', '   ', '- Auto -', '- auto -', 'AUTO', 'auto'])
    def test_auto_sentinels_fall_through(self, sentinel):
        assert resolve_medal(85, sentinel) == GOLD

    def test_team_medal_by_stage(self):
        t = team('T1', score=65, override='',
                 stage_info=StageInfo(score=81))
        assert resolve_team_medal(t, CLUSTER) == BRONZE
        assert resolve_team_medal(t, AREA) == GOLD


class TestAreaMedal:
    def test_stage_info_override(self):
        t = team('T1', stage_info=StageInfo(score=50, medal='Gold'))
        assert resolve_area_medal(t) == 'Gold'

    def test_malformed_stage_info_is_unknown(self):
        t = team('T1', score=90, stage_info=decode_stage_info('{"score": 9'))
        assert t.stage_info.malformed
        assert resolve_area_medal(t) == UNKNOWN

    def test_missing_stage_info_is_unknown(self):
        assert resolve_area_medal(team('T1', score=90)) == UNKNOWN


class TestAutoRank:
    def test_competition_ranking(self):
        teams = [team('A', 70), team('B', 90), team('C', 70), team('D', 60)]
        assert auto_rank(teams) == {'B': 1, 'A': 2, 'C': 2, 'D': 4}

    def test_unscored_and_not_participating_unranked(self):
        teams = [team('A', 0), team('B', -1), team('C', None), team('D', 50)]
        assert auto_rank(teams) == {'D': 1}

    def test_area_ranks_by_area_score(self):
        teams = [team('A', 99, stage_info=StageInfo(score=60)),
                 team('B', 10, stage_info=StageInfo(score=80))]
        assert auto_rank(teams, AREA) == {'B': 1, 'A': 2}


class TestValidateScore:
    @pytest.mark.parametrize('value', [0, 100, 55.5, '72', -1, '-1'])
    def test_accepted(self, value):
        assert validate_score(value) == float(value)

    @pytest.mark.parametrize('value', [101, -0.5, -2, 'abc', None, ''])
    def test_rejected(self, value):
        with pytest.raises(ValueError):
            validate_score(value)


class TestMedalSummary:
    def test_cluster_counts(self):
        teams = [team('A', 85), team('B', 75), team('C', 65), team('D', 40),
                 team('E', -1), team('F', None), team('G', 50, override='Gold')]
        assert medal_summary(teams, CLUSTER) == {
            'total': 5, 'gold': 2, 'silver': 1, 'bronze': 1}

    def test_area_counts_only_scored(self):
        teams = [team('A', stage_info=StageInfo(score=82)),
                 team('B', stage_info=StageInfo(malformed=True)),
                 team('C')]
        assert medal_summary(teams, AREA) == {
            'total': 1, 'gold': 1, 'silver': 0, 'bronze': 0}
