"""Tests for scope resolution, area promotion and judge ordering."""

import os
import sys

import pytest

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, PROJECT_ROOT)

from contest.core.directory import Directory
from contest.core.models import AREA, CLUSTER, Cluster, Judge, School, Team
from contest.core.promotion import (
    KeywordRoleClassifier, RoleClassifier, aggregate, find_chair, order_judges,
    order_teams, promotion_stage_status, select_one_per_cluster,
)
from contest.core.scope_resolver import is_area_team, parse_rank, resolve


DIRECTORY = Directory(
    schools=[
        School('S1', 'Alpha School', 'C1'),
        School('S2', 'Beta School', 'C1'),
        School('S3', 'Gamma School', 'C2'),
        School('S4', 'Delta School', ''),
    ],
    clusters=[Cluster('C1', 'Cluster 1'), Cluster('C2', 'Cluster 2')],
)


def team(team_id, school_id, score, rank='1', flag='TRUE', activity_id='A1',
         name=None, stage_status=''):
    return Team(id=team_id, activity_id=activity_id, name=name or team_id,
                school_id=school_id, score=score, rank=rank, flag=flag,
                stage_status=stage_status)


def judge(name, role, scope='cluster', cluster_key='C1', cluster_label='',
          activity_id='A1'):
    return Judge(activity_id=activity_id, name=name, role=role,
                 stage_scope=scope, cluster_key=cluster_key,
                 cluster_label=cluster_label)


class TestRankAndFlag:
    @pytest.mark.parametrize('value,expected', [
        ('1', 1), (1, 1), ('1.0', 1), (' 2 ', 2), ('', None), (None, None),
        ('first', None), ('1.5', None), ('nan', None), (True, None),
    ])
    def test_parse_rank(self, value, expected):
        assert parse_rank(value) == expected

    def test_area_team_by_rank_and_flag(self):
        assert is_area_team(team('T1', 'S1', 80, rank='1', flag='true'))
        assert is_area_team(team('T1', 'S1', 80, rank=1, flag=True))
        assert not is_area_team(team('T1', 'S1', 80, rank='1', flag='FALSE'))
        assert not is_area_team(team('T1', 'S1', 80, rank='2', flag='TRUE'))

    def test_area_team_by_stage_status(self):
        assert is_area_team(team('T1', 'S1', 80, rank='', flag='', stage_status='Area'))

    def test_promotion_stage_status(self):
        assert promotion_stage_status('1', 'TRUE') == 'Area'
        assert promotion_stage_status('2', 'TRUE') == ''
        assert promotion_stage_status('1', '') == ''


class TestScopeResolver:
    def test_unknown_stage_rejected(self):
        with pytest.raises(ValueError):
            resolve([], [], DIRECTORY, 'regional')

    def test_cluster_filter_drops_other_clusters_and_unresolved(self):
        teams = [team('T1', 'S1', 80), team('T2', 'S3', 80), team('T3', 'S9', 80),
                 team('T4', 'S4', 80)]
        eligible, _ = resolve(teams, [], DIRECTORY, CLUSTER, cluster_filter='C1')
        assert [t.id for t in eligible] == ['T1']

    def test_cluster_without_filter_keeps_everything(self):
        teams = [team('T1', 'S1', 80, flag=''), team('T2', 'S9', 10, rank='')]
        eligible, _ = resolve(teams, [], DIRECTORY, CLUSTER)
        assert [t.id for t in eligible] == ['T1', 'T2']

    def test_judge_scope_and_cluster_match(self):
        judges = [
            judge('J1', 'Chair', cluster_key='C1'),
            judge('J2', 'Member', cluster_key='', cluster_label='Cluster 2 (C2)'),
            judge('J3', 'Chair', scope='area', cluster_key=''),
        ]
        _, c1 = resolve([], judges, DIRECTORY, CLUSTER, cluster_filter='C1')
        _, c2 = resolve([], judges, DIRECTORY, CLUSTER, cluster_filter='C2')
        _, area = resolve([], judges, DIRECTORY, AREA)
        assert [j.name for j in c1] == ['J1']
        assert [j.name for j in c2] == ['J2']
        assert [j.name for j in area] == ['J3']

    def test_activity_restriction(self):
        teams = [team('T1', 'S1', 80), team('T2', 'S1', 80, activity_id='A2')]
        judges = [judge('J1', 'Chair'), judge('J2', 'Chair', activity_id='A2')]
        eligible, eligible_judges = resolve(teams, judges, DIRECTORY, CLUSTER,
                                            activity_id='A2')
        assert [t.id for t in eligible] == ['T2']
        assert [j.name for j in eligible_judges] == ['J2']

    def test_area_stage_keeps_only_promoted(self):
        teams = [team('T1', 'S1', 80), team('T2', 'S1', 90, rank='2'),
                 team('T3', 'S3', 70, flag='')]
        eligible, _ = resolve(teams, [], DIRECTORY, AREA)
        assert [t.id for t in eligible] == ['T1']


class TestAreaPromotion:
    def test_one_team_per_cluster_highest_score(self):
        teams = [team('T1', 'S1', 85), team('T2', 'S2', 90), team('T3', 'S3', 88)]
        result = aggregate(teams, DIRECTORY, AREA)
        assert [t.id for t in result] == ['T2', 'T3']

    def test_at_most_one_per_cluster(self):
        teams = [team(f'T{i}', 'S1' if i % 2 else 'S2', 50 + i) for i in range(10)]
        teams += [team('X1', 'S3', 60), team('X2', 'S3', 99)]
        result = aggregate(teams, DIRECTORY, AREA)
        clusters = [DIRECTORY.cluster_id_for(t) for t in result]
        assert sorted(clusters) == ['C1', 'C2']
        assert {t.id for t in result} == {'T9', 'X2'}

    def test_already_area_teams_are_deduplicated(self):
        teams = [team('T1', 'S1', 70, rank='', flag='', stage_status='Area'),
                 team('T2', 'S2', 75)]
        result = aggregate(teams, DIRECTORY, AREA)
        assert [t.id for t in result] == ['T2']

    def test_unresolved_cluster_teams_always_kept(self):
        teams = [team('T1', 'S9', 50), team('T2', 'S9', 60), team('T3', 'S4', 40),
                 team('T4', 'S1', 90)]
        result = aggregate(teams, DIRECTORY, AREA)
        assert {t.id for t in result} == {'T1', 'T2', 'T3', 'T4'}

    def test_equal_scores_keep_input_order(self):
        teams = [team('T1', 'S2', 80), team('T2', 'S1', 80)]
        assert [t.id for t in select_one_per_cluster(teams, DIRECTORY)] == ['T1']

    def test_non_numeric_score_sorts_as_zero(self):
        teams = [team('T1', 'S1', None), team('T2', 'S2', 1)]
        assert [t.id for t in select_one_per_cluster(teams, DIRECTORY)] == ['T2']

    def test_removing_top_candidate_promotes_next_in_cluster(self):
        teams = [team('T1', 'S1', 85), team('T2', 'S2', 90), team('T3', 'S3', 88)]
        without_top = [t for t in teams if t.id != 'T2']
        result = aggregate(without_top, DIRECTORY, AREA)
        assert [t.id for t in result] == ['T1', 'T3']

    def test_area_display_order_by_cluster_then_school(self):
        teams = [team('T3', 'S3', 99), team('T1', 'S1', 50)]
        result = aggregate(teams, DIRECTORY, AREA)
        assert [t.id for t in result] == ['T1', 'T3']

    def test_cluster_stage_orders_by_school_then_team(self):
        teams = [team('T1', 'S2', 10, name='Zeta'), team('T2', 'S1', 90, name='Omega'),
                 team('T3', 'S1', 50, name='Alpha')]
        result = aggregate(teams, DIRECTORY, CLUSTER)
        assert [t.id for t in result] == ['T3', 'T2', 'T1']

    def test_school_order_ignores_case(self):
        directory = Directory([School('S1', 'alpha school', 'C1'),
                               School('S2', 'Zeta School', 'C1')],
                              [Cluster('C1', 'Cluster 1')])
        teams = [team('T2', 'S2', 90), team('T1', 'S1', 80)]
        assert [t.id for t in order_teams(teams, directory, CLUSTER)] == ['T1', 'T2']

    def test_thai_leading_vowel_sorts_by_consonant(self):
        directory = Directory([School('S1', 'โรงเรียนขาว', 'C1'),
                               School('S2', 'โรงเรียนเก่ง', 'C1')],
                              [Cluster('C1', 'Cluster 1')])
        teams = [team('T1', 'S1', 90, name='ขาว'), team('T2', 'S1', 80, name='เก่ง')]
        assert [t.id for t in order_teams(teams, directory, CLUSTER)] == ['T2', 'T1']

    def test_unknown_stage(self):
        with pytest.raises(ValueError):
            aggregate([], DIRECTORY, 'final')


class TestJudgeOrdering:
    def test_priority_keywords(self):
        classifier = KeywordRoleClassifier()
        assert classifier.priority('ประธานกรรมการ') == 1
        assert classifier.priority('Chair of judges') == 1
        assert classifier.priority('กรรมการ') == 2
        assert classifier.priority('กรรมการและเลขานุการ') == 3
        assert classifier.priority('Committee member and Secretary') == 3
        assert classifier.priority('Observer') == 4
        assert classifier.priority('') == 4

    def test_order_and_stability(self):
        judges = [judge('A', 'Observer'), judge('B', 'Committee'),
                  judge('C', 'Committee and secretary'), judge('D', 'Committee'),
                  judge('E', 'Chair')]
        assert [j.name for j in order_judges(judges)] == ['E', 'B', 'D', 'C', 'A']

    def test_custom_classifier(self):
        class ByLength(RoleClassifier):
            def priority(self, role):
                return len(role)

        judges = [judge('A', 'xxx'), judge('B', 'x')]
        assert [j.name for j in order_judges(judges, ByLength())] == ['B', 'A']

    def test_find_chair(self):
        judges = [judge('A', 'Committee'), judge('B', 'Chair')]
        assert find_chair(judges).name == 'B'
        assert find_chair([judge('A', 'Committee')]) is None
