"""Decode raw dataset rows into model objects.

Rows come from JSON exports (camelCase keys from the competition sheet
backend) or SQLite rows (snake_case). Keys are matched through an alias
table, so both shapes decode the same way. Fields that hold JSON text
(members, stage info, levels, schedules) are parsed here exactly once;
a field that fails to parse becomes the malformed/empty variant instead
of raising.
"""

import json

from ..core.models import (
    Activity, Cluster, Judge, Member, Members, School, StageInfo, Team,
    Venue, VenueSchedule,
)

# canonical name -> accepted source keys
ACTIVITY_KEYS = {
    'id': ('id', 'activityId', 'activity_id', 'ActivityID'),
    'name': ('name', 'activityName', 'activity_name'),
    'category': ('category',),
    'levels': ('levels',),
    'mode': ('mode',),
    'req_teachers': ('reqTeachers', 'req_teachers'),
    'req_students': ('reqStudents', 'req_students'),
    'max_teams': ('maxTeams', 'max_teams'),
    'registration_deadline': ('registrationDeadline', 'registration_deadline'),
}

TEAM_KEYS = {
    'id': ('teamId', 'team_id', 'id'),
    'activity_id': ('activityId', 'activity_id'),
    'name': ('teamName', 'team_name', 'name'),
    'school_id': ('schoolId', 'school_id'),
    'members': ('members',),
    'score': ('score',),
    'medal_override': ('medalOverride', 'medal_override', 'medal'),
    'rank': ('rank',),
    'flag': ('flag',),
    'stage_info': ('stageInfo', 'stage_info'),
    'stage_status': ('stageStatus', 'stage_status'),
}

SCHOOL_KEYS = {
    'id': ('SchoolID', 'schoolId', 'school_id', 'id'),
    'name': ('SchoolName', 'schoolName', 'school_name', 'name'),
    'cluster_id': ('SchoolCluster', 'schoolCluster', 'cluster_id', 'clusterId'),
}

CLUSTER_KEYS = {
    'id': ('ClusterID', 'clusterId', 'cluster_id', 'id'),
    'name': ('ClusterName', 'clusterName', 'cluster_name', 'name'),
}

JUDGE_KEYS = {
    'activity_id': ('activityId', 'activity_id'),
    'name': ('judgeName', 'judge_name', 'name'),
    'role': ('role',),
    'school_name': ('schoolName', 'school_name'),
    'stage_scope': ('stageScope', 'stage_scope'),
    'cluster_key': ('clusterKey', 'cluster_key'),
    'cluster_label': ('clusterLabel', 'cluster_label'),
    'phone': ('phone', 'tel'),
}

VENUE_KEYS = {
    'id': ('id', 'venueId', 'venue_id'),
    'name': ('name', 'venueName', 'venue_name'),
    'schedules': ('scheduledActivities', 'scheduled_activities', 'schedules'),
}

SCHEDULE_KEYS = {
    'activity_id': ('activityId', 'activity_id'),
    'date': ('date',),
    'time_range': ('timeRange', 'time_range'),
    'room': ('room',),
    'building': ('building',),
    'floor': ('floor',),
}


def get_field(row: dict, keys: tuple, default=None):
    """Return the first present, non-None value among keys."""
    for key in keys:
        if key in row and row[key] is not None:
            return row[key]
    return default


def _text(row: dict, keys: tuple) -> str:
    return str(get_field(row, keys, '')).strip()


def _parse_int(val) -> int:
    try:
        return int(float(str(val).strip()))
    except (TypeError, ValueError):
        return 0


def _parse_score(val):
    """Score as float; None for empty or invalid values."""
    if val is None or isinstance(val, bool):
        return None
    if isinstance(val, (int, float)):
        return float(val)
    s = str(val).strip()
    if not s:
        return None
    try:
        return float(s)
    except ValueError:
        return None


def _load_json(raw):
    """(value, ok) for a JSON text field; already-decoded values pass through."""
    if raw is None:
        return None, True
    if not isinstance(raw, str):
        return raw, True
    s = raw.strip()
    if not s:
        return None, True
    try:
        return json.loads(s), True
    except json.JSONDecodeError:
        return None, False


def decode_stage_info(raw) -> StageInfo:
    """Decode the area-stage record; unparsable input gives a malformed StageInfo."""
    data, ok = _load_json(raw)
    if not ok or (data is not None and not isinstance(data, dict)):
        return StageInfo(malformed=True)
    data = data or {}
    return StageInfo(
        score=_parse_score(data.get('score')),
        rank=str(data.get('rank') or '').strip(),
        medal=str(data.get('medal') or '').strip(),
        name=str(data.get('name') or '').strip(),
        note=str(data.get('note') or '').strip(),
    )


def _decode_member(raw) -> Member | None:
    if isinstance(raw, str):
        return Member(name=raw.strip()) if raw.strip() else None
    if not isinstance(raw, dict):
        return None
    name = str(raw.get('name') or '').strip()
    if not name:
        first = str(raw.get('firstname') or raw.get('firstName') or '').strip()
        last = str(raw.get('lastname') or raw.get('lastName') or '').strip()
        name = f'{first} {last}'.strip()
    if not name:
        return None
    return Member(prefix=str(raw.get('prefix') or '').strip(), name=name)


def _decode_member_list(raw) -> tuple:
    if not isinstance(raw, list):
        return ()
    return tuple(m for m in (_decode_member(r) for r in raw) if m is not None)


def decode_members(raw) -> Members:
    """Decode the member list.

    Accepts a plain list (students only) or an object with 'students' and
    'teachers' lists.
    """
    data, ok = _load_json(raw)
    if not ok:
        return Members(malformed=True)
    if isinstance(data, list):
        return Members(students=_decode_member_list(data))
    if isinstance(data, dict):
        return Members(students=_decode_member_list(data.get('students')),
                       teachers=_decode_member_list(data.get('teachers')))
    if data is None:
        return Members()
    return Members(malformed=True)


def decode_levels(raw) -> tuple:
    """Levels stored as a JSON list, or as comma-separated text."""
    data, ok = _load_json(raw)
    if ok and isinstance(data, list):
        return tuple(str(level).strip() for level in data if str(level).strip())
    if isinstance(raw, str) and raw.strip():
        return tuple(p.strip() for p in raw.split(',') if p.strip())
    return ()


def activity_from_row(row: dict) -> Activity:
    return Activity(
        id=_text(row, ACTIVITY_KEYS['id']),
        name=_text(row, ACTIVITY_KEYS['name']),
        category=_text(row, ACTIVITY_KEYS['category']),
        levels=decode_levels(get_field(row, ACTIVITY_KEYS['levels'])),
        mode=_text(row, ACTIVITY_KEYS['mode']),
        req_teachers=_parse_int(get_field(row, ACTIVITY_KEYS['req_teachers'])),
        req_students=_parse_int(get_field(row, ACTIVITY_KEYS['req_students'])),
        max_teams=_parse_int(get_field(row, ACTIVITY_KEYS['max_teams'])),
        registration_deadline=_text(row, ACTIVITY_KEYS['registration_deadline']),
    )


def team_from_row(row: dict) -> Team:
    return Team(
        id=_text(row, TEAM_KEYS['id']),
        activity_id=_text(row, TEAM_KEYS['activity_id']),
        name=_text(row, TEAM_KEYS['name']),
        school_id=_text(row, TEAM_KEYS['school_id']),
        members=decode_members(get_field(row, TEAM_KEYS['members'])),
        score=_parse_score(get_field(row, TEAM_KEYS['score'])),
        medal_override=_text(row, TEAM_KEYS['medal_override']),
        rank=_text(row, TEAM_KEYS['rank']),
        flag=_text(row, TEAM_KEYS['flag']),
        stage_info=decode_stage_info(get_field(row, TEAM_KEYS['stage_info'])),
        stage_status=_text(row, TEAM_KEYS['stage_status']),
    )


def school_from_row(row: dict) -> School:
    return School(
        id=_text(row, SCHOOL_KEYS['id']),
        name=_text(row, SCHOOL_KEYS['name']),
        cluster_id=_text(row, SCHOOL_KEYS['cluster_id']),
    )


def cluster_from_row(row: dict) -> Cluster:
    return Cluster(id=_text(row, CLUSTER_KEYS['id']),
                   name=_text(row, CLUSTER_KEYS['name']))


def judge_from_row(row: dict) -> Judge:
    return Judge(
        activity_id=_text(row, JUDGE_KEYS['activity_id']),
        name=_text(row, JUDGE_KEYS['name']),
        role=_text(row, JUDGE_KEYS['role']),
        school_name=_text(row, JUDGE_KEYS['school_name']),
        stage_scope=_text(row, JUDGE_KEYS['stage_scope']).lower() or 'cluster',
        cluster_key=_text(row, JUDGE_KEYS['cluster_key']),
        cluster_label=_text(row, JUDGE_KEYS['cluster_label']),
        phone=_text(row, JUDGE_KEYS['phone']),
    )


def schedule_from_row(row: dict) -> VenueSchedule:
    return VenueSchedule(
        activity_id=_text(row, SCHEDULE_KEYS['activity_id']),
        date=_text(row, SCHEDULE_KEYS['date']),
        time_range=_text(row, SCHEDULE_KEYS['time_range']),
        room=_text(row, SCHEDULE_KEYS['room']),
        building=_text(row, SCHEDULE_KEYS['building']),
        floor=_text(row, SCHEDULE_KEYS['floor']),
    )


def venue_from_row(row: dict) -> Venue:
    schedules, ok = _load_json(get_field(row, VENUE_KEYS['schedules']))
    if not ok or not isinstance(schedules, list):
        schedules = []
    return Venue(
        id=_text(row, VENUE_KEYS['id']),
        name=_text(row, VENUE_KEYS['name']),
        schedules=tuple(schedule_from_row(s) for s in schedules
                        if isinstance(s, dict)),
    )
