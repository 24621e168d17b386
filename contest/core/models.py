"""Data models for the competition documents system."""

from dataclasses import dataclass, field


CLUSTER = 'cluster'
AREA = 'area'
STAGES = (CLUSTER, AREA)

# Stage status written on a team once it has advanced to the area round
AREA_STATUS = 'Area'


@dataclass(frozen=True)
class StageInfo:
    """Area-stage result attached to a team.

    ``malformed`` is set when the stored record could not be decoded; every
    other field is then left at its empty default.
    """
    score: float | None = None
    rank: str = ''
    medal: str = ''
    name: str = ''
    note: str = ''
    malformed: bool = False


@dataclass(frozen=True)
class Member:
    prefix: str = ''
    name: str = ''

    @property
    def display_name(self) -> str:
        return f'{self.prefix}{self.name}'.strip()


@dataclass(frozen=True)
class Members:
    students: tuple = ()
    teachers: tuple = ()
    malformed: bool = False


@dataclass(frozen=True)
class Activity:
    id: str
    name: str
    category: str = ''
    levels: tuple = ()           # ("G1-3", "G4-6")
    mode: str = ''
    req_teachers: int = 0
    req_students: int = 0
    max_teams: int = 0
    registration_deadline: str = ''


@dataclass(frozen=True)
class Team:
    id: str
    activity_id: str
    name: str
    school_id: str
    members: Members = field(default_factory=Members)
    score: float | None = None   # cluster-stage score, -1 = not participating
    medal_override: str = ''
    rank: str = ''
    flag: str = ''               # promotion marker, "TRUE" when promoted
    stage_info: StageInfo = field(default_factory=StageInfo)
    stage_status: str = ''       # "Area" once advanced


@dataclass(frozen=True)
class School:
    id: str
    name: str
    cluster_id: str = ''


@dataclass(frozen=True)
class Cluster:
    id: str
    name: str


@dataclass(frozen=True)
class Judge:
    activity_id: str
    name: str
    role: str = ''
    school_name: str = ''
    stage_scope: str = CLUSTER   # "area" or anything else
    cluster_key: str = ''
    cluster_label: str = ''
    phone: str = ''


@dataclass(frozen=True)
class VenueSchedule:
    activity_id: str
    date: str = ''
    time_range: str = ''
    room: str = ''
    building: str = ''
    floor: str = ''


@dataclass(frozen=True)
class Venue:
    id: str
    name: str
    schedules: tuple = ()        # VenueSchedule items


@dataclass(frozen=True)
class PrintConfig:
    """Print layout for one scope ("area" or a cluster id)."""
    scope_id: str = ''
    header_title: str = ''
    score_columns: int = 3       # fallback judge columns when none are on file
    criteria_count: int = 10
    margin_top: float = 10.0     # millimetres
    margin_bottom: float = 10.0
    margin_left: float = 10.0
    margin_right: float = 10.0
    font: str = 'firago'
    include_venue_date: bool = True
    include_judges: bool = True
    qr_base_url: str = ''
