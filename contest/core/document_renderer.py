"""Page builders for the competition print documents.

Each document type has its own builder that turns one activity's ordered
teams and judges into Page records. render() drives the builders for a
list of activities and returns a RenderedDocument; pdf_writer turns that
into a PDF.

Page sequence per activity for the full set:
    envelope -> judge sign-in -> student sign-in -> teacher sign-in
    -> one individual score sheet per judge -> aggregate score sheet
"""

import dataclasses
import datetime
import math
from dataclasses import dataclass

from .directory import Directory
from .models import Activity, Judge, PrintConfig, Team, Venue, VenueSchedule
from .promotion import find_chair
from .qr import QrGenerationError, make_qr_png, score_entry_url

# Document types
JUDGE_SIGNIN = 'judge-signin'
COMPETITOR_SIGNIN = 'competitor-signin'
SCORE_SHEET = 'score-sheet'
SCORE_SHEET_INDIVIDUAL = 'score-sheet-individual'
ENVELOPE = 'envelope'
FULL_SET = 'full-set'

DOC_TYPES = [JUDGE_SIGNIN, COMPETITOR_SIGNIN, SCORE_SHEET,
             SCORE_SHEET_INDIVIDUAL, ENVELOPE, FULL_SET]

# Page kinds (competitor sign-in splits into two sheets)
STUDENT_SIGNIN = 'student-signin'
TEACHER_SIGNIN = 'teacher-signin'

DOC_NAMES = {
    JUDGE_SIGNIN: 'Judge Sign-in Sheet',
    COMPETITOR_SIGNIN: 'Competitor Sign-in Sheet',
    SCORE_SHEET: 'Aggregate Score Sheet',
    SCORE_SHEET_INDIVIDUAL: 'Individual Judge Score Sheet',
    ENVELOPE: 'Envelope Cover Sheet',
    FULL_SET: 'Full Document Set',
}

PAGE_TITLES = {
    ENVELOPE: 'Competition Document Envelope',
    JUDGE_SIGNIN: 'Judges List and Attendance Sheet',
    STUDENT_SIGNIN: 'Competitor Sign-in Sheet (Students)',
    TEACHER_SIGNIN: 'Competitor Sign-in Sheet (Coaching Teachers)',
    SCORE_SHEET_INDIVIDUAL: 'Score Record (Individual Judge)',
    SCORE_SHEET: 'Score Record (Aggregate Result)',
}

QR_PAGE_KINDS = {SCORE_SHEET, SCORE_SHEET_INDIVIDUAL}

NO_JUDGES_TEXT = 'No judges on file'
NO_DATA_TEXT = 'No data'
DOTTED_NAME = '.' * 58

# --- Geometry (A4 in points) ---
A4_W = 595.28
A4_H = 841.89
MM_TO_PT = 72 / 25.4

PORTRAIT = 'portrait'
LANDSCAPE = 'landscape'

HEADING_HEIGHT = 40
TITLE_HEIGHT = 24
INFO_LINE_HEIGHT = 14
INFO_PADDING = 14
TABLE_HEADER_HEIGHT = 28
SIGNATURE_HEIGHT = 48
NOTE_HEIGHT = 26
FOOTER_HEIGHT = 16

ROW_HEIGHTS = {
    JUDGE_SIGNIN: 22,
    STUDENT_SIGNIN: 20,
    TEACHER_SIGNIN: 20,
    SCORE_SHEET_INDIVIDUAL: 24,
    SCORE_SHEET: 26,
}


@dataclass(frozen=True)
class Column:
    label: str
    width: float      # relative weight within the table


@dataclass(frozen=True)
class Page:
    """One printed page. Rows with a single cell span the whole table."""
    kind: str
    activity_id: str
    orientation: str
    heading: tuple            # (header title, scope label)
    title: str
    info_lines: tuple = ()
    columns: tuple = ()
    rows: tuple = ()
    row_height: float = 22
    note: str = ''
    signature: tuple = ()
    summary: tuple = ()       # envelope: ((label, value), ...)
    sheet: tuple = (1, 1)     # (sheet number, sheets for this table)
    qr_url: str = ''
    qr_png: bytes | None = None


@dataclass(frozen=True)
class RenderedDocument:
    title: str
    doc_type: str
    activity_count: int
    pages: tuple
    generated_at: str = ''


def page_size(orientation: str) -> tuple[float, float]:
    if orientation == LANDSCAPE:
        return A4_H, A4_W
    return A4_W, A4_H


def page_capacity(config: PrintConfig, orientation: str, row_height: float,
                  reserved: float) -> int:
    """Number of table rows that fit on one page (at least 1)."""
    _, height = page_size(orientation)
    usable = height - (config.margin_top + config.margin_bottom) * MM_TO_PT
    usable -= reserved + FOOTER_HEIGHT
    return max(1, math.floor(usable / row_height))


def venue_index(venues: list[Venue]) -> dict:
    """Map activity id -> (venue, schedule), first scheduled venue wins."""
    index = {}
    for venue in venues:
        for schedule in venue.schedules:
            index.setdefault(schedule.activity_id, (venue, schedule))
    return index


def _paginate(rows: list, capacity: int) -> list[list]:
    if not rows:
        return [[]]
    return [rows[i:i + capacity] for i in range(0, len(rows), capacity)]


@dataclass(frozen=True)
class RenderContext:
    config: PrintConfig
    directory: Directory
    scope_label: str
    venue_lookup: dict
    qr_factory: object

    @property
    def heading(self) -> tuple:
        return (self.config.header_title, self.scope_label)

    def schedule_for(self, activity_id: str) -> tuple[Venue | None, VenueSchedule | None]:
        return self.venue_lookup.get(activity_id, (None, None))

    def info_lines(self, activity: Activity, with_time: bool = True) -> list[str]:
        lines = [f'Activity: {activity.name}']
        venue, schedule = self.schedule_for(activity.id)
        if self.config.include_venue_date and schedule is not None:
            place = f'{venue.name} {schedule.room}'.strip()
            date = schedule.date
            if with_time and schedule.time_range:
                date = f'{date} ({schedule.time_range})'
            lines.append(f'Venue: {place} | Date: {date}')
        return lines

    def team_cell(self, team: Team) -> str:
        return f'{team.name}\n{self.directory.school_name(team)}'


def _table_pages(ctx: RenderContext, kind: str, activity: Activity, columns: list,
                 rows: list, info_lines: list, note: str = '',
                 signature: tuple = (), merge_cols: int = 0) -> list[Page]:
    """Split rows over as many landscape pages as needed."""
    row_height = ROW_HEIGHTS[kind]
    reserved = (HEADING_HEIGHT + TITLE_HEIGHT
                + len(info_lines) * INFO_LINE_HEIGHT + INFO_PADDING
                + TABLE_HEADER_HEIGHT)
    if note:
        reserved += NOTE_HEIGHT
    if signature:
        reserved += SIGNATURE_HEIGHT
    capacity = page_capacity(ctx.config, LANDSCAPE, row_height, reserved)

    chunks = _paginate(rows, capacity)
    pages = []
    for i, chunk in enumerate(chunks):
        if merge_cols:
            chunk = _blank_repeated(chunk, merge_cols)
        pages.append(Page(
            kind=kind,
            activity_id=activity.id,
            orientation=LANDSCAPE,
            heading=ctx.heading,
            title=PAGE_TITLES[kind],
            info_lines=tuple(info_lines),
            columns=tuple(columns),
            rows=tuple(tuple(r) for r in chunk),
            row_height=row_height,
            note=note,
            signature=tuple(signature),
            sheet=(i + 1, len(chunks)),
        ))
    return pages


def _blank_repeated(rows: list, n: int) -> list:
    """Blank the first n cells of a row when they repeat the row above."""
    merged = []
    previous = None
    for row in rows:
        key = tuple(row[:n]) if len(row) > 1 else None
        if key is not None and key == previous:
            row = ('',) * n + tuple(row[n:])
        merged.append(tuple(row))
        previous = key
    return merged


# --- Page builders ---

def build_envelope_page(ctx: RenderContext, activity: Activity, teams: list[Team],
                        judges: list[Judge]) -> list[Page]:
    venue, schedule = None, None
    if ctx.config.include_venue_date:
        venue, schedule = ctx.schedule_for(activity.id)
    levels = ', '.join(activity.levels) or '-'
    place = 'Not yet assigned'
    if venue is not None:
        place = f'{venue.name} {schedule.room}'.strip()
    date = schedule.date if schedule and schedule.date else '-'
    time_range = schedule.time_range if schedule and schedule.time_range else 'See main schedule'
    return [Page(
        kind=ENVELOPE,
        activity_id=activity.id,
        orientation=PORTRAIT,
        heading=ctx.heading,
        title=PAGE_TITLES[ENVELOPE],
        info_lines=(
            f'Activity: {activity.name}',
            f'Levels: {levels}',
            f'Venue: {place}',
            f'Date: {date} ({time_range})',
        ),
        summary=(
            ('Teams competing', f'{len(teams)} teams'),
            ('Judges', f'{len(judges)} judges'),
        ),
        signature=(f'Chair of judges {DOTTED_NAME}',),
    )]


def build_judge_signin_pages(ctx: RenderContext, activity: Activity,
                             judges: list[Judge]) -> list[Page]:
    columns = [
        Column('No.', 0.5), Column('Name', 2.4), Column('Position', 1.8),
        Column('School / Affiliation', 2.4),
        Column('Arrival time', 0.9), Column('Signature', 1.3),
        Column('Departure time', 0.9), Column('Signature', 1.3),
    ]
    rows = [(str(i + 1), j.name, j.role, j.school_name, '', '', '', '')
            for i, j in enumerate(judges)]
    if not rows:
        rows = [(NO_JUDGES_TEXT,)]
    return _table_pages(ctx, JUDGE_SIGNIN, activity, columns, rows,
                        ctx.info_lines(activity))


def _member_rows(ctx: RenderContext, teams: list[Team], member_kind: str) -> list:
    rows = []
    for i, team in enumerate(teams):
        members = getattr(team.members, member_kind)
        for member in members:
            rows.append((str(i + 1), ctx.team_cell(team), member.display_name,
                         '', '', '', ''))
    return rows


def build_competitor_signin_pages(ctx: RenderContext, activity: Activity,
                                  teams: list[Team], kind: str) -> list[Page]:
    """Student or teacher sign-in sheet; kind is STUDENT_SIGNIN or TEACHER_SIGNIN."""
    member_kind = 'students' if kind == STUDENT_SIGNIN else 'teachers'
    columns = [
        Column('No.', 0.5), Column('Team / School', 2.8), Column('Member', 2.8),
        Column('Arrival time', 0.9), Column('Signature', 1.3),
        Column('Departure time', 0.9), Column('Signature', 1.3),
    ]
    rows = _member_rows(ctx, teams, member_kind)
    if not rows:
        rows = [(NO_DATA_TEXT,)]
    return _table_pages(ctx, kind, activity, columns, rows,
                        ctx.info_lines(activity), merge_cols=2)


def build_individual_score_pages(ctx: RenderContext, activity: Activity,
                                 teams: list[Team], judge: Judge) -> list[Page]:
    criteria = ctx.config.criteria_count
    columns = ([Column('No.', 0.5), Column('Team / School', 3.2)]
               + [Column(f'C{i + 1}', 0.55) for i in range(criteria)]
               + [Column('Total (100)', 1.0)])
    rows = [(str(i + 1), ctx.team_cell(t)) + ('',) * (criteria + 1)
            for i, t in enumerate(teams)]
    if not rows:
        rows = [(NO_DATA_TEXT,)]
    info = ctx.info_lines(activity, with_time=False)
    affiliation = f' from {judge.school_name}' if judge.school_name else ''
    info.insert(1, f'Judge: {judge.name} ({judge.role}){affiliation}')
    note = ('Instructions: 1. Score each criterion as specified. '
            '2. Corrections must be countersigned. 3. Check the total before signing.')
    signature = (f'Signed {DOTTED_NAME} Judge', f'( {judge.name} )')
    return _table_pages(ctx, SCORE_SHEET_INDIVIDUAL, activity, columns, rows,
                        info, note=note, signature=signature)


def build_score_sheet_pages(ctx: RenderContext, activity: Activity, teams: list[Team],
                            judges: list[Judge]) -> list[Page]:
    if ctx.config.include_judges and judges:
        score_cols = len(judges)
    else:
        score_cols = ctx.config.score_columns
    columns = ([Column('No.', 0.5), Column('Team / School', 3.4)]
               + [Column(f'Judge {i + 1}', 0.8) for i in range(score_cols)]
               + [Column('Average', 0.9), Column('Award', 0.9)])
    rows = [(str(i + 1), ctx.team_cell(t)) + ('',) * (score_cols + 2)
            for i, t in enumerate(teams)]
    if not rows:
        rows = [(NO_DATA_TEXT,)]
    chair = find_chair(judges)
    chair_name = chair.name if chair else DOTTED_NAME
    signature = (f'Signed {DOTTED_NAME} Chair of judges', f'( {chair_name} )')
    return _table_pages(ctx, SCORE_SHEET, activity, columns, rows,
                        ctx.info_lines(activity), signature=signature)


def _activity_pages(ctx: RenderContext, doc_type: str, activity: Activity,
                    teams: list[Team], judges: list[Judge]) -> list[Page]:
    if doc_type == ENVELOPE:
        return build_envelope_page(ctx, activity, teams, judges)
    if doc_type == JUDGE_SIGNIN:
        return build_judge_signin_pages(ctx, activity, judges)
    if doc_type == COMPETITOR_SIGNIN:
        return (build_competitor_signin_pages(ctx, activity, teams, STUDENT_SIGNIN)
                + build_competitor_signin_pages(ctx, activity, teams, TEACHER_SIGNIN))
    if doc_type == SCORE_SHEET_INDIVIDUAL:
        pages = []
        for judge in judges:
            pages.extend(build_individual_score_pages(ctx, activity, teams, judge))
        return pages
    if doc_type == SCORE_SHEET:
        return build_score_sheet_pages(ctx, activity, teams, judges)
    if doc_type == FULL_SET:
        pages = []
        for part in (ENVELOPE, JUDGE_SIGNIN, COMPETITOR_SIGNIN,
                     SCORE_SHEET_INDIVIDUAL, SCORE_SHEET):
            pages.extend(_activity_pages(ctx, part, activity, teams, judges))
        return pages
    raise ValueError(f'Unknown document type: {doc_type!r}')


def _attach_qr(ctx: RenderContext, page: Page) -> Page:
    """Add the score-entry QR code; on failure the page keeps no image."""
    url = score_entry_url(ctx.config.qr_base_url, page.activity_id)
    try:
        png = ctx.qr_factory(url)
    except QrGenerationError as e:
        print(f"Warning: QR code skipped for activity {page.activity_id}: {e}")
        png = None
    return dataclasses.replace(page, qr_url=url, qr_png=png)


def render(activity_ids: list[str], doc_type: str, ordered_teams: dict,
           ordered_judges: dict, config: PrintConfig, venue_lookup: dict,
           activities: list[Activity], directory: Directory,
           scope_label: str = '', qr_factory=make_qr_png,
           generated_at: str | None = None) -> RenderedDocument:
    """Render the requested document type for each activity in order.

    Args:
        activity_ids: Activities to include, in print order.
        doc_type: One of DOC_TYPES.
        ordered_teams: {activity_id: ordered teams} from the aggregation step.
        ordered_judges: {activity_id: ordered judges}.
        config: Effective print configuration.
        venue_lookup: {activity_id: (venue, schedule)}, see venue_index().
        activities: Activity records used for names and levels.
        directory: School/cluster lookups for team cells.
        scope_label: Second heading line naming the stage/cluster.
        qr_factory: Callable url -> PNG bytes; raises QrGenerationError.
        generated_at: Timestamp for the footer; defaults to now.
    """
    if doc_type not in DOC_TYPES:
        raise ValueError(f'Unknown document type: {doc_type!r}')

    ctx = RenderContext(config=config, directory=directory, scope_label=scope_label,
                   venue_lookup=venue_lookup, qr_factory=qr_factory)
    activities_by_id = {a.id: a for a in activities}

    pages = []
    included = 0
    for activity_id in activity_ids:
        activity = activities_by_id.get(activity_id)
        if activity is None:
            print(f"Warning: Unknown activity skipped: {activity_id}")
            continue
        included += 1
        teams = ordered_teams.get(activity_id, [])
        judges = ordered_judges.get(activity_id, [])
        for page in _activity_pages(ctx, doc_type, activity, teams, judges):
            if page.kind in QR_PAGE_KINDS:
                page = _attach_qr(ctx, page)
            pages.append(page)

    if generated_at is None:
        generated_at = datetime.datetime.now().strftime('%Y-%m-%d %H:%M')
    return RenderedDocument(
        title=f'{DOC_NAMES[doc_type]} ({included} activities)',
        doc_type=doc_type,
        activity_count=included,
        pages=tuple(pages),
        generated_at=generated_at,
    )
