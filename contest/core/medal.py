"""Medal tiers, ranking and result statistics for both stages.

Tiers are inclusive lower bounds checked highest first:
    >= 80 Gold, >= 70 Silver, >= 60 Bronze, otherwise Participant.
A score of -1 marks a team that did not take part; a manual override
replaces the computed tier unless it is one of the "auto" values.
"""

from .models import AREA, CLUSTER, STAGES, Team

GOLD = 'Gold'
SILVER = 'Silver'
BRONZE = 'Bronze'
PARTICIPANT = 'Participant'
NOT_PARTICIPATING = 'Not participating'
UNKNOWN = ''

NOT_PARTICIPATING_SCORE = -1

MEDAL_THRESHOLDS = [(80, GOLD), (70, SILVER), (60, BRONZE)]

AUTO_OVERRIDES = {'', '- auto -', 'auto'}


def parse_score(value) -> float | None:
    """Lenient float parse; None for empty, invalid or NaN."""
    if value is None or isinstance(value, bool):
        return None
    try:
        score = float(str(value).strip())
    except ValueError:
        return None
    if score != score:
        return None
    return score


def is_auto_override(override) -> bool:
    if override is None:
        return True
    return str(override).strip().lower() in AUTO_OVERRIDES


def resolve_medal(score, manual_override=None) -> str:
    """Map a score and optional manual override to a medal tier."""
    value = parse_score(score)
    if value == NOT_PARTICIPATING_SCORE:
        return NOT_PARTICIPATING
    if not is_auto_override(manual_override):
        return str(manual_override).strip()
    if value is None:
        return UNKNOWN
    for threshold, tier in MEDAL_THRESHOLDS:
        if value >= threshold:
            return tier
    return PARTICIPANT


def resolve_area_medal(team: Team) -> str:
    """Medal from the team's area-stage result."""
    info = team.stage_info
    if info.malformed:
        return UNKNOWN
    return resolve_medal(info.score, info.medal)


def resolve_team_medal(team: Team, stage: str) -> str:
    if stage == AREA:
        return resolve_area_medal(team)
    return resolve_medal(team.score, team.medal_override)


def stage_score(team: Team, stage: str) -> float | None:
    if stage == AREA:
        return None if team.stage_info.malformed else parse_score(team.stage_info.score)
    return parse_score(team.score)


def validate_score(score) -> float:
    """Return the score as a float, or raise ValueError when out of range.

    Accepted: 0-100 inclusive, or -1 for "not participating".
    """
    value = parse_score(score)
    if value is None:
        raise ValueError(f'Score is not a number: {score!r}')
    if value != NOT_PARTICIPATING_SCORE and not 0 <= value <= 100:
        raise ValueError(f'Score must be between 0 and 100 (or -1): {value}')
    return value


def auto_rank(teams: list[Team], stage: str = CLUSTER) -> dict[str, int]:
    """Competition ranking (1, 2, 2, 4) by score, highest first.

    Teams without a positive score get no rank.

    Returns:
        {team_id: rank}
    """
    if stage not in STAGES:
        raise ValueError(f'Unknown stage: {stage!r}')
    scored = [(t, stage_score(t, stage) or 0.0) for t in teams]
    scored.sort(key=lambda pair: -pair[1])

    ranks = {}
    current_rank = 1
    for i, (team, score) in enumerate(scored):
        if i > 0 and score < scored[i - 1][1]:
            current_rank = i + 1
        if score > 0:
            ranks[team.id] = current_rank
    return ranks


def medal_summary(teams: list[Team], stage: str = CLUSTER) -> dict:
    """Count medals among teams that have a result for the stage."""
    counts = {'total': 0, 'gold': 0, 'silver': 0, 'bronze': 0}
    for team in teams:
        score = stage_score(team, stage)
        if stage == CLUSTER and not (score and score > 0):
            continue
        if stage == AREA and score is None:
            continue
        counts['total'] += 1
        medal = resolve_team_medal(team, stage)
        if GOLD in medal:
            counts['gold'] += 1
        elif SILVER in medal:
            counts['silver'] += 1
        elif BRONZE in medal:
            counts['bronze'] += 1
    return counts
