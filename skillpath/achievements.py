"""
Achievement evaluation.

Each achievement carries exactly one criterion from a closed set, selected by
its ``type`` discriminant:

- ``skill_level``  — one skill at or above a level.
- ``skills_count`` — at least N skills at or above a level.
- ``role_ready``   — readiness of 100 for a role (runs gap analysis).

Earned achievements are never revoked: once an id is in the caller's earned
record it stays earned, whatever the live criterion says. Nothing here
persists results; the caller records what ``newly_earned`` returns.
"""

import logging
from typing import Dict, Iterable, List, Optional, Set, Union

from skillpath.catalog import Catalog
from skillpath.gap_analysis import compute_gaps, compute_readiness
from skillpath.models import (
    Achievement,
    AchievementProgress,
    AchievementStatus,
    UserAchievement,
)
from skillpath.node_state import UserSkillsInput, levels_by_skill
from skillpath.utils import round_half_up

logger = logging.getLogger(__name__)

EarnedInput = Iterable[Union[UserAchievement, str]]


def _earned_ids(already_earned: EarnedInput) -> Set[str]:
    return {
        e.achievement_id if isinstance(e, UserAchievement) else e
        for e in already_earned
    }


def _count_at_level(levels: Dict[str, int], required_level: int) -> int:
    return sum(1 for lvl in levels.values() if lvl >= required_level)


def _role_readiness(role_id: str, levels: Dict[str, int], catalog: Catalog) -> Optional[int]:
    role = catalog.get_role(role_id)
    if role is None:
        logger.debug("Achievement references unknown role %r.", role_id)
        return None
    return compute_readiness(compute_gaps(levels, role, catalog))


def _percent(current: int, required: int) -> int:
    if required <= 0:
        return 100
    return min(100, round_half_up(current / required * 100))


# =========================================================================
# Criterion evaluation
# =========================================================================


def is_criterion_met(
    achievement: Achievement,
    user_skills: UserSkillsInput,
    catalog: Catalog,
) -> bool:
    """Evaluate the achievement's criterion against the live skill levels."""
    levels = levels_by_skill(user_skills)
    criteria = achievement.criteria

    if criteria.type == "skill_level":
        return levels.get(criteria.skill_id, 0) >= criteria.required_level
    if criteria.type == "skills_count":
        return _count_at_level(levels, criteria.required_level) >= criteria.required_count
    if criteria.type == "role_ready":
        readiness = _role_readiness(criteria.role_id, levels, catalog)
        return readiness is not None and readiness >= 100

    logger.warning("Unsupported criterion on achievement %r.", achievement.id)
    return False


def achievement_progress(
    achievement: Achievement,
    user_skills: UserSkillsInput,
    catalog: Catalog,
) -> AchievementProgress:
    levels = levels_by_skill(user_skills)
    criteria = achievement.criteria

    if criteria.type == "skill_level":
        current = levels.get(criteria.skill_id, 0)
        required = criteria.required_level
        return AchievementProgress(
            current=current, required=required, percent=_percent(current, required)
        )

    if criteria.type == "skills_count":
        current = _count_at_level(levels, criteria.required_level)
        required = criteria.required_count
        return AchievementProgress(
            current=current, required=required, percent=_percent(current, required)
        )

    if criteria.type == "role_ready":
        readiness = _role_readiness(criteria.role_id, levels, catalog)
        if readiness is None:
            return AchievementProgress(current=0, required=100, percent=0)
        return AchievementProgress(current=readiness, required=100, percent=readiness)

    return AchievementProgress(current=0, required=0, percent=0)


# =========================================================================
# Catalog-wide queries
# =========================================================================


def newly_earned(
    user_skills: UserSkillsInput,
    already_earned: EarnedInput,
    catalog: Catalog,
) -> List[Achievement]:
    """Achievements whose criterion holds now and that are not yet recorded."""
    earned = _earned_ids(already_earned)
    levels = levels_by_skill(user_skills)
    result = [
        a
        for a in catalog.achievements
        if a.id not in earned and is_criterion_met(a, levels, catalog)
    ]
    if result:
        logger.debug("Newly earned: %s", ", ".join(a.id for a in result))
    return result


def earned_achievements(
    user_skills: UserSkillsInput,
    already_earned: EarnedInput,
    catalog: Catalog,
) -> List[Achievement]:
    """Previously recorded achievements plus those met right now."""
    earned = _earned_ids(already_earned)
    levels = levels_by_skill(user_skills)
    return [
        a
        for a in catalog.achievements
        if a.id in earned or is_criterion_met(a, levels, catalog)
    ]


def upcoming_achievements(
    user_skills: UserSkillsInput,
    already_earned: EarnedInput,
    catalog: Catalog,
) -> List[AchievementStatus]:
    """Unearned achievements with partial progress, closest first."""
    earned = _earned_ids(already_earned)
    levels = levels_by_skill(user_skills)

    upcoming: List[AchievementStatus] = []
    for a in catalog.achievements:
        if a.id in earned:
            continue
        progress = achievement_progress(a, levels, catalog)
        if 0 < progress.percent < 100:
            upcoming.append(AchievementStatus(achievement=a, earned=False, progress=progress))

    upcoming.sort(key=lambda s: -s.progress.percent)
    return upcoming


def achievements_with_status(
    user_skills: UserSkillsInput,
    already_earned: EarnedInput,
    catalog: Catalog,
) -> List[AchievementStatus]:
    """Every catalog achievement with its earned flag, timestamp and progress.

    Plain ids in *already_earned* count as earned but carry no ``earned_at``.
    """
    already_earned = list(already_earned)
    earned = _earned_ids(already_earned)
    records = {
        e.achievement_id: e for e in already_earned if isinstance(e, UserAchievement)
    }
    levels = levels_by_skill(user_skills)

    statuses: List[AchievementStatus] = []
    for a in catalog.achievements:
        record = records.get(a.id)
        statuses.append(
            AchievementStatus(
                achievement=a,
                earned=a.id in earned or is_criterion_met(a, levels, catalog),
                earned_at=record.earned_at if record else None,
                progress=achievement_progress(a, levels, catalog),
            )
        )
    return statuses
