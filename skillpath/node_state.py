"""
Node state computation: locked / unlocked / in_progress / completed.

States are recomputed from the current user skill snapshot on every call;
nothing is cached between calls.
"""

import logging
from typing import Dict, List, Mapping, Sequence, Union

from skillpath.models import NodeState, Skill, UserSkill
from skillpath.utils import clamp_level, round_half_up

logger = logging.getLogger(__name__)

# Level at which a prerequisite counts as satisfied for unlocking dependents.
PREREQUISITE_UNLOCK_LEVEL = 1
MASTERY_LEVEL = 5

UserSkillsInput = Union[Sequence[UserSkill], Mapping[str, int]]


def levels_by_skill(user_skills: UserSkillsInput) -> Dict[str, int]:
    """Map skill id → clamped level. Later duplicates win."""
    if isinstance(user_skills, Mapping):
        return {sid: clamp_level(lvl) for sid, lvl in user_skills.items()}
    return {us.skill_id: clamp_level(us.level) for us in user_skills}


def state_from_levels(skill: Skill, levels: Mapping[str, int]) -> NodeState:
    """State of *skill* given levels already produced by ``levels_by_skill``."""
    own_level = levels.get(skill.id, 0)

    if own_level >= MASTERY_LEVEL:
        return "completed"

    for prereq_id in skill.prerequisites:
        if levels.get(prereq_id, 0) < PREREQUISITE_UNLOCK_LEVEL:
            return "locked"

    if own_level == 0:
        return "unlocked"
    return "in_progress"


def completion_from_levels(skill_id: str, levels: Mapping[str, int]) -> int:
    level = levels.get(skill_id, 0)
    percent = round_half_up(level / MASTERY_LEVEL * 100)
    return max(0, min(100, percent))


def compute_state(skill: Skill, user_skills: UserSkillsInput) -> NodeState:
    """Return the progression state of *skill* for the given user levels."""
    return state_from_levels(skill, levels_by_skill(user_skills))


def compute_completion(skill_id: str, user_skills: UserSkillsInput) -> int:
    """Percentage of the way to mastery (level 5), 0–100."""
    return completion_from_levels(skill_id, levels_by_skill(user_skills))


# =========================================================================
# Queries over many skills
# =========================================================================


def skills_in_state(
    skills: Sequence[Skill],
    user_skills: UserSkillsInput,
    state: NodeState,
) -> List[Skill]:
    levels = levels_by_skill(user_skills)
    return [s for s in skills if state_from_levels(s, levels) == state]


def would_unlock(
    target: Skill,
    if_skill_id: str,
    if_level: int,
    user_skills: UserSkillsInput,
) -> bool:
    """True if *target* is locked now but would not be with *if_skill_id* at *if_level*."""
    levels = levels_by_skill(user_skills)
    simulated = dict(levels)
    simulated[if_skill_id] = clamp_level(if_level)

    return (
        state_from_levels(target, levels) == "locked"
        and state_from_levels(target, simulated) != "locked"
    )


def next_unlockable_skills(
    completed_skill_id: str,
    skills: Sequence[Skill],
    user_skills: UserSkillsInput,
) -> List[Skill]:
    """Direct dependents of *completed_skill_id* that reaching the unlock level would open."""
    levels = levels_by_skill(user_skills)
    result = [
        s
        for s in skills
        if completed_skill_id in s.prerequisites
        and would_unlock(s, completed_skill_id, PREREQUISITE_UNLOCK_LEVEL, levels)
    ]
    logger.debug(
        "%d skill(s) would unlock after %r.", len(result), completed_skill_id
    )
    return result
