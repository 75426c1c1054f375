"""
Gap analysis: compare a user's skill levels with a role benchmark.

Only the role's directly required skills are scored; their prerequisites are
not. Each requirement is classified as ``met`` (no shortfall), ``close``
(short by one level) or ``gap`` (short by more), and the readiness score is a
priority-weighted mean of per-skill achieved fractions.

Readiness weights (fixed): critical 3, important 2, nice_to_have 1.
"""

import logging
from typing import Dict, List, Optional, Tuple

import numpy as np

from skillpath.catalog import Catalog
from skillpath.models import GapAnalysisResult, GapStatus, RoleBenchmark, SkillGap
from skillpath.node_state import UserSkillsInput, levels_by_skill
from skillpath.utils import MAX_LEVEL, clamp_level, round_half_up

logger = logging.getLogger(__name__)

PRIORITY_WEIGHTS: Dict[str, int] = {"critical": 3, "important": 2, "nice_to_have": 1}
PRIORITY_ORDER: Dict[str, int] = {"critical": 0, "important": 1, "nice_to_have": 2}

# A shortfall of at most this many levels is "close" rather than a real gap.
CLOSE_GAP_THRESHOLD = 1


def classify_gap(gap: int) -> GapStatus:
    if gap <= 0:
        return "met"
    if gap <= CLOSE_GAP_THRESHOLD:
        return "close"
    return "gap"


def compute_gaps(
    user_skills: UserSkillsInput,
    role: RoleBenchmark,
    catalog: Optional[Catalog] = None,
) -> List[SkillGap]:
    """One ``SkillGap`` per required skill of *role*, in role order."""
    levels = levels_by_skill(user_skills)
    gaps: List[SkillGap] = []

    for requirement in role.required_skills:
        current = levels.get(requirement.skill_id, 0)
        required = clamp_level(requirement.minimum_level)
        gap = max(0, required - current)

        skill = catalog.get_skill(requirement.skill_id) if catalog else None
        gaps.append(
            SkillGap(
                skill_id=requirement.skill_id,
                skill_name=skill.name if skill else requirement.skill_id,
                current_level=current,
                required_level=required,
                gap=gap,
                priority=requirement.priority,
                status=classify_gap(gap),
            )
        )
    return gaps


def compute_readiness(gaps: List[SkillGap]) -> int:
    """Priority-weighted readiness, 0–100. No requirements means 100."""
    if not gaps:
        return 100

    fractions = np.array(
        [
            min(g.current_level, g.required_level) / g.required_level
            if g.required_level > 0
            else 1.0
            for g in gaps
        ],
        dtype=np.float64,
    )
    weights = np.array([PRIORITY_WEIGHTS[g.priority] for g in gaps], dtype=np.float64)

    score = round_half_up(float(np.average(fractions, weights=weights)) * 100)
    return max(0, min(100, score))


def categorize_gaps(gaps: List[SkillGap]) -> Tuple[List[SkillGap], List[SkillGap]]:
    """Split into (gaps, strengths).

    Gaps: critical first, then largest shortfall. Strengths: largest surplus
    over the requirement first.
    """
    open_gaps = sorted(
        (g for g in gaps if g.status != "met"),
        key=lambda g: (PRIORITY_ORDER[g.priority], -g.gap),
    )
    strengths = sorted(
        (g for g in gaps if g.status == "met"),
        key=lambda g: -(g.current_level - g.required_level),
    )
    return open_gaps, strengths


def analyze_gaps(
    user_skills: UserSkillsInput,
    role: RoleBenchmark,
    catalog: Optional[Catalog] = None,
) -> GapAnalysisResult:
    all_gaps = compute_gaps(user_skills, role, catalog)
    open_gaps, strengths = categorize_gaps(all_gaps)
    readiness = compute_readiness(all_gaps)

    logger.debug(
        "Role %r: readiness=%d, gaps=%d, strengths=%d.",
        role.id, readiness, len(open_gaps), len(strengths),
    )
    return GapAnalysisResult(
        gaps=open_gaps,
        strengths=strengths,
        readiness_score=readiness,
        target_role=role,
    )


# =========================================================================
# Presentation helpers
# =========================================================================


def critical_gaps(gaps: List[SkillGap]) -> List[SkillGap]:
    return [g for g in gaps if g.priority == "critical" and g.status == "gap"]


def almost_there(gaps: List[SkillGap]) -> List[SkillGap]:
    return [g for g in gaps if g.status == "close"]


def estimate_hours_to_ready(gaps: List[SkillGap], catalog: Catalog) -> int:
    """Rough hours to close every gap: a level is a fifth of the skill's effort."""
    total = 0.0
    for g in gaps:
        if g.gap <= 0:
            continue
        skill = catalog.get_skill(g.skill_id)
        if skill is None:
            continue
        total += skill.estimated_hours / MAX_LEVEL * g.gap
    return round_half_up(total)
