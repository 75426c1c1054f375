"""
Pydantic models for the skill progression engine.

Catalog: skills, role benchmarks, achievements (immutable, loaded once).
User state: declared skill levels and earned achievements (caller-owned snapshots).
Derived: graph nodes/edges, skill gaps, gap analysis results, progress records.
"""

from datetime import datetime, timezone
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, computed_field


# =========================================================================
# Literals
# =========================================================================

SkillCategory = Literal["technical", "domain", "soft", "certification"]
SkillPriority = Literal["critical", "important", "nice_to_have"]
SeniorityLevel = Literal["entry", "mid", "senior", "lead"]
SkillSource = Literal["self_reported", "llm_extracted", "verified"]
EvidenceType = Literal["course", "project", "certification", "experience"]
NodeState = Literal["locked", "unlocked", "in_progress", "completed"]
EdgeType = Literal["prerequisite", "recommended", "progression"]
GapStatus = Literal["met", "close", "gap"]
AchievementType = Literal["skill_mastery", "milestone", "streak", "special"]

NODE_STATES: List[str] = ["locked", "unlocked", "in_progress", "completed"]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =========================================================================
# Catalog models
# =========================================================================


class Skill(BaseModel):
    """A single entry of the skill catalog."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    category: SkillCategory
    description: str = ""
    prerequisites: List[str] = Field(default_factory=list)
    tier: int = Field(ge=1, le=5)
    estimated_hours: float = Field(default=0.0, ge=0)
    domain: Optional[str] = None
    icon: Optional[str] = None


class RequiredSkill(BaseModel):
    """One requirement line of a role benchmark."""

    model_config = ConfigDict(frozen=True)

    skill_id: str
    minimum_level: int = Field(ge=0, le=5)
    priority: SkillPriority


class RoleBenchmark(BaseModel):
    """A target role and the skill levels it requires."""

    model_config = ConfigDict(frozen=True)

    id: str
    role_name: str
    seniority_level: SeniorityLevel
    required_skills: List[RequiredSkill] = Field(default_factory=list)
    description: str = ""
    domain: Optional[str] = None
    icon: Optional[str] = None


class SkillLevelCriterion(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["skill_level"] = "skill_level"
    skill_id: str
    required_level: int = 0


class SkillsCountCriterion(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["skills_count"] = "skills_count"
    required_count: int = 0
    required_level: int = 1


class RoleReadyCriterion(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["role_ready"] = "role_ready"
    role_id: str


AchievementCriterion = Annotated[
    Union[SkillLevelCriterion, SkillsCountCriterion, RoleReadyCriterion],
    Field(discriminator="type"),
]


class Achievement(BaseModel):
    """Catalog entry for an unlockable badge."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str = ""
    type: AchievementType
    criteria: AchievementCriterion
    badge_icon: str = ""


# =========================================================================
# User state
# =========================================================================


class UserSkill(BaseModel):
    """A user's declared level for one skill.

    ``level`` is not range-checked here; the engine clamps it to 0–5.
    """

    model_config = ConfigDict(frozen=True)

    skill_id: str
    level: int = 0
    source: SkillSource = "self_reported"
    evidence_type: Optional[EvidenceType] = None
    updated_at: datetime = Field(default_factory=_utcnow)


class UserAchievement(BaseModel):
    model_config = ConfigDict(frozen=True)

    achievement_id: str
    earned_at: datetime = Field(default_factory=_utcnow)


# =========================================================================
# Derived graph models
# =========================================================================


class Position(BaseModel):
    model_config = ConfigDict(frozen=True)

    x: float
    y: float


class SkillNode(BaseModel):
    """A positioned skill in a progression graph."""

    model_config = ConfigDict(frozen=True)

    id: str
    skill_id: str
    position: Position
    state: NodeState
    completion_percent: int = Field(ge=0, le=100)
    tier: int


class SkillEdge(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    source_node_id: str
    target_node_id: str
    type: EdgeType = "prerequisite"


class SkillGraph(BaseModel):
    """Nodes and edges produced by one build.

    ``generated_at`` is bookkeeping for the caller; it never influences
    positions or states.
    """

    model_config = ConfigDict(frozen=True)

    target_role_id: str = ""
    nodes: List[SkillNode] = Field(default_factory=list)
    edges: List[SkillEdge] = Field(default_factory=list)
    generated_at: datetime = Field(default_factory=_utcnow)

    def is_empty(self) -> bool:
        return not self.nodes


class GraphStats(BaseModel):
    total_nodes: int = 0
    completed_nodes: int = 0
    in_progress_nodes: int = 0
    unlocked_nodes: int = 0
    locked_nodes: int = 0
    completion_percent: int = 0


# =========================================================================
# Gap analysis models
# =========================================================================


class SkillGap(BaseModel):
    model_config = ConfigDict(frozen=True)

    skill_id: str
    skill_name: str
    current_level: int
    required_level: int
    gap: int
    priority: SkillPriority
    status: GapStatus


class GapAnalysisResult(BaseModel):
    """Gaps (close/gap), strengths (met), and the aggregate readiness score."""

    model_config = ConfigDict(frozen=True)

    gaps: List[SkillGap] = Field(default_factory=list)
    strengths: List[SkillGap] = Field(default_factory=list)
    readiness_score: int = Field(ge=0, le=100)
    target_role: RoleBenchmark


# =========================================================================
# Achievement progress models
# =========================================================================


class AchievementProgress(BaseModel):
    model_config = ConfigDict(frozen=True)

    current: int
    required: int
    percent: int


class AchievementStatus(BaseModel):
    """An achievement paired with the user's standing against it."""

    achievement: Achievement
    earned: bool
    earned_at: Optional[datetime] = None
    progress: AchievementProgress


# =========================================================================
# Catalog validation report
# =========================================================================


class CatalogReport(BaseModel):
    """Summary written by ``skillpath validate``."""

    is_dag: bool = True
    cycles: List[List[str]] = Field(default_factory=list)
    dangling_prerequisites: List[List[str]] = Field(default_factory=list)
    dangling_requirements: List[List[str]] = Field(default_factory=list)
    achievement_issues: List[str] = Field(default_factory=list)
    tier_inversions: List[List[str]] = Field(default_factory=list)
    metrics: Dict[str, Any] = Field(default_factory=dict)

    @computed_field
    @property
    def ok(self) -> bool:
        return (
            self.is_dag
            and not self.dangling_prerequisites
            and not self.dangling_requirements
            and not self.achievement_issues
        )
