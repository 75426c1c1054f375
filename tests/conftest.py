import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from skillpath.catalog import Catalog, load_default_catalog
from skillpath.models import (
    Achievement,
    RequiredSkill,
    RoleBenchmark,
    Skill,
    UserSkill,
)

SAMPLE_CATALOG_DIR = os.path.join(os.path.dirname(__file__), "sample_catalog")


def make_skill(skill_id, tier=1, prerequisites=(), hours=10, category="technical"):
    return Skill(
        id=skill_id,
        name=skill_id.upper(),
        category=category,
        prerequisites=list(prerequisites),
        tier=tier,
        estimated_hours=hours,
    )


def make_role(role_id, requirements):
    """*requirements* is a list of (skill_id, minimum_level, priority)."""
    return RoleBenchmark(
        id=role_id,
        role_name=role_id.title(),
        seniority_level="entry",
        required_skills=[
            RequiredSkill(skill_id=sid, minimum_level=lvl, priority=prio)
            for sid, lvl, prio in requirements
        ],
    )


def levels(**kwargs):
    return [UserSkill(skill_id=sid, level=lvl) for sid, lvl in kwargs.items()]


@pytest.fixture()
def ab_catalog():
    """Skill A (tier 1) → skill B (tier 2); role R needs B at 3 (critical)."""
    skills = [make_skill("A", tier=1), make_skill("B", tier=2, prerequisites=["A"])]
    role = make_role("R", [("B", 3, "critical")])
    achievements = [
        Achievement.model_validate({
            "id": "b_three", "name": "B3", "type": "skill_mastery",
            "criteria": {"type": "skill_level", "skill_id": "B", "required_level": 3},
        }),
        Achievement.model_validate({
            "id": "two_skills", "name": "Two", "type": "milestone",
            "criteria": {"type": "skills_count", "required_count": 2, "required_level": 2},
        }),
        Achievement.model_validate({
            "id": "r_ready", "name": "R ready", "type": "milestone",
            "criteria": {"type": "role_ready", "role_id": "R"},
        }),
    ]
    return Catalog(skills=skills, roles=[role], achievements=achievements, version="test")


@pytest.fixture()
def diamond_catalog():
    """Diamond plus an extra branch:

        base ─┬─> left  ─┬─> top
              └─> right ─┘
        other (unrelated, tier 1)
    """
    skills = [
        make_skill("base", tier=1, hours=50),
        make_skill("other", tier=1),
        make_skill("left", tier=2, prerequisites=["base"], hours=20),
        make_skill("right", tier=2, prerequisites=["base"]),
        make_skill("top", tier=3, prerequisites=["left", "right"], hours=100),
    ]
    roles = [
        make_role("top_role", [("top", 3, "critical")]),
        make_role("mixed", [
            ("base", 4, "critical"),
            ("left", 3, "important"),
            ("right", 2, "nice_to_have"),
        ]),
    ]
    return Catalog(skills=skills, roles=roles)


@pytest.fixture()
def cyclic_catalog():
    """x → y → z → x, plus a self-referencing skill and a dangling prerequisite."""
    skills = [
        make_skill("x", tier=1, prerequisites=["z"]),
        make_skill("y", tier=2, prerequisites=["x"]),
        make_skill("z", tier=3, prerequisites=["y", "ghost"]),
        make_skill("selfish", tier=1, prerequisites=["selfish"]),
    ]
    roles = [
        make_role("loop", [("z", 2, "critical")]),
        make_role("self", [("selfish", 1, "critical"), ("missing", 3, "important")]),
    ]
    return Catalog(skills=skills, roles=roles)


@pytest.fixture(scope="session")
def default_catalog():
    return load_default_catalog()


@pytest.fixture()
def tmp_db(tmp_path):
    """Return a DB path inside a temporary directory."""
    return str(tmp_path / "test_users.db")
