"""
pytest suite for achievement evaluation.
"""

import logging
from datetime import datetime, timezone

import pytest

from conftest import levels
from skillpath.achievements import (
    achievement_progress,
    achievements_with_status,
    earned_achievements,
    is_criterion_met,
    newly_earned,
    upcoming_achievements,
)
from skillpath.catalog import Catalog
from skillpath.models import Achievement, UserAchievement


def _ids(items):
    return [a.id for a in items]


def _achievement(aid, criteria, kind="milestone"):
    return Achievement.model_validate(
        {"id": aid, "name": aid, "type": kind, "criteria": criteria}
    )


# =========================================================================
# Test: is_criterion_met
# =========================================================================


class TestCriteria:

    def test_skill_level(self, ab_catalog):
        a = ab_catalog.get_achievement("b_three")
        assert not is_criterion_met(a, levels(B=2), ab_catalog)
        assert is_criterion_met(a, levels(B=3), ab_catalog)
        assert is_criterion_met(a, levels(B=5), ab_catalog)

    def test_skills_count(self, ab_catalog):
        a = ab_catalog.get_achievement("two_skills")
        assert not is_criterion_met(a, levels(A=2, B=1), ab_catalog)
        assert is_criterion_met(a, levels(A=2, B=2), ab_catalog)

    def test_skills_count_includes_non_catalog_skills(self, ab_catalog):
        a = ab_catalog.get_achievement("two_skills")
        assert is_criterion_met(a, levels(A=2, elsewhere=4), ab_catalog)

    def test_role_ready(self, ab_catalog):
        a = ab_catalog.get_achievement("r_ready")
        assert not is_criterion_met(a, levels(A=5, B=2), ab_catalog)
        assert is_criterion_met(a, levels(B=3), ab_catalog)

    def test_role_ready_unknown_role(self):
        a = _achievement("ghost_ready", {"type": "role_ready", "role_id": "ghost"})
        catalog = Catalog(achievements=[a])
        assert not is_criterion_met(a, levels(x=5), catalog)

    def test_zero_count_always_met(self):
        a = _achievement("welcome", {"type": "skills_count", "required_count": 0})
        assert is_criterion_met(a, [], Catalog(achievements=[a]))

    def test_unknown_criterion_type_rejected(self):
        from pydantic import ValidationError

        with pytest.raises(ValidationError):
            _achievement("bad", {"type": "streak_days", "days": 7})


# =========================================================================
# Test: newly_earned / earned_achievements
# =========================================================================


class TestNewlyEarned:

    def test_all_met_in_catalog_order(self, ab_catalog):
        result = newly_earned(levels(A=2, B=3), [], ab_catalog)
        assert _ids(result) == ["b_three", "two_skills", "r_ready"]

    def test_partial(self, ab_catalog):
        assert _ids(newly_earned(levels(A=2, B=2), [], ab_catalog)) == ["two_skills"]

    def test_idempotent(self, ab_catalog):
        us = levels(A=2, B=3)
        first = newly_earned(us, [], ab_catalog)
        earned = [UserAchievement(achievement_id=a.id) for a in first]
        assert newly_earned(us, earned, ab_catalog) == []

    def test_accepts_plain_ids(self, ab_catalog):
        result = newly_earned(levels(A=2, B=3), ["b_three", "r_ready"], ab_catalog)
        assert _ids(result) == ["two_skills"]

    def test_never_revoked(self, ab_catalog):
        earned = [UserAchievement(achievement_id="b_three")]
        assert newly_earned([], earned, ab_catalog) == []
        assert _ids(earned_achievements([], earned, ab_catalog)) == ["b_three"]

    def test_earned_combines_record_and_live(self, ab_catalog):
        result = earned_achievements(levels(A=2, B=2), ["r_ready"], ab_catalog)
        assert _ids(result) == ["two_skills", "r_ready"]

    def test_default_catalog_empty_user(self, default_catalog):
        assert _ids(newly_earned([], [], default_catalog)) == ["early_adopter"]

    def test_default_catalog_python_practitioner(self, default_catalog):
        result = _ids(newly_earned(levels(python_basics=3), ["early_adopter"], default_catalog))
        assert result == ["first_skill", "python_intermediate"]


# =========================================================================
# Test: progress
# =========================================================================


class TestProgress:

    def test_skill_level_progress(self, ab_catalog):
        p = achievement_progress(ab_catalog.get_achievement("b_three"), levels(B=2), ab_catalog)
        assert (p.current, p.required, p.percent) == (2, 3, 67)

    def test_progress_capped(self, ab_catalog):
        p = achievement_progress(ab_catalog.get_achievement("b_three"), levels(B=5), ab_catalog)
        assert p.percent == 100

    def test_skills_count_progress(self, ab_catalog):
        p = achievement_progress(
            ab_catalog.get_achievement("two_skills"), levels(A=3, B=1), ab_catalog
        )
        assert (p.current, p.required, p.percent) == (1, 2, 50)

    def test_role_ready_progress_is_readiness(self, ab_catalog):
        p = achievement_progress(ab_catalog.get_achievement("r_ready"), levels(B=1), ab_catalog)
        assert (p.current, p.required, p.percent) == (33, 100, 33)

    def test_unknown_role_progress(self):
        a = _achievement("ghost_ready", {"type": "role_ready", "role_id": "ghost"})
        p = achievement_progress(a, levels(x=5), Catalog(achievements=[a]))
        assert (p.current, p.required, p.percent) == (0, 100, 0)

    def test_zero_required_is_complete(self):
        a = _achievement("welcome", {"type": "skills_count", "required_count": 0})
        assert achievement_progress(a, [], Catalog(achievements=[a])).percent == 100


# =========================================================================
# Test: upcoming / with status
# =========================================================================


class TestUpcoming:

    def test_partial_progress_only(self, ab_catalog):
        upcoming = upcoming_achievements(levels(B=1), [], ab_catalog)
        assert [s.achievement.id for s in upcoming] == ["b_three", "r_ready"]
        assert all(not s.earned for s in upcoming)

    def test_sorted_closest_first(self, ab_catalog):
        upcoming = upcoming_achievements(levels(A=3, B=1), [], ab_catalog)
        assert [s.achievement.id for s in upcoming] == ["two_skills", "b_three", "r_ready"]
        percents = [s.progress.percent for s in upcoming]
        assert percents == sorted(percents, reverse=True)

    def test_excludes_earned_and_untouched(self, ab_catalog):
        upcoming = upcoming_achievements(levels(B=1), ["b_three"], ab_catalog)
        assert [s.achievement.id for s in upcoming] == ["r_ready"]
        assert upcoming_achievements([], [], ab_catalog) == []


class TestWithStatus:

    def test_every_achievement_listed(self, ab_catalog):
        stamp = datetime(2024, 3, 1, tzinfo=timezone.utc)
        earned = [UserAchievement(achievement_id="r_ready", earned_at=stamp)]
        statuses = achievements_with_status(levels(A=2, B=2), earned, ab_catalog)

        by_id = {s.achievement.id: s for s in statuses}
        assert list(by_id) == ["b_three", "two_skills", "r_ready"]
        assert by_id["b_three"].earned is False
        assert by_id["two_skills"].earned is True
        assert by_id["two_skills"].earned_at is None
        assert by_id["r_ready"].earned is True
        assert by_id["r_ready"].earned_at == stamp
        assert by_id["r_ready"].progress.percent == 67

    def test_plain_ids_count_as_earned(self, ab_catalog):
        statuses = achievements_with_status(levels(A=2, B=2), ["b_three"], ab_catalog)
        by_id = {s.achievement.id: s for s in statuses}
        assert by_id["b_three"].earned is True
        assert by_id["b_three"].earned_at is None
        assert by_id["b_three"].progress.percent == 67
        assert by_id["r_ready"].earned is False

    def test_mixed_records_and_ids(self, ab_catalog):
        stamp = datetime(2024, 3, 1, tzinfo=timezone.utc)
        earned = ["b_three", UserAchievement(achievement_id="r_ready", earned_at=stamp)]
        by_id = {s.achievement.id: s for s in achievements_with_status([], earned, ab_catalog)}
        assert by_id["b_three"].earned and by_id["r_ready"].earned
        assert by_id["r_ready"].earned_at == stamp
        assert by_id["two_skills"].earned is False


class TestLogging:

    def test_engine_logs_at_debug(self, ab_catalog, caplog):
        with caplog.at_level(logging.DEBUG, logger="skillpath.achievements"):
            newly_earned(levels(A=2, B=3), [], ab_catalog)
        records = [r for r in caplog.records if r.name == "skillpath.achievements"]
        assert records
        assert all(r.levelno == logging.DEBUG for r in records)
