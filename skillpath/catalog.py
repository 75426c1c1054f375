"""
Catalog loading and id-indexed lookup.

The skill, role and achievement tables are read once from JSON and held in
insertion-ordered dicts keyed by id, so lookups are O(1) and iteration follows
the order the catalog author wrote.

Provides:
- ``Catalog`` — the read-only bundle every engine function takes.
- ``load_catalog`` / ``load_default_catalog`` — JSON loaders.
- ``CatalogLoadError`` — raised when a catalog file cannot be parsed.
"""

import json
import logging
import os
from typing import Any, Dict, Iterable, List, Optional

from pydantic import ValidationError

from skillpath.models import Achievement, RoleBenchmark, Skill

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "data")
CATALOG_DIR_ENV = "SKILLPATH_CATALOG_DIR"

SKILLS_FILE = "skills.json"
ROLES_FILE = "roles.json"
ACHIEVEMENTS_FILE = "achievements.json"


class CatalogLoadError(Exception):
    """A catalog file is missing, is not JSON, or does not match the models."""


# =========================================================================
# Catalog
# =========================================================================


class Catalog:
    """Immutable skill/role/achievement tables keyed by id.

    Duplicate ids keep the first occurrence; later ones are dropped with a
    warning.
    """

    def __init__(
        self,
        skills: Iterable[Skill] = (),
        roles: Iterable[RoleBenchmark] = (),
        achievements: Iterable[Achievement] = (),
        version: str = "",
    ) -> None:
        self.version = version
        self._skills: Dict[str, Skill] = _index("skill", skills)
        self._roles: Dict[str, RoleBenchmark] = _index("role", roles)
        self._achievements: Dict[str, Achievement] = _index("achievement", achievements)

    def __repr__(self) -> str:
        return (
            f"Catalog(version={self.version!r}, skills={len(self._skills)}, "
            f"roles={len(self._roles)}, achievements={len(self._achievements)})"
        )

    # --- skills -----------------------------------------------------------

    @property
    def skills(self) -> List[Skill]:
        return list(self._skills.values())

    def get_skill(self, skill_id: str) -> Optional[Skill]:
        return self._skills.get(skill_id)

    def has_skill(self, skill_id: str) -> bool:
        return skill_id in self._skills

    def skills_by_tier(self, tier: int) -> List[Skill]:
        return [s for s in self._skills.values() if s.tier == tier]

    def skills_by_category(self, category: str) -> List[Skill]:
        return [s for s in self._skills.values() if s.category == category]

    # --- roles ------------------------------------------------------------

    @property
    def roles(self) -> List[RoleBenchmark]:
        return list(self._roles.values())

    def get_role(self, role_id: str) -> Optional[RoleBenchmark]:
        return self._roles.get(role_id)

    def roles_by_seniority(self, level: str) -> List[RoleBenchmark]:
        return [r for r in self._roles.values() if r.seniority_level == level]

    # --- achievements -----------------------------------------------------

    @property
    def achievements(self) -> List[Achievement]:
        return list(self._achievements.values())

    def get_achievement(self, achievement_id: str) -> Optional[Achievement]:
        return self._achievements.get(achievement_id)

    def achievements_by_type(self, achievement_type: str) -> List[Achievement]:
        return [a for a in self._achievements.values() if a.type == achievement_type]


def _index(kind: str, items: Iterable[Any]) -> Dict[str, Any]:
    table: Dict[str, Any] = {}
    for item in items:
        if item.id in table:
            logger.warning("Duplicate %s id %r ignored.", kind, item.id)
            continue
        table[item.id] = item
    return table


# =========================================================================
# Loading
# =========================================================================


def _read_json(path: str) -> Dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as fh:
            return json.load(fh)
    except (OSError, json.JSONDecodeError) as exc:
        raise CatalogLoadError(f"Cannot read catalog file {path}: {exc}") from exc


def _parse(model: Any, rows: List[Dict[str, Any]], path: str) -> List[Any]:
    try:
        return [model.model_validate(row) for row in rows]
    except ValidationError as exc:
        raise CatalogLoadError(f"Invalid catalog entry in {path}: {exc}") from exc


def resolve_catalog_dir(catalog_dir: Optional[str] = None) -> str:
    """Explicit argument, then ``$SKILLPATH_CATALOG_DIR``, then the bundled data."""
    return catalog_dir or os.environ.get(CATALOG_DIR_ENV) or DEFAULT_CATALOG_DIR


def load_catalog(catalog_dir: Optional[str] = None) -> Catalog:
    """Load ``skills.json``, ``roles.json`` and ``achievements.json``.

    ``achievements.json`` is optional; the other two are required.

    Raises:
        CatalogLoadError: on unreadable files or entries that fail validation.
    """
    catalog_dir = resolve_catalog_dir(catalog_dir)

    skills_path = os.path.join(catalog_dir, SKILLS_FILE)
    roles_path = os.path.join(catalog_dir, ROLES_FILE)
    achievements_path = os.path.join(catalog_dir, ACHIEVEMENTS_FILE)

    skills_doc = _read_json(skills_path)
    roles_doc = _read_json(roles_path)
    achievements_doc: Dict[str, Any] = {}
    if os.path.isfile(achievements_path):
        achievements_doc = _read_json(achievements_path)

    catalog = Catalog(
        skills=_parse(Skill, skills_doc.get("skills", []), skills_path),
        roles=_parse(RoleBenchmark, roles_doc.get("roles", []), roles_path),
        achievements=_parse(
            Achievement, achievements_doc.get("achievements", []), achievements_path
        ),
        version=str(skills_doc.get("version", "")),
    )
    logger.info("Loaded %r from %s", catalog, catalog_dir)
    return catalog


def load_default_catalog() -> Catalog:
    """Load the healthcare-technology catalog bundled with the package."""
    return load_catalog(DEFAULT_CATALOG_DIR)
