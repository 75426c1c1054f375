"""
Prerequisite closure over the skill catalog.

A skill is marked visited before its prerequisites are pushed, so a cycle in
malformed catalog data terminates instead of looping. Ids missing from the
catalog contribute nothing.
"""

import logging
from typing import Iterable, Set

from skillpath.catalog import Catalog
from skillpath.models import RoleBenchmark

logger = logging.getLogger(__name__)


def _collect(start_ids: Iterable[str], catalog: Catalog) -> Set[str]:
    visited: Set[str] = set()
    stack = list(start_ids)
    stack.reverse()

    while stack:
        skill_id = stack.pop()
        if skill_id in visited:
            continue
        skill = catalog.get_skill(skill_id)
        if skill is None:
            logger.debug("Skipping unknown skill id %r.", skill_id)
            continue
        visited.add(skill_id)
        for prereq_id in reversed(skill.prerequisites):
            if prereq_id not in visited:
                stack.append(prereq_id)

    return visited


def resolve_closure(role: RoleBenchmark, catalog: Catalog) -> Set[str]:
    """Return the role's required skill ids plus all transitive prerequisites."""
    closure = _collect((r.skill_id for r in role.required_skills), catalog)
    logger.debug(
        "Closure for role %r: %d required → %d skills.",
        role.id, len(role.required_skills), len(closure),
    )
    return closure


def resolve_ancestors(skill_id: str, catalog: Catalog) -> Set[str]:
    """Return *skill_id* and every skill it transitively depends on.

    Empty when *skill_id* is not in the catalog.
    """
    return _collect([skill_id], catalog)
