"""
Catalog validation: cycle detection, dangling references, and graph metrics.

Uses ``networkx.DiGraph`` for cycle detection and depth metrics. These checks
are for catalog authors; the engine itself tolerates every problem reported
here.
"""

import logging
from collections import Counter
from typing import Any, Dict, List, Tuple

import networkx as nx

from skillpath.catalog import Catalog
from skillpath.models import CatalogReport

logger = logging.getLogger(__name__)


# =========================================================================
# Graph construction
# =========================================================================


def build_prerequisite_digraph(catalog: Catalog) -> nx.DiGraph:
    """Directed graph with an edge prerequisite → dependent skill.

    Prerequisite ids missing from the catalog are not added.
    """
    G = nx.DiGraph()
    for skill in catalog.skills:
        G.add_node(skill.id, tier=skill.tier)
    for skill in catalog.skills:
        for prereq_id in skill.prerequisites:
            if catalog.has_skill(prereq_id):
                G.add_edge(prereq_id, skill.id)
    return G


# =========================================================================
# Checks
# =========================================================================


def find_cycles(catalog: Catalog) -> List[List[str]]:
    """Elementary prerequisite cycles, including self-references."""
    G = build_prerequisite_digraph(catalog)
    cycles = [list(c) for c in nx.simple_cycles(G)]
    for cycle in cycles:
        logger.warning("Prerequisite cycle: %s", " → ".join(cycle + cycle[:1]))
    return cycles


def find_dangling_prerequisites(catalog: Catalog) -> List[Tuple[str, str]]:
    """(skill id, missing prerequisite id) pairs."""
    return [
        (skill.id, prereq_id)
        for skill in catalog.skills
        for prereq_id in skill.prerequisites
        if not catalog.has_skill(prereq_id)
    ]


def find_dangling_requirements(catalog: Catalog) -> List[Tuple[str, str]]:
    """(role id, missing skill id) pairs."""
    return [
        (role.id, req.skill_id)
        for role in catalog.roles
        for req in role.required_skills
        if not catalog.has_skill(req.skill_id)
    ]


def find_achievement_issues(catalog: Catalog) -> List[str]:
    """Human-readable messages for achievements pointing at unknown ids."""
    issues: List[str] = []
    for achievement in catalog.achievements:
        criteria = achievement.criteria
        if criteria.type == "skill_level" and not catalog.has_skill(criteria.skill_id):
            issues.append(f"{achievement.id}: unknown skill {criteria.skill_id!r}")
        elif criteria.type == "role_ready" and catalog.get_role(criteria.role_id) is None:
            issues.append(f"{achievement.id}: unknown role {criteria.role_id!r}")
    return issues


def find_tier_inversions(catalog: Catalog) -> List[Tuple[str, str]]:
    """(prerequisite id, dependent id) where the prerequisite sits in a higher tier.

    Advisory only: tiers are allowed to disagree with prerequisite depth.
    """
    inversions: List[Tuple[str, str]] = []
    for skill in catalog.skills:
        for prereq_id in skill.prerequisites:
            prereq = catalog.get_skill(prereq_id)
            if prereq is not None and prereq.tier > skill.tier:
                inversions.append((prereq_id, skill.id))
    return inversions


# =========================================================================
# Metrics
# =========================================================================


def compute_metrics(catalog: Catalog) -> Dict[str, Any]:
    """Summary metrics for the prerequisite graph.

    Returns dict with: total_skills, total_edges, root_skills, max_depth,
    skills_per_tier, total_roles, total_achievements.
    """
    G = build_prerequisite_digraph(catalog)

    if G.number_of_edges() > 0 and nx.is_directed_acyclic_graph(G):
        max_depth = nx.dag_longest_path_length(G)
    else:
        max_depth = 0

    tiers = Counter(skill.tier for skill in catalog.skills)

    return {
        "total_skills": G.number_of_nodes(),
        "total_edges": G.number_of_edges(),
        "root_skills": sum(1 for _, deg in G.in_degree() if deg == 0),
        "max_depth": max_depth,
        "skills_per_tier": {str(t): tiers[t] for t in sorted(tiers)},
        "total_roles": len(catalog.roles),
        "total_achievements": len(catalog.achievements),
    }


# =========================================================================
# Validation
# =========================================================================


def validate_catalog(catalog: Catalog) -> CatalogReport:
    """Run every check and bundle the results."""
    cycles = find_cycles(catalog)
    report = CatalogReport(
        is_dag=not cycles,
        cycles=cycles,
        dangling_prerequisites=[list(p) for p in find_dangling_prerequisites(catalog)],
        dangling_requirements=[list(p) for p in find_dangling_requirements(catalog)],
        achievement_issues=find_achievement_issues(catalog),
        tier_inversions=[list(p) for p in find_tier_inversions(catalog)],
        metrics=compute_metrics(catalog),
    )

    if report.ok:
        logger.info("Catalog OK (%d skills, %d roles).", len(catalog.skills), len(catalog.roles))
    else:
        logger.error(
            "Catalog has problems: cycles=%d, dangling prerequisites=%d, "
            "dangling requirements=%d, achievement issues=%d",
            len(report.cycles),
            len(report.dangling_prerequisites),
            len(report.dangling_requirements),
            len(report.achievement_issues),
        )
    return report
