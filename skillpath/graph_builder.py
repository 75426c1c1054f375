"""
Progression graph construction.

Lays a role's prerequisite closure out as tier columns (left → right by
increasing tier), stacks each tier's skills vertically in catalog order
around the viewport centre, emits one ``prerequisite`` edge per dependency
inside the closure, and stamps every node with its state and completion.

Entry points:
- ``build_graph``            — full build for a role.
- ``build_graph_for_role_id`` — same, looking the role up by id.
- ``update_states``          — recompute state/completion on a built graph.
- ``build_path_to``          — single-row ancestor chain of one skill.
- ``graph_stats``            — per-state node counts.

Unknown roles or skills yield an empty ``SkillGraph``; nothing here raises
on a lookup miss.
"""

import logging
from collections import defaultdict
from datetime import datetime, timezone
from typing import Dict, List, Optional, Set

import numpy as np

from skillpath.catalog import Catalog
from skillpath.closure import resolve_ancestors, resolve_closure
from skillpath.config import DEFAULT_LAYOUT, LayoutConfig
from skillpath.models import (
    GraphStats,
    Position,
    RoleBenchmark,
    Skill,
    SkillEdge,
    SkillGraph,
    SkillNode,
)
from skillpath.node_state import (
    UserSkillsInput,
    completion_from_levels,
    levels_by_skill,
    state_from_levels,
)
from skillpath.utils import round_half_up

logger = logging.getLogger(__name__)


def node_id(skill_id: str) -> str:
    return f"node_{skill_id}"


def edge_id(source_skill_id: str, target_skill_id: str) -> str:
    return f"edge_{source_skill_id}_{target_skill_id}"


# =========================================================================
# Node / edge helpers
# =========================================================================


def _make_node(skill: Skill, x: float, y: float, levels: Dict[str, int]) -> SkillNode:
    return SkillNode(
        id=node_id(skill.id),
        skill_id=skill.id,
        position=Position(x=float(x), y=float(y)),
        state=state_from_levels(skill, levels),
        completion_percent=completion_from_levels(skill.id, levels),
        tier=skill.tier,
    )


def _prerequisite_edges(skills: List[Skill], members: Set[str]) -> List[SkillEdge]:
    """One edge per prerequisite that is itself a member of the graph."""
    edges: List[SkillEdge] = []
    for skill in skills:
        # A prerequisite listed twice still yields one edge.
        for prereq_id in dict.fromkeys(skill.prerequisites):
            if prereq_id not in members:
                continue
            edges.append(
                SkillEdge(
                    id=edge_id(prereq_id, skill.id),
                    source_node_id=node_id(prereq_id),
                    target_node_id=node_id(skill.id),
                    type="prerequisite",
                )
            )
    return edges


def _tier_column_y(count: int, layout: LayoutConfig) -> np.ndarray:
    """Y coordinates for *count* nodes stacked and centred in one column."""
    step = layout.node_height + layout.vertical_gap
    start_y = (layout.viewport_height - count * step) / 2 + layout.margin_y
    return start_y + np.arange(count) * step


# =========================================================================
# Builders
# =========================================================================


def build_graph(
    role: Optional[RoleBenchmark],
    catalog: Catalog,
    user_skills: UserSkillsInput,
    layout: Optional[LayoutConfig] = None,
) -> SkillGraph:
    """Build the positioned progression graph for *role*."""
    if role is None:
        logger.debug("build_graph called without a role; returning empty graph.")
        return SkillGraph()

    layout = layout or DEFAULT_LAYOUT
    levels = levels_by_skill(user_skills)
    closure = resolve_closure(role, catalog)

    # Catalog order keeps repeated builds identical.
    relevant = [s for s in catalog.skills if s.id in closure]

    by_tier: Dict[int, List[Skill]] = defaultdict(list)
    for skill in relevant:
        by_tier[skill.tier].append(skill)

    nodes: List[SkillNode] = []
    for tier_index, tier in enumerate(sorted(by_tier)):
        tier_skills = by_tier[tier]
        x = tier_index * layout.tier_x_offset + layout.margin_x
        ys = _tier_column_y(len(tier_skills), layout)
        for skill, y in zip(tier_skills, ys):
            nodes.append(_make_node(skill, x, y, levels))

    edges = _prerequisite_edges(relevant, closure)

    logger.debug(
        "Built graph for role %r: %d nodes, %d edges, %d tiers.",
        role.id, len(nodes), len(edges), len(by_tier),
    )
    return SkillGraph(target_role_id=role.id, nodes=nodes, edges=edges)


def build_graph_for_role_id(
    role_id: str,
    catalog: Catalog,
    user_skills: UserSkillsInput,
    layout: Optional[LayoutConfig] = None,
) -> SkillGraph:
    role = catalog.get_role(role_id)
    if role is None:
        logger.debug("Unknown role id %r; returning empty graph.", role_id)
        return SkillGraph()
    return build_graph(role, catalog, user_skills, layout)


def update_states(
    graph: SkillGraph,
    catalog: Catalog,
    user_skills: UserSkillsInput,
) -> SkillGraph:
    """Return a copy of *graph* with state and completion recomputed.

    Positions, ids and edges are carried over untouched. Nodes whose skill is
    no longer in the catalog keep their previous values.
    """
    levels = levels_by_skill(user_skills)
    nodes: List[SkillNode] = []
    for node in graph.nodes:
        skill = catalog.get_skill(node.skill_id)
        if skill is None:
            nodes.append(node)
            continue
        nodes.append(
            node.model_copy(
                update={
                    "state": state_from_levels(skill, levels),
                    "completion_percent": completion_from_levels(skill.id, levels),
                }
            )
        )

    return graph.model_copy(
        update={
            "nodes": nodes,
            "edges": list(graph.edges),
            "generated_at": datetime.now(timezone.utc),
        }
    )


def build_path_to(
    skill_id: str,
    catalog: Catalog,
    user_skills: UserSkillsInput,
    layout: Optional[LayoutConfig] = None,
) -> SkillGraph:
    """Lay out *skill_id* and its ancestors as one row, ascending by tier."""
    ancestors = resolve_ancestors(skill_id, catalog)
    if not ancestors:
        logger.debug("Unknown skill id %r; returning empty path.", skill_id)
        return SkillGraph()

    layout = layout or DEFAULT_LAYOUT
    levels = levels_by_skill(user_skills)

    path_skills = [s for s in catalog.skills if s.id in ancestors]
    # sorted() is stable, so equal tiers keep catalog order.
    path_skills = sorted(path_skills, key=lambda s: s.tier)

    step = layout.node_width + layout.horizontal_gap
    xs = layout.margin_x + np.arange(len(path_skills)) * step
    nodes = [
        _make_node(skill, x, layout.path_row_y, levels)
        for skill, x in zip(path_skills, xs)
    ]
    edges = _prerequisite_edges(path_skills, ancestors)

    return SkillGraph(target_role_id=skill_id, nodes=nodes, edges=edges)


# =========================================================================
# Statistics
# =========================================================================


def graph_stats(graph: SkillGraph) -> GraphStats:
    counts = {"locked": 0, "unlocked": 0, "in_progress": 0, "completed": 0}
    for node in graph.nodes:
        counts[node.state] += 1
    total = len(graph.nodes)

    return GraphStats(
        total_nodes=total,
        completed_nodes=counts["completed"],
        in_progress_nodes=counts["in_progress"],
        unlocked_nodes=counts["unlocked"],
        locked_nodes=counts["locked"],
        completion_percent=(
            round_half_up(counts["completed"] / total * 100) if total > 0 else 0
        ),
    )
