"""
Command-line entry point.

Usage::

    skillpath graph --role health_data_analyst --skills ./me.json
    skillpath path --skill ml_fundamentals --db ./data/users.db --user u1
    skillpath gaps --role clinical_data_scientist --skills ./me.json
    skillpath achievements --db ./data/users.db --user u1 --record
    skillpath validate --catalog ./my_catalog

User skills come either from a JSON file (a list of ``UserSkill`` objects, or
a ``{skill_id: level}`` object) or from the SQLite user store. Results are
printed as JSON, or written to ``--out``.
"""

import argparse
import json
import logging
import sys
from typing import Any, List, Optional, Tuple

from pydantic import TypeAdapter, ValidationError

from skillpath import db
from skillpath.achievements import (
    achievements_with_status,
    newly_earned,
    upcoming_achievements,
)
from skillpath.catalog import Catalog, CatalogLoadError, load_catalog
from skillpath.config import load_layout_config
from skillpath.dag_validator import validate_catalog
from skillpath.gap_analysis import analyze_gaps, estimate_hours_to_ready
from skillpath.graph_builder import build_graph_for_role_id, build_path_to, graph_stats
from skillpath.models import UserAchievement, UserSkill
from skillpath.utils import setup_logging, timed, write_json

logger = logging.getLogger(__name__)

_USER_SKILLS_ADAPTER = TypeAdapter(List[UserSkill])


# =========================================================================
# Input helpers
# =========================================================================


def _load_skills_file(path: str) -> List[UserSkill]:
    with open(path, "r", encoding="utf-8") as fh:
        raw = json.load(fh)
    if isinstance(raw, dict):
        raw = [{"skill_id": sid, "level": lvl} for sid, lvl in raw.items()]
    return _USER_SKILLS_ADAPTER.validate_python(raw)


def _load_user_state(args: argparse.Namespace) -> Tuple[List[UserSkill], List[UserAchievement]]:
    if args.db:
        db.migrate_db(args.db)
        conn = db.get_connection(args.db)
        try:
            return (
                db.load_user_skills(conn, args.user),
                db.load_user_achievements(conn, args.user),
            )
        finally:
            conn.close()
    if args.skills:
        return _load_skills_file(args.skills), []
    return [], []


def _emit(data: Any, out: Optional[str]) -> None:
    if out:
        write_json(data, out)
        logger.info("Output → %s", out)
    else:
        json.dump(data, sys.stdout, indent=2, default=str)
        sys.stdout.write("\n")


# =========================================================================
# Commands
# =========================================================================


def _cmd_graph(args: argparse.Namespace, catalog: Catalog) -> int:
    user_skills, _ = _load_user_state(args)
    layout = load_layout_config(args.layout_config)
    with timed("Graph build"):
        graph = build_graph_for_role_id(args.role, catalog, user_skills, layout)
    if graph.is_empty():
        logger.warning("Role %r produced an empty graph.", args.role)
    _emit(
        {"graph": graph.model_dump(mode="json"), "stats": graph_stats(graph).model_dump()},
        args.out,
    )
    return 0


def _cmd_path(args: argparse.Namespace, catalog: Catalog) -> int:
    user_skills, _ = _load_user_state(args)
    layout = load_layout_config(args.layout_config)
    graph = build_path_to(args.skill, catalog, user_skills, layout)
    if graph.is_empty():
        logger.warning("Skill %r produced an empty path.", args.skill)
    _emit(graph.model_dump(mode="json"), args.out)
    return 0


def _cmd_gaps(args: argparse.Namespace, catalog: Catalog) -> int:
    role = catalog.get_role(args.role)
    if role is None:
        logger.error("Unknown role %r.", args.role)
        return 1
    user_skills, _ = _load_user_state(args)
    result = analyze_gaps(user_skills, role, catalog)
    payload = result.model_dump(mode="json")
    payload["estimated_hours_to_ready"] = estimate_hours_to_ready(result.gaps, catalog)
    _emit(payload, args.out)
    return 0


def _cmd_achievements(args: argparse.Namespace, catalog: Catalog) -> int:
    user_skills, earned = _load_user_state(args)
    new = newly_earned(user_skills, earned, catalog)

    if args.record:
        if not args.db:
            logger.error("--record requires --db.")
            return 1
        conn = db.get_connection(args.db)
        try:
            db.record_achievements(conn, args.user, [a.id for a in new])
            earned = db.load_user_achievements(conn, args.user)
        finally:
            conn.close()

    _emit(
        {
            "newly_earned": [a.model_dump(mode="json") for a in new],
            "upcoming": [
                s.model_dump(mode="json")
                for s in upcoming_achievements(user_skills, earned, catalog)
            ],
            "all": [
                s.model_dump(mode="json")
                for s in achievements_with_status(user_skills, earned, catalog)
            ],
        },
        args.out,
    )
    return 0


def _cmd_validate(args: argparse.Namespace, catalog: Catalog) -> int:
    report = validate_catalog(catalog)
    _emit(report.model_dump(mode="json"), args.out)
    return 0 if report.ok else 1


_COMMANDS = {
    "graph": _cmd_graph,
    "path": _cmd_path,
    "gaps": _cmd_gaps,
    "achievements": _cmd_achievements,
    "validate": _cmd_validate,
}


# =========================================================================
# CLI
# =========================================================================


def _parse_args(argv=None):
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--catalog", default=None,
        help="Catalog directory (default: $SKILLPATH_CATALOG_DIR or bundled data).",
    )
    common.add_argument("--out", default=None, help="Write JSON output to this file.")
    common.add_argument("-v", "--verbose", action="store_true")

    user = argparse.ArgumentParser(add_help=False)
    user.add_argument("--skills", default=None, help="User skills JSON file.")
    user.add_argument("--db", default=None, help="SQLite user store.")
    user.add_argument("--user", default="default", help="User id in the store.")

    layout = argparse.ArgumentParser(add_help=False)
    layout.add_argument(
        "--layout-config", default=None, help="JSON file overriding layout constants."
    )

    parser = argparse.ArgumentParser(
        prog="skillpath",
        description="Skill progression graphs, gap analysis and achievements.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("graph", parents=[common, user, layout], help="Build a role graph.")
    p.add_argument("--role", required=True)

    p = sub.add_parser("path", parents=[common, user, layout], help="Path to one skill.")
    p.add_argument("--skill", required=True)

    p = sub.add_parser("gaps", parents=[common, user], help="Gap analysis for a role.")
    p.add_argument("--role", required=True)

    p = sub.add_parser("achievements", parents=[common, user], help="Evaluate achievements.")
    p.add_argument(
        "--record", action="store_true",
        help="Append newly earned achievements to the store (needs --db).",
    )

    sub.add_parser("validate", parents=[common], help="Validate the catalog.")

    return parser.parse_args(argv)


def main(argv=None) -> int:
    """CLI entry-point."""
    args = _parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.INFO)

    try:
        catalog = load_catalog(args.catalog)
    except CatalogLoadError as exc:
        logger.error("%s", exc)
        return 1

    try:
        return _COMMANDS[args.command](args, catalog)
    except (OSError, json.JSONDecodeError, ValidationError, ValueError) as exc:
        logger.error("%s failed: %s", args.command, exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
