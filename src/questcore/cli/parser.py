"""CLI parser construction."""

from __future__ import annotations

import argparse
from importlib.metadata import PackageNotFoundError, version


def _package_version() -> str:
    try:
        return version("questcore")
    except PackageNotFoundError:
        return "0.0.0"


def _add_common(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", default="./questcore.json", help="Path to questcore.json")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="questcore")
    parser.add_argument("--version", action="version", version=f"%(prog)s {_package_version()}")

    subparsers = parser.add_subparsers(dest="command", required=True)

    goals_parser = subparsers.add_parser("goals", help="List goals with their roadmap status")
    goals_parser.add_argument("--refresh", action="store_true", help="Bypass the goal cache")
    _add_common(goals_parser)

    roadmap_parser = subparsers.add_parser("roadmap", help="Show the milestones of a goal's roadmap")
    roadmap_parser.add_argument("goal_id", metavar="GOAL_ID", help="Goal identifier")
    roadmap_parser.add_argument("--refresh", action="store_true", help="Bypass the roadmap cache")
    _add_common(roadmap_parser)

    select_parser = subparsers.add_parser("select", help="Make a goal's roadmap the active one")
    select_parser.add_argument("goal_id", metavar="GOAL_ID", help="Goal identifier")
    _add_common(select_parser)

    generate_parser = subparsers.add_parser("generate", help="Generate a roadmap and wait for it")
    generate_parser.add_argument("goal_id", metavar="GOAL_ID", help="Goal identifier")
    _add_common(generate_parser)

    today_parser = subparsers.add_parser("today", help="Refresh and list today's tasks")
    _add_common(today_parser)

    return parser


__all__ = ["build_parser"]
