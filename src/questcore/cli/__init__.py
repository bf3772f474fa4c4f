"""Command-line interface for questcore."""

from __future__ import annotations

import asyncio
import logging as logging

from questcore import QuestStore as QuestStore
from questcore import load_config as load_config
from questcore.cli.app import main as main
from questcore.cli.commands import generate as generate_command
from questcore.cli.commands import goals as goals_command
from questcore.cli.commands import roadmap as roadmap_command
from questcore.cli.commands import today as today_command
from questcore.cli.parser import build_parser as build_parser

_run_goals = goals_command.run_goals
_run_roadmap = roadmap_command.run_roadmap
_run_select = roadmap_command.run_select
_run_generate = generate_command.run_generate
_run_today = today_command.run_today

__all__ = ["QuestStore", "asyncio", "build_parser", "load_config", "main"]
