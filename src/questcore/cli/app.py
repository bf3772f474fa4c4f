"""CLI app entrypoint and error mapping."""

from __future__ import annotations

import sys

from questcore import (
    ConfigError,
    GatewayError,
    GenerationError,
    PersistenceError,
    ProgressionError,
    QuestValidationError,
)


def main(argv: list[str] | None = None) -> int:
    import questcore.cli as cli

    parser = cli.build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        cli.logging.basicConfig(level=cli.logging.DEBUG, format="%(name)s %(message)s", stream=sys.stderr)

    commands = {
        "goals": cli._run_goals,
        "roadmap": cli._run_roadmap,
        "select": cli._run_select,
        "generate": cli._run_generate,
        "today": cli._run_today,
    }

    try:
        cli.asyncio.run(commands[args.command](args))
        return 0
    except (ConfigError, PersistenceError, QuestValidationError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 3
    except GatewayError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 4
    except (GenerationError, ProgressionError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 5
    except Exception as exc:  # pragma: no cover
        print(f"error: {exc}", file=sys.stderr)
        return 1


__all__ = ["main"]
