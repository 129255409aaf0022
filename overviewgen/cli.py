"""CLI entrypoints for overviewgen commands."""

from __future__ import annotations

import argparse
import signal
import sys
from pathlib import Path

from .config import CONFIG_FILENAME
from .logging import configure_logging
from .orchestrator import (
    GenerationOutcome,
    Orchestrator,
    OutputWriteError,
    ProjectRootNotFound,
    find_project_root,
)
from .watch import CancellationToken


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _add_log_file_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--log-file",
        default=None,
        help="Also write log records to this file.",
    )


def _add_path_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "path",
        nargs="?",
        default=None,
        help=(
            "Project root (defaults to the nearest directory above the current one "
            "holding composer.json, Gemfile or .git)."
        ),
    )


def _add_watch_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--watch",
        action="store_true",
        help="Keep running and regenerate whenever project files change.",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="overviewgen",
        description="Generate a Markdown overview of a Laravel, Rails or PHP project.",
    )
    _add_verbose_option(parser)
    _add_log_file_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    generate_parser = subparsers.add_parser(
        "generate",
        help="Write the project overview (ai-overview.md by default).",
    )
    _add_verbose_option(generate_parser, suppress_default=True)
    _add_path_argument(generate_parser)
    _add_watch_option(generate_parser)

    generate_all_parser = subparsers.add_parser(
        "generate-all",
        help="Write the overview together with the full text of every code file.",
    )
    _add_verbose_option(generate_all_parser, suppress_default=True)
    _add_path_argument(generate_all_parser)
    _add_watch_option(generate_all_parser)

    init_parser = subparsers.add_parser(
        "init",
        help="Create a default .ai-tools.json configuration file.",
    )
    _add_verbose_option(init_parser, suppress_default=True)
    _add_path_argument(init_parser)

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for overviewgen commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    log_file = Path(args.log_file) if args.log_file else None
    configure_logging(verbose=bool(args.verbose), log_file=log_file)

    root = Path(args.path) if args.path else find_project_root()
    full_dump = args.command == "generate-all"

    try:
        orchestrator = Orchestrator(root, include_code_files=full_dump)
        if args.command == "init":
            if orchestrator.init_config():
                print(f"Configuration written to {_relativize(orchestrator.root / CONFIG_FILENAME)}")
            else:
                print("Configuration file already exists; left unchanged")
        elif getattr(args, "watch", False):
            _watch(orchestrator)
        elif full_dump:
            _print_outcome(orchestrator.generate_all())
        elif args.command == "generate":
            _print_outcome(orchestrator.generate())
        else:  # pragma: no cover - argparse enforces choices
            parser.exit(1, "Unknown command\n")
    except ProjectRootNotFound as exc:
        parser.exit(1, f"{exc}\n")
    except OutputWriteError as exc:
        parser.exit(1, f"overviewgen {args.command} failed: {exc}\nRun with --verbose for more details.\n")


def _watch(orchestrator: Orchestrator) -> None:
    token = CancellationToken()

    def _handle_interrupt(signum, frame) -> None:  # pragma: no cover - signal delivery
        token.cancel()

    previous = signal.signal(signal.SIGINT, _handle_interrupt)
    try:
        summary = orchestrator.watch(token)
    finally:
        signal.signal(signal.SIGINT, previous)
    print(f"Watch stopped ({summary.reason}) after {summary.regenerations} regeneration(s)")


def _print_outcome(outcome: GenerationOutcome) -> None:
    rel_path = _relativize(outcome.path)
    if outcome.written:
        print(f"Overview written to {rel_path}")
    else:
        print(f"No changes detected; {rel_path} already up to date")


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
