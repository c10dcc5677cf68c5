"""Command line interface for the shrinker step."""
from __future__ import annotations

from argparse import ArgumentParser, Namespace
from dataclasses import replace
from pathlib import Path
from typing import Iterable, Tuple
import os
import sys

from core.archive import ArchiveManager
from core.command_runner import CommandRunner, RecordingCommandRunner, SubprocessCommandRunner
from core.config_loader import load_config_path

from .config import ShrinkerConfig
from .context import Console, Context
from .engine import ShrinkerEngine
from .errors import ShrinkerError
from .model import Project

DEFAULT_CONFIG = Path("shrinker.toml")


def load_build_file(path: Path) -> Tuple[Project, ShrinkerConfig]:
    """Read the project description and the ``[proguard]`` options from *path*."""
    data = load_config_path(path)
    root = (path if path.is_dir() else path.parent).resolve()
    project = Project.from_mapping(data, root=root)
    section = data.get("proguard", {})
    if not isinstance(section, dict):
        raise TypeError("[proguard] must be a table")
    return project, ShrinkerConfig.from_mapping(section, project=project)


def _parse_arguments(argv: Iterable[str]) -> Namespace:
    parser = ArgumentParser(prog="shrinker", description="Run a ProGuard-style shrinker as a build step")
    parser.add_argument("--config", "-c", type=Path, default=None, help="Build file or directory of build files")
    parser.add_argument(
        "--log",
        "-l",
        choices=sorted(Console.LEVELS, key=Console.LEVELS.get),
        default="info",
        help="Set log level (default: info)",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose output (maps to debug)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Process the build artifact")
    run_parser.add_argument("--dry-run", "-n", action="store_true", help="Show what would be done without doing it")
    run_parser.add_argument("--skip", action="store_true", help="Bypass processing")
    run_parser.add_argument("--manifest", type=Path, help="Write attached artifacts as JSON to this path")

    subparsers.add_parser("args", help="Print the tool arguments, one per line, without running anything")

    return parser.parse_args(list(argv))


def _resolve_config_path(args: Namespace, console: Console) -> Path:
    if args.config is not None:
        return args.config
    env_config = os.environ.get("SHRINKER_CONFIG")
    if env_config:
        console.info(f"Using configuration from SHRINKER_CONFIG: {env_config}")
        return Path(env_config)
    return DEFAULT_CONFIG


def main(argv: Iterable[str] | None = None) -> int:
    args = _parse_arguments(argv if argv is not None else sys.argv[1:])

    level = "debug" if args.verbose else args.log
    dry_run = args.command == "args" or getattr(args, "dry_run", False)
    console = Console(level=level, dry_run=dry_run)

    config_path = _resolve_config_path(args, console)
    try:
        project, config = load_build_file(config_path)
    except (OSError, ValueError, TypeError) as exc:
        console.error(f"Failed to load config: {exc}")
        return 2

    if getattr(args, "skip", False):
        config = replace(config, skip=True)

    runner: CommandRunner
    if dry_run:
        runner = RecordingCommandRunner()
    else:
        runner = SubprocessCommandRunner()

    context = Context(
        console=console,
        runner=runner,
        archiver=ArchiveManager(console),
        workspace=project.basedir,
    )
    engine = ShrinkerEngine(project=project, config=config, context=context)

    try:
        result = engine.execute()
    except ShrinkerError as exc:
        console.error(str(exc))
        return 1

    if args.command == "args":
        if result.plan is not None:
            for token in result.plan.arguments:
                print(token)
        return 0

    if dry_run and isinstance(runner, RecordingCommandRunner):
        for line in runner.iter_formatted(workspace=project.basedir):
            print(line)

    if args.manifest is not None and not dry_run:
        args.manifest.parent.mkdir(parents=True, exist_ok=True)
        args.manifest.write_text(engine.outputs.serialize() + "\n", encoding="utf-8")
        console.info(f"Wrote attached artifacts to {args.manifest}")
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
