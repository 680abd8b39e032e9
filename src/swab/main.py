"""Main entry point for swab."""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import timedelta
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table
from rich.text import Text

from .age import parse_age
from .config import ConfigError, SwabConfig
from .sweeper import SweepError, Sweeper, SweepOptions
from .task import TaskError


def _age(value: str) -> timedelta:
    """argparse type wrapper around parse_age."""
    try:
        return parse_age(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def _add_run_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "directories",
        nargs="*",
        type=Path,
        help="Directories to scan for projects to clean (default: current directory)",
    )
    parser.add_argument(
        "--age",
        type=_age,
        default=None,
        metavar="EXPR",
        help="Only process projects inactive for at least this age (e.g. 30d, 12h, 2w)",
    )
    parser.add_argument(
        "--activity",
        action="store_true",
        help="Measure inactivity from the newest source file instead of the directory's mtime",
    )
    parser.add_argument("--dry-run", action="store_true", help="Report what would be done without doing it")
    parser.add_argument(
        "--follow-symlinks",
        action="store_true",
        default=None,
        help="Follow symlinks during traversal",
    )
    parser.add_argument(
        "--skip-unreadable",
        action="store_true",
        default=None,
        help="Skip directories that cannot be read instead of aborting",
    )
    output = parser.add_mutually_exclusive_group()
    output.add_argument("-i", "--interactive", action="store_true", help="Prompt before each task")
    output.add_argument("-q", "--quiet", action="store_true", help="Suppress all output")


def build_parser() -> argparse.ArgumentParser:
    """Build the command line parser."""
    parser = argparse.ArgumentParser(
        prog="swab",
        description="A configurable project cleaning tool",
    )

    parser.add_argument(
        "--config",
        "-c",
        type=Path,
        default=None,
        help="Path to configuration file",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Run command (default)
    run_parser = subparsers.add_parser("run", help="Clean projects below the given directories")
    _add_run_arguments(run_parser)

    subparsers.add_parser("rules", help="List active rules")

    config_parser = subparsers.add_parser("config", help="Configuration management")
    config_parser.add_argument(
        "--init",
        action="store_true",
        help="Create default configuration file",
    )
    config_parser.add_argument(
        "--show",
        action="store_true",
        help="Show current configuration",
    )

    return parser


COMMANDS = ("run", "rules", "config")


def _insert_default_command(argv: list[str]) -> list[str]:
    """Insert ``run`` after the global options when no command is given."""
    index = 0
    while index < len(argv):
        arg = argv[index]
        if arg in ("-h", "--help") or arg in COMMANDS:
            return argv
        if arg in ("--config", "-c"):
            index += 2
        elif arg.startswith("--config=") or (arg.startswith("-c") and len(arg) > 2):
            index += 1
        else:
            break
    return [*argv[:index], "run", *argv[index:]]


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments; no command means ``run``."""
    argv = list(sys.argv[1:] if argv is None else argv)
    return build_parser().parse_args(_insert_default_command(argv))


def setup_logging(config: SwabConfig) -> logging.Logger:
    """Set up the ``swab`` logger.

    Returns:
        Configured logger instance.

    """
    logger = logging.getLogger("swab")
    logger.setLevel(logging.DEBUG)

    # Clear existing handlers to avoid duplicates if called again
    if logger.handlers:
        logger.handlers.clear()

    console_handler = RichHandler(
        console=Console(stderr=True),
        show_time=False,
        show_path=False,
    )
    console_handler.setLevel(getattr(logging, config.log_level))
    logger.addHandler(console_handler)

    if config.log_file is not None:
        config.log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(config.log_file)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter("%(asctime)s | %(levelname)s | %(message)s"))
        logger.addHandler(file_handler)

    return logger


def cmd_run(config: SwabConfig, args: argparse.Namespace, console: Console) -> int:
    """Execute run command.

    Args:
        config: Loaded configuration.
        args: Parsed arguments.
        console: Output console.

    Returns:
        Exit code.

    """
    options = SweepOptions(
        dry_run=args.dry_run,
        interactive=args.interactive,
        quiet=args.quiet,
        follow_symlinks=config.follow_symlinks if args.follow_symlinks is None else args.follow_symlinks,
        skip_unreadable=config.skip_unreadable if args.skip_unreadable is None else args.skip_unreadable,
        age=args.age,
        activity=args.activity,
    )
    directories = args.directories or [Path.cwd()]

    sweeper = Sweeper(config.active_rules(), options, console)
    sweeper.run(directories)
    return 0


def cmd_rules(config: SwabConfig, console: Console) -> int:
    """Execute rules command."""
    rules = config.active_rules()

    table = Table(title=f"Active rules ({len(rules)})")
    table.add_column("ID", style="cyan")
    table.add_column("Name", style="green")
    table.add_column("Detection")
    table.add_column("Actions", style="dim")

    for rule in rules:
        table.add_row(
            rule.id,
            rule.name,
            str(rule.detection),
            "\n".join(str(action) for action in rule.actions),
        )

    console.print(table)
    return 0


def cmd_config(config: SwabConfig, args: argparse.Namespace, console: Console) -> int:
    """Execute config command.

    Args:
        config: Loaded configuration.
        args: Parsed arguments.
        console: Output console.

    Returns:
        Exit code.

    """
    config_path = args.config or SwabConfig.get_config_path()

    if args.init:
        if config_path.exists():
            console.print(f"[yellow]Config already exists: {config_path}[/yellow]")
            return 1
        config.save(config_path)
        console.print(f"[green]Created config: {config_path}[/green]")
        return 0

    if args.show:
        table = Table(title="Current Configuration")
        table.add_column("Setting", style="cyan")
        table.add_column("Value", style="green")

        table.add_row("Config file", str(config_path))
        table.add_row("Follow symlinks", str(config.follow_symlinks))
        table.add_row("Skip unreadable", str(config.skip_unreadable))
        table.add_row("Disabled rules", ", ".join(config.disabled_rules) or "-")
        table.add_row("Custom rules", ", ".join(rule.id for rule in config.rules) or "-")
        table.add_row("Log level", config.log_level)
        table.add_row("Log file", str(config.log_file) if config.log_file else "-")

        console.print(table)
        return 0

    console.print("[yellow]Use --init or --show[/yellow]")
    return 1


def main(argv: list[str] | None = None) -> int:
    """Main entry point.

    Returns:
        Exit code.

    """
    args = parse_args(argv)
    console = Console()
    errors = Console(stderr=True)

    try:
        config = SwabConfig.load(args.config)
        setup_logging(config)

        if args.command == "rules":
            return cmd_rules(config, console)
        if args.command == "config":
            return cmd_config(config, args, console)
        return cmd_run(config, args, console)
    except (ConfigError, SweepError, TaskError, OSError) as e:
        errors.print(Text.assemble(("error:", "red"), f" {e}"))
        return 1


if __name__ == "__main__":
    sys.exit(main())
