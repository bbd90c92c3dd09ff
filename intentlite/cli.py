"""CLI commands for intentlite.

Commands:
    intentlite extract TEXT    - Extract the intent and variables from text
    intentlite validate PATH   - Validate an intent configuration file
    intentlite intents         - List the intents of the active configuration
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .config import AppSettings, setup_logging
from .core.backends import create_available_extractor, create_engine_from_settings
from .core.intent import (
    ConfigError,
    ExtractionResult,
    IntentConfidence,
    IntentEngine,
)

console = Console()


def load_settings(args: argparse.Namespace) -> AppSettings:
    """Build settings from the environment, then apply command-line overrides."""
    settings = AppSettings()
    updates: dict[str, object] = {}
    if getattr(args, "config", None):
        updates["intent_config_path"] = Path(args.config)
    if getattr(args, "provider", None):
        updates["provider"] = args.provider
    if getattr(args, "verbose", False):
        updates["log_level"] = "DEBUG"
    return settings.model_copy(update=updates) if updates else settings


def print_result(result: ExtractionResult) -> None:
    """Render an ExtractionResult as a table."""
    table = Table(title=f"[bold]{result.task}[/bold] ({result.confidence:.2f})")
    table.add_column("Variable", style="cyan")
    table.add_column("Value")

    for key, value in result.variables.items():
        table.add_row(key, escape(value))
    for key in result.missing:
        table.add_row(key, "[yellow]missing[/yellow]")

    console.print(table)

    if result.is_unknown:
        console.print("[dim]No intent recognized.[/dim]")
    elif result.is_complete:
        console.print("[green]✓[/green] Complete")
    else:
        for question in result.follow_up:
            console.print(f"[yellow]?[/yellow] {escape(question)}")


def extract(args: argparse.Namespace) -> int:
    """Extract the intent from text.

    Args:
        args: Parsed arguments (text, json, config, provider)

    Returns:
        Exit code (0 for success)
    """
    settings = load_settings(args)
    setup_logging(settings)
    text = " ".join(args.text)

    async def _run() -> ExtractionResult:
        extractor = await create_available_extractor(settings)
        try:
            return await extractor.extract_intent(text)
        finally:
            await extractor.close()

    result = asyncio.run(_run())

    if args.json:
        console.print_json(data=result.to_dict())
    else:
        print_result(result)

    return 0


def validate(args: argparse.Namespace) -> int:
    """Validate an intent configuration file.

    Args:
        args: Parsed arguments (path)

    Returns:
        Exit code (0 if valid, 1 otherwise)
    """
    setup_logging(load_settings(args))
    path = Path(args.path)
    try:
        engine = IntentEngine.from_path(path)
    except ConfigError as e:
        console.print(f"[red]Invalid:[/red] {path}: {escape(str(e))}", soft_wrap=True)
        return 1

    config = engine.config
    console.print(
        f"[green]✓[/green] {path}: domain '{config.domain}' "
        f"v{config.version or '?'}, {len(config.intents)} intents, "
        f"{len(config.entities)} entities",
        soft_wrap=True,
    )
    return 0


def list_intents(args: argparse.Namespace) -> int:
    """List the intents of the active configuration.

    Args:
        args: Parsed arguments (config)

    Returns:
        Exit code (0 for success)
    """
    settings = load_settings(args)
    setup_logging(settings)
    config = create_engine_from_settings(settings).config

    table = Table(title=f"Intents: {config.domain}")
    table.add_column("Intent", style="cyan", no_wrap=True)
    table.add_column("Priority", justify="right")
    table.add_column("Threshold", justify="right")
    table.add_column("Required")
    table.add_column("Description", style="dim")

    for key, intent in config.intents.items():
        threshold = config.threshold_for(key, IntentConfidence.DEFAULT_THRESHOLD)
        table.add_row(
            key,
            str(intent.priority),
            f"{threshold:.2f}",
            ", ".join(intent.required) or "-",
            intent.description,
        )

    console.print(table)
    return 0


def create_parser() -> argparse.ArgumentParser:
    """Create the CLI argument parser.

    Returns:
        Configured ArgumentParser
    """
    parser = argparse.ArgumentParser(
        prog="intentlite",
        description="intentlite: offline intent and entity extraction",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    def add_config_arg(p: argparse.ArgumentParser) -> None:
        p.add_argument(
            "--config",
            "-c",
            help="Intent configuration file (default: built-in personal assistant)",
        )

    # =========================================================================
    # extract command
    # =========================================================================
    extract_parser = subparsers.add_parser("extract", help="Extract the intent from text")
    extract_parser.add_argument("text", nargs="+", help="Text to analyze")
    extract_parser.add_argument(
        "--json",
        action="store_true",
        help="Print the result as JSON",
    )
    extract_parser.add_argument(
        "--provider",
        choices=["rules", "ollama", "openai"],
        help="Extractor to use (default: INTENTLITE_PROVIDER or rules)",
    )
    add_config_arg(extract_parser)
    extract_parser.set_defaults(func=extract)

    # =========================================================================
    # validate command
    # =========================================================================
    validate_parser = subparsers.add_parser("validate", help="Validate a configuration file")
    validate_parser.add_argument("path", help="JSON or YAML configuration file")
    validate_parser.set_defaults(func=validate)

    # =========================================================================
    # intents command
    # =========================================================================
    intents_parser = subparsers.add_parser("intents", help="List configured intents")
    add_config_arg(intents_parser)
    intents_parser.set_defaults(func=list_intents)

    return parser


def run_cli(args: list[str] | None = None) -> int:
    """Run the CLI.

    Args:
        args: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code
    """
    parser = create_parser()
    parsed = parser.parse_args(args)

    if not hasattr(parsed, "func"):
        parser.print_help()
        return 0

    try:
        return parsed.func(parsed)
    except KeyboardInterrupt:
        console.print("\n[dim]Cancelled.[/dim]")
        return 130
    except Exception as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}", soft_wrap=True)
        return 1


def main() -> None:
    """Console script entry point."""
    sys.exit(run_cli())


__all__ = [
    "create_parser",
    "run_cli",
    "main",
    "extract",
    "validate",
    "list_intents",
    "print_result",
]
