"""
Deployment Configuration Checker — validate a ``deployment.json`` before shipping it.

Operators run this against a candidate artifact to see every defect at once,
or to print the redacted configuration a running deployment would serve.

Usage:
    crms-config check config/deployment.json
    crms-config show config/deployment.json
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from rich.console import Console
from rich.table import Table

from crms.deployment.loader import ConfigError, parse_source
from crms.deployment.validator import SchemaValidator, ValidationOutcome
from crms.runtime import DeploymentServices

console = Console()


def _validate(path: Path) -> ValidationOutcome | None:
    try:
        raw = parse_source(path)
    except ConfigError as exc:
        console.print(f"[bold red]✗ {exc}[/bold red]")
        return None
    return SchemaValidator().validate(raw)


def run_check(path: Path) -> bool:
    """
    Validate the artifact at ``path`` and print a report.

    Returns:
        True if the artifact is valid, False otherwise.
    """
    console.print(f"\n[bold blue]═══ Deployment Configuration Check: {path} ═══[/bold blue]\n")

    outcome = _validate(path)
    if outcome is None:
        return False

    if not outcome.is_valid:
        console.print(f"[bold red]✗ INVALID[/bold red] — {len(outcome.violations)} violation(s)")
        table = Table(show_lines=True)
        table.add_column("Field", style="cyan")
        table.add_column("Reason", style="yellow")
        for violation in outcome.violations:
            table.add_row(violation.path, violation.reason)
        console.print(table)
        return False

    services = DeploymentServices.from_config(outcome.config)
    config = services.config
    console.print("[bold green]✓ VALID[/bold green]")

    table = Table(show_header=False)
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    table.add_row("Country", f"{config.country_name} ({config.country_code})")
    table.add_row("National ID", f"{config.national_id_system.display_name} — {config.national_id_system.format}")
    table.add_row("Languages", ", ".join(config.language.supported) + f" (default {config.language.default})")
    table.add_row("Currency", f"{config.currency.name} ({config.currency.symbol})")
    table.add_row("Offense categories", str(len(services.offenses)))
    table.add_row("Ranks", " < ".join(services.ranks.ranks))
    table.add_row("USSD", f"{config.telecom.ussd_shortcode} via {', '.join(config.telecom.ussd_gateways) or '—'}")
    table.add_row("National ID registry", "enabled" if config.integrations.national_id_registry.enabled else "disabled")
    table.add_row("Court system", "enabled" if config.integrations.court_system.enabled else "disabled")
    console.print(table)
    return True


def run_show(path: Path) -> bool:
    """Print the redacted configuration as JSON."""
    outcome = _validate(path)
    if outcome is None:
        return False
    if not outcome.is_valid:
        for violation in outcome.violations:
            console.print(f"[red]{violation}[/red]")
        return False
    console.print_json(json.dumps(outcome.config.redacted_view(), ensure_ascii=False))
    return True


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="crms-config",
        description="CRMS deployment configuration checker",
    )
    subcommands = parser.add_subparsers(dest="command", required=True)
    check = subcommands.add_parser("check", help="Validate an artifact and list every violation")
    check.add_argument("path", type=Path)
    show = subcommands.add_parser("show", help="Print the redacted configuration")
    show.add_argument("path", type=Path)

    args = parser.parse_args(argv)
    ok = run_check(args.path) if args.command == "check" else run_show(args.path)
    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
