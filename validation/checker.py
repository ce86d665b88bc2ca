"""
validation/checker.py
Offline consistency check over the static data tables.

Run on demand via `python main.py validate`; it is never part of a
calculation. Hard errors (unparseable file, duplicate route ids, dangling
fee keys, ids or fee keys of the wrong type, missing required fields) fail the run; an indexable route without
a content file is only a warning.
"""
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from config.settings import settings
from knowledge_base.integrity import (
    duplicate_route_ids,
    invalid_route_ids,
    missing_fee_references,
    missing_required_fields,
    routes_missing_content,
)
from monitoring import get_logger

log = get_logger(__name__)


@dataclass
class CheckEntry:
    level: str      # info | success | error | warning
    message: str


@dataclass
class CheckReport:
    entries: list[CheckEntry] = field(default_factory=list)
    aborted: bool = False

    @property
    def errors(self) -> int:
        return sum(1 for e in self.entries if e.level == "error")

    @property
    def warnings(self) -> int:
        return sum(1 for e in self.entries if e.level == "warning")

    @property
    def exit_code(self) -> int:
        return 1 if self.errors else 0

    def info(self, msg: str) -> None:
        self.entries.append(CheckEntry("info", msg))

    def success(self, msg: str) -> None:
        self.entries.append(CheckEntry("success", msg))

    def error(self, msg: str) -> None:
        self.entries.append(CheckEntry("error", msg))

    def warn(self, msg: str) -> None:
        self.entries.append(CheckEntry("warning", msg))


class DataChecker:

    def __init__(self, site_root: Optional[Path] = None) -> None:
        self.site_root = Path(site_root or settings.site_root)

    def _load_json(self, rel_path: str, report: CheckReport) -> Any:
        path = self.site_root / rel_path
        try:
            with open(path, encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            report.error(f"Failed to parse {path}: {exc}")
            return None

    def run(self) -> CheckReport:
        report = CheckReport()

        report.info("1. Checking JSON file integrity...")
        routes = self._load_json(settings.routes_file, report)
        fees   = self._load_json(settings.fees_file, report)
        rules  = self._load_json(settings.rules_file, report)

        if routes is None or fees is None or rules is None:
            report.error("One or more JSON files failed to parse. Aborting validation.")
            report.aborted = True
            return report
        if not isinstance(routes, list) or not all(isinstance(r, dict) for r in routes):
            report.error(f"{settings.routes_file} must be an array of route objects. Aborting validation.")
            report.aborted = True
            return report
        if not isinstance(fees, dict):
            report.error(f"{settings.fees_file} must be an object keyed by fee name. Aborting validation.")
            report.aborted = True
            return report
        report.success("All JSON files parsed successfully.")

        report.info("2. Checking route_id uniqueness...")
        bad_ids = invalid_route_ids(routes)
        for msg in bad_ids:
            report.error(msg)
        dupes = duplicate_route_ids(routes)
        if dupes:
            report.error(f"Duplicate route_ids found: {', '.join(dupes)}")
        elif not bad_ids:
            report.success("All route_ids are unique.")

        report.info("3. Verifying fee references...")
        missing = missing_fee_references(routes, fees)
        for msg in missing:
            report.error(msg)
        if not missing:
            report.success("All fee references are valid.")

        report.info("4. Checking required route fields...")
        absent = missing_required_fields(routes, settings.required_route_fields)
        for msg in absent:
            report.error(msg)
        if not absent:
            report.success("All routes have their required fields.")

        report.info("5. Checking indexable routes have content files...")
        for route_id, path in routes_missing_content(routes, self.site_root / settings.content_dir):
            report.warn(f'Indexable route "{route_id}" missing content file: {path}')

        log.info("Data validation finished", errors=report.errors, warnings=report.warnings)
        return report


_STYLES = {
    "info":    ("cyan", ""),
    "success": ("green", "✓ "),
    "error":   ("red", "✗ ERROR: "),
    "warning": ("yellow", "⚠ WARNING: "),
}


def print_report(report: CheckReport, console=None, err_console=None) -> None:
    """Progress and summary go to console; errors and warnings to err_console."""
    from rich.console import Console
    from rich.markup import escape

    if console is None:
        console = Console()
        err_console = err_console or Console(stderr=True)
    err_console = err_console or console

    console.print("\n[cyan]=== UK Visa Calculator - Data Validation ===[/cyan]\n")
    for entry in report.entries:
        colour, prefix = _STYLES[entry.level]
        out = err_console if entry.level in ("error", "warning") else console
        out.print(f"[{colour}]{prefix}{escape(entry.message)}[/{colour}]")

    if report.aborted:
        return

    console.print("\n[cyan]=== Validation Summary ===[/cyan]")
    if report.errors == 0 and report.warnings == 0:
        console.print("[green]✓ All checks passed! ✨[/green]")
        return
    if report.errors:
        console.print(f"[red]{report.errors} error(s) found[/red]")
    if report.warnings:
        console.print(f"[yellow]{report.warnings} warning(s) found[/yellow]")
