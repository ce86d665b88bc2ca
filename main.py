"""
main.py
CLI entry point for the UK Visa Cost Estimator.

Usage:
  python main.py validate [--data-dir DIR]
  python main.py demo --route skilled-worker --apply-from outside_uk --duration 36
  python main.py api
"""
import argparse
import sys
from pathlib import Path

# Ensure project root is on sys.path when running directly
sys.path.insert(0, str(Path(__file__).parent))


# Validate mode

def run_validate(data_dir: str = None) -> int:
    from validation.checker import DataChecker, print_report

    report = DataChecker(Path(data_dir) if data_dir else None).run()
    print_report(report)
    return report.exit_code


# Demo mode

def run_demo(
    route_id: str = "skilled-worker",
    apply_from: str = "outside_uk",
    duration: int = 36,
    applicants: int = 1,
    dependants: int = 0,
    priority: bool = False,
    super_priority: bool = False,
) -> int:
    from rich import box
    from rich.console import Console
    from rich.table import Table

    from calculation_engine.calculator import CostCalculator, RouteNotFoundError
    from guardrails.form_validator import FormValidator
    from knowledge_base.json_store import JSONStore
    from presentation.renderer import format_currency

    console = Console()
    console.print("\n[bold blue]═══ UK VISA COST ESTIMATOR — DEMO ═══[/bold blue]\n")

    calculator = CostCalculator.from_store(JSONStore())
    try:
        route = calculator.find_route(route_id)
    except RouteNotFoundError as exc:
        console.print(f"[red]{exc}[/red]")
        return 1

    report = FormValidator().validate(route, {
        "apply_from":         apply_from,
        "duration":           duration,
        "applicants":         applicants,
        "dependants":         dependants,
        "add_priority":       priority,
        "add_super_priority": super_priority,
    })
    if not report.passed:
        console.print("[yellow]⚠  Please fix the following:[/yellow]")
        for issue in report.issues:
            console.print(f"  [yellow]• {issue}[/yellow]")
        return 1

    params = report.params
    console.print(f"  [bold]Route:[/bold]      {route.name}")
    console.print(f"  [bold]From:[/bold]       {params.apply_from.replace('_', ' ')}")
    console.print(f"  [bold]Duration:[/bold]   {params.duration_months} months")
    console.print(f"  [bold]Applicants:[/bold] {params.applicants} + {params.dependants} dependant(s)")
    console.print()

    result = calculator.calculate(params)

    table = Table(title=f"Estimated costs — {route.name}", box=box.ROUNDED, show_lines=True)
    table.add_column("Item", style="cyan", width=40)
    table.add_column("Amount", justify="right", style="green", width=16)
    for line in result.breakdown:
        table.add_row(line.item, format_currency(line.amount))
    table.add_section()
    table.add_row("[bold]Total Estimated Cost[/bold]", f"[bold]{format_currency(result.total)}[/bold]")
    console.print(table)
    console.print(f"\n  Fees last reviewed: {result.last_reviewed}\n")
    return 0


# ── API mode ──────────────────────────────────────────────────────────────────

def run_api() -> None:
    import uvicorn
    from config.settings import settings
    from monitoring import start_metrics_server
    start_metrics_server(settings.metrics_port)
    uvicorn.run(
        "api.app:app",
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower(),
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="UK Visa Cost Estimator")
    sub = parser.add_subparsers(dest="command", required=True)

    v = sub.add_parser("validate", help="Check the data tables for consistency")
    v.add_argument(
        "--data-dir", default=None, metavar="DIR",
        help="Site root holding data/ and content/ (default: $VISA_DATA_DIR or the project root)",
    )

    d = sub.add_parser("demo", help="Print a cost breakdown for one route")
    d.add_argument("--route", default="skilled-worker")
    d.add_argument("--apply-from", default="outside_uk", choices=["inside_uk", "outside_uk"])
    d.add_argument("--duration", type=int, default=36, help="Months")
    d.add_argument("--applicants", type=int, default=1)
    d.add_argument("--dependants", type=int, default=0)
    d.add_argument("--priority", action="store_true")
    d.add_argument("--super-priority", action="store_true")

    sub.add_parser("api", help="Serve the HTTP API")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    if args.command == "validate":
        return run_validate(args.data_dir)
    if args.command == "demo":
        return run_demo(
            route_id=args.route,
            apply_from=args.apply_from,
            duration=args.duration,
            applicants=args.applicants,
            dependants=args.dependants,
            priority=args.priority,
            super_priority=args.super_priority,
        )
    run_api()
    return 0


if __name__ == "__main__":
    sys.exit(main())
