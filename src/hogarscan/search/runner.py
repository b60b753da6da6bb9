"""CLI runner for one-off searches.

Run via: python -m hogarscan.search.runner --city Bogotá --min-rooms 3
"""

import argparse
import logging
import sys
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ..config import config
from ..models.criteria import Preferences, SearchCriteria
from ..models.property import SearchResult, SortKey, SourceStatus
from .orchestrator import SearchOrchestrator

console = Console()

STATUS_STYLES = {
    SourceStatus.OK: "green",
    SourceStatus.FAILED: "red",
    SourceStatus.TIMEOUT: "yellow",
    SourceStatus.SKIPPED: "dim",
}


def setup_logging(verbose: bool = False) -> None:
    """Configure logging with Rich handler."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="hogarscan property search",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m hogarscan.search.runner --city Bogotá --min-rooms 3 --max-price 3500000
  python -m hogarscan.search.runner --neighborhood Usaquén --amenity gimnasio --sort price
  python -m hogarscan.search.runner --operation venta --source fincaraiz --json
        """,
    )

    parser.add_argument("--operation", default="arriendo", choices=["arriendo", "venta"])
    parser.add_argument("--type", dest="property_types", action="append", default=[],
                        help="Property type, repeatable (e.g. apartamento)")
    parser.add_argument("--city", default=None, help=f"City (default {config.default_city})")
    parser.add_argument("--neighborhood", dest="neighborhoods", action="append", default=[],
                        help="Required neighborhood, repeatable")

    for name in ("rooms", "bathrooms", "parking", "area", "price", "stratum"):
        parser.add_argument(f"--min-{name}", type=float, default=None)
        parser.add_argument(f"--max-{name}", type=float, default=None)
    parser.add_argument("--allow-admin-overage", action="store_true",
                        help="Check the price ceiling against the base price only")

    parser.add_argument("--amenity", dest="amenities", action="append", default=[])
    parser.add_argument("--wet-area", dest="wet_areas", action="append", default=[])
    parser.add_argument("--sport", dest="sports", action="append", default=[])
    parser.add_argument("--prefer", dest="preferred_neighborhoods", action="append", default=[],
                        help="Preferred (not required) neighborhood, repeatable")

    parser.add_argument("--source", dest="sources", action="append", default=[],
                        help="Restrict to a source id, repeatable")
    parser.add_argument("--page", type=int, default=1)
    parser.add_argument("--limit", type=int, default=None)
    parser.add_argument("--sort", default=config.default_sort,
                        choices=[key.value for key in SortKey])
    parser.add_argument("--json", action="store_true", help="Print the raw result as JSON")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging")
    return parser


def build_criteria(args: argparse.Namespace) -> SearchCriteria:
    """SearchCriteria from parsed arguments.

    Raises:
        InvalidCriteriaError: If a minimum exceeds its maximum
    """
    return SearchCriteria.from_filters(
        operation=args.operation,
        property_types=args.property_types,
        city=args.city or config.default_city,
        neighborhoods=args.neighborhoods,
        min_rooms=args.min_rooms,
        max_rooms=args.max_rooms,
        min_bathrooms=args.min_bathrooms,
        max_bathrooms=args.max_bathrooms,
        min_parking=args.min_parking,
        max_parking=args.max_parking,
        min_area=args.min_area,
        max_area=args.max_area,
        min_total_price=args.min_price,
        max_total_price=args.max_price,
        min_stratum=args.min_stratum,
        max_stratum=args.max_stratum,
        allow_admin_overage=args.allow_admin_overage,
        preferences=Preferences(
            amenities=args.amenities,
            wet_areas=args.wet_areas,
            sports=args.sports,
            preferred_neighborhoods=args.preferred_neighborhoods,
        ),
        sources=args.sources,
    )


def print_result(result: SearchResult) -> None:
    """Render the page and the per-source breakdown as Rich tables."""
    table = Table(title=f"Page {result.page} - {result.total} matches")
    table.add_column("Score", justify="right")
    table.add_column("Title")
    table.add_column("Barrio")
    table.add_column("Total", justify="right")
    table.add_column("m²", justify="right")
    table.add_column("Hab", justify="right")
    table.add_column("Baños", justify="right")
    table.add_column("Fuente")

    for listing in result.properties:
        table.add_row(
            f"{result.scores.get(listing.id, 0):.2f}",
            listing.title[:50],
            listing.location.neighborhood[:25],
            f"${listing.total_price:,}",
            f"{listing.area:g}",
            str(listing.rooms),
            str(listing.bathrooms),
            listing.source,
        )
    console.print(table)

    sources = Table(title="Sources")
    sources.add_column("Source")
    sources.add_column("Status")
    sources.add_column("Matches", justify="right")
    sources.add_column("Raw", justify="right")
    sources.add_column("ms", justify="right")
    sources.add_column("Error")
    for name, report in result.source_breakdown.items():
        style = STATUS_STYLES.get(report.status, "")
        sources.add_row(
            name,
            f"[{style}]{report.status.value}[/{style}]",
            str(report.count),
            str(report.raw_records),
            str(report.elapsed_ms),
            report.error or "",
        )
    console.print(sources)

    d = result.diagnostics
    console.print(
        f"[dim]raw {d.raw_records} | extraction skips {d.extraction_skips} | "
        f"rejected {d.normalization_rejects} | filtered {d.hard_filter_rejects} | "
        f"duplicates {d.duplicates_removed} | {result.execution_time_ms} ms[/dim]"
    )


def main(argv: Optional[list[str]] = None) -> None:
    """Main entry point for CLI."""
    args = build_parser().parse_args(argv)
    setup_logging(verbose=args.verbose)

    try:
        criteria = build_criteria(args)
        result = SearchOrchestrator().search_sync(
            criteria, page=args.page, limit=args.limit, sort_by=args.sort
        )
    except ValueError as e:  # InvalidCriteriaError or a pydantic ValidationError
        console.print(f"[red]Invalid search: {e}[/red]")
        sys.exit(2)
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted[/yellow]")
        sys.exit(130)

    if args.json:
        console.print_json(result.model_dump_json())
    else:
        print_result(result)
    sys.exit(0)


if __name__ == "__main__":
    main()
