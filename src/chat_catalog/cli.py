"""Command-line interface for chat-catalog."""

import argparse
import sys
from dataclasses import replace

from chat_catalog import __version__
from chat_catalog.config import PipelineConfig
from chat_catalog.core import build_pipeline
from chat_catalog.exceptions import ChatCatalogError
from chat_catalog.schema import NormalizedCatalog, Published, Rejected
from chat_catalog.transcript import read_transcript


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="chat-catalog",
        description="Extract a product catalogue from a group-chat transcript",
    )
    parser.add_argument("transcript", help="Path to a plain-text chat transcript")
    parser.add_argument(
        "--threshold",
        type=float,
        help="Minimum confidence to store the catalogue (default: CONFIDENCE_THRESHOLD env var, then 0.75)",
    )
    parser.add_argument(
        "--api-key",
        help="Gemini API key (default: GEMINI_API_KEY env var)",
    )
    parser.add_argument(
        "--database-url",
        help="PostgreSQL URL (default: DATABASE_URL env var; in-memory when unset)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output as JSON",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"chat-catalog {__version__}",
    )

    args = parser.parse_args(argv)

    try:
        config = PipelineConfig.from_env()
        if args.api_key:
            config = replace(config, api_key=args.api_key)
        if args.database_url:
            config = replace(config, database_url=args.database_url)
        pipeline = build_pipeline(config)
        outcome = pipeline.process(read_transcript(args.transcript), args.threshold)
    except (ChatCatalogError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.json:
        print(outcome.model_dump_json(indent=2, exclude_none=True))
    elif isinstance(outcome, Published):
        _print_published(outcome)
    else:
        _print_rejected(outcome)

    return 0 if isinstance(outcome, Published) else 1


def _print_published(outcome: Published) -> None:
    """Print a stored catalogue in human-readable format."""
    print()
    print(f"  {outcome.catalog.title}")
    if outcome.catalog.description:
        print(f"  {outcome.catalog.description}")
    print()
    _print_catalog(outcome.catalog)
    print(
        f"  Stored as catalogue {outcome.catalog_id} "
        f"({outcome.stored_item_count} items, confidence {outcome.confidence:.2f})"
    )
    print()


def _print_catalog(catalog: NormalizedCatalog) -> None:
    for category in catalog.categories:
        print(f"  [{category.name}]")
        for item in category.items:
            print(f"    - {item.name:<30} {_format_price(item.price)}")
        print()


def _print_rejected(outcome: Rejected) -> None:
    print(f"Rejected ({outcome.reason})", file=sys.stderr)
    if outcome.confidence is not None:
        print(f"  confidence: {outcome.confidence:.2f}", file=sys.stderr)
    if outcome.note:
        print(f"  note: {outcome.note}", file=sys.stderr)
    for error in outcome.errors or []:
        print(f"  - {error}", file=sys.stderr)


def _format_price(price: float | None) -> str:
    if price is None:
        return "-"
    return f"{price:.2f}"


if __name__ == "__main__":
    sys.exit(main())
