#!/usr/bin/env python3
"""
refresh-pins - Build the site's pin collection from markdown.

Command-line entry point for running the full pipeline:
  - Parse every pin file in the pins directory
  - Normalize tags and infer content types and sources
  - Resolve thumbnails (explicit → catalog → cache → placeholder)
  - Fetch missing OpenGraph metadata for refreshable sources
  - Write the pin collection JSON and print a summary

Usage:
    python main.py                      # Refresh all sources
    python main.py --source vimeo       # Only refresh Vimeo pins
    python main.py --offline            # Cache and catalog only, no fetches
    python main.py --dry-run            # Resolve everything, write nothing

Examples:
    # Re-fetch metadata for YouTube pins even if cached
    python main.py --source youtube --force

    # Quick local build before previewing the site
    python main.py --offline --quiet
"""

import argparse
import sys

from pinfeed.pipeline import (
    PinsPipeline,
    PipelineConfig,
    PipelineResult,
)
from pinfeed.config import (
    MAX_FETCHES_PER_RUN,
    PINS_OUTPUT_PATH,
    print_config_summary,
    validate_config,
)
from pinfeed.sources import SERVICE_NAMES


__version__ = "1.0.0"


def create_parser() -> argparse.ArgumentParser:
    """Create the command-line argument parser."""
    parser = argparse.ArgumentParser(
        prog="refresh-pins",
        description="Build the pin collection from markdown pin files.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Sources:
  {', '.join(SERVICE_NAMES)}, all, or the stem of any other file in the pins directory

Examples:
  %(prog)s                           Refresh every source
  %(prog)s --source vimeo youtube    Only refresh Vimeo and YouTube pins
  %(prog)s --force                   Re-fetch metadata even if cached
  %(prog)s --offline                 Use cache and catalog only
  %(prog)s --dry-run -v              Verbose run that writes nothing
        """,
    )

    # Core options
    parser.add_argument(
        "--source",
        nargs="+",
        metavar="SOURCE",
        help="Sources to refresh (default: all)",
    )

    parser.add_argument(
        "--force", "-f",
        action="store_true",
        help="Re-fetch metadata for pins not resolved by an explicit or catalog thumbnail",
    )

    parser.add_argument(
        "--offline",
        action="store_true",
        help="Never fetch; resolve from cache and catalog only",
    )

    parser.add_argument(
        "--dry-run", "-n",
        action="store_true",
        help="Resolve pins but write neither output nor cache",
    )

    parser.add_argument(
        "--fetch-limit",
        type=int,
        default=None,
        metavar="N",
        help=f"Maximum live fetches in this run (default: {MAX_FETCHES_PER_RUN})",
    )

    # Paths
    parser.add_argument(
        "--pins-dir",
        default=None,
        metavar="DIR",
        help="Directory holding the pin markdown files",
    )

    parser.add_argument(
        "--output", "-o",
        default=None,
        metavar="PATH",
        help=f"Where to write the pin collection (default: {PINS_OUTPUT_PATH})",
    )

    parser.add_argument(
        "--cache",
        default=None,
        metavar="PATH",
        help="Metadata cache file",
    )

    parser.add_argument(
        "--catalog",
        default=None,
        metavar="PATH",
        help="Thumbnail catalog file",
    )

    # Output options
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Show detailed progress and debug info",
    )

    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Only show errors and final summary",
    )

    # Info options
    parser.add_argument(
        "--show-config",
        action="store_true",
        help="Show current configuration and exit",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    return parser


def show_config() -> None:
    """Display current configuration."""
    print("=" * 60)
    print("Pinfeed Configuration")
    print("=" * 60)
    print_config_summary()

    errors = validate_config()
    if errors:
        print("\nConfiguration warnings:")
        for error in errors:
            print(f"  ⚠️  {error}")
    else:
        print("\n✓ Configuration valid")
    print("=" * 60)


def print_result_summary(result: PipelineResult, verbose: bool = False) -> None:
    """Print the pipeline result summary."""
    print(result.to_summary())

    if verbose and result.collection is not None:
        placeholders = [
            pin for pin in result.collection.pins if pin.thumbnail_tier == "placeholder"
        ]
        if placeholders:
            print("\nPins still using the placeholder:")
            for pin in placeholders[:10]:
                print(f"  - {pin.source_file}:{pin.line_number} {pin.url}")


def exit_code_for(result: PipelineResult) -> int:
    """
    Map a pipeline result to a process exit code.

    Per-pin fetch failures are recoverable and never change the exit code.
    """
    if result.fatal or result.config_errors:
        return 1
    if result.sources_failed > 0 and result.sources_succeeded == 0:
        return 1
    return 0


def main(argv: list = None) -> int:
    """
    Main entry point.

    Args:
        argv: Command-line arguments (default: sys.argv[1:]).

    Returns:
        Exit code (0 = success, 1 = error, 130 = interrupted).
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    # Handle --show-config
    if args.show_config:
        show_config()
        return 0

    if args.fetch_limit is not None and args.fetch_limit < 0:
        parser.error("--fetch-limit cannot be negative")

    # Print header (unless quiet)
    if not args.quiet:
        print("=" * 60)
        print("Pinfeed Refresh")
        print("=" * 60)

        if args.dry_run:
            print("Mode: DRY RUN (no output or cache writes)")

        if args.verbose:
            print("\nConfiguration:")
            print_config_summary()
            print()

    config = PipelineConfig.from_args(args)

    # Show effective settings
    if not args.quiet:
        print("Settings:")
        print(f"  Sources: {', '.join(config.sources) if config.sources else 'all'}")
        print(f"  Live fetch: {config.live_fetch}")
        print(f"  Force: {config.force}")
        print(f"  Fetch limit: {config.fetch_limit}")
        print(f"  Output: {config.output_path}")
        print()

    try:
        pipeline = PinsPipeline(config)
        result = pipeline.run()

        # Summary is always shown; --quiet only suppresses progress
        print_result_summary(result, config.verbose)

        code = exit_code_for(result)
        if result.config_errors:
            print(f"\n⚠️  {len(result.config_errors)} configuration error(s); see above")
        return code

    except KeyboardInterrupt:
        print("\n\nInterrupted by user")
        return 130
    except Exception as e:
        print(f"\n❌ Pipeline error: {e}")
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 1


def run() -> None:
    """Console script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    run()
