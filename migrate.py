#!/usr/bin/env python3
"""
MoinMoin to Markdown Migration Tool - Main CLI Entry Point

This script provides the command-line interface for crawling a MoinMoin wiki
into a local directory tree and translating every page to Markdown in place.
"""

import argparse
import logging
import sys
from pathlib import Path

import yaml

# Add project root to Python path for relative imports
current_dir = Path(__file__).parent
sys.path.insert(0, str(current_dir))

# Project imports
from config_loader import ConfigLoader, WORKFLOWS
from logger import setup_logging, log_section, log_config
from fetchers import FetcherError
from exporters import PageStoreError
from orchestrator import MigrationOrchestrator, MigrationReport

# Version
__version__ = "1.0.0"


def create_argument_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser for CLI."""
    parser = argparse.ArgumentParser(
        description="Migrate a MoinMoin wiki to a tree of Markdown files",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Crawl and translate using a config file
  python migrate.py --config config.yaml

  # Crawl a wiki without a config file
  python migrate.py --url https://wiki.example.org --wiki-name mywiki \\
      --session-cookie-name MOIN_SESSION --session-cookie abc123

  # Re-translate an already crawled tree
  python migrate.py --url https://wiki.example.org --workflow translate_only --output-dir mywiki

  # Dry-run mode (preview)
  python migrate.py --config config.yaml --dry-run

  # Verbose logging
  python migrate.py --config config.yaml -vv

  # Also list the links whose target page does not exist
  python migrate.py --config config.yaml --unresolved-csv unresolved_links.csv
        """
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {__version__}'
    )

    parser.add_argument(
        '--config',
        type=str,
        help='Path to configuration YAML file (optional; CLI flags can replace it)'
    )

    parser.add_argument(
        '--workflow',
        choices=list(WORKFLOWS),
        help='Migration workflow (default: crawl_then_translate)'
    )

    parser.add_argument(
        '--output-dir',
        type=str,
        help='Root directory of the markdown tree (default: the wiki name)'
    )

    parser.add_argument(
        '--url',
        type=str,
        help='Base URL of the wiki server, e.g. https://wiki.example.org'
    )

    parser.add_argument(
        '--wiki-name',
        type=str,
        help='Name of the wiki below the base URL'
    )

    parser.add_argument(
        '--session-cookie-name',
        type=str,
        help='Name of the session cookie'
    )

    parser.add_argument(
        '--session-cookie',
        type=str,
        help='Value of the session cookie'
    )

    parser.add_argument(
        '--report-path',
        type=str,
        help='Write the JSON migration report to this file'
    )

    parser.add_argument(
        '--unresolved-csv',
        type=str,
        help='Write the links whose target page does not exist to this CSV file'
    )

    parser.add_argument(
        '--log-file',
        type=str,
        help='Also write log output to this file'
    )

    parser.add_argument(
        '--dry-run',
        action=argparse.BooleanOptionalAction,
        default=None,
        help='Preview migration without writing files'
    )

    parser.add_argument(
        '-v', '--verbose',
        action='count',
        default=0,
        help='Increase verbosity (-v for INFO, -vv for DEBUG)'
    )

    return parser


def load_configuration(args: argparse.Namespace) -> dict:
    """
    Load, merge and validate the configuration.

    Raises:
        FileNotFoundError: If --config names a missing file
        ValueError: If the merged configuration is invalid
    """
    config = ConfigLoader.load(args.config) if args.config else {}
    config = ConfigLoader.merge_with_args(config, args)
    ConfigLoader.validate(config)
    return config


def run_migration(config: dict, args: argparse.Namespace, logger: logging.Logger) -> int:
    """Execute the complete migration pipeline."""
    run_config = ConfigLoader.build_run_config(config, verbosity=args.verbose)
    logger.info(f"Workflow: {run_config.workflow}, Dry-run: {run_config.dry_run}")

    try:
        orchestrator = MigrationOrchestrator(run_config, logger=logger)
        report = orchestrator.orchestrate_migration()
    except KeyboardInterrupt:
        logger.error("Migration interrupted by user")
        return 130
    except (FetcherError, PageStoreError) as e:
        logger.error(f"Migration aborted: {str(e)}")
        return 1

    report_generator = MigrationReport(logger)
    print("\n" + report_generator.format_console_report(report))

    if run_config.report_path:
        report_generator.export_json_report(report, run_config.report_path)

    if run_config.unresolved_csv_path:
        report_generator.export_unresolved_links_csv(report, run_config.unresolved_csv_path)

    errors = report.get('summary', {}).get('total_errors', 0)
    if errors > 0:
        logger.warning(f"Migration completed with {errors} non-fatal errors")
    else:
        logger.info("Migration completed successfully")
    return 0


def main() -> int:
    """Main entry point for the CLI."""
    parser = create_argument_parser()
    args = parser.parse_args()

    try:
        setup_logging(verbosity=args.verbose)
        logger = logging.getLogger('moin_markdown_migrator.cli')

        log_section("MoinMoin to Markdown Migration Tool")
        logger.info(f"Version: {__version__}")

        if args.config:
            logger.info(f"Loading configuration from {args.config}")
        config = load_configuration(args)

        # Reconfigure logging with config file settings
        logging_settings = config.get('logging', {})
        setup_logging(
            verbosity=args.verbose,
            log_file=logging_settings.get('file'),
            level=logging_settings.get('level') if not args.verbose else None
        )
        log_config(config)

        return run_migration(config, args, logger)

    except FileNotFoundError as e:
        print(f"ERROR: File not found: {e}", file=sys.stderr)
        return 2
    except ValueError as e:
        print(f"ERROR: Configuration error: {e}", file=sys.stderr)
        return 2
    except yaml.YAMLError as e:
        print(f"ERROR: Invalid configuration file: {e}", file=sys.stderr)
        return 2
    except KeyboardInterrupt:
        print("\nMigration interrupted by user", file=sys.stderr)
        return 130
    except Exception as e:
        print(f"ERROR: Unexpected error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
