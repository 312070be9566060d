#!/usr/bin/env python3
"""
Google Drive to Markdown Export Tool - Main CLI Entry Point

This script provides the command-line interface for exporting every Google
Docs document below a Drive folder to markdown files with YAML frontmatter,
tagged with the names of the folders that contain them.
"""

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path

import yaml

# Add project root to Python path for relative imports
current_dir = Path(__file__).parent
sys.path.insert(0, str(current_dir))

# Project imports
from config_loader import DEFAULT_OUTPUT_DIRECTORY, ConfigLoader, get_nested
from drive_client import DriveClient
from logger import log_config, log_section, setup_logging
from orchestrator import ExportOrchestrator

# Version
__version__ = "1.0.0"


def create_argument_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser for CLI."""
    parser = argparse.ArgumentParser(
        description="Export Google Docs from a Drive folder tree to Markdown files",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Export using a config file
  drive-export --config config.yaml

  # Export a folder without a config file
  drive-export --folder-id 1AbCdEf --output-dir ./docs

  # Preview the documents that would be exported
  drive-export --folder-id 1AbCdEf --dry-run

  # Keep going when single documents fail, and save a JSON report
  drive-export --continue-on-error --report export_report.json

  # Verbose logging
  drive-export -vv
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
        default='config.yaml',
        help='Path to configuration YAML file (default: config.yaml)'
    )

    parser.add_argument(
        '--folder-id',
        type=str,
        help='Google Drive folder ID to export (overrides drive.folder_id)'
    )

    parser.add_argument(
        '--output-dir',
        type=str,
        help='Directory to write markdown files to (overrides export.output_directory)'
    )

    parser.add_argument(
        '--credentials-file',
        type=str,
        help='Service account JSON key file (default: application default credentials)'
    )

    parser.add_argument(
        '--max-concurrency',
        type=int,
        help='Maximum number of documents exported concurrently'
    )

    parser.add_argument(
        '--continue-on-error',
        action=argparse.BooleanOptionalAction,
        default=None,
        help='Record per-document fetch failures instead of aborting the run'
    )

    parser.add_argument(
        '--dry-run',
        action=argparse.BooleanOptionalAction,
        default=None,
        help='List the documents that would be exported without fetching them'
    )

    parser.add_argument(
        '--progress',
        action=argparse.BooleanOptionalAction,
        default=None,
        help='Show a progress bar while fetching documents'
    )

    parser.add_argument(
        '--report',
        type=str,
        help='Write a JSON run report to this path'
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
    Build the effective configuration.

    The config file is optional when the required values come from CLI
    flags or INPUT_* environment variables. Precedence, highest first:
    CLI flags, config file, INPUT_* variables, built-in defaults.

    Raises:
        FileNotFoundError: If an explicitly named config file is missing
        ValueError: If the resulting configuration is invalid
    """
    if os.path.exists(args.config):
        config = ConfigLoader.load(args.config)
    elif args.config != 'config.yaml':
        raise FileNotFoundError(f"Configuration file not found: {args.config}")
    else:
        config = {}

    config = ConfigLoader.apply_action_inputs(config)
    config = ConfigLoader.merge_with_args(config, args)

    if not get_nested(config, 'export.output_directory'):
        config['export']['output_directory'] = DEFAULT_OUTPUT_DIRECTORY

    ConfigLoader.validate(config)
    return config


def run_export(config: dict, args: argparse.Namespace, logger: logging.Logger) -> int:
    """Execute the complete export pipeline."""
    folder_id = get_nested(config, 'drive.folder_id')
    dry_run = bool(args.dry_run)
    report_path = get_nested(config, 'export.report_path')

    logger.info(f"Folder: {folder_id}, Dry-run: {dry_run}")

    try:
        client = DriveClient.from_config(config)
        orchestrator = ExportOrchestrator(config, client, logger)

        report = asyncio.run(orchestrator.run(folder_id, dry_run=dry_run))

        print("\n" + report.format_console_report())

        if report_path:
            report.export_json_report(report_path)

        if report.aborted:
            logger.error(f"Export aborted: {report.aborted}")
            return 1
        if report.failures:
            logger.warning(f"Export completed with {len(report.failures)} failed documents")
            return 1

        logger.info("Export completed successfully")
        return 0

    except KeyboardInterrupt:
        logger.error("Export interrupted by user")
        return 130
    except Exception as e:
        logger.error(f"Export failed: {str(e)}", exc_info=True)
        return 1


def main(argv=None) -> int:
    """Main entry point for the CLI."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    try:
        # Minimal logging until the configuration is known
        setup_logging(verbosity=args.verbose)
        logger = logging.getLogger('drive_markdown_exporter.cli')

        log_section("Google Drive to Markdown Export Tool")
        logger.info(f"Version: {__version__}")
        logger.info(f"Loading configuration from {args.config}")

        config = load_configuration(args)

        # Reconfigure logging with config file settings
        setup_logging(
            verbosity=args.verbose,
            log_file=get_nested(config, 'logging.file'),
            level=get_nested(config, 'logging.level')
        )
        log_config(config)

        return run_export(config, args, logger)

    except FileNotFoundError as e:
        print(f"ERROR: File not found: {e}", file=sys.stderr)
        return 2
    except (ValueError, yaml.YAMLError) as e:
        print(f"ERROR: Configuration error: {e}", file=sys.stderr)
        return 2
    except KeyboardInterrupt:
        print("\nExport interrupted by user", file=sys.stderr)
        return 130
    except Exception as e:
        print(f"ERROR: Unexpected error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
