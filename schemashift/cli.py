# File: schemashift/cli.py
"""
schemashift - Command-Line Interface
=====================================

Built with the standard-library ``argparse`` module.

Usage examples::

    # Convert a directory of legacy schema files into YAML mappings
    python -m schemashift schema/ -o ./mappings

    # JSON output, keep going past broken models
    python -m schemashift a.yml b.yml -o ./out --format json --no-strict

    # Print the converted metadata without writing files
    python -m schemashift schema.yml --dry-run

Exit codes:
    0 — success
    1 — conversion error
    3 — export error
    4 — input/argument error
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, NoReturn, Optional, Sequence

from pydantic import ValidationError

from schemashift.models import ConversionConfig, SchemaSourceError

# ---------------------------------------------------------------------------
# Logger (configured in _setup_logging)
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemashift")


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------

EXIT_SUCCESS: int = 0
EXIT_CONVERSION_ERROR: int = 1
EXIT_EXPORT_ERROR: int = 3
EXIT_INPUT_ERROR: int = 4


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def _setup_logging(verbosity: int) -> None:
    """
    Configure the root schemashift logger.

    Args:
        verbosity: 0 = WARNING, 1 = INFO, 2+ = DEBUG.
    """
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity >= 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    handler: logging.StreamHandler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)

    fmt: str = "%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s"
    handler.setFormatter(logging.Formatter(fmt, datefmt="%H:%M:%S"))

    root_logger: logging.Logger = logging.getLogger("schemashift")
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.propagate = False


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    from schemashift import __version__

    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        prog="schemashift",
        description=(
            "Convert legacy declarative schema files (models with columns, "
            "indexes and relations) into normalized mapping metadata."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  %(prog)s schema/ -o ./mappings\n"
            "  %(prog)s a.yml b.yml -o ./out --format json --no-strict\n"
            "  %(prog)s schema.yml --dry-run\n"
        ),
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"schemashift v{__version__}",
    )

    parser.add_argument(
        "sources",
        nargs="+",
        metavar="SOURCE",
        help="Schema file or directory; later sources override earlier models.",
    )
    parser.add_argument(
        "-o", "--output",
        type=str,
        default=None,
        metavar="DIR",
        help="Directory for the mapping files. Omit to print to stdout.",
    )
    parser.add_argument(
        "-c", "--config",
        type=str,
        default=None,
        metavar="PATH",
        help="YAML/JSON file with conversion settings.",
    )

    config_group = parser.add_argument_group("configuration overrides")
    config_group.add_argument(
        "--format",
        dest="output_format",
        type=str,
        default=None,
        choices=["yaml", "json"],
        help="Mapping file format (default: yaml).",
    )
    config_group.add_argument(
        "--pattern",
        dest="file_patterns",
        action="append",
        default=None,
        metavar="GLOB",
        help="File pattern for directory sources (repeatable).",
    )
    config_group.add_argument(
        "--no-strict",
        action="store_true",
        default=False,
        help="Report failing models and keep converting the rest.",
    )
    config_group.add_argument(
        "--clean",
        action="store_true",
        default=False,
        help="Empty the output directory before writing.",
    )
    config_group.add_argument(
        "--overwrite",
        action="store_true",
        default=False,
        help="Replace mapping files that already exist.",
    )
    config_group.add_argument(
        "--no-manifest",
        action="store_true",
        default=False,
        help="Do not write manifest.json.",
    )

    mode_group = parser.add_argument_group("operation modes")
    mode_group.add_argument(
        "--dry-run",
        action="store_true",
        default=False,
        help="Convert and print the result; never write files.",
    )

    verbosity_group = parser.add_argument_group("verbosity")
    verbosity_group.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v for INFO, -vv for DEBUG).",
    )
    verbosity_group.add_argument(
        "-q", "--quiet",
        action="store_true",
        default=False,
        help="Suppress all output except errors.",
    )

    return parser


# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------


def _build_config_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}

    if args.output_format is not None:
        overrides["output_format"] = args.output_format
    if args.file_patterns:
        overrides["file_patterns"] = args.file_patterns
    if args.no_strict:
        overrides["strict"] = False
    if args.clean:
        overrides["clean_output"] = True
    if args.overwrite:
        overrides["overwrite_existing"] = True
    if args.no_manifest:
        overrides["write_manifest"] = False

    return overrides


def _load_config(args: argparse.Namespace) -> ConversionConfig:
    """Config file first, CLI flags on top."""
    from schemashift.loader import load_schema_file

    data: Dict[str, Any] = {}
    if args.config is not None:
        data = dict(load_schema_file(Path(args.config)))
    data.update(_build_config_overrides(args))
    return ConversionConfig.model_validate(data)


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def cli_main(argv: Optional[Sequence[str]] = None) -> NoReturn:
    """
    Main CLI entry point.

    Args:
        argv: Optional argument list (defaults to sys.argv[1:]).
    """
    from schemashift.exporters import render_metadata
    from schemashift.pipeline import ConversionReport, SchemaConverter

    parser: argparse.ArgumentParser = _build_parser()
    args: argparse.Namespace = parser.parse_args(argv)

    if args.quiet:
        verbosity: int = -1
    else:
        verbosity = args.verbose
    _setup_logging(verbosity)
    if args.quiet:
        logging.getLogger("schemashift").setLevel(logging.ERROR)

    try:
        config = _load_config(args)
    except (SchemaSourceError, ValidationError) as exc:
        logger.error("Invalid configuration: %s", exc)
        sys.exit(EXIT_INPUT_ERROR)

    output_dir: Optional[Path] = None
    if args.output is not None and not args.dry_run:
        output_dir = Path(args.output).resolve()

    logger.info("Sources: %s", ", ".join(args.sources))
    logger.info("Output:  %s", output_dir or "<stdout>")
    logger.info("Strict:  %s", config.strict)

    report: ConversionReport = SchemaConverter(config).run(args.sources, output_dir)

    if output_dir is None:
        for metadata in report.metadatas:
            sys.stdout.write(
                render_metadata(metadata, config.output_format, config.indent_size)
            )
    if not args.quiet:
        print(report.summary(), file=sys.stderr)

    if report.load_errors:
        exit_code: int = EXIT_INPUT_ERROR
    elif report.conversion_errors:
        exit_code = EXIT_CONVERSION_ERROR
    elif report.export_errors:
        exit_code = EXIT_EXPORT_ERROR
    else:
        exit_code = EXIT_SUCCESS

    if exit_code == EXIT_SUCCESS:
        logger.info("Conversion completed successfully.")
    else:
        logger.error("Conversion failed with exit code %d.", exit_code)

    sys.exit(exit_code)


def main() -> NoReturn:
    cli_main()


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "cli_main",
    "main",
    "EXIT_SUCCESS",
    "EXIT_CONVERSION_ERROR",
    "EXIT_EXPORT_ERROR",
    "EXIT_INPUT_ERROR",
]

logger.debug("schemashift.cli loaded.")
