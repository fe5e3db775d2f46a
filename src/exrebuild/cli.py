from __future__ import annotations

import argparse
import logging
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from .config import RecreateOptions
from .errors import RecreateError
from .io import load_metadata
from .recreate import reconstruct, save, validate
from .shared.output_path import apply_conflict_policy, resolve_output_path
from .types import LogLevel, OnConflictPolicy

logger = logging.getLogger(__name__)


class CliConfig(BaseModel):
    """Configuration for one command-line invocation."""

    inputs: list[Path] = Field(..., description="Metadata JSON files to recreate.")
    out_dir: Path | None = Field(default=None, description="Output directory.")
    out_name: str | None = Field(
        default=None, description="Output file name (single input only)."
    )
    on_conflict: OnConflictPolicy = Field(
        default="overwrite", description="Output conflict policy."
    )
    options: RecreateOptions = Field(
        default_factory=RecreateOptions, description="Reconstruction options."
    )
    validate_only: bool = Field(
        default=False, description="Only validate metadata; write nothing."
    )
    strict: bool = Field(
        default=False, description="Skip a file when validation reports issues."
    )
    log_level: LogLevel = Field(default="INFO", description="Logging level.")
    log_file: Path | None = Field(default=None, description="Optional log file path.")


def main(argv: list[str] | None = None) -> int:
    """Run the exrebuild command line.

    Args:
        argv: Optional CLI arguments for testing.

    Returns:
        Exit code (0 when every input succeeded, 1 otherwise).
    """
    config = _parse_args(argv)
    _configure_logging(config)
    failures = 0
    for input_path in config.inputs:
        if not run_one(input_path, config):
            failures += 1
    if failures:
        logger.error("%d of %d input(s) failed.", failures, len(config.inputs))
        return 1
    return 0


def run_one(input_path: Path, config: CliConfig) -> bool:
    """Validate and recreate one metadata file.

    Args:
        input_path: Metadata JSON file.
        config: Command-line configuration.

    Returns:
        True when the file was handled without a fatal error.
    """
    try:
        document = load_metadata(input_path)
    except (OSError, ValidationError) as exc:
        logger.error("Failed to load %s: %s", input_path, exc)
        return False

    issues = validate(document)
    for issue in issues:
        logger.warning("%s: %s", input_path.name, issue)
    if config.validate_only:
        logger.info("%s: %d validation issue(s).", input_path.name, len(issues))
        return not (config.strict and issues)
    if config.strict and issues:
        logger.error("Skipping %s: metadata failed validation.", input_path)
        return False

    output_path = resolve_output_path(
        input_path, out_dir=config.out_dir, out_name=config.out_name
    )
    output_path, warning, skipped = apply_conflict_policy(
        output_path, config.on_conflict
    )
    if warning:
        logger.warning(warning)
    if skipped:
        return True

    try:
        result = reconstruct(document, config.options)
        save(result, output_path)
    except RecreateError as exc:
        logger.error("Failed to recreate %s: %s", input_path, exc)
        return False
    logger.info(
        "Wrote %s (%d sheet(s), %d diagnostic(s)).",
        output_path,
        len(result.sheet_names),
        len(result.diagnostics),
    )
    return True


def _parse_args(argv: list[str] | None) -> CliConfig:
    """Parse CLI arguments into a CliConfig.

    Args:
        argv: Optional CLI argument list.

    Returns:
        Parsed configuration.
    """
    parser = argparse.ArgumentParser(
        prog="exrebuild",
        description="Recreate Excel workbooks from metadata JSON.",
    )
    parser.add_argument("inputs", nargs="+", type=Path, help="Metadata JSON files.")
    parser.add_argument("--out-dir", type=Path, help="Output directory.")
    parser.add_argument(
        "--out-name", help="Output file name (only with a single input)."
    )
    parser.add_argument(
        "--on-conflict",
        choices=["overwrite", "skip", "rename"],
        default="overwrite",
        help="Output conflict policy (overwrite/skip/rename).",
    )
    parser.add_argument(
        "--no-formulas", action="store_true", help="Do not write formulas."
    )
    parser.add_argument("--no-styles", action="store_true", help="Do not apply styles.")
    parser.add_argument(
        "--no-data-validation",
        action="store_true",
        help="Do not apply data-validation rules.",
    )
    parser.add_argument("--no-images", action="store_true", help="Do not insert images.")
    parser.add_argument(
        "--keep-empty-cells",
        action="store_true",
        help="Write cells that have neither value nor formula.",
    )
    parser.add_argument(
        "--default-sheet-name",
        default="Sheet",
        help="Prefix for names of unnamed sheets.",
    )
    parser.add_argument(
        "--validate-only",
        action="store_true",
        help="Validate metadata and report issues without writing.",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Treat validation issues as failures.",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default="INFO",
        help="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).",
    )
    parser.add_argument("--log-file", type=Path, help="Optional log file path.")
    args = parser.parse_args(argv)
    if args.out_name and len(args.inputs) > 1:
        parser.error("--out-name requires a single input file.")
    return CliConfig(
        inputs=list(args.inputs),
        out_dir=args.out_dir,
        out_name=args.out_name,
        on_conflict=args.on_conflict,
        options=RecreateOptions(
            preserve_formulas=not args.no_formulas,
            preserve_styles=not args.no_styles,
            preserve_data_validation=not args.no_data_validation,
            preserve_images=not args.no_images,
            skip_empty_cells=not args.keep_empty_cells,
            default_sheet_name=args.default_sheet_name,
        ),
        validate_only=bool(args.validate_only),
        strict=bool(args.strict),
        log_level=args.log_level,
        log_file=args.log_file,
    )


def _configure_logging(config: CliConfig) -> None:
    """Configure logging for the command-line process.

    Args:
        config: Command-line configuration.
    """
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if config.log_file is not None:
        handlers.append(logging.FileHandler(config.log_file))
    logging.basicConfig(
        level=config.log_level,
        handlers=handlers,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
