#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Perfume catalog extraction CLI

Commands:
1. convert: Convert catalog files (CSV/XLSX) into product and error files (CSV or XLSX)
2. parse: Show what the parser detects in a description
3. rules: Inspect and maintain the rule file (validate, stats, export,
   import, reset, backup, add-brand, teach)

Exit status is 0 on success and 1 when errors were found.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from perfume_extractor.errors import ConfigurationError
from perfume_extractor.parsing.config_store import ConfigStore
from perfume_extractor.parsing.runtime import RuntimeRuleManager
from perfume_extractor.pipeline.console_resolver import ConsoleResolver
from perfume_extractor.pipeline.converter import RowConverter
from perfume_extractor.pipeline.models import ConversionResult, FileSchema, load_schema
from perfume_extractor.pipeline.resolver import FirstCandidateResolver
from perfume_extractor.utils import ensure_dir, list_source_files
from perfume_extractor.utils.settings import Settings
from perfume_extractor.utils.xlsx_formatting import write_result_xlsx

logger = logging.getLogger(__name__)


# === OUTPUT ===


def export_result(
    result: ConversionResult, output_dir: Path, output_format: str = "csv"
) -> List[Path]:
    """Write records and errors of one conversion.

    Args:
        result: Conversion outcome
        output_dir: Destination directory (created if missing)
        output_format: "csv" for <stem>_products.csv plus <stem>_errors.csv when
            there are errors, "xlsx" for a single <stem>_products.xlsx workbook

    Returns:
        Paths written
    """
    ensure_dir(output_dir)
    stem = Path(result.source).stem or "catalog"

    if output_format == "xlsx":
        return [write_result_xlsx(result, output_dir / f"{stem}_products.xlsx")]

    written = []
    products_path = output_dir / f"{stem}_products.csv"
    result.records_dataframe().to_csv(products_path, index=False, encoding="utf-8")
    written.append(products_path)

    if result.errors or result.learning_failures:
        errors_path = output_dir / f"{stem}_errors.csv"
        result.errors_dataframe().to_csv(errors_path, index=False, encoding="utf-8")
        written.append(errors_path)

    logger.info(f"Wrote {len(result.records)} records to {products_path}")
    return written


# === COMMANDS ===


def cmd_convert(args, settings: Settings, runtime: RuntimeRuleManager) -> bool:
    source = Path(args.path)
    files = list_source_files(source) if source.is_dir() else [source]
    if not files:
        logger.error(f"No catalog files found in {source}")
        return False

    schema_path = args.schema or settings.default_schema
    schema = load_schema(schema_path) if schema_path else FileSchema.default()
    output_dir = Path(args.output) if args.output else settings.output_dir

    resolver = None
    if args.auto:
        resolver = FirstCandidateResolver(confidence_threshold=settings.confidence_threshold)
    elif args.interactive or settings.interactive_enabled:
        resolver = ConsoleResolver(confidence_threshold=settings.confidence_threshold)

    converter = RowConverter(runtime)
    success = True
    for file_path in files:
        if resolver is None:
            result = converter.convert(file_path, schema)
        else:
            result = converter.convert_interactive(file_path, schema, resolver)
        result.log_summary()
        export_result(result, output_dir, args.format)
        success = success and result.success

    return success


def cmd_parse(args, settings: Settings, runtime: RuntimeRuleManager) -> bool:
    text = " ".join(args.text)
    comparison = runtime.compare_parsing(text)
    print(f"Description:   {text}")
    print(f"Normalized:    {comparison.parsed.cleaned_text}")
    print(f"Detected:      {comparison.parsed.summary()}")
    print(f"Matched rules: {', '.join(comparison.parsed.matched_rules) or '-'}")
    for change in comparison.changes():
        print(f"  {change}")
    return comparison.found_matches


def cmd_rules(args, settings: Settings, runtime: RuntimeRuleManager) -> bool:
    action = args.action

    if action == "validate":
        problems = runtime.validate()
        for problem in problems:
            logger.error(f"  {problem}")
        if not problems:
            logger.info(f"Rule file is valid: {runtime.store.path}")
        return not problems

    if action == "stats":
        for key, value in runtime.statistics().to_dict().items():
            print(f"{key}: {value}")
        return True

    if action in ("export", "import") and not args.target:
        logger.error(f"'rules {action}' needs a file path")
        return False

    if action == "export":
        runtime.export_to(args.target)
    elif action == "import":
        runtime.import_from(args.target)
    elif action == "reset":
        runtime.create_backup()
        runtime.reset_to_default()
    elif action == "backup":
        print(runtime.create_backup(args.target))
    elif action == "add-brand":
        if not args.target or args.brand_id is None:
            logger.error("'rules add-brand' needs NAME and ID")
            return False
        runtime.add_brand_mapping(args.target, args.brand_id)
    elif action == "teach":
        outcome = runtime.learn(args.target or "")
        for change in outcome.applied:
            print(f"Learned {change}")
        if not outcome.succeeded:
            logger.error(outcome.error)
            return False
    return True


# === MAIN ===


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Perfume catalog attribute extraction"
    )
    parser.add_argument("--config", type=Path, help="Settings file (default: extractor.toml)")
    parser.add_argument("--rules", type=Path, help="Rule file (overrides settings)")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (overrides settings)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    convert = subparsers.add_parser("convert", help="Convert catalog files")
    convert.add_argument("path", help="Catalog file or directory of catalog files")
    convert.add_argument("--schema", type=Path, help="File schema (TOML)")
    convert.add_argument("--output", help="Output directory")
    convert.add_argument(
        "--format", choices=["csv", "xlsx"], default="csv", help="Output file format"
    )
    mode = convert.add_mutually_exclusive_group()
    mode.add_argument(
        "--interactive", action="store_true", default=False,
        help="Ask on the console when a field is uncertain",
    )
    mode.add_argument(
        "--auto", action="store_true", default=False,
        help="Accept the best candidate for uncertain fields",
    )

    parse = subparsers.add_parser("parse", help="Parse one description")
    parse.add_argument("text", nargs="+", help="Description text")

    rules = subparsers.add_parser("rules", help="Maintain the rule file")
    rules.add_argument(
        "action",
        choices=["validate", "stats", "export", "import", "reset", "backup", "add-brand", "teach"],
    )
    rules.add_argument("target", nargs="?", help="File path, brand name or teaching statement")
    rules.add_argument("brand_id", nargs="?", type=int, help="Brand id for add-brand")

    return parser


def run(argv: Optional[List[str]] = None) -> int:
    """Run the CLI and return the exit status."""
    args = build_parser().parse_args(argv)
    settings = Settings(args.config)

    logging.basicConfig(
        level=getattr(logging, args.log_level or settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)-8s] %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    commands = {"convert": cmd_convert, "parse": cmd_parse, "rules": cmd_rules}
    try:
        runtime = RuntimeRuleManager(ConfigStore(args.rules or settings.rules_file))
        success = commands[args.command](args, settings, runtime)
    except (ConfigurationError, FileNotFoundError) as e:
        logger.error(str(e))
        return 1

    return 0 if success else 1


def main():
    """Main entry point."""
    sys.exit(run())


if __name__ == "__main__":
    main()
