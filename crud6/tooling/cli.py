"""
Command-line interface for the CRUD6 tooling.

Subcommands:
- ddl: CREATE TABLE statements for every schema
- seed: Idempotent test seed data
- test-paths: Integration test path configuration
- scan: Print the tables, columns and relationships of a live database
- generate-schema: Write schema files for the tables of a live database
- generate-tests: One pytest module per schema, checking the served schema
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from crud6.core.database.utils import create_engine
from crud6.core.logging_config import get_logger, setup_logging
from crud6.server.core.config import settings

from .ddl import DIALECTS, DDLGenerator
from .scanner import CONFIDENCE_THRESHOLD, DatabaseScanner
from .schema_generator import SchemaGenerator
from .seed import RECORD_COUNT, SeedGenerator
from .test_generator import SchemaTestGenerator
from .test_paths import TestPathGenerator

logger = get_logger(__name__)


def _write(output: Optional[str], content: str) -> None:
    if not output:
        sys.stdout.write(content + "\n")
        return
    path = Path(output)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    logger.info(f"Output written: {path} ({len(content) / 1024:.2f} KB)")


def cmd_ddl(args: argparse.Namespace) -> int:
    _write(args.output, DDLGenerator(args.schema_dir, dialect=args.dialect).generate())
    return 0


def cmd_seed(args: argparse.Namespace) -> int:
    _write(args.output, SeedGenerator(args.schema_dir, record_count=args.records).generate())
    return 0


def cmd_test_paths(args: argparse.Namespace) -> int:
    paths = TestPathGenerator(args.schema_dir, base_url=args.base_url).generate()
    _write(args.output, json.dumps(paths, indent=2))
    return 0


async def _scan(args: argparse.Namespace) -> Dict[str, Any]:
    engine = create_engine(args.database_url)
    try:
        scanner = DatabaseScanner(engine, confidence_threshold=args.confidence)
        tables = await scanner.scan_database(args.tables)
        relationships = await scanner.detect_relationships(
            tables, include_implicit=args.include_implicit, sample_size=args.sample_size
        )
    finally:
        await engine.dispose()
    return {"tables": tables, "relationships": relationships}


def cmd_scan(args: argparse.Namespace) -> int:
    result = asyncio.run(_scan(args))
    _write(args.output, json.dumps(result, indent=2, default=str))
    return 0


def cmd_generate_schema(args: argparse.Namespace) -> int:
    result = asyncio.run(_scan(args))
    files = SchemaGenerator(args.output_dir).generate_schemas(result["tables"], result["relationships"])
    logger.info(f"Generated {len(files)} schema files in {args.output_dir}")
    return 0


def cmd_generate_tests(args: argparse.Namespace) -> int:
    files = SchemaTestGenerator(args.schema_dir).write(args.output_dir)
    logger.info(f"Generated {len(files)} schema test modules in {args.output_dir}")
    return 0


def _add_scan_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--database-url", default=settings.database_url, help="Database to scan (default: DATABASE_URL)")
    parser.add_argument("--tables", nargs="*", help="Only scan these tables")
    parser.add_argument(
        "--include-implicit", action="store_true", help="Also detect *_id relationships without a foreign key"
    )
    parser.add_argument("--sample-size", type=int, default=100, help="Rows sampled to confirm implicit relationships")
    parser.add_argument(
        "--confidence",
        type=float,
        default=CONFIDENCE_THRESHOLD,
        help=f"Match rate an implicit relationship needs (default: {CONFIDENCE_THRESHOLD})",
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser.

    Returns:
        Configured ArgumentParser.
    """
    parser = argparse.ArgumentParser(prog="crud6", description="CRUD6 schema-driven tooling")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose output")
    sub = parser.add_subparsers(dest="command", help="Available commands")

    p_ddl = sub.add_parser("ddl", help="Generate CREATE TABLE statements from schemas")
    p_ddl.add_argument("--schema-dir", default=settings.schema_path, help="Directory of schema files")
    p_ddl.add_argument("--output", help="Output file (default: stdout)")
    p_ddl.add_argument("--dialect", choices=sorted(DIALECTS), default="mysql", help="SQL dialect (default: mysql)")
    p_ddl.set_defaults(handler=cmd_ddl)

    p_seed = sub.add_parser("seed", help="Generate idempotent seed INSERT statements")
    p_seed.add_argument("--schema-dir", default=settings.schema_path, help="Directory of schema files")
    p_seed.add_argument("--output", help="Output file (default: stdout)")
    p_seed.add_argument("--records", type=int, default=RECORD_COUNT, help="Records per model")
    p_seed.set_defaults(handler=cmd_seed)

    p_paths = sub.add_parser("test-paths", help="Generate integration test path configuration")
    p_paths.add_argument("--schema-dir", default=settings.schema_path, help="Directory of schema files")
    p_paths.add_argument("--output", help="Output file (default: stdout)")
    p_paths.add_argument("--base-url", default="http://localhost:8000", help="Base URL of the tested server")
    p_paths.set_defaults(handler=cmd_test_paths)

    p_scan = sub.add_parser("scan", help="Print tables and relationships of a database")
    _add_scan_arguments(p_scan)
    p_scan.add_argument("--output", help="Output file (default: stdout)")
    p_scan.set_defaults(handler=cmd_scan)

    p_generate = sub.add_parser("generate-schema", help="Write schema files for the tables of a database")
    _add_scan_arguments(p_generate)
    p_generate.add_argument("--output-dir", default=settings.schema_path, help="Directory to write schema files to")
    p_generate.set_defaults(handler=cmd_generate_schema)

    p_tests = sub.add_parser("generate-tests", help="Write one pytest module per schema")
    p_tests.add_argument("--schema-dir", default=settings.schema_path, help="Directory of schema files")
    p_tests.add_argument("--output-dir", default="test/generated", help="Directory to write test modules to")
    p_tests.set_defaults(handler=cmd_generate_tests)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point.

    Args:
        argv: Command-line arguments (defaults to sys.argv).

    Returns:
        Exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(log_level="DEBUG" if args.verbose else "WARNING", enable_file=False)

    if not args.command:
        parser.print_help()
        return 1

    try:
        return args.handler(args)
    except FileNotFoundError as e:
        logger.error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
