"""
Catalog Import Command

Usage:
    catalog-import                       # import IMPORT_SOURCE_PATH
    catalog-import data/db.json --create-schema
    catalog-import data/db.json --dry-run --seed 42

Exit status is 0 when the run completed (possibly with skipped rows) and
1 on a fatal failure.
"""

import argparse
import asyncio
import sys
from typing import List, Optional

import structlog
from sqlalchemy.exc import SQLAlchemyError

from catalog_importer.config import Settings, get_settings
from catalog_importer.config.logging import configure_logging
from catalog_importer.database.connection import (
    create_engine_from_settings,
    create_schema,
    create_session_factory,
    verify_connection,
)
from catalog_importer.ingestion.importer import ImportReport, import_catalog_file
from catalog_importer.ingestion.store import CatalogStore, DryRunStore

logger = structlog.get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="catalog-import",
        description="Import a JSON product catalog into the relational store",
    )
    parser.add_argument(
        "path",
        nargs="?",
        default=None,
        help="Catalog JSON document (default: IMPORT_SOURCE_PATH)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Parse and traverse the document without writing",
    )
    parser.add_argument(
        "--create-schema",
        action="store_true",
        help="Create missing tables before importing",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed for the synthesized is_featured / stock_quantity fields",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Override LOG_LEVEL (DEBUG, INFO, WARNING, ERROR)",
    )
    return parser


async def run_import(
    path: str,
    settings: Settings,
    dry_run: bool = False,
    create_tables: bool = False,
) -> ImportReport:
    """Run one import; the engine lives exactly as long as the run."""
    if dry_run:
        return await import_catalog_file(path, DryRunStore(), settings)

    engine = create_engine_from_settings(settings)
    try:
        try:
            await verify_connection(engine)
            if create_tables:
                await create_schema(engine)
        except (OSError, SQLAlchemyError) as e:
            return ImportReport.failed(f"Database unavailable: {e}")

        store = CatalogStore(create_session_factory(engine))
        return await import_catalog_file(path, store, settings)
    finally:
        await engine.dispose()


def format_summary(report: ImportReport) -> str:
    if not report.success:
        return f"Import failed: {report.error_message}"
    written = ", ".join(f"{entity}={count}" for entity, count in report.rows_written.items())
    mode = " (dry run)" if report.dry_run else ""
    return f"Import {report.status.value}{mode}: {written}; {report.failed_rows} row failures"


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    settings = get_settings()
    if args.seed is not None:
        settings = settings.model_copy(
            update={"importer": settings.importer.model_copy(update={"random_seed": args.seed})}
        )

    configure_logging(args.log_level, settings=settings)

    path = args.path or settings.importer.source_path
    report = asyncio.run(
        run_import(
            path,
            settings,
            dry_run=args.dry_run or settings.importer.dry_run,
            create_tables=args.create_schema,
        )
    )

    print(format_summary(report))
    return 0 if report.success else 1


if __name__ == "__main__":
    sys.exit(main())
