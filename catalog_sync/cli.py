"""
CLI: feed de catalogo -> Postgres (one-way sync).

Uso recomendado:
  - Ejecutar como job (cron/systemd timer).

Variables de entorno (o .env):
  - FEED_URL
  - DATABASE_URL (o DATABASE_HOST/PORT/USER/PASSWORD/NAME)
  - SYNC_BATCH_SIZE

Ejecucion:
  catalog-sync
  catalog-sync --ddl-only
  catalog-sync --init-schema
  catalog-sync --kind offers
  catalog-sync --check-unique offers.vendor_code
"""

from __future__ import annotations

import argparse
from typing import Optional, Sequence

from dotenv import load_dotenv
from loguru import logger

from catalog_sync.core.config import Settings
from catalog_sync.core.events import configure_console_logging
from catalog_sync.infrastructure.sync.sync_service import CatalogSyncService, build_from_settings
from catalog_sync.shared.exceptions import AppException


DEMO_TABLE = "offers"
DEMO_COLUMN = "vendor_code"


def _parse_args(argv: Optional[Sequence[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="catalog-sync")
    parser.add_argument(
        "--env-file",
        default=".env",
        help="Archivo .env a cargar (default: .env)",
    )
    parser.add_argument(
        "--ddl-only",
        action="store_true",
        help="Solo imprime el DDL de las tablas (no ejecuta sync).",
    )
    parser.add_argument(
        "--init-schema",
        action="store_true",
        help="Crea las tablas (IF NOT EXISTS) antes de sincronizar.",
    )
    parser.add_argument(
        "--kind",
        help="Sincroniza solo esta tabla (currency, categories, offers).",
    )
    parser.add_argument(
        "--check-unique",
        metavar="TABLE.COLUMN",
        help="Verifica que la columna no tenga valores repetidos.",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Mostrar mensajes de debug",
    )
    return parser.parse_args(argv)


def _check_unique(service: CatalogSyncService, target: str) -> None:
    table, sep, column = target.partition(".")
    if not sep or not table or not column:
        raise SystemExit(f"Formato invalido para --check-unique: {target} (usar TABLE.COLUMN)")
    unique = service.is_column_unique(table, column)
    logger.info(f"Columna {table}.{column} es unica: {unique}")


def run(service: CatalogSyncService, args: argparse.Namespace) -> None:
    logger.info(f"Tablas disponibles: {service.get_table_names()}")

    if args.ddl_only:
        for kind in service.get_table_names():
            print(service.get_table_ddl(kind))
        return

    if args.init_schema:
        service.init_schema()

    if args.kind:
        result = service.sync_one(args.kind)
        logger.info(f"Sync OK: {result.table} procesados={result.processed} omitidos={result.skipped}")
    else:
        for result in service.sync_all():
            logger.info(f"Sync OK: {result.table} procesados={result.processed} omitidos={result.skipped}")

    if args.check_unique:
        _check_unique(service, args.check_unique)
        return

    logger.info(f"Columnas de {DEMO_TABLE}: {service.get_column_names(DEMO_TABLE)}")
    _check_unique(service, f"{DEMO_TABLE}.{DEMO_COLUMN}")
    change = service.get_ddl_change(DEMO_TABLE)
    logger.info(f"Cambio DDL para {DEMO_TABLE} (soportado={change.supported}): {change.statement}")


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parse_args(argv)
    load_dotenv(args.env_file, override=False)
    config = Settings()
    configure_console_logging(verbose=args.verbose, level=config.LOG_LEVEL)

    service = build_from_settings(config)
    try:
        run(service, args)
    except AppException as e:
        logger.error(f"{e.error_code}: {e.message}")
        return 1
    finally:
        service.close()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
