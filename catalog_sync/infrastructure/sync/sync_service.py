"""
Servicio de sincronizacion feed de catalogo -> Postgres.

Diseño (resumen):
- El documento del feed se descarga la primera vez que se necesita y queda
  cacheado; `refresh_document()` fuerza una nueva descarga.
- Orden fijo: currency -> categories -> offers (offers referencia a ambas).
- Una transaccion por tabla: autocommit off -> sync -> commit; ante error,
  rollback. El autocommit se restaura siempre.
- Sin reintentos: si falla, el caller decide.
"""

from __future__ import annotations

from typing import Protocol

from loguru import logger

from catalog_sync.core.config import Settings
from catalog_sync.infrastructure.database.pg_store import PostgresCatalogStore
from catalog_sync.infrastructure.feed.cache import FeedDocumentCache
from catalog_sync.infrastructure.feed.document import DocumentTree
from catalog_sync.infrastructure.feed.feed_client import FeedClient
from catalog_sync.shared.exceptions import (
    FeedRecordError,
    StoreError,
    SyncFailure,
    UnknownEntityKind,
)

from .schema import DDLChange, additive_change_placeholder
from .sync_config import DEFAULT_BATCH_SIZE, ENTITY_CONFIGS
from .synchronizers import (
    BatchStore,
    CategorySynchronizer,
    CurrencySynchronizer,
    EntitySynchronizer,
    EntitySyncResult,
    OfferSynchronizer,
)


class CatalogStore(BatchStore, Protocol):
    def set_autocommit(self, enabled: bool) -> None: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...

    def column_stats(self, table: str, column: str) -> tuple[int, int]: ...

    def apply_ddl(self, ddl: str) -> None: ...

    def close(self) -> None: ...


class CatalogSyncService:
    """
    Orquestador del sync para las tres tablas del catalogo.
    """

    def __init__(
        self,
        *,
        store: CatalogStore,
        document: FeedDocumentCache,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ) -> None:
        self._store = store
        self._document = document
        self._synchronizers: dict[str, EntitySynchronizer] = {
            "currency": CurrencySynchronizer(store),
            "categories": CategorySynchronizer(store),
            "offers": OfferSynchronizer(store, batch_size=batch_size),
        }

    # ------------------------------------------------------------------
    # Introspeccion
    # ------------------------------------------------------------------

    def get_table_names(self) -> list[str]:
        """Tipos de entidad conocidos, en orden de sincronizacion."""
        return list(self._synchronizers)

    def get_table_ddl(self, kind: str) -> str:
        return ENTITY_CONFIGS[self._resolve(kind)].ddl

    def get_column_names(self, table: str) -> list[str]:
        """Columnas reales de la tabla en la base."""
        return self._store.columns_of(table)

    def is_column_unique(self, table: str, column: str) -> bool:
        """
        True si la columna tiene al menos un valor no nulo y todos los
        valores no nulos son distintos.
        """
        distinct_count, total_count = self._store.column_stats(table, column)
        return total_count > 0 and distinct_count == total_count

    def get_ddl_change(self, table: str) -> DDLChange:
        return additive_change_placeholder(table)

    def init_schema(self) -> None:
        """Aplica el DDL (idempotente) de todas las tablas, en orden."""
        for kind in self._synchronizers:
            self._store.apply_ddl(ENTITY_CONFIGS[kind].ddl)
            logger.info(f"DDL aplicado: {kind}")

    # ------------------------------------------------------------------
    # Documento
    # ------------------------------------------------------------------

    @property
    def document_loaded(self) -> bool:
        return self._document.loaded

    def refresh_document(self) -> DocumentTree:
        return self._document.refresh()

    # ------------------------------------------------------------------
    # Sync
    # ------------------------------------------------------------------

    def sync_all(self) -> list[EntitySyncResult]:
        """Actualiza currency, categories y offers, en ese orden."""
        return [self.sync_one(kind) for kind in self._synchronizers]

    def sync_one(self, kind: str) -> EntitySyncResult:
        """
        Actualiza una tabla (nombre sin importar mayusculas).

        Si la estructura de la tabla cambio, levanta SchemaDriftError sin
        escribir nada.
        """
        synchronizer = self._synchronizers[self._resolve(kind)]
        tree = self._document.get()
        return self._run_in_transaction(synchronizer, tree)

    def _run_in_transaction(self, synchronizer: EntitySynchronizer, tree: DocumentTree) -> EntitySyncResult:
        table = synchronizer.table
        try:
            self._store.set_autocommit(False)
            result = synchronizer.sync(tree)
            self._store.commit()
            logger.info(f"Tabla {table} actualizada correctamente")
            return result
        except (StoreError, FeedRecordError) as e:
            self._safe_rollback(table)
            logger.error(f"Error actualizando la tabla {table}: {e.message}")
            raise SyncFailure(table, e) from e
        except Exception:
            self._safe_rollback(table)
            raise
        finally:
            try:
                self._store.set_autocommit(True)
            except StoreError as e:
                logger.warning(f"No se pudo restaurar autocommit: {e.message}")

    def _safe_rollback(self, table: str) -> None:
        try:
            self._store.rollback()
        except StoreError as e:
            logger.error(f"Error en rollback de la tabla {table}: {e.message}")

    def _resolve(self, kind: str) -> str:
        name = (kind or "").lower()
        if name not in self._synchronizers:
            raise UnknownEntityKind(kind, self.get_table_names())
        return name

    def close(self) -> None:
        """Libera la conexion del store."""
        self._store.close()


def build_from_settings(settings: Settings) -> CatalogSyncService:
    """
    Constructor "oficial" del servicio a partir de la configuracion.
    """
    client = FeedClient(
        settings.FEED_URL,
        timeout_s=settings.FEED_TIMEOUT_S,
        max_retries=settings.FEED_MAX_RETRIES,
    )
    store = PostgresCatalogStore(settings.effective_database_url)
    return CatalogSyncService(
        store=store,
        document=FeedDocumentCache.from_client(client),
        batch_size=settings.SYNC_BATCH_SIZE,
    )
