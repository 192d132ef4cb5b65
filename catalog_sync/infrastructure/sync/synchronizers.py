"""
Sincronizadores por tipo de entidad (currency, categories, offers).

Cada sincronizador:
1. Verifica la estructura de la tabla (SchemaGuard) antes de escribir.
2. Extrae los registros del documento del feed.
3. Ejecuta UPSERTs por batch sobre el store.

No abren ni cierran transacciones: eso lo hace el servicio (una por tabla).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Iterable, Optional, Protocol, Sequence

from loguru import logger

from catalog_sync.infrastructure.feed.document import DocumentTree, FeedNode
from catalog_sync.shared.exceptions import FeedRecordError

from .schema import SchemaGuard
from .sync_config import (
    CATEGORIES,
    CURRENCY,
    DEFAULT_BATCH_SIZE,
    OFFER_PARAMS_COLUMNS,
    OFFER_PARAMS_TABLE,
    OFFERS,
    EntitySyncConfig,
)
from .types import ATTRIBUTE, TEXT, FieldMapping, as_integer


class BatchStore(Protocol):
    def columns_of(self, table: str) -> list[str]: ...

    def execute_batch(self, statement: str, params_seq: Iterable[Sequence[Any]]) -> int: ...


@dataclass(frozen=True)
class EntitySyncResult:
    kind: str
    table: str
    processed: int
    skipped: int = 0
    batches: int = 0


def read_field(node: FeedNode, mapping: FieldMapping, *, kind: str) -> Any:
    """
    Lee el texto crudo segun el origen del mapeo y aplica su transform.

    Los transforms estrictos levantan ValueError; aqui se convierte en
    FeedRecordError con el contexto del campo.
    """
    if mapping.origin == ATTRIBUTE:
        raw = node.attr(mapping.source)
    elif mapping.origin == TEXT:
        raw = node.text
    else:
        raw = node.child_text(mapping.source)

    try:
        return mapping.transform(raw)
    except ValueError as e:
        raise FeedRecordError(kind, mapping.source, str(e)) from e


class EntitySynchronizer(ABC):
    config: EntitySyncConfig

    def __init__(self, store: BatchStore) -> None:
        self._store = store
        self._guard = SchemaGuard(store)

    @property
    def table(self) -> str:
        return self.config.target_table

    def sync(self, tree: DocumentTree) -> EntitySyncResult:
        self.verify_schema()
        return self._sync(tree)

    def verify_schema(self) -> None:
        self._guard.verify(self.config.target_table, self.config.required_columns)

    def _items(self, tree: DocumentTree) -> Optional[list[FeedNode]]:
        return tree.collection(self.config.container, self.config.item)

    def _row(self, node: FeedNode) -> tuple[Any, ...]:
        return tuple(read_field(node, m, kind=self.config.kind) for m in self.config.field_mappings)

    @abstractmethod
    def _sync(self, tree: DocumentTree) -> EntitySyncResult: ...


class _SimpleUpsertSynchronizer(EntitySynchronizer):
    """Un UPSERT por item, todo en un unico batch (currency, categories)."""

    UPSERT_SQL: str

    def _sync(self, tree: DocumentTree) -> EntitySyncResult:
        items = self._items(tree)
        if items is None:
            logger.info(f"El feed no contiene '{self.config.container}', nada que actualizar en {self.table}")
            return EntitySyncResult(kind=self.config.kind, table=self.table, processed=0)

        rows = [self._row(node) for node in items]
        self._store.execute_batch(self.UPSERT_SQL, rows)
        logger.info(f"{self.table}: {len(rows)} registro(s) enviados por UPSERT")
        return EntitySyncResult(
            kind=self.config.kind,
            table=self.table,
            processed=len(rows),
            batches=1 if rows else 0,
        )


class CurrencySynchronizer(_SimpleUpsertSynchronizer):
    config = CURRENCY

    UPSERT_SQL = (
        "INSERT INTO currency (id, rate, updated_at) "
        "VALUES (%s, %s, CURRENT_TIMESTAMP) "
        "ON CONFLICT (id) DO UPDATE SET "
        "    rate = EXCLUDED.rate, "
        "    updated_at = EXCLUDED.updated_at"
    )


class CategorySynchronizer(_SimpleUpsertSynchronizer):
    config = CATEGORIES

    UPSERT_SQL = (
        "INSERT INTO categories (id, name, parent_id, updated_at) "
        "VALUES (%s, %s, %s, CURRENT_TIMESTAMP) "
        "ON CONFLICT (id) DO UPDATE SET "
        "    name = EXCLUDED.name, "
        "    parent_id = EXCLUDED.parent_id, "
        "    updated_at = EXCLUDED.updated_at"
    )


class _OfferBatch:
    """
    Unidades pendientes de un batch de ofertas.

    Los parametros se guardan por id de oferta: si el mismo id aparece dos
    veces en el batch, los parametros del ultimo nodo reemplazan a los del
    primero.
    """

    def __init__(self) -> None:
        self.offer_rows: list[tuple[Any, ...]] = []
        self._params: dict[int, list[tuple[int, str, str]]] = {}

    def __len__(self) -> int:
        return len(self.offer_rows)

    def stage(self, offer_id: int, row: tuple[Any, ...], params: list[tuple[int, str, str]]) -> None:
        self.offer_rows.append(row)
        self._params[offer_id] = params

    def param_deletes(self) -> list[tuple[int]]:
        return [(offer_id,) for offer_id in self._params]

    def param_inserts(self) -> list[tuple[int, str, str]]:
        return [p for params in self._params.values() for p in params]

    def clear(self) -> None:
        self.offer_rows.clear()
        self._params.clear()


class OfferSynchronizer(EntitySynchronizer):
    """
    UPSERT de ofertas + reemplazo completo de sus parametros.

    Por cada flush se ejecutan, en este orden: UPSERT de ofertas, DELETE de
    parametros de esas ofertas, INSERT de los parametros nuevos.
    """

    config = OFFERS

    UPSERT_SQL = (
        "INSERT INTO offers (id, available, url, price, currency_id, category_id, "
        "    picture, name, vendor, vendor_code, description, count, updated_at) "
        "VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, CURRENT_TIMESTAMP) "
        "ON CONFLICT (id) DO UPDATE SET "
        "    available = EXCLUDED.available, "
        "    url = EXCLUDED.url, "
        "    price = EXCLUDED.price, "
        "    currency_id = EXCLUDED.currency_id, "
        "    category_id = EXCLUDED.category_id, "
        "    picture = EXCLUDED.picture, "
        "    name = EXCLUDED.name, "
        "    vendor = EXCLUDED.vendor, "
        "    vendor_code = EXCLUDED.vendor_code, "
        "    description = EXCLUDED.description, "
        "    count = EXCLUDED.count, "
        "    updated_at = EXCLUDED.updated_at"
    )
    DELETE_PARAMS_SQL = "DELETE FROM offer_params WHERE offer_id = %s"
    INSERT_PARAM_SQL = "INSERT INTO offer_params (offer_id, param_name, param_value) VALUES (%s, %s, %s)"

    def __init__(self, store: BatchStore, *, batch_size: int = DEFAULT_BATCH_SIZE) -> None:
        super().__init__(store)
        if batch_size < 1:
            raise ValueError("batch_size debe ser >= 1")
        self._batch_size = batch_size

    def verify_schema(self) -> None:
        super().verify_schema()
        self._guard.verify(OFFER_PARAMS_TABLE, OFFER_PARAMS_COLUMNS)

    def _sync(self, tree: DocumentTree) -> EntitySyncResult:
        if tree.shop is None:
            logger.warning("Falta el elemento shop en el XML")
            return EntitySyncResult(kind=self.config.kind, table=self.table, processed=0)

        items = self._items(tree)
        if items is None:
            logger.warning("Falta el elemento offers en el XML")
            return EntitySyncResult(kind=self.config.kind, table=self.table, processed=0)
        if not items:
            logger.warning("No hay ofertas (offer) en el XML")
            return EntitySyncResult(kind=self.config.kind, table=self.table, processed=0)

        batch = _OfferBatch()
        processed = 0
        skipped = 0
        batches = 0

        for node in items:
            offer_id = self._offer_id(node)
            if offer_id is None:
                skipped += 1
                continue

            row = (offer_id,) + tuple(
                read_field(node, m, kind=self.config.kind) for m in self.config.field_mappings[1:]
            )
            batch.stage(offer_id, row, self._params(offer_id, node))
            processed += 1

            if len(batch) >= self._batch_size:
                self._flush(batch)
                batches += 1

        if len(batch):
            self._flush(batch)
            batches += 1

        logger.info(f"Ofertas procesadas: {processed} (omitidas: {skipped})")
        return EntitySyncResult(
            kind=self.config.kind,
            table=self.table,
            processed=processed,
            skipped=skipped,
            batches=batches,
        )

    def _offer_id(self, node: FeedNode) -> Optional[int]:
        if not node.has_attr("id"):
            logger.warning("Oferta sin id, se omite")
            return None
        raw = node.attr("id")
        offer_id = as_integer(raw)
        if offer_id is None:
            logger.warning(f"Id de oferta invalido: {raw!r}, se omite")
        return offer_id

    def _params(self, offer_id: int, node: FeedNode) -> list[tuple[int, str, str]]:
        params = []
        for param in node.children("param"):
            name = param.attr("name")
            if not name:
                logger.debug(f"Oferta {offer_id}: parametro sin nombre ignorado")
                continue
            params.append((offer_id, name, param.text or ""))
        return params

    def _flush(self, batch: _OfferBatch) -> None:
        deletes = batch.param_deletes()
        inserts = batch.param_inserts()
        logger.debug(
            f"Flush offers: {len(batch)} upsert(s), {len(deletes)} delete(s) de params, "
            f"{len(inserts)} param(s)"
        )
        self._store.execute_batch(self.UPSERT_SQL, batch.offer_rows)
        self._store.execute_batch(self.DELETE_PARAMS_SQL, deletes)
        self._store.execute_batch(self.INSERT_PARAM_SQL, inserts)
        batch.clear()
