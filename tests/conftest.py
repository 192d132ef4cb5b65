"""
Configuracion de fixtures para pytest.

FakeCatalogStore emula en memoria las cuatro tablas del catalogo: UPSERT por
id, NOT NULL, UNIQUE de vendor_code, FKs de offers/offer_params y
transacciones (snapshot al desactivar autocommit, restauracion en rollback).
"""
from __future__ import annotations

import copy
from typing import Any, Callable, Iterable, Optional, Sequence

import pytest

from catalog_sync.infrastructure.feed.cache import FeedDocumentCache
from catalog_sync.infrastructure.feed.document import parse_document
from catalog_sync.infrastructure.sync.sync_service import CatalogSyncService
from catalog_sync.infrastructure.sync.synchronizers import (
    CategorySynchronizer,
    CurrencySynchronizer,
    OfferSynchronizer,
)
from catalog_sync.shared.exceptions import StoreError


TABLE_COLUMNS = {
    "currency": ["id", "rate", "created_at", "updated_at"],
    "categories": ["id", "name", "parent_id", "created_at", "updated_at"],
    "offers": [
        "id", "available", "url", "price", "currency_id", "category_id", "picture",
        "name", "vendor", "vendor_code", "description", "count", "created_at", "updated_at",
    ],
    "offer_params": ["id", "offer_id", "param_name", "param_value", "created_at"],
}

OFFER_COLUMNS = [
    "id", "available", "url", "price", "currency_id", "category_id", "picture",
    "name", "vendor", "vendor_code", "description", "count",
]


class FakeCatalogStore:
    def __init__(self) -> None:
        self.columns = copy.deepcopy(TABLE_COLUMNS)
        self.tables: dict[str, Any] = {"currency": {}, "categories": {}, "offers": {}, "offer_params": []}
        self.autocommit = True
        self.autocommit_changes: list[bool] = []
        self.commits = 0
        self.rollbacks = 0
        self.closed = False
        self.executed: list[tuple[str, int]] = []
        self.ddl_applied: list[str] = []
        self.fail_on: set[str] = set()
        self._snapshot: Optional[dict[str, Any]] = None
        self._clock = 0
        self._param_seq = 0

    # --- API del store -------------------------------------------------

    def columns_of(self, table: str) -> list[str]:
        return list(self.columns.get(table, []))

    def execute_batch(self, statement: str, params_seq: Iterable[Sequence[Any]]) -> int:
        values = [tuple(v) for v in params_seq]
        if not values:
            return 0
        self.executed.append((statement, len(values)))
        if statement in self.fail_on:
            raise StoreError("fallo simulado")
        for v in values:
            self._apply(statement, v)
        return len(values)

    def column_stats(self, table: str, column: str) -> tuple[int, int]:
        values = [r[column] for r in self.rows(table) if r.get(column) is not None]
        return len(set(values)), len(values)

    def apply_ddl(self, ddl: str) -> None:
        self.ddl_applied.append(ddl)

    def set_autocommit(self, enabled: bool) -> None:
        if not enabled and self.autocommit:
            self._snapshot = copy.deepcopy(self.tables)
        self.autocommit = enabled
        self.autocommit_changes.append(enabled)

    def commit(self) -> None:
        self._snapshot = None
        self.commits += 1

    def rollback(self) -> None:
        if self._snapshot is not None:
            self.tables = self._snapshot
            self._snapshot = None
        self.rollbacks += 1

    def close(self) -> None:
        self.closed = True

    # --- Helpers para asserts ------------------------------------------

    def rows(self, table: str) -> list[dict[str, Any]]:
        data = self.tables[table]
        return list(data.values()) if isinstance(data, dict) else list(data)

    def params_of(self, offer_id: int) -> list[tuple[str, str]]:
        return [(p["param_name"], p["param_value"]) for p in self.tables["offer_params"] if p["offer_id"] == offer_id]

    def statements(self) -> list[str]:
        return [s for s, _ in self.executed]

    # --- Emulacion de SQL ----------------------------------------------

    def _tick(self) -> int:
        self._clock += 1
        return self._clock

    def _upsert(self, table: str, key: Any, values: dict[str, Any]) -> None:
        existing = self.tables[table].get(key)
        now = self._tick()
        if existing is None:
            self.tables[table][key] = {**values, "created_at": now, "updated_at": now}
        else:
            existing.update(values)
            existing["updated_at"] = now

    def _apply(self, statement: str, v: tuple) -> None:
        if statement == CurrencySynchronizer.UPSERT_SQL:
            currency_id, rate = v
            if rate is None:
                raise StoreError("null value in column \"rate\"")
            self._upsert("currency", currency_id, {"id": currency_id, "rate": rate})
        elif statement == CategorySynchronizer.UPSERT_SQL:
            category_id, name, parent_id = v
            if name is None:
                raise StoreError("null value in column \"name\"")
            self._upsert("categories", category_id, {"id": category_id, "name": name, "parent_id": parent_id})
        elif statement == OfferSynchronizer.UPSERT_SQL:
            row = dict(zip(OFFER_COLUMNS, v))
            if row["name"] is None or row["vendor_code"] is None:
                raise StoreError("null value in not-null column of offers")
            if row["currency_id"] is not None and row["currency_id"] not in self.tables["currency"]:
                raise StoreError("violates foreign key constraint on currency_id")
            if row["category_id"] is not None and row["category_id"] not in self.tables["categories"]:
                raise StoreError("violates foreign key constraint on category_id")
            for other in self.tables["offers"].values():
                if other["id"] != row["id"] and other["vendor_code"] == row["vendor_code"]:
                    raise StoreError("duplicate key value violates unique constraint on vendor_code")
            self._upsert("offers", row["id"], row)
        elif statement == OfferSynchronizer.DELETE_PARAMS_SQL:
            (offer_id,) = v
            self.tables["offer_params"] = [p for p in self.tables["offer_params"] if p["offer_id"] != offer_id]
        elif statement == OfferSynchronizer.INSERT_PARAM_SQL:
            offer_id, name, value = v
            if offer_id not in self.tables["offers"]:
                raise StoreError("violates foreign key constraint on offer_id")
            self._param_seq += 1
            self.tables["offer_params"].append(
                {"id": self._param_seq, "offer_id": offer_id, "param_name": name, "param_value": value}
            )
        else:
            raise AssertionError(f"Sentencia inesperada: {statement}")


def feed_xml(
    *,
    currencies: str = "",
    categories: str = "",
    offers: str = "",
    encoding: str = "UTF-8",
) -> bytes:
    """Arma un documento YML minimo con las secciones dadas."""
    body = (
        f'<?xml version="1.0" encoding="{encoding}"?>\n'
        "<yml_catalog date=\"2024-01-01 00:00\"><shop>"
        f"{currencies}{categories}{offers}"
        "</shop></yml_catalog>"
    )
    return body.encode(encoding)


SAMPLE_FEED = feed_xml(
    currencies='<currencies><currency id="USD" rate="92.5"/></currencies>',
    categories='<categories><category id="1">Tools</category></categories>',
    offers=(
        "<offers>"
        '<offer id="10" available="true">'
        "<name>Drill</name><vendorCode>D-1</vendorCode>"
        "<currencyId>USD</currencyId><categoryId>1</categoryId><price>1999.90</price>"
        "</offer>"
        "</offers>"
    ),
)


class CountingLoader:
    """Loader de documento que cuenta las descargas."""

    def __init__(self, raw: bytes) -> None:
        self.raw = raw
        self.calls = 0

    def __call__(self):
        self.calls += 1
        return parse_document(self.raw)


@pytest.fixture
def store() -> FakeCatalogStore:
    return FakeCatalogStore()


@pytest.fixture
def make_service(store: FakeCatalogStore) -> Callable[..., CatalogSyncService]:
    """Crea un servicio sobre el FakeCatalogStore y un feed en memoria."""

    def _make(raw: bytes = SAMPLE_FEED, *, batch_size: int = 1000, loader: Optional[Callable] = None) -> CatalogSyncService:
        return CatalogSyncService(
            store=store,
            document=FeedDocumentCache(loader or CountingLoader(raw)),
            batch_size=batch_size,
        )

    return _make
