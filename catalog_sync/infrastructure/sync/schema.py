"""
Estructura de las tablas destino.

- DDL fijo e idempotente (IF NOT EXISTS) por tipo de entidad.
- SchemaGuard: verifica que las columnas que usa el sync sigan existiendo.
- Cambio aditivo de esquema: aun no soportado (placeholder explicito).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Protocol

from loguru import logger

from catalog_sync.shared.exceptions import SchemaDriftError


CURRENCY_DDL = """
CREATE TABLE IF NOT EXISTS currency (
    id VARCHAR(10) PRIMARY KEY,
    rate NUMERIC(10, 4) NOT NULL,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);
CREATE INDEX IF NOT EXISTS idx_currency_id ON currency(id);
"""

CATEGORIES_DDL = """
CREATE TABLE IF NOT EXISTS categories (
    id INTEGER PRIMARY KEY,
    name TEXT NOT NULL,
    parent_id INTEGER,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    FOREIGN KEY (parent_id) REFERENCES categories(id) ON DELETE SET NULL
);
CREATE INDEX IF NOT EXISTS idx_categories_parent_id ON categories(parent_id);
"""

OFFERS_DDL = """
CREATE TABLE IF NOT EXISTS offers (
    id INTEGER PRIMARY KEY,
    available BOOLEAN NOT NULL,
    url TEXT,
    price NUMERIC(10, 2),
    currency_id VARCHAR(10),
    category_id INTEGER,
    picture TEXT,
    name TEXT NOT NULL,
    vendor TEXT,
    vendor_code VARCHAR(100) UNIQUE NOT NULL,
    description TEXT,
    count INTEGER,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    FOREIGN KEY (currency_id) REFERENCES currency(id),
    FOREIGN KEY (category_id) REFERENCES categories(id)
);
CREATE INDEX IF NOT EXISTS idx_offers_vendor_code ON offers(vendor_code);
CREATE INDEX IF NOT EXISTS idx_offers_category_id ON offers(category_id);
CREATE INDEX IF NOT EXISTS idx_offers_currency_id ON offers(currency_id);

CREATE TABLE IF NOT EXISTS offer_params (
    id SERIAL PRIMARY KEY,
    offer_id INTEGER NOT NULL,
    param_name TEXT NOT NULL,
    param_value TEXT,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    FOREIGN KEY (offer_id) REFERENCES offers(id) ON DELETE CASCADE
);
CREATE INDEX IF NOT EXISTS idx_offer_params_offer_id ON offer_params(offer_id);
"""


class ColumnSource(Protocol):
    def columns_of(self, table: str) -> list[str]: ...


class SchemaGuard:
    """
    Falla antes de escribir si a la tabla le faltan columnas requeridas.

    Solo verifica presencia (no tipos). Compara en minusculas.
    """

    def __init__(self, store: ColumnSource) -> None:
        self._store = store

    def verify(self, table: str, required_columns: Iterable[str]) -> None:
        actual = {c.lower() for c in self._store.columns_of(table)}
        missing = [c for c in required_columns if c.lower() not in actual]
        if missing:
            logger.error(f"Estructura de la tabla {table} cambio. Faltan columnas: {missing}")
            raise SchemaDriftError(table, missing)


@dataclass(frozen=True)
class DDLChange:
    """Resultado de pedir un cambio aditivo de esquema."""

    table: str
    supported: bool
    statement: str
    reason: str


def additive_change_placeholder(table: str) -> DDLChange:
    """
    Placeholder de ALTER TABLE (solo agregar columnas).

    No hay algoritmo de diff entre el feed y la tabla; se retorna un
    comentario SQL que nunca se ejecuta.
    """
    return DDLChange(
        table=table,
        supported=False,
        statement=f"-- ALTER TABLE {table} ADD COLUMN new_column_name data_type;",
        reason="Cambio aditivo de esquema aun no soportado",
    )
