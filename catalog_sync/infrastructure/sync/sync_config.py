"""
Configuracion del sync (feed -> Postgres) por tipo de entidad.

Aqui se declara, por tabla:
- contenedor/item del feed
- columnas que el sync necesita (SchemaGuard)
- mapeo campo del feed -> columna, con su politica (estricta o leniente)
- DDL

La asimetria estricto/leniente es intencional:
- categories: un parentId malformado aborta la tabla.
- offers: un id ausente o malformado solo omite la oferta; el resto de los
  campos se degrada a NULL.

Este modulo no realiza I/O: solo define configuracion.
"""

from __future__ import annotations

from dataclasses import dataclass

from . import schema
from .types import (
    ATTRIBUTE,
    TEXT,
    FieldMapping,
    as_boolean,
    as_decimal,
    as_integer,
    as_text,
    optional_integer_strict,
    require_decimal,
    require_integer,
    require_text,
)


@dataclass(frozen=True)
class EntitySyncConfig:
    """Config de una coleccion del feed -> una tabla Postgres."""

    kind: str
    container: str
    item: str
    target_table: str
    field_mappings: list[FieldMapping]
    ddl: str

    @property
    def required_columns(self) -> list[str]:
        return [m.pg_column for m in self.field_mappings]


CURRENCY = EntitySyncConfig(
    kind="currency",
    container="currencies",
    item="currency",
    target_table="currency",
    field_mappings=[
        FieldMapping("id", "id", origin=ATTRIBUTE, transform=require_text, required=True),
        FieldMapping("rate", "rate", origin=ATTRIBUTE, transform=require_decimal, required=True),
    ],
    ddl=schema.CURRENCY_DDL,
)

CATEGORIES = EntitySyncConfig(
    kind="categories",
    container="categories",
    item="category",
    target_table="categories",
    field_mappings=[
        FieldMapping("id", "id", origin=ATTRIBUTE, transform=require_integer, required=True),
        FieldMapping("name", "name", origin=TEXT, transform=require_text, required=True),
        FieldMapping("parentId", "parent_id", origin=ATTRIBUTE, transform=optional_integer_strict, required=True),
    ],
    ddl=schema.CATEGORIES_DDL,
)

# El id de la oferta no esta en la lista: se resuelve aparte (omitir si falta).
OFFER_ID = FieldMapping("id", "id", origin=ATTRIBUTE, transform=as_integer)

OFFERS = EntitySyncConfig(
    kind="offers",
    container="offers",
    item="offer",
    target_table="offers",
    field_mappings=[
        OFFER_ID,
        FieldMapping("available", "available", origin=ATTRIBUTE, transform=as_boolean),
        FieldMapping("url", "url"),
        FieldMapping("price", "price", transform=as_decimal),
        FieldMapping("currencyId", "currency_id"),
        FieldMapping("categoryId", "category_id", transform=as_integer),
        FieldMapping("picture", "picture"),
        FieldMapping("name", "name"),
        FieldMapping("vendor", "vendor"),
        FieldMapping("vendorCode", "vendor_code"),
        FieldMapping("description", "description", transform=as_text),
        FieldMapping("count", "count", transform=as_integer),
    ],
    ddl=schema.OFFERS_DDL,
)

OFFER_PARAMS_TABLE = "offer_params"
OFFER_PARAMS_COLUMNS = ["offer_id", "param_name", "param_value"]

DEFAULT_BATCH_SIZE = 1000

# Orden referencial: offers referencia currency y categories.
ENTITY_CONFIGS: dict[str, EntitySyncConfig] = {
    c.kind: c for c in (CURRENCY, CATEGORIES, OFFERS)
}
