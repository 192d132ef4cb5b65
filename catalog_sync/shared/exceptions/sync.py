"""
Excepciones del pipeline feed -> Postgres.

Politica de propagacion:
- Solo los defectos por registro de ofertas se recuperan localmente (se omite
  el registro y se continua). No son excepciones: quedan en el log.
- Todo lo demas se propaga al caller despues de cerrar la transaccion de la
  tabla y restaurar el modo autocommit.
- No hay reintentos automaticos en el nucleo.
"""
from typing import Iterable

from catalog_sync.shared.exceptions.base import AppException


class FetchError(AppException):
    """No se pudo descargar el feed."""

    def __init__(self, message: str, url: str | None = None):
        super().__init__(
            message=message,
            status_code=502,
            error_code="FEED_FETCH_ERROR",
            details={"url": url} if url else None,
        )


class ParseError(AppException):
    """El contenido descargado no es un documento XML valido."""

    def __init__(self, message: str):
        super().__init__(
            message=message,
            status_code=502,
            error_code="FEED_PARSE_ERROR",
        )


class SchemaDriftError(AppException):
    """La tabla destino ya no tiene las columnas que el sync necesita."""

    def __init__(self, table: str, missing_columns: Iterable[str]):
        missing = sorted(missing_columns)
        super().__init__(
            message=(
                f"Estructura de la tabla {table} cambio. "
                f"Faltan columnas: {', '.join(missing)}"
            ),
            status_code=409,
            error_code="SCHEMA_DRIFT",
            details={"table": table, "missing_columns": missing},
        )
        self.table = table
        self.missing_columns = missing


class FeedRecordError(AppException):
    """Un campo obligatorio de un registro del feed falta o es invalido."""

    def __init__(self, kind: str, field: str, message: str):
        super().__init__(
            message=f"Registro invalido en {kind}: campo '{field}': {message}",
            status_code=422,
            error_code="INVALID_FEED_RECORD",
            details={"kind": kind, "field": field},
        )


class StoreError(AppException):
    """Error al ejecutar sentencias en la base de datos destino."""

    def __init__(self, message: str):
        super().__init__(
            message=message,
            status_code=500,
            error_code="STORE_ERROR",
        )


class SyncFailure(AppException):
    """
    Fallo de la sincronizacion de una tabla.

    La transaccion de esa tabla ya fue revertida; la causa original queda en
    `__cause__`.
    """

    def __init__(self, table: str, cause: Exception):
        reason = getattr(cause, "message", None) or str(cause)
        super().__init__(
            message=f"Error actualizando la tabla {table}: {reason}",
            status_code=500,
            error_code="SYNC_FAILURE",
            details={"table": table, "cause": type(cause).__name__},
        )
        self.table = table


class UnknownEntityKind(AppException):
    """Nombre de tabla/entidad desconocido."""

    def __init__(self, name: str, valid_kinds: list[str]):
        super().__init__(
            message=f"Nombre de tabla desconocido: {name}",
            status_code=400,
            error_code="UNKNOWN_ENTITY_KIND",
            details={"kind_provided": name, "valid_kinds": valid_kinds},
        )
