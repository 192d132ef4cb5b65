"""
Store Postgres (psycopg) usado por el sync del catalogo.

Una sola conexion por instancia, abierta de forma lazy en modo autocommit.
El caller controla las transacciones (set_autocommit(False) -> commit/rollback).
Todo psycopg.Error se convierte en StoreError.
"""

from __future__ import annotations

from typing import Any, Iterable, Optional, Sequence

import psycopg
from psycopg import sql
from psycopg.rows import dict_row
from loguru import logger

from catalog_sync.shared.exceptions import StoreError


Params = Optional[Sequence[Any]]


class PostgresCatalogStore:
    def __init__(self, dsn: str) -> None:
        self._dsn = dsn
        self._conn: Optional[psycopg.Connection] = None

    def connect(self) -> psycopg.Connection:
        """
        Retorna la conexion abierta (la crea la primera vez, autocommit True).
        """
        if self._conn is not None and not self._conn.closed:
            return self._conn
        try:
            self._conn = psycopg.connect(self._dsn, row_factory=dict_row, autocommit=True)
        except psycopg.OperationalError as e:
            raise StoreError(
                f"No se pudo conectar a PostgreSQL: {e}\n"
                f"Sugerencia: verifica que DATABASE_URL sea accesible desde donde ejecutas el proceso."
            ) from e
        return self._conn

    def execute(self, statement: str, params: Params = None) -> None:
        conn = self.connect()
        try:
            with conn.cursor() as cur:
                cur.execute(statement, params)
        except psycopg.Error as e:
            raise StoreError(f"Error ejecutando sentencia: {e}") from e

    def execute_batch(self, statement: str, params_seq: Iterable[Sequence[Any]]) -> int:
        """
        Ejecuta la misma sentencia para cada set de parametros, en orden.

        Retorna la cantidad de sets enviados (0 si no habia nada que ejecutar).
        """
        values = list(params_seq)
        if not values:
            return 0
        conn = self.connect()
        try:
            with conn.cursor() as cur:
                cur.executemany(statement, values)
        except psycopg.Error as e:
            raise StoreError(f"Error ejecutando batch ({len(values)} filas): {e}") from e
        return len(values)

    def fetch_one(self, statement: Any, params: Params = None) -> Optional[dict[str, Any]]:
        conn = self.connect()
        try:
            with conn.cursor() as cur:
                cur.execute(statement, params)
                return cur.fetchone()
        except psycopg.Error as e:
            raise StoreError(f"Error en consulta: {e}") from e

    def columns_of(self, table: str) -> list[str]:
        """
        Columnas reales de la tabla (schemas del search_path), en orden ordinal.
        """
        conn = self.connect()
        try:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    SELECT column_name
                    FROM information_schema.columns
                    WHERE table_name = %s
                      AND table_schema = ANY(current_schemas(false))
                    ORDER BY ordinal_position
                    """,
                    (table,),
                )
                return [row["column_name"] for row in cur.fetchall()]
        except psycopg.Error as e:
            raise StoreError(f"Error obteniendo columnas de la tabla {table}: {e}") from e

    def column_stats(self, table: str, column: str) -> tuple[int, int]:
        """
        Retorna (valores distintos, valores no nulos) de una columna.
        """
        query = sql.SQL(
            "SELECT COUNT(DISTINCT {col}) AS distinct_count, COUNT({col}) AS total_count FROM {tbl}"
        ).format(col=sql.Identifier(column), tbl=sql.Identifier(table))
        row = self.fetch_one(query)
        if not row:
            return 0, 0
        return int(row["distinct_count"]), int(row["total_count"])

    def apply_ddl(self, ddl: str) -> None:
        """Ejecuta un DDL idempotente (varias sentencias separadas por ';')."""
        self.execute(ddl)

    def set_autocommit(self, enabled: bool) -> None:
        conn = self.connect()
        try:
            conn.autocommit = enabled
        except psycopg.Error as e:
            raise StoreError(f"No se pudo cambiar autocommit a {enabled}: {e}") from e

    def commit(self) -> None:
        try:
            self.connect().commit()
        except psycopg.Error as e:
            raise StoreError(f"Error en commit: {e}") from e

    def rollback(self) -> None:
        try:
            self.connect().rollback()
        except psycopg.Error as e:
            raise StoreError(f"Error en rollback: {e}") from e

    def close(self) -> None:
        if self._conn is None:
            return
        try:
            self._conn.close()
        except psycopg.Error as e:
            logger.error(f"Error al cerrar la conexion: {e}")
        finally:
            self._conn = None
