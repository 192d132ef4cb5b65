"""
Endpoints del catalogo: introspeccion de tablas y sincronizacion con el feed.

Las operaciones del servicio son bloqueantes (red + base de datos); se
ejecutan en un thread separado para no bloquear el event loop.
"""
import asyncio
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from loguru import logger
from pydantic import BaseModel

from catalog_sync.api.v1.dependencies import get_catalog_service
from catalog_sync.infrastructure.sync.sync_service import CatalogSyncService
from catalog_sync.infrastructure.sync.synchronizers import EntitySyncResult


router = APIRouter(prefix="/catalog", tags=["Catalog"])


class TableSyncResultDTO(BaseModel):
    """Resultado de la sincronizacion de una tabla."""
    kind: str
    table: str
    processed: int
    skipped: int = 0
    batches: int = 0


class SyncResponseDTO(BaseModel):
    success: bool
    message: str
    results: List[TableSyncResultDTO]


class DDLResponseDTO(BaseModel):
    kind: str
    ddl: str


class ColumnsResponseDTO(BaseModel):
    table: str
    columns: List[str]


class ColumnUniqueResponseDTO(BaseModel):
    table: str
    column: str
    unique: bool


class DDLChangeResponseDTO(BaseModel):
    table: str
    supported: bool
    statement: str
    reason: Optional[str] = None


def _to_dto(result: EntitySyncResult) -> TableSyncResultDTO:
    return TableSyncResultDTO(
        kind=result.kind,
        table=result.table,
        processed=result.processed,
        skipped=result.skipped,
        batches=result.batches,
    )


@router.get("/tables", response_model=List[str], summary="Tablas sincronizadas")
async def list_tables(service: CatalogSyncService = Depends(get_catalog_service)) -> List[str]:
    return service.get_table_names()


@router.get("/tables/{kind}/ddl", response_model=DDLResponseDTO, summary="DDL de una tabla")
async def get_table_ddl(
    kind: str,
    service: CatalogSyncService = Depends(get_catalog_service),
) -> DDLResponseDTO:
    return DDLResponseDTO(kind=kind.lower(), ddl=service.get_table_ddl(kind))


@router.get("/tables/{table}/columns", response_model=ColumnsResponseDTO, summary="Columnas reales de una tabla")
async def get_columns(
    table: str,
    service: CatalogSyncService = Depends(get_catalog_service),
) -> ColumnsResponseDTO:
    columns = await asyncio.to_thread(service.get_column_names, table)
    return ColumnsResponseDTO(table=table, columns=columns)


@router.get(
    "/tables/{table}/columns/{column}/unique",
    response_model=ColumnUniqueResponseDTO,
    summary="Verifica si una columna no tiene valores repetidos",
)
async def check_column_unique(
    table: str,
    column: str,
    service: CatalogSyncService = Depends(get_catalog_service),
) -> ColumnUniqueResponseDTO:
    unique = await asyncio.to_thread(service.is_column_unique, table, column)
    return ColumnUniqueResponseDTO(table=table, column=column, unique=unique)


@router.get("/tables/{table}/ddl-change", response_model=DDLChangeResponseDTO, summary="Cambio aditivo de esquema")
async def get_ddl_change(
    table: str,
    service: CatalogSyncService = Depends(get_catalog_service),
) -> DDLChangeResponseDTO:
    change = service.get_ddl_change(table)
    return DDLChangeResponseDTO(
        table=change.table,
        supported=change.supported,
        statement=change.statement,
        reason=change.reason,
    )


@router.post("/schema", status_code=status.HTTP_204_NO_CONTENT, summary="Crea las tablas si no existen")
async def init_schema(service: CatalogSyncService = Depends(get_catalog_service)) -> None:
    await asyncio.to_thread(service.init_schema)


@router.post("/sync", response_model=SyncResponseDTO, summary="Sincroniza todas las tablas")
async def sync_all(service: CatalogSyncService = Depends(get_catalog_service)) -> SyncResponseDTO:
    logger.info("Iniciando sincronizacion completa del catalogo desde API")
    results = await asyncio.to_thread(service.sync_all)
    return SyncResponseDTO(
        success=True,
        message=f"Sincronizacion completada: {len(results)} tabla(s)",
        results=[_to_dto(r) for r in results],
    )


@router.post("/sync/{kind}", response_model=SyncResponseDTO, summary="Sincroniza una tabla")
async def sync_one(
    kind: str,
    service: CatalogSyncService = Depends(get_catalog_service),
) -> SyncResponseDTO:
    logger.info(f"Iniciando sincronizacion de {kind} desde API")
    result = await asyncio.to_thread(service.sync_one, kind)
    return SyncResponseDTO(
        success=True,
        message=f"Tabla {result.table} actualizada: {result.processed} registro(s)",
        results=[_to_dto(result)],
    )


@router.post("/document/refresh", status_code=status.HTTP_204_NO_CONTENT, summary="Vuelve a descargar el feed")
async def refresh_document(service: CatalogSyncService = Depends(get_catalog_service)) -> None:
    await asyncio.to_thread(service.refresh_document)
