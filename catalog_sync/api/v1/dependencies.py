"""
Dependencias de la API.
"""
from fastapi import Request

from catalog_sync.infrastructure.sync.sync_service import CatalogSyncService


def get_catalog_service(request: Request) -> CatalogSyncService:
    """
    Servicio de sync creado en el startup de la aplicacion.

    Los tests lo reemplazan via dependency_overrides.
    """
    return request.app.state.catalog_service
