"""
Router principal de la API v1.
"""
from fastapi import APIRouter

from catalog_sync.api.v1.endpoints import catalog


api_router = APIRouter(prefix="/v1")

api_router.include_router(catalog.router)
