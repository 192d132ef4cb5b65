"""
Manejadores de eventos de inicio y cierre de la aplicacion.
"""
import sys
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable

from fastapi import FastAPI
from loguru import logger

from catalog_sync.core.config import settings
from catalog_sync.infrastructure.sync.sync_service import build_from_settings


CONSOLE_FORMAT = "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <level>{message}</level>"


def configure_console_logging(verbose: bool = False, level: str | None = None) -> None:
    """Reemplaza el sink por defecto de loguru por uno en stderr."""
    logger.remove()
    logger.add(
        sys.stderr,
        level="DEBUG" if verbose else (level or settings.LOG_LEVEL),
        format=CONSOLE_FORMAT,
    )


def startup_handler(app: FastAPI) -> Callable:
    """
    Manejador de eventos de inicio de la aplicacion.
    
    Args:
        app: Instancia de FastAPI
        
    Returns:
        Callable: Funcion asincrona de inicio
    """
    async def startup() -> None:
        """Inicializa recursos al inicio de la aplicacion."""
        try:
            logger.info(f"Iniciando {settings.APP_NAME} v{settings.APP_VERSION}")
            logger.info(f"Entorno: {settings.ENVIRONMENT}")
            
            app.state.log_sink_id = logger.add(
                settings.LOG_FILE,
                rotation="500 MB",
                retention="10 days",
                level=settings.LOG_LEVEL
            )
            
            # El feed no se descarga aqui: se descarga en el primer sync.
            app.state.catalog_service = build_from_settings(settings)
            logger.info(f"Feed configurado: {settings.FEED_URL}")
            
            logger.success("Aplicacion iniciada correctamente")
        except Exception as e:
            logger.error(f"Error durante startup: {e}")
            logger.exception("Detalle del error:")
            raise
    
    return startup


def shutdown_handler(app: FastAPI) -> Callable:
    """
    Manejador de eventos de cierre de la aplicacion.
    """
    async def shutdown() -> None:
        """Libera la conexion a la base de datos y el sink de archivo."""
        service = getattr(app.state, "catalog_service", None)
        if service is not None:
            service.close()
        logger.info("Aplicacion detenida")
        sink_id = getattr(app.state, "log_sink_id", None)
        if sink_id is not None:
            logger.remove(sink_id)
            app.state.log_sink_id = None
    
    return shutdown


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    await startup_handler(app)()
    try:
        yield
    finally:
        await shutdown_handler(app)()
