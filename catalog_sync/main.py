"""
Punto de entrada de la API FastAPI.
Configura la aplicacion, middlewares, rutas y eventos.
"""
from fastapi import FastAPI
from fastapi.responses import JSONResponse

from catalog_sync.core.config import settings
from catalog_sync.core.events import lifespan
from catalog_sync.api.v1.router import api_router
from catalog_sync.api.middlewares.error_handler import ErrorHandlerMiddleware
from catalog_sync.shared.exceptions.base import AppException


def create_application() -> FastAPI:
    """
    Factory para crear y configurar la aplicacion FastAPI.
    
    Returns:
        FastAPI: Instancia configurada de la aplicacion
    """
    application = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        debug=settings.DEBUG,
        description="Sincronizacion del feed de catalogo con PostgreSQL",
        lifespan=lifespan,
    )

    application.add_middleware(ErrorHandlerMiddleware)

    application.include_router(api_router, prefix="/api")

    @application.exception_handler(AppException)
    async def app_exception_handler(request, exc: AppException):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @application.get("/health", tags=["Health"])
    async def health_check():
        return {"status": "healthy", "app": settings.APP_NAME, "version": settings.APP_VERSION}

    return application


app = create_application()


if __name__ == "__main__":
    import uvicorn
    
    uvicorn.run(
        "catalog_sync.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.is_development,
    )
