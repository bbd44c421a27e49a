# Copyright (c) 2025 PilotTrain Analytics. All rights reserved.
# This source code is proprietary and confidential.
# Unauthorized copying, modification, distribution, or derivative works are strictly prohibited without prior written consent.

"""
Point d'entrée principal de l'application FastAPI PilotTrain
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.core.errors import AnalyticsError
from app.ml.registry import ModelRegistry
from app.api.endpoints import health, predictions, training

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Gestionnaire de cycle de vie de l'application
    Exécuté au démarrage et à l'arrêt
    """
    # Startup
    logging.basicConfig(level=settings.LOG_LEVEL.upper(), format=settings.LOG_FORMAT)
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Debug mode: {settings.DEBUG}")

    app.state.model_registry = ModelRegistry(settings)

    yield

    # Shutdown
    app.state.model_registry.close()
    logger.info(f"Shutting down {settings.APP_NAME}")


# Create FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Moteur d'analytique prédictive pour la formation des pilotes",
    docs_url=f"{settings.API_PREFIX}/docs" if settings.DEBUG else None,
    redoc_url=f"{settings.API_PREFIX}/redoc" if settings.DEBUG else None,
    openapi_url=f"{settings.API_PREFIX}/openapi.json" if settings.DEBUG else None,
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Root endpoint
@app.get("/", include_in_schema=False)
async def root():
    return JSONResponse(
        content={
            "app": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "environment": settings.ENVIRONMENT,
            "status": "running",
            "docs": f"{settings.API_PREFIX}/docs" if settings.DEBUG else None,
        }
    )


# Include routers
# Health checks
app.include_router(health.router, tags=["Health"])

# Prédictions
app.include_router(
    predictions.router,
    prefix=settings.API_PREFIX,
    tags=["Predictions"]
)

# Entraînement et modèles
app.include_router(
    training.router,
    prefix=settings.API_PREFIX,
    tags=["Training"]
)


def _error_response(status_code: int, message: str, error: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "message": message,
            "error": error,
        }
    )


# Exception handlers
@app.exception_handler(AnalyticsError)
async def analytics_error_handler(request: Request, exc: AnalyticsError):
    """
    Handler pour les erreurs du moteur (code HTTP porté par l'exception)
    """
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.warning(f"{request.method} {request.url.path} rejected: {exc.message}")
    return _error_response(exc.status_code, exc.message, type(exc).__name__)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """
    Handler pour les corps de requête invalides ou absents
    """
    details = "; ".join(
        f"{'.'.join(str(part) for part in error.get('loc', ()))}: {error.get('msg')}"
        for error in exc.errors()
    )
    return _error_response(400, "Invalid request body", details)


@app.exception_handler(404)
async def not_found_handler(request, exc):
    """
    Handler pour les erreurs 404
    """
    return _error_response(404, "Resource not found", str(exc))


@app.exception_handler(500)
async def internal_error_handler(request, exc):
    """
    Handler pour les erreurs 500
    """
    logger.error(f"Unhandled error on {request.url.path}: {exc}", exc_info=exc)
    return _error_response(
        500,
        "Internal server error",
        str(exc) if settings.DEBUG else "An error occurred",
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
    )
