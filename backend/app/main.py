"""
Point d'entrée principal de l'API Agenda.
Démarrage : uvicorn app.main:app --reload
"""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import app.models  # noqa: F401  enregistre tous les modèles dans Base.metadata avant les routers
from app.routers import availability, bookings, lessons, reschedules
from app.services.errors import WriteFailedError

logger = logging.getLogger(__name__)


app = FastAPI(
    title="Agenda API",
    description="Disponibilités, bookings récurrents et réconciliation des cours donnés",
    version="0.1.0",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
)

# CORS : tous les ports localhost en développement (à restreindre en production)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[],
    allow_origin_regex=r"https?://(localhost|127\.0\.0\.1)(:\d+)?",
    allow_credentials=False,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["Content-Type", "Authorization", "Accept"],
)


app.include_router(availability.router)
app.include_router(bookings.router)
app.include_router(lessons.router)
app.include_router(reschedules.router)


@app.exception_handler(WriteFailedError)
async def write_failed_handler(request: Request, exc: WriteFailedError) -> JSONResponse:
    """Écriture annulée : l'étape fautive et le message du backend sont renvoyés au client."""
    return JSONResponse(
        status_code=500,
        content={"detail": exc.message, "step": exc.step},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Intercepte toutes les exceptions non gérées pour garantir que la réponse 500
    passe bien par CORSMiddleware (qui injecte les headers CORS).
    """
    logger.error("Exception non gérée : %s", exc, exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Une erreur interne est survenue."},
    )


@app.get("/api/health", tags=["Santé"])
def health_check():
    """Vérifie que l'API est opérationnelle."""
    return {"status": "ok", "service": "Agenda API", "version": "0.1.0"}
