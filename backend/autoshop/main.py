"""
Point d'entrée principal de l'API DADJ Auto Shop.
Démarrage : uvicorn autoshop.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import autoshop.models  # noqa: F401  (enregistre tous les modèles dans Base.metadata avant les routers)
from autoshop.config import settings
from autoshop.errors import INTERNAL_ERROR, MISSING_FIELDS, ApiError
from autoshop.routers import auth, protected, user
from autoshop.scheduler import start_scheduler, stop_scheduler

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Cycle de vie de l'application : démarre et arrête le scheduler de nettoyage."""
    start_scheduler()
    yield
    stop_scheduler()


app = FastAPI(
    title="DADJ Auto Shop API",
    description="API d'authentification, de sessions et de gestion de compte de l'atelier",
    version="0.1.0",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "Accept"],
)


app.include_router(auth.router)
app.include_router(user.router)
app.include_router(protected.router)


@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    """Rend les erreurs métier au format {"message", "error", ...} attendu par le front."""
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Champs manquants ou mal formés → 400 MISSING_FIELDS avec le premier problème détecté."""
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(loc) for loc in first.get("loc", ()) if loc != "body")
        message = f"Champ '{field}' : {first.get('msg', 'invalide')}" if field else "Requête invalide."
    else:
        message = "Requête invalide."
    return JSONResponse(status_code=400, content={"message": message, "error": MISSING_FIELDS})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Intercepte toutes les exceptions non gérées pour garantir que la réponse 500
    passe bien par CORSMiddleware (qui injecte les headers CORS).
    Le détail reste dans les logs serveur, jamais dans la réponse.
    """
    logger.error("Exception non gérée : %s", exc, exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"message": "Une erreur interne est survenue.", "error": INTERNAL_ERROR},
    )


@app.get("/api/health", tags=["Santé"])
def health_check():
    """Vérifie que l'API est opérationnelle."""
    return {"status": "ok", "service": "DADJ Auto Shop API", "version": "0.1.0"}
