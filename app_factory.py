import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pymongo import MongoClient

import config
import database
import schemas
from auth import TokenIssuer
from errors import register_exception_handlers
from models.user import UserStore
from routers import auth, users

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s - %(levelname)s - %(message)s",
    )


def create_default_admin(store: UserStore) -> None:
    """Crée (ou remet en état) l'administrateur défini dans l'environnement."""
    if not config.ADMIN_EMAIL or not config.ADMIN_PASSWORD:
        return
    _, created = store.ensure_admin(config.ADMIN_EMAIL, config.ADMIN_NAME, config.ADMIN_PASSWORD)
    if created:
        logger.info(f"Administrateur initial créé : {config.ADMIN_EMAIL}")
    else:
        logger.info(f"Administrateur initial vérifié : {config.ADMIN_EMAIL}")


def create_app(mongo_client: MongoClient = None) -> FastAPI:
    """Crée et configure l'instance de l'application FastAPI.

    mongo_client permet d'injecter un client déjà construit ; sinon il est
    créé au démarrage à partir de MONGO_URI et fermé à l'arrêt.
    """
    configure_logging()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Un secret absent doit empêcher le démarrage
        app.state.token_issuer = TokenIssuer(
            config.JWT_SECRET,
            algorithm=config.JWT_ALGORITHM,
            expires_minutes=config.JWT_EXPIRES_MINUTES,
        )

        owns_client = mongo_client is None
        client = database.connect() if owns_client else mongo_client
        app.state.mongo_db = client[config.DB_NAME]

        store = UserStore(app.state.mongo_db)
        store.ensure_indexes()
        create_default_admin(store)

        logger.info(f"Service démarré (environnement : {config.ENVIRONMENT})")
        try:
            yield
        finally:
            if owns_client:
                database.close(client)
            logger.info("Service arrêté")

    app = FastAPI(
        title="User Service API",
        description="Inscription, authentification et gestion des utilisateurs",
        version="1.0.0",
        lifespan=lifespan,
    )

    # Configuration CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials="*" not in config.CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # Inclusion des routeurs
    app.include_router(auth.router, prefix="/auth", tags=["Authentication"])
    app.include_router(users.router, prefix="/users", tags=["Users"])

    @app.get("/health", response_model=schemas.HealthResponse, tags=["Health"])
    def health():
        return {
            "status": "OK",
            "message": "Server is running",
            "timestamp": datetime.now(timezone.utc),
            "environment": config.ENVIRONMENT,
        }

    return app
