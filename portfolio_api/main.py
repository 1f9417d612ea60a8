from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .auth import router as auth_router
from .auth.repository import UserRepository
from .auth.service import CredentialVerifier
from .content import router as content_router
from .content.repository import ContentStore
from .content.service import ResourceService
from .core import db, errors
from .core.config import DEFAULT_JWT_SECRET, Settings, load_settings
from .core.log import setup_logging

logger = logging.getLogger(__name__)


async def seed_admin_user(users: UserRepository, settings: Settings) -> None:
    if not (settings.admin_username and settings.admin_password_hash):
        logger.info("admin_seed_skipped reason=not_configured")
        return None
    await users.upsert_user(username=settings.admin_username, password_hash=settings.admin_password_hash)
    logger.info("admin_seeded username=%s", settings.admin_username)


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(errors.NotFound)
    async def not_found_handler(_: Request, exc: errors.NotFound) -> JSONResponse:
        logger.info("not_found resource=%s id=%s", exc.resource, exc.resource_id)
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": exc.detail})

    @app.exception_handler(errors.Unauthenticated)
    async def unauthenticated_handler(_: Request, exc: errors.Unauthenticated) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content={"detail": exc.detail},
            headers={"WWW-Authenticate": "Bearer"},
        )

    @app.exception_handler(errors.InvalidCredentials)
    async def invalid_credentials_handler(_: Request, exc: errors.InvalidCredentials) -> JSONResponse:
        return JSONResponse(status_code=status.HTTP_401_UNAUTHORIZED, content={"detail": exc.detail})

    @app.exception_handler(errors.ValidationError)
    async def validation_error_handler(_: Request, exc: errors.ValidationError) -> JSONResponse:
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": exc.detail})

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": jsonable_encoder(exc.errors())},
        )


def create_app(
    settings: Settings | None = None,
    *,
    store: ContentStore | None = None,
    users: UserRepository | None = None,
) -> FastAPI:
    """
    Build the API.

    `store` and `users` default to Postgres-backed implementations created in
    the lifespan; passing them in skips the pool entirely.
    """
    settings = settings or load_settings()
    setup_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        database: db.Database | None = None
        content_store, user_repo = store, users
        if content_store is None or user_repo is None:
            # Initialize the DB pool once per process.
            database = db.Database(settings.database_url, max_size=settings.db_pool_max_size)
            await database.init_pool()
        try:
            if database is not None:
                if settings.apply_schema:
                    await database.apply_schema()
                content_store = content_store or ContentStore(database)
                user_repo = user_repo or UserRepository(database)

            if settings.jwt_secret == DEFAULT_JWT_SECRET:
                logger.warning("jwt_secret_default: set JWT_SECRET in production")
            await seed_admin_user(user_repo, settings)

            app.state.resources = ResourceService(content_store)
            app.state.verifier = CredentialVerifier(
                user_repo,
                secret=settings.jwt_secret,
                algorithm=settings.jwt_algorithm,
                expire_minutes=settings.access_token_expire_minutes,
            )
            yield
        finally:
            if database is not None:
                await database.close_pool()

    app = FastAPI(title="Portfolio API", lifespan=lifespan)

    # Allow the portfolio front-end to call this API from the browser.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _register_exception_handlers(app)

    app.include_router(auth_router.router, tags=["auth"])
    app.include_router(content_router.router)

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    @app.get("/")
    def root() -> dict:
        return {"message": "portfolio api"}

    return app


app = create_app()
