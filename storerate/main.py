import logging
from datetime import timedelta
from typing import Optional

import uvicorn
from fastapi import FastAPI
from sqlalchemy.engine import Engine

from storerate.auth.password import PasswordHasher
from storerate.auth.token import TokenService
from storerate.core.config import Settings, get_settings
from storerate.core.errors import register_exception_handlers
from storerate.core.logging import configure_logging
from storerate.db.session import build_engine, build_sessionmaker, init_db, test_connection
from storerate.middleware.auth_middleware import AuthMiddleware
from storerate.routers.admin_router import router as admin_router
from storerate.routers.auth_router import router as auth_router
from storerate.routers.owner_router import router as owner_router
from storerate.routers.user_router import router as user_router
from storerate.service.locks import KeyedLock

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None, engine: Optional[Engine] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.LOG_LEVEL)

    app = FastAPI(title="Store Rating API")
    engine = engine or build_engine(settings)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_sessionmaker(engine)
    app.state.hasher = PasswordHasher(settings.PASSWORD_SCHEMES, rounds=settings.PASSWORD_ROUNDS)
    app.state.token_service = TokenService(
        settings.SECRET_KEY,
        algorithm=settings.ALGORITHM,
        expires_in=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    )
    app.state.rating_locks = KeyedLock()

    @app.on_event("startup")
    def startup_event():
        logger.info("Starting server...")
        if settings.CREATE_TABLES:
            init_db(engine)
        test_connection(engine)

    register_exception_handlers(app)
    app.add_middleware(AuthMiddleware)
    app.include_router(auth_router)
    app.include_router(user_router)
    app.include_router(owner_router)
    app.include_router(admin_router)

    @app.get("/ping")
    def ping():
        return {"ping": "pong"}

    @app.get("/health")
    def health():
        return {"success": True, "message": "Server is running"}

    return app


app = create_app()


def run():
    settings = get_settings()
    uvicorn.run("storerate.main:app", host=settings.APP_HOST, port=settings.APP_PORT)
