import uvicorn
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api import api_router
from config.auth_settings import SESSION_SECRET, validate_session_secret
from config.settings import API_HOST, API_PORT, CORS_ORIGINS, IS_PRODUCTION, SERVICE_NAME, SERVICE_VERSION
from core.errors import register_error_handlers
from database.connection import Database
from sso_auth.client import OAuth2Client
from utils.logger import get_logger

# Initialize logger
logger = get_logger(__name__)


def create_app(database: Optional[Database] = None, oauth_client: Optional[OAuth2Client] = None) -> FastAPI:
    """Build the API. Tests pass their own database and OAuth client."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan - runs on startup and shutdown"""
        logger.info("Starting application...")
        validate_session_secret(SESSION_SECRET, IS_PRODUCTION)
        app.state.database = database or Database()
        app.state.database.create_db_and_tables()
        logger.info("Database tables created/verified")

        app.state.oauth_client = oauth_client or OAuth2Client()
        if not app.state.oauth_client.is_configured():
            logger.warning("SSO provider is not configured; login will fail")
        yield
        if database is None:
            app.state.database.dispose()
        logger.info("Shutting down application...")

    app = FastAPI(
        title="AssignWork",
        version=SERVICE_VERSION,
        description=f"{SERVICE_NAME} API",
        lifespan=lifespan,
    )

    register_error_handlers(app)

    # Include API routes
    app.include_router(api_router, prefix="/api")

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(app, host=API_HOST, port=API_PORT)
