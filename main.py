import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import tracker.models  # noqa: F401  registers every table on Base.metadata
from tracker.config import settings
from tracker.database import IS_SQLITE, Base, engine
from tracker.exception_handlers import register_exception_handlers
from tracker.middleware.logging import StructuredLoggingMiddleware, setup_structured_logging
from tracker.routes import audit, auth, projects, tasks, tenants, users

setup_structured_logging(log_level=settings.log_level, json_format=settings.json_logs)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting up the application...")
    # Production schemas are managed by Alembic
    if settings.debug or IS_SQLITE:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables created (if not existing).")
    yield
    logger.info("Shutting down the application...")
    await engine.dispose()


def create_app() -> FastAPI:
    """Create the FastAPI application."""
    app = FastAPI(
        title=settings.app_name,
        description="Multi-tenant project and task tracker",
        debug=settings.debug,
        version=settings.app_version,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(StructuredLoggingMiddleware)

    register_exception_handlers(app)

    app.include_router(auth.router, prefix="/auth")
    app.include_router(tenants.router, prefix="/api/tenants")
    app.include_router(users.router, prefix="/api/users")
    app.include_router(projects.router, prefix="/api/projects")
    app.include_router(tasks.router, prefix="/api/tasks")
    app.include_router(audit.router, prefix="/api/audit-logs")

    @app.get("/health", tags=["Health"])
    async def health():
        return {"status": "ok", "version": settings.app_version}

    if settings.debug:
        logger.info(f"Running in {settings.environment} mode")
        logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO)

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=settings.debug)
