"""FastAPI application factory."""
from contextlib import asynccontextmanager

from fastapi import FastAPI

from fitlog.api.routes import workouts


def create_app() -> FastAPI:
    """Build and return the FastAPI app."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Engine creation runs create_all (idempotent)
        from fitlog.db.engine import get_engine
        get_engine()
        yield

    app = FastAPI(
        title="Fitlog API",
        description="Upload .fit files and browse workout summaries",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.include_router(workouts.router, prefix="/workouts", tags=["workouts"])

    return app


# Module-level app instance for uvicorn
app = create_app()
