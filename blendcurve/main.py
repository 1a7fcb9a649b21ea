"""FastAPI application entry point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from blendcurve.config import settings
from blendcurve.database import create_db_and_tables
from blendcurve.utils.logging import setup_logging
from blendcurve.api import audit, datasets, system, trades


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    setup_logging()
    create_db_and_tables()
    yield


app = FastAPI(
    title="Blendcurve",
    description="Blended multi-algorithm equity curves, drawdown statistics and audit reconciliation",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Mount routers
app.include_router(system.router)
app.include_router(datasets.router)
app.include_router(trades.router)
app.include_router(audit.router)
