from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from tunelab.api.v1.router import v1_router
from tunelab.config import settings
from tunelab.core.exceptions import TuneLabError, tunelab_error_handler
from tunelab.core.logging import configure_logging
from tunelab.core.middleware import RequestLoggingMiddleware
from tunelab.services.dataset.store import DatasetStore
from tunelab.services.export.service import ExportService
from tunelab.services.training.registry import JobRegistry
from tunelab.services.training.service import TrainingService

configure_logging(settings.tunelab_log_level)

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the per-process stores and services; stop tick drivers on shutdown."""
    dataset_store = DatasetStore(settings=settings)
    registry = JobRegistry(dataset_store, settings=settings)
    training_service = TrainingService(registry, settings=settings)

    app.state.dataset_store = dataset_store
    app.state.training_service = training_service
    app.state.export_service = ExportService(settings=settings)

    logger.info(
        "tunelab_starting",
        tick_interval=settings.tunelab_tick_interval,
        dispatch_delay=settings.tunelab_dispatch_delay,
    )
    yield

    await training_service.shutdown()
    logger.info("tunelab_stopping")


app = FastAPI(
    title="TuneLab",
    description="Simulated fine-tuning dashboard backend: datasets, training jobs, model export",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_exception_handler(TuneLabError, tunelab_error_handler)

# Starlette: last-added = outermost
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.tunelab_cors_origins.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware)

app.include_router(v1_router)


@app.get("/")
async def root():
    return {"service": "tunelab", "version": "0.1.0"}
