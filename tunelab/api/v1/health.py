import time

from fastapi import APIRouter, Depends

from tunelab.dependencies import get_dataset_store, get_training_service
from tunelab.schemas.health import HealthResponse
from tunelab.services.dataset.store import DatasetStore
from tunelab.services.training.service import TrainingService

router = APIRouter()

_start_time = time.monotonic()


@router.get("/api/health")
async def health_check(
    service: TrainingService = Depends(get_training_service),
    store: DatasetStore = Depends(get_dataset_store),
) -> HealthResponse:
    """Service health check."""
    jobs = service.registry.list_jobs()
    return HealthResponse(
        status="ok",
        jobs_total=len(jobs),
        jobs_active=sum(1 for j in jobs if j.status.is_active),
        datasets_total=len(store),
        uptime_seconds=round(time.monotonic() - _start_time, 1),
    )
