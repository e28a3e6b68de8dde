from fastapi import Request

from tunelab.core.exceptions import NotFoundError
from tunelab.schemas.training import TrainingJob
from tunelab.services.dataset.store import DatasetStore
from tunelab.services.export.service import ExportService
from tunelab.services.training.service import TrainingService


def get_dataset_store(request: Request) -> DatasetStore:
    """Return the dataset store created during lifespan."""
    return request.app.state.dataset_store


def get_training_service(request: Request) -> TrainingService:
    return request.app.state.training_service


def get_export_service(request: Request) -> ExportService:
    return request.app.state.export_service


def require_job(service: TrainingService, job_id: str) -> TrainingJob:
    job = service.get_job(job_id)
    if job is None:
        raise NotFoundError(f"Training job '{job_id}' not found.")
    return job
