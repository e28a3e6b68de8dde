from fastapi import APIRouter, Depends

from tunelab.core.exceptions import NotFoundError
from tunelab.dependencies import get_training_service, require_job
from tunelab.schemas.training import TrainingJob, TrainingJobList, TrainingParameters, TrainingProgress
from tunelab.services.training.progress import format_progress
from tunelab.services.training.service import TrainingService

router = APIRouter()


@router.get("/api/training/jobs", response_model=TrainingJobList)
async def list_training_jobs(service: TrainingService = Depends(get_training_service)):
    """List all training jobs in creation order."""
    return service.list_jobs()


@router.post("/api/training/jobs", response_model=TrainingJob, status_code=201)
async def start_training_job(
    params: TrainingParameters,
    service: TrainingService = Depends(get_training_service),
):
    """Start a simulated fine-tuning job.

    Returns immediately with the job in "preparing" status; 409 if the
    dataset is missing or has not validated successfully.
    """
    return service.start(params)


@router.get("/api/training/jobs/latest", response_model=TrainingJob)
async def get_latest_training_job(service: TrainingService = Depends(get_training_service)):
    """Most recent training/paused job, falling back to the most recent job."""
    job = service.latest_job()
    if job is None:
        raise NotFoundError("No training jobs have been started.")
    return job


@router.get("/api/training/jobs/{job_id}", response_model=TrainingJob)
async def get_training_job(job_id: str, service: TrainingService = Depends(get_training_service)):
    return require_job(service, job_id)


@router.get("/api/training/jobs/{job_id}/progress", response_model=TrainingProgress)
async def get_training_progress(job_id: str, service: TrainingService = Depends(get_training_service)):
    return format_progress(require_job(service, job_id))


@router.post("/api/training/jobs/{job_id}/pause", response_model=TrainingJob)
async def pause_training_job(job_id: str, service: TrainingService = Depends(get_training_service)):
    """Pause a training job. No-op unless the job is training."""
    require_job(service, job_id)
    return service.pause(job_id)


@router.post("/api/training/jobs/{job_id}/resume", response_model=TrainingJob)
async def resume_training_job(job_id: str, service: TrainingService = Depends(get_training_service)):
    """Resume a paused job. No-op unless the job is paused."""
    require_job(service, job_id)
    return service.resume(job_id)


@router.post("/api/training/jobs/{job_id}/stop", response_model=TrainingJob)
async def stop_training_job(job_id: str, service: TrainingService = Depends(get_training_service)):
    """Stop a training or paused job; it is marked completed."""
    require_job(service, job_id)
    return service.stop(job_id)
