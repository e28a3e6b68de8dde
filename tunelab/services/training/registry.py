"""In-memory registry of training jobs, keyed by job id."""

import math
import uuid

import structlog

from tunelab.config import Settings, settings as default_settings
from tunelab.core.exceptions import DatasetNotReadyError, NotFoundError
from tunelab.schemas.dataset import DatasetStatus
from tunelab.schemas.training import JobStatus, TrainingJob, TrainingParameters
from tunelab.services.dataset.store import DatasetStore

logger = structlog.get_logger()


class JobRegistry:
    """Process-lifetime storage of TrainingJob records.

    Jobs are kept in creation order and never evicted. All mutation happens
    on the event loop thread, so no lock is taken; callers running the
    registry from worker threads must serialize access themselves.
    """

    def __init__(self, dataset_store: DatasetStore, settings: Settings | None = None):
        self._datasets = dataset_store
        self._settings = settings or default_settings
        self._jobs: dict[str, TrainingJob] = {}

    def __len__(self) -> int:
        return len(self._jobs)

    def create(self, params: TrainingParameters) -> TrainingJob:
        """Create a job in "preparing" state for a successfully validated dataset."""
        dataset = self._datasets.get_dataset(params.dataset_id) if params.dataset_id else None
        if dataset is None:
            raise DatasetNotReadyError(f"Dataset '{params.dataset_id}' not found.")
        if dataset.status != DatasetStatus.SUCCESS:
            raise DatasetNotReadyError(
                f"Dataset '{dataset.name}' has status '{dataset.status.value}'. "
                f"Only successfully validated datasets can be used for training."
            )

        dataset_size = dataset.record_count
        if dataset_size == 0:
            raise DatasetNotReadyError(f"Dataset '{dataset.name}' has no records.")

        total_steps = math.ceil(dataset_size / params.batch_size) * params.epochs

        job = TrainingJob(
            id=str(uuid.uuid4()),
            status=JobStatus.PREPARING,
            total_steps=total_steps,
            estimated_time_remaining=total_steps * self._settings.tunelab_seconds_per_step_estimate,
            params=params,
            logs=[
                f"INFO: Starting fine-tuning of {params.model} model",
                f"INFO: Loading dataset with {dataset_size} examples",
                f"INFO: Training with batch size {params.batch_size}, "
                f"learning rate {params.learning_rate:.2e}",
            ],
        )
        self._jobs[job.id] = job

        logger.info(
            "training_job_created",
            job_id=job.id,
            model=params.model,
            dataset_id=params.dataset_id,
            dataset_size=dataset_size,
            total_steps=total_steps,
        )
        return job

    def get(self, job_id: str) -> TrainingJob | None:
        return self._jobs.get(job_id)

    def update(self, job: TrainingJob) -> TrainingJob:
        """Replace the stored record with the same id (last writer wins)."""
        if job.id not in self._jobs:
            raise NotFoundError(f"Training job '{job.id}' not found.")
        self._jobs[job.id] = job
        return job

    def list_jobs(self) -> list[TrainingJob]:
        return list(self._jobs.values())

    def latest_active(self) -> TrainingJob | None:
        """Most recent training/paused job, else the most recent job of any status."""
        jobs = list(self._jobs.values())
        for job in reversed(jobs):
            if job.status.is_active:
                return job
        return jobs[-1] if jobs else None
