"""Job control API: start, pause, resume and stop simulated training jobs."""

import asyncio
import random
from collections.abc import Callable

import structlog

from tunelab.config import Settings, settings as default_settings
from tunelab.schemas.training import TrainingJob, TrainingJobList, TrainingParameters
from tunelab.services.training.registry import JobRegistry
from tunelab.services.training.simulator import Sleep, TrainingSimulator

logger = structlog.get_logger()


class TrainingService:
    """Creates jobs through the registry and drives one simulator per job.

    Every operation returns immediately with the job as it is at call time;
    progression happens in background asyncio tasks. Invalid transitions
    (pausing a job that is not training, etc.) are no-ops that return the
    job unchanged. Only ``start`` raises, with DatasetNotReadyError.
    """

    def __init__(
        self,
        registry: JobRegistry,
        settings: Settings | None = None,
        rng_factory: Callable[[], random.Random] | None = None,
        sleep: Sleep = asyncio.sleep,
    ):
        self._registry = registry
        self._settings = settings or default_settings
        self._rng_factory = rng_factory or self._default_rng
        self._sleep = sleep
        self._simulators: dict[str, TrainingSimulator] = {}
        self._dispatch_tasks: dict[str, asyncio.Task] = {}

    @property
    def registry(self) -> JobRegistry:
        return self._registry

    def _default_rng(self) -> random.Random:
        seed = self._settings.tunelab_random_seed
        if seed is None:
            return random.Random()
        # Distinct but reproducible stream per job
        return random.Random(seed + len(self._simulators))

    def start(self, params: TrainingParameters) -> TrainingJob:
        """Create a job and schedule its preparing -> training transition."""
        job = self._registry.create(params)
        simulator = TrainingSimulator(
            job,
            self._registry,
            rng=self._rng_factory(),
            settings=self._settings,
            sleep=self._sleep,
        )
        self._simulators[job.id] = simulator
        self._dispatch_tasks[job.id] = asyncio.get_running_loop().create_task(
            self._dispatch(simulator), name=f"dispatch-{job.id}"
        )
        return job

    async def _dispatch(self, simulator: TrainingSimulator) -> None:
        try:
            await self._sleep(self._settings.tunelab_dispatch_delay)
            simulator.begin()
        finally:
            self._dispatch_tasks.pop(simulator.job.id, None)

    def pause(self, job_id: str) -> TrainingJob | None:
        simulator = self._simulators.get(job_id)
        if simulator is None:
            return self._registry.get(job_id)
        simulator.pause()
        return simulator.job

    def resume(self, job_id: str) -> TrainingJob | None:
        simulator = self._simulators.get(job_id)
        if simulator is None:
            return self._registry.get(job_id)
        simulator.resume()
        return simulator.job

    def stop(self, job_id: str) -> TrainingJob | None:
        simulator = self._simulators.get(job_id)
        if simulator is None:
            return self._registry.get(job_id)
        simulator.stop()
        return simulator.job

    def get_job(self, job_id: str) -> TrainingJob | None:
        return self._registry.get(job_id)

    def list_jobs(self) -> TrainingJobList:
        jobs = self._registry.list_jobs()
        return TrainingJobList(jobs=jobs, total=len(jobs))

    def latest_job(self) -> TrainingJob | None:
        return self._registry.latest_active()

    async def wait(self, job_id: str) -> TrainingJob | None:
        """Wait for a job to complete. Returns None for unknown ids."""
        simulator = self._simulators.get(job_id)
        if simulator is None:
            return self._registry.get(job_id)
        return await simulator.wait()

    async def shutdown(self) -> None:
        """Cancel pending dispatches and all tick drivers."""
        tasks = list(self._dispatch_tasks.values())
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        for simulator in self._simulators.values():
            simulator.close()
        logger.info("training_service_stopped", jobs=len(self._simulators))
