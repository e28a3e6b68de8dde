"""Training simulator: a tick-driven state machine standing in for a real trainer.

No model is trained. Each tick advances synthetic counters, samples decreasing
loss curves and periodic evaluation scores, and appends user-facing log lines
to the job record:

    preparing -> training <-> paused -> completed
                 training ------------> completed   (all steps done)

The tick driver is an asyncio task that sleeps ``tunelab_tick_interval`` and
ticks while the job is training. Pausing or stopping cancels the task;
resuming starts a fresh one that continues from the frozen counters.
"""

import asyncio
import random
from collections.abc import Awaitable, Callable

import structlog

from tunelab.config import Settings, settings as default_settings
from tunelab.schemas.training import JobStatus, TrainingJob, TrainingMetric
from tunelab.services.training.registry import JobRegistry

logger = structlog.get_logger()

Sleep = Callable[[float], Awaitable[None]]

# Valid status transitions requested through the control API
VALID_TRANSITIONS = {
    "pause": {"from": {JobStatus.TRAINING}, "to": JobStatus.PAUSED},
    "resume": {"from": {JobStatus.PAUSED}, "to": JobStatus.TRAINING},
    "stop": {"from": {JobStatus.TRAINING, JobStatus.PAUSED}, "to": JobStatus.COMPLETED},
}


def _fmt_loss(value: float | None) -> str:
    return f"{value:.3f}" if value is not None else "n/a"


class TrainingSimulator:
    """Owns the progression of a single TrainingJob."""

    def __init__(
        self,
        job: TrainingJob,
        registry: JobRegistry,
        rng: random.Random | None = None,
        settings: Settings | None = None,
        sleep: Sleep = asyncio.sleep,
    ):
        self._job = job
        self._registry = registry
        self._rng = rng or random.Random()
        self._settings = settings or default_settings
        self._sleep = sleep
        self._driver: asyncio.Task | None = None
        self._last_log_step = job.current_step
        self._finished = asyncio.Event()

    @property
    def job(self) -> TrainingJob:
        return self._job

    @property
    def is_driving(self) -> bool:
        return self._driver is not None and not self._driver.done()

    # ── Transitions ──────────────────────────────────────────────────────────

    def begin(self) -> bool:
        """Dispatch finished: move preparing -> training and start ticking."""
        if self._job.status != JobStatus.PREPARING:
            return False

        self._job.status = JobStatus.TRAINING
        self._registry.update(self._job)
        self._start_driver()
        logger.info("training_job_started", job_id=self._job.id, total_steps=self._job.total_steps)
        return True

    def pause(self) -> bool:
        if not self._transition("pause"):
            return False
        self._cancel_driver()
        self._registry.update(self._job)
        logger.info("training_job_paused", job_id=self._job.id, step=self._job.current_step)
        return True

    def resume(self) -> bool:
        if not self._transition("resume"):
            return False
        self._registry.update(self._job)
        self._start_driver()
        logger.info("training_job_resumed", job_id=self._job.id, step=self._job.current_step)
        return True

    def stop(self) -> bool:
        if not self._transition("stop"):
            return False
        self._cancel_driver()
        self._job.logs.append(f"INFO: Training stopped by user at step {self._job.current_step}")
        self._registry.update(self._job)
        self._finished.set()
        logger.info("training_job_stopped", job_id=self._job.id, step=self._job.current_step)
        return True

    def _transition(self, action: str) -> bool:
        rule = VALID_TRANSITIONS[action]
        if self._job.status not in rule["from"]:
            logger.debug(
                "training_transition_ignored",
                job_id=self._job.id,
                action=action,
                status=self._job.status.value,
            )
            return False
        self._job.status = rule["to"]
        return True

    # ── Tick ─────────────────────────────────────────────────────────────────

    def tick(self) -> None:
        """Advance the job by one tick. No-op unless the job is training."""
        job = self._job
        if job.status != JobStatus.TRAINING:
            return

        job.elapsed_time += 1
        # One step costs two ticks
        advanced = job.elapsed_time % 2 == 0
        if advanced:
            job.current_step += 1

        step = job.current_step
        job.progress = min(100.0, step / job.total_steps * 100)
        if step > 0:
            seconds_per_step = job.elapsed_time / step
            job.estimated_time_remaining = max(0, round((job.total_steps - step) * seconds_per_step))

        if advanced and step % self._settings.tunelab_metric_interval == 0:
            job.metrics.append(self._sample_metric(step))

        if step - self._last_log_step >= self._settings.tunelab_log_interval:
            self._last_log_step = step
            metric = job.latest_metric()
            job.logs.append(
                f"INFO: Step {step}/{job.total_steps}: "
                f"Training loss: {_fmt_loss(metric.training_loss if metric else None)}, "
                f"Validation loss: {_fmt_loss(metric.validation_loss if metric else None)}"
            )

        if advanced and step % self._settings.tunelab_eval_interval == 0:
            self._evaluate(step)

        if step >= job.total_steps:
            self._complete()

        self._registry.update(job)

    def _sample_metric(self, step: int) -> TrainingMetric:
        base_loss = max(0.2, 2.0 - (step / self._job.total_steps) * 1.8)
        training_loss = base_loss - 0.05 + self._rng.uniform(0, 0.1)
        validation_loss = training_loss + 0.1 + self._rng.uniform(0, 0.2)
        return TrainingMetric(
            step=step,
            training_loss=round(training_loss, 4),
            validation_loss=round(validation_loss, 4),
        )

    def _evaluate(self, step: int) -> None:
        job = self._job
        job.logs.append(f"INFO: Saving checkpoint at step {step}")
        job.logs.append("INFO: Evaluating model on validation set")

        improvement = (step / job.total_steps) * 0.3
        for metric in job.evaluation_metrics:
            metric.previous = metric.value
            metric.value = round(min(0.95, 0.6 + improvement + self._rng.uniform(0, 0.1)), 2)

        job.logs.append(
            f"INFO: Validation metrics: Accuracy: {job.evaluation_value('Accuracy'):.2f}, "
            f"F1: {job.evaluation_value('F1 Score'):.2f}"
        )

    def _complete(self) -> None:
        job = self._job
        job.status = JobStatus.COMPLETED
        job.progress = 100.0
        job.estimated_time_remaining = 0
        job.logs.append("INFO: Training completed successfully")
        job.logs.append(
            f"INFO: Final metrics - Accuracy: {job.evaluation_value('Accuracy'):.2f}, "
            f"F1: {job.evaluation_value('F1 Score'):.2f}"
        )
        self._finished.set()
        logger.info(
            "training_job_completed",
            job_id=job.id,
            steps=job.current_step,
            elapsed_seconds=job.elapsed_time,
        )

    # ── Driver ───────────────────────────────────────────────────────────────

    def _start_driver(self) -> None:
        self._cancel_driver()
        self._driver = asyncio.get_running_loop().create_task(
            self._drive(), name=f"training-{self._job.id}"
        )

    def _cancel_driver(self) -> None:
        if self._driver is not None and not self._driver.done():
            self._driver.cancel()
        self._driver = None

    async def _drive(self) -> None:
        interval = self._settings.tunelab_tick_interval
        while self._job.status == JobStatus.TRAINING:
            await self._sleep(interval)
            if self._job.status != JobStatus.TRAINING:
                break
            try:
                self.tick()
            except Exception as e:
                logger.error("training_tick_failed", job_id=self._job.id, error=str(e))

    async def wait(self) -> TrainingJob:
        """Block until the job reaches "completed" (automatically or by stop)."""
        await self._finished.wait()
        return self._job

    def close(self) -> None:
        """Cancel the tick driver without changing the job's status."""
        self._cancel_driver()
