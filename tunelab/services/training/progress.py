"""Training progress formatting for dashboards and the CLI."""

from tunelab.schemas.training import TrainingJob, TrainingProgress


def format_duration(seconds: float) -> str:
    """Format a duration in seconds as HH:MM:SS."""
    seconds = max(0, int(seconds))
    hours, remainder = divmod(seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def format_progress(job: TrainingJob) -> TrainingProgress:
    """Summarize a job's counters and latest metrics."""
    metric = job.latest_metric()
    evaluated = any(m.value for m in job.evaluation_metrics)

    return TrainingProgress(
        id=job.id,
        status=job.status,
        progress_pct=round(job.progress, 1),
        current_step=job.current_step,
        total_steps=job.total_steps,
        elapsed=format_duration(job.elapsed_time),
        eta=format_duration(job.estimated_time_remaining),
        training_loss=metric.training_loss if metric else None,
        validation_loss=metric.validation_loss if metric else None,
        accuracy=job.evaluation_value("Accuracy") if evaluated else None,
        f1_score=job.evaluation_value("F1 Score") if evaluated else None,
    )
