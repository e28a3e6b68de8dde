"""Training job simulation services."""

from tunelab.services.training.registry import JobRegistry
from tunelab.services.training.simulator import TrainingSimulator
from tunelab.services.training.service import TrainingService
from tunelab.services.training.progress import format_duration, format_progress

__all__ = [
    "JobRegistry",
    "TrainingSimulator",
    "TrainingService",
    "format_duration",
    "format_progress",
]
