from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class JobStatus(str, Enum):
    IDLE = "idle"
    PREPARING = "preparing"
    TRAINING = "training"
    PAUSED = "paused"
    COMPLETED = "completed"
    ERROR = "error"  # reserved; no transition leads here

    @property
    def is_active(self) -> bool:
        return self in (JobStatus.TRAINING, JobStatus.PAUSED)


class TrainingParameters(BaseModel):
    """Hyperparameters for one fine-tuning run. Immutable once submitted."""

    model_config = ConfigDict(frozen=True, protected_namespaces=())

    model: str = "gemma-7b"
    epochs: int = Field(default=3, ge=1)
    learning_rate: float = Field(default=2e-5, gt=0)
    batch_size: int = Field(default=8, ge=1)
    max_length: int = Field(default=512, ge=1)
    warmup_steps: int = Field(default=100, ge=0)
    weight_decay: float = Field(default=0.01, ge=0)
    gradient_accumulation_steps: int = Field(default=1, ge=1)
    use_half_precision: bool = True
    use_lora: bool = True
    save_best_model: bool = True
    eval_steps: int = Field(default=100, ge=1)
    dataset_id: str


class TrainingMetric(BaseModel):
    step: int = Field(ge=0)
    training_loss: float = Field(ge=0)
    validation_loss: float = Field(ge=0)


class EvaluationMetric(BaseModel):
    metric: str
    value: float = 0.0
    previous: float = 0.0


EVALUATION_METRIC_NAMES = ("Accuracy", "F1 Score", "Precision", "Recall")


def _initial_evaluation_metrics() -> list[EvaluationMetric]:
    return [EvaluationMetric(metric=name) for name in EVALUATION_METRIC_NAMES]


class TrainingJob(BaseModel):
    """A single fine-tuning run. Mutated in place by the simulator."""

    id: str
    status: JobStatus = JobStatus.PREPARING
    progress: float = 0.0
    current_step: int = 0
    total_steps: int
    metrics: list[TrainingMetric] = []
    evaluation_metrics: list[EvaluationMetric] = Field(default_factory=_initial_evaluation_metrics)
    elapsed_time: int = 0
    estimated_time_remaining: int = 0
    error: str | None = None
    params: TrainingParameters
    logs: list[str] = []
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def latest_metric(self) -> TrainingMetric | None:
        return self.metrics[-1] if self.metrics else None

    def evaluation_value(self, name: str) -> float:
        return next((m.value for m in self.evaluation_metrics if m.metric == name), 0.0)


class TrainingJobList(BaseModel):
    jobs: list[TrainingJob]
    total: int


class TrainingProgress(BaseModel):
    id: str
    status: JobStatus
    progress_pct: float
    current_step: int
    total_steps: int
    elapsed: str  # HH:MM:SS
    eta: str  # HH:MM:SS
    training_loss: float | None = None
    validation_loss: float | None = None
    accuracy: float | None = None
    f1_score: float | None = None
