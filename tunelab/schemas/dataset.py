"""Pydantic schemas for uploaded training datasets."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class DatasetStatus(str, Enum):
    IDLE = "idle"
    UPLOADING = "uploading"
    VALIDATING = "validating"
    SUCCESS = "success"
    ERROR = "error"


class DatasetFormat(str, Enum):
    CSV = "csv"
    JSONL = "jsonl"
    JSON = "json"
    TXT = "txt"


def text_lines(text: str) -> list[str]:
    """Split on newline characters only; one trailing newline does not start a new line."""
    return text.removesuffix("\n").split("\n") if text else []


# ── Store record ─────────────────────────────────────────────────────────────


class DatasetRecord(BaseModel):
    """An uploaded dataset file and the outcome of its validation."""

    id: str
    name: str
    size: int = 0  # bytes
    type: str = ""  # content type reported by the uploader
    format: DatasetFormat | None = None
    status: DatasetStatus = DatasetStatus.IDLE
    error: str | None = None
    content: str | list[Any] | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def record_count(self) -> int:
        """Structured records, or text lines for unstructured text."""
        if self.content is None:
            return 0
        if isinstance(self.content, str):
            return len(text_lines(self.content))
        return len(self.content)


# ── API views ────────────────────────────────────────────────────────────────


class DatasetResponse(BaseModel):
    id: str
    name: str
    size: int
    type: str
    format: DatasetFormat | None = None
    status: DatasetStatus
    error: str | None = None
    record_count: int = 0
    created_at: str


class DatasetList(BaseModel):
    datasets: list[DatasetResponse]
    total: int


class DatasetStats(BaseModel):
    # text datasets
    lines: int | None = None
    characters: int | None = None
    words: int | None = None
    # structured datasets
    records: int | None = None
    fields: int | None = None


class DatasetPreview(BaseModel):
    id: str
    name: str
    format: DatasetFormat | None = None
    total_records: int = 0
    preview_records: list[dict[str, Any]] = []
