"""In-memory dataset store: upload processing, validation results and lookups."""

import asyncio
import uuid

import structlog

from tunelab.config import Settings, settings as default_settings
from tunelab.schemas.dataset import (
    DatasetList,
    DatasetPreview,
    DatasetRecord,
    DatasetResponse,
    DatasetStats,
    DatasetStatus,
    text_lines,
)
from tunelab.services.dataset.validation import DatasetFormatError, detect_format, parse_dataset

logger = structlog.get_logger()


def record_to_response(record: DatasetRecord) -> DatasetResponse:
    return DatasetResponse(
        id=record.id,
        name=record.name,
        size=record.size,
        type=record.type,
        format=record.format,
        status=record.status,
        error=record.error,
        record_count=record.record_count,
        created_at=record.created_at.isoformat(),
    )


class DatasetStore:
    """Holds uploaded dataset records for the lifetime of the process."""

    def __init__(self, settings: Settings | None = None):
        self._settings = settings or default_settings
        self._datasets: dict[str, DatasetRecord] = {}

    def __len__(self) -> int:
        return len(self._datasets)

    async def process_dataset_file(
        self,
        filename: str,
        file_content: bytes,
        content_type: str = "",
    ) -> DatasetRecord:
        """Store an uploaded file and validate it according to its extension.

        Validation failures are recorded on the returned record
        (status="error" plus a readable message); they never raise.
        """
        record = DatasetRecord(
            id=str(uuid.uuid4()),
            name=filename,
            size=len(file_content),
            type=content_type,
            format=detect_format(filename),
            status=DatasetStatus.UPLOADING,
        )
        self._datasets[record.id] = record

        if record.size > self._settings.tunelab_max_upload_bytes:
            return self._fail(
                record,
                f"File exceeds the maximum upload size of {self._settings.tunelab_max_upload_bytes} bytes.",
            )

        try:
            text = file_content.decode("utf-8-sig")
        except UnicodeDecodeError:
            return self._fail(record, "Error processing file: content is not valid UTF-8 text.")

        record.status = DatasetStatus.VALIDATING

        try:
            fmt, content = await asyncio.to_thread(parse_dataset, filename, text)
        except DatasetFormatError as e:
            return self._fail(record, str(e))

        record.format = fmt
        record.content = content
        record.status = DatasetStatus.SUCCESS
        logger.info(
            "dataset_validated",
            dataset_id=record.id,
            name=record.name,
            format=fmt.value,
            record_count=record.record_count,
        )
        return record

    def _fail(self, record: DatasetRecord, message: str) -> DatasetRecord:
        record.status = DatasetStatus.ERROR
        record.error = message
        logger.info("dataset_validation_failed", dataset_id=record.id, name=record.name, error=message)
        return record

    def get_dataset(self, dataset_id: str) -> DatasetRecord | None:
        return self._datasets.get(dataset_id)

    def list_datasets(self) -> DatasetList:
        records = list(self._datasets.values())
        return DatasetList(
            datasets=[record_to_response(r) for r in records],
            total=len(records),
        )

    def remove_dataset(self, dataset_id: str) -> bool:
        return self._datasets.pop(dataset_id, None) is not None

    def clear_datasets(self) -> None:
        self._datasets.clear()

    def get_dataset_stats(self, dataset_id: str) -> DatasetStats | None:
        record = self._datasets.get(dataset_id)
        if record is None:
            return None
        if not record.content:
            return DatasetStats()

        if isinstance(record.content, str):
            return DatasetStats(
                lines=len(text_lines(record.content)),
                characters=len(record.content),
                words=len(record.content.split()),
            )

        first = record.content[0]
        return DatasetStats(
            records=len(record.content),
            fields=len(first) if isinstance(first, dict) else 0,
        )

    def preview_dataset(self, dataset_id: str, limit: int = 10) -> DatasetPreview | None:
        record = self._datasets.get(dataset_id)
        if record is None:
            return None

        records: list[dict] = []
        if isinstance(record.content, str):
            for line in text_lines(record.content):
                line = line.strip()
                if line:
                    records.append({"text": line})
                    if len(records) >= limit:
                        break
        elif record.content:
            for item in record.content[:limit]:
                records.append(item if isinstance(item, dict) else {"value": item})

        return DatasetPreview(
            id=record.id,
            name=record.name,
            format=record.format,
            total_records=record.record_count,
            preview_records=records,
        )
