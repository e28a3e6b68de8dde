"""Per-format structural validation for uploaded dataset files.

Each parser takes the decoded file text and returns the materialized content
(a list of records, or the raw text for .txt) or raises DatasetFormatError
with a human-readable reason.
"""

import csv
import io
import json
from pathlib import Path
from typing import Any, Callable

from tunelab.schemas.dataset import DatasetFormat


class DatasetFormatError(ValueError):
    """Raised when a dataset file fails structural validation."""


def parse_csv(text: str) -> list[dict[str, str]]:
    rows = [row for row in csv.reader(io.StringIO(text.strip())) if row]
    if len(rows) < 2:
        raise DatasetFormatError("CSV must have a header row and at least one data row.")

    header = rows[0]
    for line_no, row in enumerate(rows[1:], start=2):
        if len(row) != len(header):
            raise DatasetFormatError(
                f"CSV row {line_no} has {len(row)} columns, expected {len(header)}."
            )

    return [dict(zip(header, row)) for row in rows[1:]]


def parse_jsonl(text: str) -> list[Any]:
    records = []
    for line_no, line in enumerate(text.split("\n"), start=1):
        line = line.strip()
        if not line:
            continue
        try:
            records.append(json.loads(line))
        except json.JSONDecodeError:
            raise DatasetFormatError(f"Invalid JSON at line {line_no}.") from None

    if not records:
        raise DatasetFormatError("JSONL file contains no records.")
    return records


def parse_json(text: str) -> list[Any]:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise DatasetFormatError(f"Invalid JSON: {e.msg} (line {e.lineno}).") from None

    if isinstance(data, list) and data:
        return data
    if isinstance(data, dict) and isinstance(data.get("data"), list) and data["data"]:
        return data["data"]
    raise DatasetFormatError('JSON must be a non-empty array or an object with a non-empty "data" array.')


def parse_txt(text: str) -> str:
    if not text.strip():
        raise DatasetFormatError("Text file is empty.")
    if "\n" not in text:
        raise DatasetFormatError("Text file must contain at least one line break.")
    return text


_PARSERS: dict[str, tuple[DatasetFormat, Callable[[str], Any]]] = {
    ".csv": (DatasetFormat.CSV, parse_csv),
    ".jsonl": (DatasetFormat.JSONL, parse_jsonl),
    ".json": (DatasetFormat.JSON, parse_json),
    ".txt": (DatasetFormat.TXT, parse_txt),
}

SUPPORTED_EXTENSIONS = tuple(_PARSERS)


def detect_format(filename: str) -> DatasetFormat | None:
    entry = _PARSERS.get(Path(filename).suffix.lower())
    return entry[0] if entry else None


def parse_dataset(filename: str, text: str) -> tuple[DatasetFormat, str | list[Any]]:
    """Sniff the format from the file extension and validate the content."""
    suffix = Path(filename).suffix.lower()
    if suffix not in _PARSERS:
        raise DatasetFormatError(
            f"Unsupported format: '{suffix or filename}'. "
            f"Supported extensions: {', '.join(SUPPORTED_EXTENSIONS)}."
        )
    fmt, parser = _PARSERS[suffix]
    return fmt, parser(text)
