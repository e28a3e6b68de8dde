"""Dataset upload and inspection endpoints."""

from fastapi import APIRouter, Depends, File, Query, UploadFile

from tunelab.core.exceptions import NotFoundError
from tunelab.dependencies import get_dataset_store
from tunelab.schemas.dataset import DatasetList, DatasetPreview, DatasetResponse, DatasetStats
from tunelab.services.dataset.store import DatasetStore, record_to_response

router = APIRouter()


@router.get("/api/datasets", response_model=DatasetList)
async def list_datasets(store: DatasetStore = Depends(get_dataset_store)):
    """List uploaded datasets."""
    return store.list_datasets()


@router.post("/api/datasets", response_model=DatasetResponse, status_code=201)
async def upload_dataset(
    file: UploadFile = File(...),
    store: DatasetStore = Depends(get_dataset_store),
):
    """Upload and validate a dataset file (.csv, .jsonl, .json, .txt).

    Validation failures are reported on the returned record, not as HTTP errors.
    """
    content = await file.read()
    record = await store.process_dataset_file(
        filename=file.filename or "upload.txt",
        file_content=content,
        content_type=file.content_type or "",
    )
    return record_to_response(record)


@router.delete("/api/datasets", status_code=204)
async def clear_datasets(store: DatasetStore = Depends(get_dataset_store)):
    store.clear_datasets()


@router.get("/api/datasets/{dataset_id}", response_model=DatasetResponse)
async def get_dataset(dataset_id: str, store: DatasetStore = Depends(get_dataset_store)):
    record = store.get_dataset(dataset_id)
    if record is None:
        raise NotFoundError(f"Dataset '{dataset_id}' not found.")
    return record_to_response(record)


@router.get("/api/datasets/{dataset_id}/stats", response_model=DatasetStats)
async def get_dataset_stats(dataset_id: str, store: DatasetStore = Depends(get_dataset_store)):
    stats = store.get_dataset_stats(dataset_id)
    if stats is None:
        raise NotFoundError(f"Dataset '{dataset_id}' not found.")
    return stats


@router.get("/api/datasets/{dataset_id}/preview", response_model=DatasetPreview)
async def preview_dataset(
    dataset_id: str,
    limit: int = Query(default=10, ge=1, le=100),
    store: DatasetStore = Depends(get_dataset_store),
):
    """Preview the first N records of a dataset."""
    preview = store.preview_dataset(dataset_id, limit=limit)
    if preview is None:
        raise NotFoundError(f"Dataset '{dataset_id}' not found.")
    return preview


@router.delete("/api/datasets/{dataset_id}", status_code=204)
async def remove_dataset(dataset_id: str, store: DatasetStore = Depends(get_dataset_store)):
    if not store.remove_dataset(dataset_id):
        raise NotFoundError(f"Dataset '{dataset_id}' not found.")
