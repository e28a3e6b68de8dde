"""Unit tests for JobRegistry."""

import pytest

from tunelab.core.exceptions import DatasetNotReadyError, NotFoundError
from tunelab.schemas.dataset import DatasetStatus
from tunelab.schemas.training import JobStatus, TrainingParameters


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "size,batch_size,epochs,expected",
    [
        (20, 8, 3, 9),
        (16, 8, 3, 6),
        (1, 32, 1, 1),
        (250, 1, 2, 500),
        (101, 10, 4, 44),
    ],
)
async def test_total_steps(registry, make_dataset, size, batch_size, epochs, expected):
    dataset = await make_dataset(size)
    job = registry.create(TrainingParameters(dataset_id=dataset.id, batch_size=batch_size, epochs=epochs))
    assert job.total_steps == expected


@pytest.mark.asyncio
async def test_create_initial_state(registry, make_dataset):
    dataset = await make_dataset(20)
    job = registry.create(TrainingParameters(model="gemma-2b", dataset_id=dataset.id, learning_rate=2e-5))

    assert job.status == JobStatus.PREPARING
    assert job.current_step == 0
    assert job.progress == 0.0
    assert job.elapsed_time == 0
    assert job.estimated_time_remaining == job.total_steps * 2
    assert [m.metric for m in job.evaluation_metrics] == ["Accuracy", "F1 Score", "Precision", "Recall"]
    assert all(m.value == 0 and m.previous == 0 for m in job.evaluation_metrics)
    assert job.logs == [
        "INFO: Starting fine-tuning of gemma-2b model",
        "INFO: Loading dataset with 20 examples",
        "INFO: Training with batch size 8, learning rate 2.00e-05",
    ]
    assert registry.get(job.id) is job


@pytest.mark.asyncio
async def test_text_dataset_counts_lines(registry, dataset_store):
    dataset = await dataset_store.process_dataset_file("corpus.txt", b"\n".join([b"line"] * 17))
    job = registry.create(TrainingParameters(dataset_id=dataset.id, batch_size=4, epochs=2))
    assert job.total_steps == 5 * 2


def test_create_missing_dataset(registry):
    with pytest.raises(DatasetNotReadyError) as exc_info:
        registry.create(TrainingParameters(dataset_id="does-not-exist"))
    assert exc_info.value.status == 409
    assert exc_info.value.code == "dataset_not_ready"
    assert len(registry) == 0


def test_create_empty_dataset_id(registry):
    with pytest.raises(DatasetNotReadyError):
        registry.create(TrainingParameters(dataset_id=""))
    assert len(registry) == 0


@pytest.mark.asyncio
async def test_create_failed_dataset(registry, dataset_store):
    dataset = await dataset_store.process_dataset_file("bad.csv", b"a,b\n1\n")
    assert dataset.status == DatasetStatus.ERROR
    with pytest.raises(DatasetNotReadyError, match="status 'error'"):
        registry.create(TrainingParameters(dataset_id=dataset.id))
    assert registry.list_jobs() == []


@pytest.mark.asyncio
async def test_create_dataset_still_validating(registry, make_dataset):
    dataset = await make_dataset(5)
    dataset.status = DatasetStatus.VALIDATING
    with pytest.raises(DatasetNotReadyError):
        registry.create(TrainingParameters(dataset_id=dataset.id))
    assert len(registry) == 0


@pytest.mark.asyncio
async def test_job_ids_are_unique(registry, make_dataset):
    dataset = await make_dataset(5)
    ids = {registry.create(TrainingParameters(dataset_id=dataset.id)).id for _ in range(25)}
    assert len(ids) == 25


@pytest.mark.asyncio
async def test_update_replaces_record(registry, make_dataset):
    dataset = await make_dataset(5)
    job = registry.create(TrainingParameters(dataset_id=dataset.id))
    replacement = job.model_copy(update={"current_step": 1})

    registry.update(replacement)

    assert registry.get(job.id) is replacement
    assert registry.get(job.id).current_step == 1


@pytest.mark.asyncio
async def test_update_unknown_job(registry, make_dataset):
    dataset = await make_dataset(5)
    job = registry.create(TrainingParameters(dataset_id=dataset.id))
    stranger = job.model_copy(update={"id": "unknown"})
    with pytest.raises(NotFoundError):
        registry.update(stranger)


def test_latest_active_empty(registry):
    assert registry.latest_active() is None


@pytest.mark.asyncio
async def test_latest_active_prefers_training_or_paused(registry, make_dataset):
    dataset = await make_dataset(5)
    first = registry.create(TrainingParameters(dataset_id=dataset.id))
    second = registry.create(TrainingParameters(dataset_id=dataset.id))
    third = registry.create(TrainingParameters(dataset_id=dataset.id))

    # No active jobs: most recent overall
    assert registry.latest_active() is third

    first.status = JobStatus.PAUSED
    third.status = JobStatus.COMPLETED
    assert registry.latest_active() is first

    second.status = JobStatus.TRAINING
    assert registry.latest_active() is second


@pytest.mark.asyncio
async def test_latest_active_falls_back_to_newest(registry, make_dataset):
    dataset = await make_dataset(5)
    first = registry.create(TrainingParameters(dataset_id=dataset.id))
    second = registry.create(TrainingParameters(dataset_id=dataset.id))
    first.status = JobStatus.COMPLETED
    second.status = JobStatus.COMPLETED
    assert registry.latest_active() is second


@pytest.mark.asyncio
async def test_text_dataset_counts_only_newline_breaks(registry, dataset_store):
    content = "first line\nsecond\x0cpart\u2028tail\n".encode()
    dataset = await dataset_store.process_dataset_file("corpus.txt", content)
    assert dataset.record_count == 2

    job = registry.create(TrainingParameters(dataset_id=dataset.id, batch_size=1, epochs=1))
    assert job.total_steps == 2
