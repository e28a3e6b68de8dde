import asyncio
import heapq
import itertools
import json
import random

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from tunelab.config import Settings
from tunelab.services.dataset.store import DatasetStore
from tunelab.services.export.service import ExportService
from tunelab.services.training.registry import JobRegistry
from tunelab.services.training.service import TrainingService


class ManualClock:
    """Virtual time: sleepers wake only when advance() moves past their deadline."""

    def __init__(self):
        self.now = 0.0
        self._sleepers: list[tuple[float, int, asyncio.Future]] = []
        self._seq = itertools.count()

    async def sleep(self, delay: float) -> None:
        future = asyncio.get_running_loop().create_future()
        heapq.heappush(self._sleepers, (self.now + delay, next(self._seq), future))
        await future

    async def settle(self) -> None:
        """Let woken tasks run until they block again."""
        for _ in range(5):
            await asyncio.sleep(0)

    async def advance(self, seconds: float) -> None:
        target = self.now + seconds
        await self.settle()
        while self._sleepers and self._sleepers[0][0] <= target:
            deadline, _, future = heapq.heappop(self._sleepers)
            self.now = deadline
            if not future.done():
                future.set_result(None)
                await self.settle()
        self.now = target


def jsonl_bytes(count: int) -> bytes:
    lines = [json.dumps({"prompt": f"question {i}", "response": f"answer {i}"}) for i in range(count)]
    return ("\n".join(lines) + "\n").encode()


@pytest.fixture
def test_settings():
    return Settings(
        tunelab_tick_interval=1.0,
        tunelab_dispatch_delay=2.0,
        tunelab_random_seed=1234,
        tunelab_export_delay=0.0,
        tunelab_deploy_delay=0.0,
        tunelab_connect_delay=0.0,
    )


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def dataset_store(test_settings):
    return DatasetStore(settings=test_settings)


@pytest.fixture
def registry(dataset_store, test_settings):
    return JobRegistry(dataset_store, settings=test_settings)


@pytest_asyncio.fixture
async def training_service(registry, test_settings, clock):
    service = TrainingService(
        registry,
        settings=test_settings,
        rng_factory=lambda: random.Random(42),
        sleep=clock.sleep,
    )
    yield service
    await service.shutdown()


@pytest.fixture
def export_service(test_settings):
    return ExportService(settings=test_settings)


@pytest.fixture
def make_dataset(dataset_store):
    """Factory: upload a JSONL dataset with N records and return its record."""

    async def _make(count: int = 20, filename: str = "train.jsonl"):
        return await dataset_store.process_dataset_file(filename, jsonl_bytes(count), "application/jsonl")

    return _make


@pytest_asyncio.fixture
async def app_with_services(dataset_store, training_service, export_service):
    """FastAPI app wired to the test stores and virtual-clock services."""
    from tunelab.main import app

    app.state.dataset_store = dataset_store
    app.state.training_service = training_service
    app.state.export_service = export_service
    yield app


@pytest_asyncio.fixture
async def client(app_with_services):
    transport = ASGITransport(app=app_with_services)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
