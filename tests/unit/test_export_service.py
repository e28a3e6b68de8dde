"""Unit tests for ExportService."""

import pytest

from tunelab.schemas.export import ExportFailure, ExportOptions
from tunelab.schemas.training import JobStatus, TrainingJob, TrainingParameters
from tunelab.services.export.service import ExportService


def _job(status: JobStatus = JobStatus.COMPLETED, model: str = "gemma-7b") -> TrainingJob:
    return TrainingJob(
        id="job-1",
        status=status,
        total_steps=9,
        params=TrainingParameters(model=model, dataset_id="ds-1"),
    )


class TestCatalog:
    def test_formats(self, export_service):
        formats = {f.id: f.extension for f in export_service.list_formats()}
        assert formats == {"pytorch": "pt", "safetensors": "st", "gguf": "gguf", "onnx": "onnx"}

    def test_targets_start_disconnected(self, export_service):
        targets = export_service.list_targets()
        assert [t.id for t in targets] == ["vertex_ai", "cloud_storage", "huggingface"]
        assert not any(t.connected for t in targets)

    def test_get_format(self, export_service):
        assert export_service.get_format("gguf").name == "GGUF Format"
        assert export_service.get_format("tflite") is None


class TestExport:
    @pytest.mark.parametrize("status", [JobStatus.PREPARING, JobStatus.TRAINING, JobStatus.PAUSED])
    async def test_rejects_unfinished_job(self, export_service, status):
        result = await export_service.export_model(_job(status), "pytorch")
        assert result.success is False
        assert result.code == ExportFailure.JOB_NOT_COMPLETED
        assert result.filename is None

    async def test_unknown_format(self, export_service):
        result = await export_service.export_model(_job(), "tflite")
        assert result.success is False
        assert result.code == ExportFailure.UNKNOWN_FORMAT

    async def test_default_artifact_name(self, export_service):
        result = await export_service.export_model(_job(), "pytorch")
        assert result.success is True
        assert result.code is None
        assert result.filename == "gemma-7b-ft-v1.pt"

    async def test_custom_model_name(self, export_service):
        options = ExportOptions(model_name="support-bot", quantization="q4_k_m")
        result = await export_service.export_model(_job(), "gguf", options)
        assert result.filename == "support-bot.gguf"

    async def test_export_waits_for_delay(self, test_settings):
        delays = []

        async def record_sleep(delay):
            delays.append(delay)

        settings = test_settings.model_copy(update={"tunelab_export_delay": 3.0})
        exporter = ExportService(settings=settings, sleep=record_sleep)
        await exporter.export_model(_job(), "onnx")
        assert delays == [3.0]

    async def test_rejected_export_does_not_wait(self, test_settings):
        delays = []

        async def record_sleep(delay):
            delays.append(delay)

        exporter = ExportService(settings=test_settings, sleep=record_sleep)
        await exporter.export_model(_job(JobStatus.TRAINING), "onnx")
        await exporter.export_model(_job(), "tflite")
        assert delays == []


class TestDeploy:
    async def test_requires_connection(self, export_service):
        job = _job()
        result = await export_service.deploy_to_cloud(job, "vertex_ai")
        assert result.success is False
        assert result.code == ExportFailure.NOT_CONNECTED

        connected = await export_service.connect_cloud_provider("vertex_ai")
        assert connected.success is True

        result = await export_service.deploy_to_cloud(job, "vertex_ai")
        assert result.success is True
        assert result.target == "vertex_ai"

    async def test_connection_is_per_target(self, export_service):
        await export_service.connect_cloud_provider("huggingface")
        result = await export_service.deploy_to_cloud(_job(), "cloud_storage")
        assert result.code == ExportFailure.NOT_CONNECTED
        assert {t.id for t in export_service.list_targets() if t.connected} == {"huggingface"}

    async def test_connection_is_per_service(self, export_service, test_settings):
        await export_service.connect_cloud_provider("vertex_ai")
        other = ExportService(settings=test_settings)
        result = await other.deploy_to_cloud(_job(), "vertex_ai")
        assert result.code == ExportFailure.NOT_CONNECTED

    async def test_unknown_target(self, export_service):
        result = await export_service.deploy_to_cloud(_job(), "azure")
        assert result.success is False
        assert result.code == ExportFailure.UNKNOWN_TARGET

    async def test_connect_unknown_provider(self, export_service):
        result = await export_service.connect_cloud_provider("azure")
        assert result.success is False
        assert result.code == ExportFailure.UNKNOWN_TARGET

    async def test_list_targets_returns_copies(self, export_service):
        export_service.list_targets()[0].connected = True
        assert not any(t.connected for t in export_service.list_targets())
