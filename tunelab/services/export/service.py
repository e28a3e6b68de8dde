"""Export and deploy stub that simulates artifact export and cloud deployment of finished jobs."""

import asyncio

import structlog

from tunelab.config import Settings, settings as default_settings
from tunelab.schemas.export import (
    CloudDeployTarget,
    ConnectResult,
    DeployResult,
    ExportFailure,
    ExportOptions,
    ExportResult,
    ModelFormat,
)
from tunelab.schemas.training import JobStatus, TrainingJob
from tunelab.services.training.simulator import Sleep

logger = structlog.get_logger()

MODEL_FORMATS: tuple[ModelFormat, ...] = (
    ModelFormat(
        id="pytorch",
        name="PyTorch Model",
        description="Standard PyTorch model format with full weights",
        extension="pt",
        size="2.8 GB",
    ),
    ModelFormat(
        id="safetensors",
        name="SafeTensors",
        description="Safe format for storing tensors, faster loading",
        extension="st",
        size="2.7 GB",
    ),
    ModelFormat(
        id="gguf",
        name="GGUF Format",
        description="Optimized format for local inference with llama.cpp",
        extension="gguf",
        size="1.9 GB",
    ),
    ModelFormat(
        id="onnx",
        name="ONNX Format",
        description="Open standard for machine learning models",
        extension="onnx",
        size="2.6 GB",
    ),
)

CLOUD_TARGETS: tuple[CloudDeployTarget, ...] = (
    CloudDeployTarget(
        id="vertex_ai",
        name="Vertex AI",
        description="Deploy to Google Cloud Vertex AI as a prediction endpoint",
    ),
    CloudDeployTarget(
        id="cloud_storage",
        name="Google Cloud Storage",
        description="Export model artifacts to your GCS bucket",
    ),
    CloudDeployTarget(
        id="huggingface",
        name="Hugging Face Hub",
        description="Publish your model to Hugging Face Hub repository",
    ),
)


class ExportService:
    """Owns the cloud target connection state shared by every caller of this instance."""

    def __init__(self, settings: Settings | None = None, sleep: Sleep = asyncio.sleep):
        self._settings = settings or default_settings
        self._sleep = sleep
        self._targets = {t.id: t.model_copy() for t in CLOUD_TARGETS}

    def list_formats(self) -> list[ModelFormat]:
        return list(MODEL_FORMATS)

    def list_targets(self) -> list[CloudDeployTarget]:
        return [t.model_copy() for t in self._targets.values()]

    def get_format(self, format_id: str) -> ModelFormat | None:
        return next((f for f in MODEL_FORMATS if f.id == format_id), None)

    async def export_model(
        self,
        job: TrainingJob,
        format_id: str,
        options: ExportOptions | None = None,
    ) -> ExportResult:
        """Simulate exporting a completed job's weights in the given format."""
        if job.status != JobStatus.COMPLETED:
            logger.info("model_export_rejected", job_id=job.id, status=job.status.value)
            return ExportResult(
                success=False,
                code=ExportFailure.JOB_NOT_COMPLETED,
                message="Training must be completed before exporting the model.",
            )

        fmt = self.get_format(format_id)
        if fmt is None:
            logger.info("model_export_rejected", job_id=job.id, format=format_id)
            return ExportResult(
                success=False,
                code=ExportFailure.UNKNOWN_FORMAT,
                message=f"Unknown export format '{format_id}'.",
            )

        options = options or ExportOptions()
        model_name = options.model_name or f"{job.params.model}-ft-v1"
        logger.info(
            "model_export_started",
            job_id=job.id,
            format=fmt.id,
            quantization=options.quantization,
        )

        await self._sleep(self._settings.tunelab_export_delay)

        filename = f"{model_name}.{fmt.extension}"
        logger.info("model_export_completed", job_id=job.id, filename=filename)
        return ExportResult(
            success=True,
            message=f"{filename} is ready to download.",
            filename=filename,
        )

    async def deploy_to_cloud(self, job: TrainingJob, target_id: str) -> DeployResult:
        """Simulate deploying a job's model to a connected cloud target."""
        target = self._targets.get(target_id)
        if target is None:
            logger.info("model_deploy_rejected", job_id=job.id, target=target_id, reason="unknown_target")
            return DeployResult(
                success=False,
                code=ExportFailure.UNKNOWN_TARGET,
                message=f"Unknown deployment target '{target_id}'.",
            )

        if not target.connected:
            logger.info("model_deploy_rejected", job_id=job.id, target=target_id, reason="not_connected")
            return DeployResult(
                success=False,
                code=ExportFailure.NOT_CONNECTED,
                message=f"Not connected to {target.name}. Please connect your account first.",
                target=target.id,
            )

        logger.info("model_deploy_started", job_id=job.id, target=target.id)
        await self._sleep(self._settings.tunelab_deploy_delay)

        logger.info("model_deploy_completed", job_id=job.id, target=target.id)
        return DeployResult(
            success=True,
            message=f"Model successfully deployed to {target.name}.",
            target=target.id,
        )

    async def connect_cloud_provider(self, provider_id: str) -> ConnectResult:
        """Simulate an account connection; marks the target connected."""
        target = self._targets.get(provider_id)
        if target is None:
            return ConnectResult(
                success=False,
                code=ExportFailure.UNKNOWN_TARGET,
                message=f"Unknown cloud provider '{provider_id}'.",
            )

        await self._sleep(self._settings.tunelab_connect_delay)

        target.connected = True
        logger.info("cloud_provider_connected", provider=provider_id)
        return ConnectResult(success=True, message=f"Connected to {target.name}.")
