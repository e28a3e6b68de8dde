"""Model export and cloud deployment endpoints."""

from fastapi import APIRouter, Depends

from tunelab.dependencies import get_export_service, get_training_service, require_job
from tunelab.schemas.export import (
    CloudDeployTarget,
    ConnectResult,
    DeployRequest,
    DeployResult,
    ExportOptions,
    ExportRequest,
    ExportResult,
    ModelFormat,
)
from tunelab.services.export.service import ExportService
from tunelab.services.training.service import TrainingService

router = APIRouter()


@router.get("/api/models/formats", response_model=list[ModelFormat])
async def list_export_formats(exporter: ExportService = Depends(get_export_service)):
    return exporter.list_formats()


@router.get("/api/models/targets", response_model=list[CloudDeployTarget])
async def list_cloud_targets(exporter: ExportService = Depends(get_export_service)):
    return exporter.list_targets()


@router.post("/api/models/targets/{provider_id}/connect", response_model=ConnectResult)
async def connect_cloud_provider(provider_id: str, exporter: ExportService = Depends(get_export_service)):
    return await exporter.connect_cloud_provider(provider_id)


@router.post("/api/models/export", response_model=ExportResult)
async def export_model(
    data: ExportRequest,
    service: TrainingService = Depends(get_training_service),
    exporter: ExportService = Depends(get_export_service),
):
    """Export a completed job's model. Failures come back as success=false."""
    job = require_job(service, data.job_id)
    options = ExportOptions(quantization=data.quantization, model_name=data.model_name)
    return await exporter.export_model(job, data.format, options)


@router.post("/api/models/deploy", response_model=DeployResult)
async def deploy_model(
    data: DeployRequest,
    service: TrainingService = Depends(get_training_service),
    exporter: ExportService = Depends(get_export_service),
):
    job = require_job(service, data.job_id)
    return await exporter.deploy_to_cloud(job, data.target)
