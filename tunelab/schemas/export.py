from enum import Enum

from pydantic import BaseModel, ConfigDict


class ModelFormat(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str
    extension: str
    size: str  # approximate artifact size label


class CloudDeployTarget(BaseModel):
    id: str
    name: str
    description: str
    connected: bool = False


class ExportFailure(str, Enum):
    JOB_NOT_COMPLETED = "job_not_completed"
    UNKNOWN_FORMAT = "unknown_format"
    UNKNOWN_TARGET = "unknown_target"
    NOT_CONNECTED = "not_connected"


class ExportOptions(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    quantization: str | None = None
    model_name: str | None = None


class ExportRequest(ExportOptions):
    job_id: str
    format: str


class ExportResult(BaseModel):
    success: bool
    message: str
    code: ExportFailure | None = None
    filename: str | None = None


class DeployRequest(BaseModel):
    job_id: str
    target: str


class DeployResult(BaseModel):
    success: bool
    message: str
    code: ExportFailure | None = None
    target: str | None = None


class ConnectResult(BaseModel):
    success: bool
    message: str
    code: ExportFailure | None = None
