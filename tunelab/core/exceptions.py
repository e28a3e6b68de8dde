from fastapi import Request
from fastapi.responses import JSONResponse


class TuneLabError(Exception):
    """Base exception for TuneLab API errors."""

    def __init__(
        self,
        code: str,
        message: str,
        status: int = 500,
        details: dict | None = None,
    ):
        self.code = code
        self.message = message
        self.status = status
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        result = {
            "error": {
                "code": self.code,
                "message": self.message,
                "status": self.status,
            }
        }
        if self.details:
            result["error"]["details"] = self.details
        return result


class NotFoundError(TuneLabError):
    def __init__(self, message: str = "Resource not found.", details: dict | None = None):
        super().__init__(code="not_found", message=message, status=404, details=details)


class DatasetNotReadyError(TuneLabError):
    """The dataset referenced by a training request is missing or not validated."""

    def __init__(self, message: str = "Dataset is not ready for training.", details: dict | None = None):
        super().__init__(code="dataset_not_ready", message=message, status=409, details=details)


async def tunelab_error_handler(request: Request, exc: TuneLabError) -> JSONResponse:
    """Global exception handler for TuneLabError and subclasses."""
    return JSONResponse(status_code=exc.status, content=exc.to_dict())
