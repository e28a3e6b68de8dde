from pydantic import BaseModel


class HealthResponse(BaseModel):
    status: str  # "ok"
    jobs_total: int = 0
    jobs_active: int = 0
    datasets_total: int = 0
    uptime_seconds: float = 0.0
    version: str = "0.1.0"
