from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Logging
    tunelab_log_level: str = "info"

    # CORS
    tunelab_cors_origins: str = "http://localhost:5173"

    # Training simulator
    tunelab_tick_interval: float = 1.0  # seconds between ticks
    tunelab_dispatch_delay: float = 2.0  # seconds spent in "preparing"
    tunelab_metric_interval: int = 10
    tunelab_log_interval: int = 10
    tunelab_eval_interval: int = 100
    tunelab_seconds_per_step_estimate: int = 2
    tunelab_random_seed: int | None = None  # None = seed from OS entropy

    # Export / deploy stub latencies (seconds)
    tunelab_export_delay: float = 3.0
    tunelab_deploy_delay: float = 5.0
    tunelab_connect_delay: float = 2.0

    # Dataset uploads
    tunelab_max_upload_bytes: int = 50 * 1024 * 1024

    model_config = {"env_prefix": "", "case_sensitive": False, "env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
