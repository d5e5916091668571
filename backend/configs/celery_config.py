"""
Celery configuration settings.

Manages Celery broker and result backend configuration for processing job
workers. Includes retry policies and the pending-job and stale-run sweep
schedules.

Dependencies: pydantic, pydantic_settings
System role: Async task queue configuration for job execution
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class CelerySettings(BaseSettings):
    """Celery and Redis configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="CELERY_",
        case_sensitive=False,
        extra="ignore",
    )

    broker_url: str = Field(default="redis://localhost:6379/0", description="Celery broker URL")
    result_backend_url: str = Field(
        default="redis://localhost:6379/1",
        description="Celery result backend URL",
    )

    task_serializer: str = Field(default="json", description="Task serialization format")
    result_serializer: str = Field(default="json", description="Result serialization format")
    accept_content: list[str] = Field(
        default=["json"],
        description="Accepted content types",
    )
    timezone: str = Field(default="UTC", description="Celery timezone")
    queue_name: str = Field(default="processing_jobs", description="Queue processing jobs are routed to")

    # Retry policy for broker/database hiccups; stage failures are never retried
    task_max_retries: int = Field(default=3, description="Maximum task retry attempts")
    task_retry_backoff: int = Field(default=60, description="Retry backoff base in seconds")
    task_retry_backoff_max: int = Field(
        default=600,
        description="Maximum retry backoff in seconds",
    )

    pending_sweep_interval_seconds: int = Field(
        default=60,
        description="How often stranded PENDING jobs are re-dispatched",
    )
    pending_sweep_batch_size: int = Field(
        default=50,
        description="Maximum PENDING jobs re-dispatched per sweep",
    )
    stale_run_timeout_seconds: int = Field(
        default=1800,
        description="PROCESSING jobs without a write for this long are marked failed",
    )
