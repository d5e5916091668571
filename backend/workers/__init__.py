"""
Celery workers module.

Async task processing for processing jobs, plus the beat schedule that
re-dispatches jobs left in PENDING and fails runs whose worker went silent.

Dependencies: celery, backend.configs, backend.observability
System role: Background task processing
"""

from celery import Celery
from celery.signals import setup_logging

from backend.configs import get_settings
from backend.observability.logger import configure_logging

settings = get_settings()
celery_config = settings.celery

celery_app = Celery(
    settings.service_name,
    broker=celery_config.broker_url,
    backend=celery_config.result_backend_url,
    include=["backend.workers.tasks.processing_job"],
)

celery_app.conf.update(
    task_serializer=celery_config.task_serializer,
    result_serializer=celery_config.result_serializer,
    accept_content=celery_config.accept_content,
    timezone=celery_config.timezone,
    task_max_retries=celery_config.task_max_retries,
    task_default_queue=celery_config.queue_name,
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    beat_schedule={
        "sweep-pending-jobs": {
            "task": "backend.workers.tasks.processing_job.sweep_pending_jobs",
            "schedule": float(celery_config.pending_sweep_interval_seconds),
        },
        "fail-stale-runs": {
            "task": "backend.workers.tasks.processing_job.fail_stale_runs",
            "schedule": float(celery_config.pending_sweep_interval_seconds),
        },
    },
)


@setup_logging.connect
def configure_worker_logging(**kwargs) -> None:
    """Use the API's log format (with correlation IDs) instead of Celery's."""
    configure_logging(settings.log_level)
