"""Process-wide TaskService wiring, usable with FastAPI ``Depends()``."""

from tasksbox.config import settings
from tasksbox.schemas.tasks import Queue
from tasksbox.services.task_service import TaskService
from tasksbox.services.tasks_client import InMemoryTasksClient

_task_service: TaskService = TaskService(
    InMemoryTasksClient(),
    settings.service_account_email,
    max_concurrency=settings.max_concurrency,
)


def init_production_deps(
    service_account_email: str,
    max_concurrency: int | None = None,
) -> None:
    """Swap the in-memory client for a real ``CloudTasksClient``.

    Uses a lazy import so this module loads without building GCP credentials.
    """
    global _task_service  # noqa: PLW0603

    from tasksbox.services.tasks_client import build_cloud_tasks_client

    _task_service = TaskService(
        build_cloud_tasks_client(),
        service_account_email,
        max_concurrency=max_concurrency,
    )


def get_task_service() -> TaskService:
    """Return the process-wide task service.

    Backed by InMemoryTasksClient until ``init_production_deps()`` is called.
    """
    return _task_service


def get_default_queue() -> Queue:
    """Return the queue named by ``GCP_PROJECT``/``GCP_LOCATION``/``CLOUD_TASKS_QUEUE``."""
    return Queue(
        project_id=settings.gcp_project,
        region=settings.gcp_location,
        name=settings.cloud_tasks_queue,
    )


__all__ = [
    "get_default_queue",
    "get_task_service",
    "init_production_deps",
]
