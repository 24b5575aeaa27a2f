"""Shared fixtures: an in-memory Cloud Tasks client and a service bound to it."""

import pytest

from tasksbox.schemas.tasks import Queue
from tasksbox.services.task_service import TaskService
from tasksbox.services.tasks_client import InMemoryTasksClient


@pytest.fixture
def service_account_email() -> str:
    return "tasksbox-ci@appspot.gserviceaccount.com"


@pytest.fixture
def handler_uri() -> str:
    return "https://tasksboxtest-73zry4yfvq-an.a.run.app/cloudtasks/run/json-post-task"


@pytest.fixture
def queue() -> Queue:
    return Queue(project_id="tasksbox-ci", region="asia-northeast1", name="tasksboxtest")


@pytest.fixture
def tasks_client() -> InMemoryTasksClient:
    """Create a fresh in-memory Cloud Tasks client for request inspection."""
    return InMemoryTasksClient()


@pytest.fixture
def task_service(tasks_client: InMemoryTasksClient, service_account_email: str) -> TaskService:
    """Create a TaskService whose remote calls land in ``tasks_client``."""
    return TaskService(tasks_client, service_account_email)
