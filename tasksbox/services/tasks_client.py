"""Cloud Tasks client abstraction with protocol-based swappable implementations.

Production code uses the generated ``tasks_v2.CloudTasksClient`` built by
``build_cloud_tasks_client``.  Tests use ``InMemoryTasksClient`` which records
every create request and reproduces the provider behaviours the service
depends on (auto-assigned names, ``AlreadyExists`` on duplicates) without a
Cloud Tasks emulator.
"""

from __future__ import annotations

import itertools
import threading
from typing import Protocol

from google.api_core import exceptions as gcp_exceptions
from google.cloud import tasks_v2


class TasksClient(Protocol):
    """The subset of ``tasks_v2.CloudTasksClient`` the task service calls."""

    def create_task(self, request: tasks_v2.CreateTaskRequest) -> tasks_v2.Task:
        """Create a task and return it as stored by the provider."""
        ...


def build_cloud_tasks_client() -> TasksClient:
    """Return a ``CloudTasksClient`` using Application Default Credentials.

    The client class is resolved at call time so tests can patch it.
    """
    return tasks_v2.CloudTasksClient()


class InMemoryTasksClient:
    """Thread-safe test double that stores created tasks by resource name."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self.requests: list[tasks_v2.CreateTaskRequest] = []
        self.tasks: dict[str, tasks_v2.Task] = {}
        self.fail_with: Exception | None = None

    def create_task(self, request: tasks_v2.CreateTaskRequest) -> tasks_v2.Task:
        """Store the task, assigning a numeric ID when it has no name."""
        with self._lock:
            self.requests.append(request)
            if self.fail_with is not None:
                raise self.fail_with

            task = tasks_v2.Task(request.task)
            if not task.name:
                task.name = f"{request.parent}/tasks/{next(self._ids)}"
            elif task.name in self.tasks:
                raise gcp_exceptions.AlreadyExists("Requested entity already exists")
            self.tasks[task.name] = task
            return task
