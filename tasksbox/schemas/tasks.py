"""Pydantic models describing queues and the tasks created on them."""

from datetime import datetime, timedelta
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Queue(BaseModel):
    """A Cloud Tasks queue identified by project, region and queue ID."""

    model_config = ConfigDict(frozen=True)

    project_id: str
    region: str
    name: str

    def parent(self) -> str:
        """Return the fully qualified queue resource name."""
        return f"projects/{self.project_id}/locations/{self.region}/queues/{self.name}"

    def task_path(self, task_id: str) -> str:
        """Return the fully qualified resource name of task *task_id* on this queue."""
        return f"{self.parent()}/tasks/{task_id}"


class JsonPostTask(BaseModel):
    """A task that POSTs a JSON body to its handler.

    ``audience`` is the OIDC audience: the IAP OAuth client ID when the
    handler sits behind IAP, or the handler URL (or empty) for Cloud Run.
    ``name`` is only the ``{TASK_ID}`` part; leave it empty to let Cloud Tasks
    assign one, or set it to suppress duplicate tasks.
    """

    audience: str = ""
    relative_uri: str
    scheduled_time: datetime | None = None
    # Provider default is 10 minutes, maximum 30.
    deadline: timedelta | None = None
    body: Any = None
    name: str = ""


class GetTask(BaseModel):
    """A task that issues a GET to its handler with caller-supplied headers."""

    audience: str = ""
    headers: dict[str, str] = Field(default_factory=dict)
    relative_uri: str
    scheduled_time: datetime | None = None
    deadline: timedelta | None = None
    name: str = ""


class CreateTaskOptions(BaseModel):
    """Options accepted by every create operation.

    ``ignore_already_exists``: treat a duplicate task name as success and
    return the task as submitted. Off by default.
    """

    model_config = ConfigDict(frozen=True)

    ignore_already_exists: bool = False
