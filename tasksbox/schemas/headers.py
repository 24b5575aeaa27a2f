"""Pydantic model for the metadata Cloud Tasks attaches to every HTTP delivery.

Reference: https://cloud.google.com/tasks/docs/creating-http-target-tasks#handler
"""

from datetime import datetime

from pydantic import BaseModel, Field


class CloudTasksHeaders(BaseModel):
    """Values of the ``X-CloudTasks-*`` request headers."""

    queue_name: str
    # Short task ID, or the system-generated one for unnamed tasks.
    task_name: str
    # Attempts that were not answered with a 2xx. Excludes the current one.
    retry_count: int = Field(ge=0)
    # Attempts that reached the handler, whatever their response.
    execution_count: int = Field(ge=0)
    eta: datetime
    previous_response: int | None = None
    retry_reason: str | None = None

    @property
    def is_retry(self) -> bool:
        return self.retry_count > 0
