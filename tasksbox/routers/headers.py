"""FastAPI dependency for handlers that receive Cloud Tasks deliveries.

Declare ``headers: Annotated[CloudTasksHeaders, Depends(get_cloud_tasks_headers)]``
on a task handler to reject anything that was not dispatched by Cloud Tasks
and to read the retry metadata of the current attempt.
"""

from datetime import UTC, datetime

import structlog
from fastapi import HTTPException, Request, status
from pydantic import ValidationError

from tasksbox.schemas.headers import CloudTasksHeaders

logger = structlog.get_logger()

QUEUE_NAME_HEADER = "X-CloudTasks-QueueName"
TASK_NAME_HEADER = "X-CloudTasks-TaskName"
RETRY_COUNT_HEADER = "X-CloudTasks-TaskRetryCount"
EXECUTION_COUNT_HEADER = "X-CloudTasks-TaskExecutionCount"
ETA_HEADER = "X-CloudTasks-TaskETA"
PREVIOUS_RESPONSE_HEADER = "X-CloudTasks-TaskPreviousResponse"
RETRY_REASON_HEADER = "X-CloudTasks-TaskRetryReason"


def _parse_eta(raw: str) -> datetime:
    """Parse the ETA header: seconds since the epoch, possibly fractional."""
    return datetime.fromtimestamp(float(raw), tz=UTC)


async def get_cloud_tasks_headers(request: Request) -> CloudTasksHeaders:
    """Parse the ``X-CloudTasks-*`` headers of the current request.

    Raises:
        HTTPException: 400 if the queue or task name header is missing, or if
            a numeric header cannot be parsed.
    """
    headers = request.headers
    queue_name = headers.get(QUEUE_NAME_HEADER)
    task_name = headers.get(TASK_NAME_HEADER)
    if not queue_name or not task_name:
        logger.warning("cloud_tasks_headers_missing", path=request.url.path)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Not a Cloud Tasks request",
        )

    try:
        return CloudTasksHeaders(
            queue_name=queue_name,
            task_name=task_name,
            retry_count=int(headers.get(RETRY_COUNT_HEADER, "0")),
            execution_count=int(headers.get(EXECUTION_COUNT_HEADER, "0")),
            eta=_parse_eta(headers.get(ETA_HEADER, "0")),
            previous_response=(
                int(headers[PREVIOUS_RESPONSE_HEADER])
                if headers.get(PREVIOUS_RESPONSE_HEADER)
                else None
            ),
            retry_reason=headers.get(RETRY_REASON_HEADER) or None,
        )
    except (ValueError, OverflowError, ValidationError):
        logger.warning("cloud_tasks_headers_invalid", path=request.url.path, task_name=task_name)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Malformed Cloud Tasks headers",
        ) from None
