"""Task creation service built on a single primitive ``create_task`` call.

``TaskService`` turns ``JsonPostTask`` / ``GetTask`` descriptions into Cloud
Tasks ``HttpRequest`` payloads authenticated with an OIDC token for the
configured service account, and maps provider failures onto ``TasksError``
codes.  The generated client is synchronous, so every remote call runs in
``asyncio.to_thread`` and never blocks the event loop.

Retry, backoff, persistence and delivery all belong to Cloud Tasks; nothing
here retries.
"""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Awaitable, Callable, Sequence
from datetime import datetime, timedelta
from typing import Any, TypeVar

import structlog
from google.api_core import exceptions as gcp_exceptions
from google.cloud import tasks_v2
from google.protobuf import timestamp_pb2
from pydantic import TypeAdapter

from tasksbox.errors import (
    ErrorCode,
    MultiError,
    already_exists,
    create_multi_task_failure,
    find_error,
    invalid_argument,
)
from tasksbox.schemas.tasks import CreateTaskOptions, GetTask, JsonPostTask, Queue
from tasksbox.services.tasks_client import TasksClient

logger = structlog.get_logger()

_BODY_ADAPTER: TypeAdapter[Any] = TypeAdapter(Any)
_DEFAULT_OPTIONS = CreateTaskOptions()

T = TypeVar("T", JsonPostTask, GetTask)


def _to_timestamp(value: datetime) -> timestamp_pb2.Timestamp:
    """Convert *value* to a protobuf Timestamp. Naive datetimes are read as UTC."""
    if not isinstance(value, datetime):
        raise TypeError(f"expected datetime, got {type(value).__name__}")
    ts = timestamp_pb2.Timestamp()
    ts.FromDatetime(value)
    return ts


class TaskService:
    """Create Cloud Tasks HTTP tasks on behalf of one service account.

    Args:
        client: Anything implementing ``TasksClient`` -- the generated
            ``CloudTasksClient`` in production, ``InMemoryTasksClient`` in tests.
        service_account_email: Identity Cloud Tasks uses to mint the OIDC
            token attached to every request.
        max_concurrency: Optional cap on in-flight creations inside one
            multi-create call. ``None`` creates every item at once.
    """

    def __init__(
        self,
        client: TasksClient,
        service_account_email: str,
        *,
        max_concurrency: int | None = None,
    ) -> None:
        if max_concurrency is not None and max_concurrency < 1:
            raise ValueError("max_concurrency must be a positive integer or None")
        self._client = client
        self._service_account_email = service_account_email
        self._max_concurrency = max_concurrency

    @property
    def service_account_email(self) -> str:
        return self._service_account_email

    async def create_task(
        self,
        queue: Queue,
        task_name: str,
        http_request: tasks_v2.HttpRequest,
        scheduled_time: datetime | None = None,
        deadline: timedelta | None = None,
        options: CreateTaskOptions | None = None,
    ) -> tasks_v2.Task:
        """Submit one HTTP task to *queue* and return the created task.

        *task_name* is only the ``{TASK_ID}`` part; it is expanded to
        ``projects/{P}/locations/{L}/queues/{Q}/tasks/{TASK_ID}``.  An empty
        name lets Cloud Tasks assign one.  ``scheduled_time=None`` dispatches
        immediately and a ``None`` or zero *deadline* keeps the provider
        default.

        Raises:
            TasksError: ``InvalidArgument`` when *scheduled_time* cannot be
                converted (no remote call is made), ``AlreadyExists`` when a
                task with the same name exists and duplicates are not ignored.
            google.api_core.exceptions.GoogleAPICallError: Any other provider
                failure, unmodified.
        """
        opts = options or _DEFAULT_OPTIONS
        parent = queue.parent()

        task = tasks_v2.Task(http_request=http_request)
        if task_name:
            task.name = queue.task_path(task_name)
        if scheduled_time is not None:
            try:
                task.schedule_time = _to_timestamp(scheduled_time)
            except (TypeError, ValueError, OverflowError) as err:
                raise invalid_argument(
                    "invalid ScheduleTime", {"ScheduledTime": scheduled_time}
                ) from err
        if deadline:
            task.dispatch_deadline = deadline

        request = tasks_v2.CreateTaskRequest(parent=parent, task=task)
        try:
            created = await asyncio.to_thread(self._client.create_task, request)
        except gcp_exceptions.AlreadyExists as err:
            if opts.ignore_already_exists:
                logger.info("task_already_exists_ignored", task_name=task.name, queue=parent)
                return task
            logger.info("task_already_exists", task_name=task.name, queue=parent)
            raise already_exists(
                f"{task.name} is already exists.", {"taskName": task.name}
            ) from err

        logger.info("task_created", task_name=created.name, queue=parent)
        return created

    async def create_json_post_task(
        self,
        queue: Queue,
        task: JsonPostTask,
        options: CreateTaskOptions | None = None,
    ) -> str:
        """Create a task that POSTs ``task.body`` as JSON and return its name."""
        try:
            body = _BODY_ADAPTER.dump_json(task.body)
        except (TypeError, ValueError) as err:
            raise invalid_argument(
                "failed to serialize task body to JSON", {"body": task.body}
            ) from err

        http_request = tasks_v2.HttpRequest(
            url=task.relative_uri,
            http_method=tasks_v2.HttpMethod.POST,
            headers={"Content-Type": "application/json"},
            body=body,
            oidc_token=self._oidc_token(task.audience),
        )
        try:
            created = await self.create_task(
                queue, task.name, http_request, task.scheduled_time, task.deadline, options
            )
        except Exception as err:
            err.add_note(
                f"failed create_json_post_task(). queue={queue.parent()}, body={task.body!r}"
            )
            raise
        return created.name

    async def create_get_task(
        self,
        queue: Queue,
        task: GetTask,
        options: CreateTaskOptions | None = None,
    ) -> str:
        """Create a task that issues a GET with ``task.headers`` and return its name."""
        http_request = tasks_v2.HttpRequest(
            url=task.relative_uri,
            http_method=tasks_v2.HttpMethod.GET,
            headers=dict(task.headers),
            oidc_token=self._oidc_token(task.audience),
        )
        try:
            created = await self.create_task(
                queue, task.name, http_request, task.scheduled_time, task.deadline, options
            )
        except Exception as err:
            err.add_note(f"failed create_get_task(). queue={queue.parent()}, url={task.relative_uri}")
            raise
        return created.name

    async def create_json_post_task_multi(
        self,
        queue: Queue,
        tasks: Sequence[JsonPostTask],
        options: CreateTaskOptions | None = None,
    ) -> list[str]:
        """Create every task in *tasks* concurrently.

        Returns the task names in input order.  If any item fails, raises a
        ``MultiError`` once all items have finished; its ``results`` keeps the
        names that were created and ``""`` for the failed slots.
        """
        return await self._create_multi(
            queue,
            tasks,
            lambda task: self.create_json_post_task(queue, task, options),
            "failed create_json_post_task",
        )

    async def create_get_task_multi(
        self,
        queue: Queue,
        tasks: Sequence[GetTask],
        options: CreateTaskOptions | None = None,
    ) -> list[str]:
        """GET counterpart of ``create_json_post_task_multi``."""
        return await self._create_multi(
            queue,
            tasks,
            lambda task: self.create_get_task(queue, task, options),
            "failed create_get_task",
        )

    async def _create_multi(
        self,
        queue: Queue,
        tasks: Sequence[T],
        create_one: Callable[[T], Awaitable[str]],
        failure_message: str,
    ) -> list[str]:
        results = [""] * len(tasks)
        merr = MultiError()
        limit: contextlib.AbstractAsyncContextManager[Any] = (
            asyncio.Semaphore(self._max_concurrency)
            if self._max_concurrency
            else contextlib.nullcontext()
        )

        async def run(index: int, task: T) -> None:
            try:
                async with limit:
                    results[index] = await create_one(task)
            except Exception as err:
                dup = find_error(err, ErrorCode.ALREADY_EXISTS)
                if dup is not None:
                    dup.kv["index"] = index
                    merr.append(dup)
                    return
                merr.append(
                    create_multi_task_failure(
                        failure_message,
                        {"index": index, "taskName": task.name, "URI": task.relative_uri},
                        err,
                    )
                )

        # Each unit writes only its own slot; failures never cancel siblings.
        await asyncio.gather(*(run(i, task) for i, task in enumerate(tasks)))

        if merr.error_or_none() is None:
            logger.info("multi_create_finished", queue=queue.parent(), total=len(tasks))
            return results

        merr.results = results
        logger.warning(
            "multi_create_partial_failure",
            queue=queue.parent(),
            total=len(tasks),
            failed=len(merr),
        )
        raise merr

    def _oidc_token(self, audience: str) -> tasks_v2.OidcToken:
        return tasks_v2.OidcToken(
            service_account_email=self._service_account_email,
            audience=audience,
        )
