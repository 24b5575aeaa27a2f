"""Local error taxonomy for task creation.

Provider failures are mapped onto a small closed set of ``ErrorCode`` values.
Callers inspect ``TasksError.code`` (or ``has_code`` for chained errors) rather
than testing exception types.  Provider errors that do not map onto a code are
never wrapped into a ``TasksError``; they propagate as the original
``google.api_core`` exception with call-site context attached as notes.
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from enum import StrEnum
from typing import Any


class ErrorCode(StrEnum):
    """Kinds of failure surfaced by the task service."""

    INVALID_ARGUMENT = "InvalidArgument"
    ALREADY_EXISTS = "AlreadyExists"
    CREATE_MULTI_TASK_FAILURE = "CreateMultiTaskFailure"


class TasksError(Exception):
    """Classified failure with structured key/value context.

    ``kv`` is deliberately mutable: the fan-out helpers add the input
    ``index`` to an already-classified error before collecting it.
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        kv: dict[str, Any] | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.kv: dict[str, Any] = dict(kv or {})
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        text = f"{self.code}: {self.message}"
        if self.kv:
            text += f" {self.kv!r}"
        if self.__cause__ is not None:
            text += f" : {self.__cause__}"
        return text


def invalid_argument(
    message: str, kv: dict[str, Any] | None = None, cause: BaseException | None = None
) -> TasksError:
    return TasksError(ErrorCode.INVALID_ARGUMENT, message, kv, cause)


def already_exists(
    message: str, kv: dict[str, Any] | None = None, cause: BaseException | None = None
) -> TasksError:
    return TasksError(ErrorCode.ALREADY_EXISTS, message, kv, cause)


def create_multi_task_failure(
    message: str, kv: dict[str, Any] | None = None, cause: BaseException | None = None
) -> TasksError:
    return TasksError(ErrorCode.CREATE_MULTI_TASK_FAILURE, message, kv, cause)


def find_error(exc: BaseException | None, code: ErrorCode) -> TasksError | None:
    """Return the first ``TasksError`` with *code* along the ``__cause__`` chain."""
    seen: set[int] = set()
    while exc is not None and id(exc) not in seen:
        seen.add(id(exc))
        if isinstance(exc, TasksError) and exc.code == code:
            return exc
        exc = exc.__cause__
    return None


def has_code(exc: BaseException | None, code: ErrorCode) -> bool:
    """Report whether *exc* or anything it was raised from carries *code*."""
    return find_error(exc, code) is not None


class MultiError(Exception):
    """Per-item failures collected from a concurrent batch.

    ``append`` may be called from any number of concurrent writers.  The
    collector is only meant to be raised through ``error_or_none``, so a
    raised ``MultiError`` always holds at least one error.  ``results`` holds
    the positional outcome of the batch: the created task name, or ``""``
    where creation failed.
    """

    def __init__(self, errors: list[TasksError] | None = None) -> None:
        super().__init__()
        self._lock = threading.Lock()
        self.errors: list[TasksError] = list(errors or [])
        self.results: list[str] = []

    def append(self, err: TasksError) -> None:
        with self._lock:
            self.errors.append(err)

    def error_or_none(self) -> MultiError | None:
        with self._lock:
            return self if self.errors else None

    def by_code(self, code: ErrorCode) -> list[TasksError]:
        with self._lock:
            return [err for err in self.errors if err.code == code]

    def __len__(self) -> int:
        return len(self.errors)

    def __iter__(self) -> Iterator[TasksError]:
        return iter(list(self.errors))

    def __str__(self) -> str:
        if len(self.errors) == 1:
            return f"1 error occurred: {self.errors[0]}"
        details = "; ".join(str(err) for err in self.errors)
        return f"{len(self.errors)} errors occurred: {details}"
