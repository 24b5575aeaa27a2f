"""Tests for the error taxonomy and the MultiError collector."""

from concurrent.futures import ThreadPoolExecutor

from tasksbox.errors import (
    ErrorCode,
    MultiError,
    TasksError,
    already_exists,
    create_multi_task_failure,
    find_error,
    has_code,
    invalid_argument,
)


def test_constructors_set_code() -> None:
    """Each constructor produces its own error code."""
    assert invalid_argument("bad").code == ErrorCode.INVALID_ARGUMENT
    assert already_exists("dup").code == ErrorCode.ALREADY_EXISTS
    assert create_multi_task_failure("failed").code == ErrorCode.CREATE_MULTI_TASK_FAILURE


def test_error_str_includes_code_kv_and_cause() -> None:
    """str() shows the code, message, context and cause."""
    err = already_exists("x is already exists.", {"taskName": "x"}, ValueError("boom"))

    text = str(err)
    assert text.startswith("AlreadyExists: x is already exists.")
    assert "'taskName': 'x'" in text
    assert text.endswith(": boom")


def test_kv_is_copied() -> None:
    """Mutating the error's context does not touch the caller's dict."""
    kv = {"taskName": "x"}
    err = already_exists("dup", kv)
    err.kv["index"] = 3

    assert kv == {"taskName": "x"}
    assert err.kv == {"taskName": "x", "index": 3}


def test_cause_is_chained() -> None:
    """The cause argument becomes __cause__."""
    cause = RuntimeError("provider")
    err = create_multi_task_failure("failed", cause=cause)

    assert err.__cause__ is cause


def test_find_error_walks_cause_chain() -> None:
    """A coded error is found through wrapping errors."""
    inner = already_exists("dup", {"taskName": "t"})
    outer = create_multi_task_failure("failed", {"index": 0}, inner)
    wrapper = RuntimeError("wrapped")
    wrapper.__cause__ = outer

    assert find_error(wrapper, ErrorCode.ALREADY_EXISTS) is inner
    assert find_error(wrapper, ErrorCode.CREATE_MULTI_TASK_FAILURE) is outer
    assert find_error(wrapper, ErrorCode.INVALID_ARGUMENT) is None
    assert has_code(outer, ErrorCode.ALREADY_EXISTS)
    assert not has_code(None, ErrorCode.ALREADY_EXISTS)
    assert not has_code(ValueError("plain"), ErrorCode.INVALID_ARGUMENT)


def test_find_error_stops_on_cycles() -> None:
    """A cyclic cause chain terminates."""
    first = ValueError("a")
    second = ValueError("b")
    first.__cause__ = second
    second.__cause__ = first

    assert find_error(first, ErrorCode.INVALID_ARGUMENT) is None


def test_error_code_values() -> None:
    """Error codes render as their wire names."""
    assert str(ErrorCode.INVALID_ARGUMENT) == "InvalidArgument"
    assert str(ErrorCode.ALREADY_EXISTS) == "AlreadyExists"
    assert str(ErrorCode.CREATE_MULTI_TASK_FAILURE) == "CreateMultiTaskFailure"


# ---------------------------------------------------------------------------
# MultiError
# ---------------------------------------------------------------------------


def test_empty_multi_error_is_none() -> None:
    """An empty collector is not an error."""
    merr = MultiError()

    assert merr.error_or_none() is None
    assert len(merr) == 0


def test_multi_error_or_none_returns_self() -> None:
    """A non-empty collector returns itself."""
    merr = MultiError()
    merr.append(invalid_argument("bad"))

    assert merr.error_or_none() is merr


def test_multi_error_concurrent_appends() -> None:
    """Appends from many threads are all retained."""
    merr = MultiError()

    def append(i: int) -> None:
        merr.append(create_multi_task_failure("failed", {"index": i}))

    with ThreadPoolExecutor(max_workers=16) as pool:
        list(pool.map(append, range(200)))

    assert len(merr) == 200
    assert sorted(err.kv["index"] for err in merr) == list(range(200))


def test_multi_error_by_code() -> None:
    """by_code filters the collected errors."""
    dup = already_exists("dup", {"index": 1})
    other = create_multi_task_failure("failed", {"index": 0})
    merr = MultiError([other, dup])

    assert merr.by_code(ErrorCode.ALREADY_EXISTS) == [dup]
    assert merr.by_code(ErrorCode.CREATE_MULTI_TASK_FAILURE) == [other]
    assert merr.by_code(ErrorCode.INVALID_ARGUMENT) == []


def test_multi_error_str() -> None:
    """str() summarises the count and each error."""
    single = MultiError([invalid_argument("bad")])
    double = MultiError([invalid_argument("bad"), already_exists("dup")])

    assert str(single) == "1 error occurred: InvalidArgument: bad"
    assert str(double) == "2 errors occurred: InvalidArgument: bad; AlreadyExists: dup"


def test_tasks_error_is_exception() -> None:
    """TasksError can be raised and caught as Exception."""
    try:
        raise invalid_argument("bad", {"ScheduledTime": "x"})
    except Exception as exc:  # noqa: BLE001
        assert isinstance(exc, TasksError)
        assert exc.kv == {"ScheduledTime": "x"}
