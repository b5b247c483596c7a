"""Tests for storage error translation."""

import logging
from collections.abc import Awaitable, Callable

import anyio
import pytest
from obstore.exceptions import GenericError
from obstore.exceptions import NotFoundError as ObstoreNotFoundError

from cosistore.exceptions import (
    ContentLengthMismatchError,
    ObjectNotFoundError,
    OperationCancelledError,
    StorageTransportError,
)
from cosistore.storage.errors import execute_storage_operation, is_retryable

pytestmark = pytest.mark.anyio


def _raiser(exc: BaseException) -> Callable[[], Awaitable[None]]:
    async def _call() -> None:
        raise exc

    return _call


async def test_result_is_returned() -> None:
    async def _call() -> int:
        return 7

    assert await execute_storage_operation(_call, backend="s3", operation="get", key="k") == 7


async def test_not_found_is_translated(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO, logger="cosistore.storage.errors")
    cause = FileNotFoundError("gone")

    with pytest.raises(ObjectNotFoundError) as exc_info:
        await execute_storage_operation(_raiser(cause), backend="s3", operation="get", key="logs/a")

    assert exc_info.value.__cause__ is cause
    assert "key='logs/a'" in str(exc_info.value)
    [record] = [r for r in caplog.records if r.getMessage() == "storage.object.missing"]
    assert record.levelno == logging.INFO
    assert record.__dict__["extra_fields"] == {
        "backend_type": "s3",
        "operation": "get",
        "path": "logs/a",
        "exception_type": "FileNotFoundError",
        "retryable": False,
    }


async def test_obstore_not_found_is_translated() -> None:
    with pytest.raises(ObjectNotFoundError):
        await execute_storage_operation(
            _raiser(ObstoreNotFoundError("missing")), backend="azure", operation="get", key="k"
        )


@pytest.mark.parametrize(
    "cause",
    [ConnectionResetError("reset"), PermissionError("denied"), GenericError("boom")],
    ids=["connection", "permission", "client"],
)
async def test_transport_failures_are_translated(cause: Exception, caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.ERROR, logger="cosistore.storage.errors")

    with pytest.raises(StorageTransportError) as exc_info:
        await execute_storage_operation(_raiser(cause), backend="azure", operation="delete", key="k")

    assert type(exc_info.value) is StorageTransportError
    assert exc_info.value.operation == "delete"
    assert exc_info.value.backend == "azure"
    assert exc_info.value.__cause__ is cause
    assert any(r.getMessage() == "storage.operation.failed" for r in caplog.records)


async def test_library_errors_pass_through_unchanged() -> None:
    error = ContentLengthMismatchError(expected=1, actual=2, key="k", backend="s3")

    with pytest.raises(ContentLengthMismatchError) as exc_info:
        await execute_storage_operation(_raiser(error), backend="s3", operation="put", key="k")

    assert exc_info.value is error


async def test_unrelated_errors_propagate() -> None:
    with pytest.raises(KeyError):
        await execute_storage_operation(_raiser(KeyError("bug")), backend="s3", operation="put", key="k")


async def test_deadline_is_translated(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.WARNING, logger="cosistore.storage.errors")

    async def _slow() -> None:
        await anyio.sleep(10)

    with pytest.raises(OperationCancelledError) as exc_info:
        await execute_storage_operation(_slow, backend="s3", operation="get", key="k", timeout=0.01)

    assert exc_info.value.timeout == 0.01
    [record] = [r for r in caplog.records if r.getMessage() == "storage.operation.cancelled"]
    assert record.__dict__["extra_fields"]["timeout"] == 0.01


async def test_outer_cancellation_is_not_translated() -> None:
    async def _slow() -> None:
        await anyio.sleep(10)

    with anyio.move_on_after(0.01) as scope:
        await execute_storage_operation(_slow, backend="s3", operation="get", key="k", timeout=5)

    assert scope.cancelled_caught


@pytest.mark.parametrize(
    ("exc", "expected"),
    [
        (ConnectionResetError(), True),
        (TimeoutError(), True),
        (FileNotFoundError(), False),
        (PermissionError(), False),
        (ValueError(), False),
    ],
)
def test_is_retryable(exc: BaseException, expected: bool) -> None:
    assert is_retryable(exc) is expected


async def test_client_argument_errors_are_translated(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.ERROR, logger="cosistore.storage.errors")
    cause = ValueError('Could not parse path: Path "a//b" contained empty path segment')

    with pytest.raises(StorageTransportError) as exc_info:
        await execute_storage_operation(_raiser(cause), backend="s3", operation="put", key="a//b")

    assert exc_info.value.__cause__ is cause
    [record] = [r for r in caplog.records if r.getMessage() == "storage.operation.failed"]
    assert record.__dict__["extra_fields"]["exception_type"] == "ValueError"
    assert record.__dict__["extra_fields"]["retryable"] is False
