from collections.abc import Sequence
from typing import Any, Optional

__all__ = (
    "ConfigurationDecodeError",
    "ContentLengthMismatchError",
    "CosiStoreError",
    "ImproperConfigurationError",
    "InvalidAuthenticationTypeError",
    "InvalidCredentialError",
    "InvalidKeyError",
    "MissingCredentialError",
    "ObjectNotFoundError",
    "OperationCancelledError",
    "StorageTransportError",
    "UnsupportedProtocolError",
)


class CosiStoreError(Exception):
    """Base exception class from which all cosistore exceptions inherit."""

    detail: str

    def __init__(self, *args: Any, detail: str = "") -> None:
        """Initialize ``CosiStoreError``.

        Args:
            *args: args are converted to :class:`str` before passing to :class:`Exception`
            detail: detail of the exception.
        """
        str_args = [str(arg) for arg in args if arg]
        if not detail:
            if str_args:
                detail, *str_args = str_args
            elif hasattr(self, "detail"):
                detail = self.detail
        self.detail = detail
        super().__init__(*str_args)

    def __repr__(self) -> str:
        if self.detail:
            return f"{self.__class__.__name__} - {self.detail}"
        return self.__class__.__name__

    def __str__(self) -> str:
        return " ".join((*self.args, self.detail)).strip()


# -- Configuration Errors --
class ImproperConfigurationError(CosiStoreError):
    """Raised when the bucket configuration cannot produce a storage client.

    These are authoring errors in the mounted document and are never retried.
    """


class ConfigurationDecodeError(ImproperConfigurationError):
    """The BucketInfo document could not be read or does not match the expected shape."""


class InvalidAuthenticationTypeError(ImproperConfigurationError):
    """The declared authentication type is not supported by the selected protocol."""

    def __init__(self, authentication_type: str, protocol: str) -> None:
        self.authentication_type = authentication_type
        self.protocol = protocol
        super().__init__(
            f"Authentication type {authentication_type!r} is not supported for protocol {protocol!r}. "
            "Only 'Key' authentication is available."
        )


class MissingCredentialError(ImproperConfigurationError):
    """A declared protocol has no matching secret payload."""

    def __init__(self, protocol: str, field_name: Optional[str] = None) -> None:
        self.protocol = protocol
        message = f"Protocol {protocol!r} is declared but no credential was supplied"
        if field_name:
            message = f"{message} (expected '{field_name}')"
        super().__init__(message)


class UnsupportedProtocolError(ImproperConfigurationError):
    """None of the declared protocols has a backend."""

    def __init__(self, protocols: Sequence[str]) -> None:
        self.protocols = list(protocols)
        super().__init__(f"No supported protocol found in {self.protocols!r}. Supported protocols: 'S3', 'Azure'")


class InvalidCredentialError(ImproperConfigurationError):
    """The secret payload is present but malformed."""

    def __init__(self, protocol: str, reason: str) -> None:
        self.protocol = protocol
        super().__init__(f"Invalid {protocol} credential: {reason}")


# -- Operation Errors --
class InvalidKeyError(CosiStoreError, ValueError):
    """An object key is empty or not a string."""


class StorageTransportError(CosiStoreError):
    """A remote storage call failed.

    Carries the operation, the object key and the backend type so the caller can
    diagnose the failure; the underlying client error is chained as ``__cause__``.
    """

    def __init__(self, message: str, *, operation: str, key: str, backend: str) -> None:
        self.operation = operation
        self.key = key
        self.backend = backend
        super().__init__(f"{message} [operation={operation} key={key!r} backend={backend}]")


class ObjectNotFoundError(StorageTransportError, FileNotFoundError):
    """The requested object does not exist in the bucket."""


class ContentLengthMismatchError(StorageTransportError):
    """The uploaded stream did not yield the declared number of bytes."""

    def __init__(self, *, expected: int, actual: int, key: str, backend: str) -> None:
        self.expected = expected
        self.actual = actual
        if actual > expected:
            message = f"Stream yielded more bytes than declared (expected {expected}, got at least {actual})"
        else:
            message = f"Stream yielded fewer bytes than declared (expected {expected}, got {actual})"
        super().__init__(
            message,
            operation="put",
            key=key,
            backend=backend,
        )


class OperationCancelledError(CosiStoreError, TimeoutError):
    """The caller-supplied deadline expired before the operation completed."""

    def __init__(self, *, operation: str, key: str, backend: str, timeout: Optional[float]) -> None:
        self.operation = operation
        self.key = key
        self.backend = backend
        self.timeout = timeout
        super().__init__(f"Storage operation {operation!r} on {key!r} ({backend}) exceeded its deadline of {timeout}s")
