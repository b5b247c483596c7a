"""BucketInfo configuration model.

The orchestration layer mounts a JSON document describing the provisioned bucket
into the workload. The structures here mirror that document field for field and
carry no behavior beyond decoding: whether the declared protocol and the supplied
secret agree is checked by the storage client factory, so an unused secret never
causes a failure on its own.
"""

import os
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Annotated, Any, Final, Optional, Union

import msgspec

from cosistore._serialization import decode_json
from cosistore.exceptions import ConfigurationDecodeError

__all__ = (
    "BUCKET_INFO_PATH_ENV",
    "DEFAULT_BUCKET_INFO_PATH",
    "DEFAULT_CHUNK_SIZE",
    "AuthenticationType",
    "AzureSecret",
    "BucketInfo",
    "ClientOptions",
    "S3Secret",
    "SupportedProtocol",
    "decode_bucket_info",
    "load_bucket_info",
)

BUCKET_INFO_PATH_ENV: Final[str] = "COSI_BUCKET_INFO_PATH"
DEFAULT_BUCKET_INFO_PATH: Final[str] = "/data/cosi/BucketInfo"
DEFAULT_CHUNK_SIZE: Final[int] = 5 * 1024 * 1024


class AuthenticationType(str, Enum):
    """Authentication types a BucketInfo document may declare."""

    KEY = "Key"
    IAM = "IAM"

    def matches(self, value: str) -> bool:
        """Compare against a declared value, ignoring case."""
        return value.casefold() == self.value.casefold()


class SupportedProtocol(str, Enum):
    """Protocols with a storage backend, in selection priority order."""

    S3 = "S3"
    AZURE = "Azure"

    def matches(self, value: str) -> bool:
        """Compare against a declared value, ignoring case."""
        return value.casefold() == self.value.casefold()


class S3Secret(msgspec.Struct, frozen=True, rename="camel"):
    """Static credentials for an S3-compatible endpoint."""

    endpoint: str
    region: str
    access_key_id: str = msgspec.field(name="accessKeyID")
    access_secret_key: str

    def __repr__(self) -> str:
        return (
            f"S3Secret(endpoint={self.endpoint!r}, region={self.region!r}, "
            "access_key_id='***', access_secret_key='***')"
        )


class AzureSecret(msgspec.Struct, frozen=True, rename="camel"):
    """Shared-access-signature credential for Azure Blob storage.

    ``expiry_time_stamp`` is informational. The token is never renewed and an
    expired token is only rejected by the remote service on first use.
    """

    access_token: str
    expiry_time_stamp: Optional[datetime] = None

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """Report whether the token expiry is in the past.

        Args:
            now: Reference time, defaults to the current UTC time.

        Returns:
            ``False`` when no expiry is recorded.
        """
        if self.expiry_time_stamp is None:
            return False
        now = now or datetime.now(timezone.utc)
        expiry = self.expiry_time_stamp
        if expiry.tzinfo is None:
            expiry = expiry.replace(tzinfo=timezone.utc)
        return expiry <= now

    def __repr__(self) -> str:
        return f"AzureSecret(access_token='***', expiry_time_stamp={self.expiry_time_stamp!r})"


class BucketInfo(msgspec.Struct, frozen=True, rename="camel"):
    """Root descriptor of a provisioned bucket."""

    bucket_name: Annotated[str, msgspec.Meta(min_length=1)]
    authentication_type: str
    protocols: Annotated[list[str], msgspec.Meta(min_length=1)]
    secret_s3: Optional[S3Secret] = None
    secret_azure: Optional[AzureSecret] = None


@dataclass(frozen=True)
class ClientOptions:
    """Tuning knobs applied to every storage client the factory builds.

    Attributes:
        chunk_size: Size of the chunks streamed to and from the remote service.
        timeout: Default deadline in seconds for operations that do not pass one.
        log_operations: Log successful operations, not only failures.
    """

    chunk_size: int = DEFAULT_CHUNK_SIZE
    timeout: Optional[float] = None
    log_operations: bool = True

    def __post_init__(self) -> None:
        if self.chunk_size <= 0:
            msg = f"chunk_size must be positive, got {self.chunk_size}"
            raise ValueError(msg)
        if self.timeout is not None and self.timeout <= 0:
            msg = f"timeout must be positive, got {self.timeout}"
            raise ValueError(msg)


def _unwrap_document(document: Any) -> Any:
    # A full COSI BucketInfo carries the record under "spec" next to "metadata".
    if isinstance(document, dict) and isinstance(document.get("spec"), dict):
        return document["spec"]
    return document


def decode_bucket_info(data: Union[str, bytes]) -> BucketInfo:
    """Decode a BucketInfo JSON document.

    Both the bare record and the COSI document with the record nested under
    ``spec`` are accepted.

    Args:
        data: The raw JSON document.

    Raises:
        ConfigurationDecodeError: If the document is not valid JSON or does not
            match the BucketInfo shape.

    Returns:
        The decoded configuration.
    """
    try:
        document = decode_json(data)
    except msgspec.DecodeError as exc:
        msg = f"BucketInfo document is not valid JSON: {exc}"
        raise ConfigurationDecodeError(msg) from exc
    try:
        return msgspec.convert(_unwrap_document(document), BucketInfo)
    except msgspec.ValidationError as exc:
        msg = f"Invalid BucketInfo document: {exc}"
        raise ConfigurationDecodeError(msg) from exc


def load_bucket_info(path: Union[str, Path, None] = None) -> BucketInfo:
    """Read and decode a mounted BucketInfo document.

    Args:
        path: Document location. Falls back to the ``COSI_BUCKET_INFO_PATH``
            environment variable, then to the default COSI mount point.

    Raises:
        ConfigurationDecodeError: If the file cannot be read or decoded.

    Returns:
        The decoded configuration.
    """
    resolved = Path(path or os.environ.get(BUCKET_INFO_PATH_ENV) or DEFAULT_BUCKET_INFO_PATH)
    try:
        raw = resolved.read_bytes()
    except OSError as exc:
        msg = f"Unable to read BucketInfo document at {resolved}: {exc}"
        raise ConfigurationDecodeError(msg) from exc
    return decode_bucket_info(raw)
