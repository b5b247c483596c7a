"""Storage client factory.

Turns a :class:`~cosistore.config.BucketInfo` into exactly one backend. The
declared protocols are checked in a fixed priority order (S3 first, then
Azure) and the first match is the only backend ever built: there is no
fallback to the next protocol when the match is misconfigured.
"""

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Final, Optional, Union

from cosistore.config import AuthenticationType, BucketInfo, ClientOptions, SupportedProtocol, load_bucket_info
from cosistore.exceptions import (
    ImproperConfigurationError,
    InvalidAuthenticationTypeError,
    MissingCredentialError,
    UnsupportedProtocolError,
)
from cosistore.utils.logging import get_logger, log_with_context

if TYPE_CHECKING:
    from cosistore.storage.protocol import ObjectStorageProtocol

__all__ = ("PROTOCOL_PRIORITY", "create_storage_client", "create_storage_client_from_file", "select_protocol")

logger = get_logger("storage.factory")

PROTOCOL_PRIORITY: Final[tuple[SupportedProtocol, ...]] = (SupportedProtocol.S3, SupportedProtocol.AZURE)

_SUPPORTED_AUTHENTICATION: Final[dict[SupportedProtocol, tuple[AuthenticationType, ...]]] = {
    SupportedProtocol.S3: (AuthenticationType.KEY,),
    SupportedProtocol.AZURE: (AuthenticationType.KEY,),
}


def select_protocol(protocols: "list[str]") -> Optional[SupportedProtocol]:
    """Return the highest-priority supported protocol among ``protocols``.

    Matching ignores case. ``None`` means nothing declared is supported.
    """
    for candidate in PROTOCOL_PRIORITY:
        if any(candidate.matches(declared) for declared in protocols):
            return candidate
    return None


def _check_authentication(bucket_info: BucketInfo, protocol: SupportedProtocol) -> None:
    if not any(auth.matches(bucket_info.authentication_type) for auth in _SUPPORTED_AUTHENTICATION[protocol]):
        raise InvalidAuthenticationTypeError(bucket_info.authentication_type, protocol.value)


def create_storage_client(
    bucket_info: BucketInfo, use_ssl: bool = True, *, options: Optional[ClientOptions] = None
) -> "ObjectStorageProtocol":
    """Build the storage backend described by ``bucket_info``.

    No network I/O happens here; connectivity is only exercised by the first
    operation on the returned client.

    Args:
        bucket_info: Decoded BucketInfo document.
        use_ssl: Use HTTPS for S3 endpoints given without a scheme. Azure always uses HTTPS.
        options: Chunk size, default deadline and logging options for the client.

    Raises:
        ImproperConfigurationError: If the bucket name is empty.
        InvalidAuthenticationTypeError: If the selected protocol does not support
            the declared authentication type.
        MissingCredentialError: If the selected protocol has no secret payload.
        UnsupportedProtocolError: If no declared protocol is supported.
        InvalidCredentialError: If the secret payload is malformed.

    Returns:
        A backend implementing :class:`~cosistore.storage.protocol.ObjectStorageProtocol`.
    """
    if not bucket_info.bucket_name:
        msg = "BucketInfo 'bucketName' must not be empty"
        raise ImproperConfigurationError(msg)

    options = options or ClientOptions()
    protocol = select_protocol(bucket_info.protocols)
    if protocol is None:
        raise UnsupportedProtocolError(bucket_info.protocols)

    _check_authentication(bucket_info, protocol)

    backend: "ObjectStorageProtocol"
    if protocol is SupportedProtocol.S3:
        if bucket_info.secret_s3 is None:
            raise MissingCredentialError(protocol.value, "secretS3")
        from cosistore.storage.backends.s3 import S3Backend

        backend = S3Backend(
            bucket_info.bucket_name,
            bucket_info.secret_s3,
            use_ssl=use_ssl,
            chunk_size=options.chunk_size,
            default_timeout=options.timeout,
            log_operations=options.log_operations,
        )
    else:
        if bucket_info.secret_azure is None:
            raise MissingCredentialError(protocol.value, "secretAzure")
        from cosistore.storage.backends.azure import AzureBackend

        if bucket_info.secret_azure.is_expired():
            log_with_context(
                logger,
                logging.WARNING,
                "storage.credential.expired",
                backend_type="azure",
                bucket=bucket_info.bucket_name,
                expiry_time_stamp=bucket_info.secret_azure.expiry_time_stamp,
            )
        backend = AzureBackend(
            bucket_info.bucket_name,
            bucket_info.secret_azure,
            chunk_size=options.chunk_size,
            default_timeout=options.timeout,
            log_operations=options.log_operations,
        )

    log_with_context(
        logger,
        logging.INFO,
        "storage.client.created",
        backend_type=backend.backend_type,
        bucket=bucket_info.bucket_name,
        declared_protocols=list(bucket_info.protocols),
    )
    return backend


def create_storage_client_from_file(
    path: Union[str, Path, None] = None, use_ssl: bool = True, *, options: Optional[ClientOptions] = None
) -> "ObjectStorageProtocol":
    """Load the mounted BucketInfo document and build its storage client.

    Args:
        path: Document location; see :func:`~cosistore.config.load_bucket_info`.
        use_ssl: Use HTTPS for S3 endpoints given without a scheme.
        options: Client options.

    Returns:
        The storage backend.
    """
    return create_storage_client(load_bucket_info(path), use_ssl, options=options)
