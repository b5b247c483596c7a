"""cosistore: object storage clients for buckets provisioned through COSI."""

from cosistore import config, exceptions, storage, utils
from cosistore.__metadata__ import __version__
from cosistore.config import (
    AuthenticationType,
    AzureSecret,
    BucketInfo,
    ClientOptions,
    S3Secret,
    SupportedProtocol,
    decode_bucket_info,
    load_bucket_info,
)
from cosistore.exceptions import (
    ConfigurationDecodeError,
    ContentLengthMismatchError,
    CosiStoreError,
    ImproperConfigurationError,
    InvalidAuthenticationTypeError,
    InvalidCredentialError,
    InvalidKeyError,
    MissingCredentialError,
    ObjectNotFoundError,
    OperationCancelledError,
    StorageTransportError,
    UnsupportedProtocolError,
)
from cosistore.storage import ObjectStorageProtocol, create_storage_client, create_storage_client_from_file

__all__ = (
    "AuthenticationType",
    "AzureSecret",
    "BucketInfo",
    "ClientOptions",
    "ConfigurationDecodeError",
    "ContentLengthMismatchError",
    "CosiStoreError",
    "ImproperConfigurationError",
    "InvalidAuthenticationTypeError",
    "InvalidCredentialError",
    "InvalidKeyError",
    "MissingCredentialError",
    "ObjectNotFoundError",
    "ObjectStorageProtocol",
    "OperationCancelledError",
    "S3Secret",
    "StorageTransportError",
    "SupportedProtocol",
    "UnsupportedProtocolError",
    "__version__",
    "config",
    "create_storage_client",
    "create_storage_client_from_file",
    "decode_bucket_info",
    "exceptions",
    "load_bucket_info",
    "storage",
    "utils",
)
