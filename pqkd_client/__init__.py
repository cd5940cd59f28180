"""
pQKD Client Package

Client for the KME (ETSI GS QKD 014-style key delivery) and QRNG services of
a pQKD appliance. ``pqkd_client`` exposes the asyncio client;
``pqkd_client.blocking`` the blocking one.
"""

from .client import PqkdClient, PqkdClientBuilder, PqkdRequestBuilder, QrngRequestBuilder
from .exceptions import (
    ConfigurationError,
    DeserializationError,
    InvalidFormatError,
    InvalidSizeError,
    NumberOfKeysError,
    PqkdError,
    SizeOfKeysError,
    TransportError,
    ValidationError,
)
from .models import (
    Key,
    KmeRequest,
    Operation,
    PqkdResponse,
    PqkdStatus,
    QrngFetch,
    QrngFormat,
    QrngResponse,
    QrngSize,
)
from .validation import MAX_SIZE_FOR_BYTES_FORMAT, MAX_SIZE_FOR_STRING_FORMAT

__all__ = [
    "PqkdClient",
    "PqkdClientBuilder",
    "PqkdRequestBuilder",
    "QrngRequestBuilder",
    "PqkdError",
    "ValidationError",
    "SizeOfKeysError",
    "NumberOfKeysError",
    "InvalidFormatError",
    "InvalidSizeError",
    "ConfigurationError",
    "TransportError",
    "DeserializationError",
    "Key",
    "KmeRequest",
    "Operation",
    "PqkdResponse",
    "PqkdStatus",
    "QrngFetch",
    "QrngFormat",
    "QrngResponse",
    "QrngSize",
    "MAX_SIZE_FOR_BYTES_FORMAT",
    "MAX_SIZE_FOR_STRING_FORMAT",
]
