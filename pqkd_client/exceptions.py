"""
pQKD Client Exceptions
"""

from typing import Optional


class PqkdError(Exception):
    """Base exception for all pQKD client failures."""
    pass


class ValidationError(PqkdError):
    """Request parameters rejected locally, before any network call."""
    pass


class SizeOfKeysError(ValidationError):
    """Key size outside 64..4096 bits or not a multiple of 8."""

    def __init__(self, message: str = "key size min = 64, max = 4096, and number must be divisible by 8"):
        super().__init__(message)


class NumberOfKeysError(ValidationError):
    """Requested key count below one."""

    def __init__(self, message: str = "min number of keys = 1"):
        super().__init__(message)


class InvalidSizeError(ValidationError):
    """QRNG size above the cap of its output format."""

    def __init__(self, format: str, max_size: int, found: int):
        self.format = format
        self.max_size = max_size
        self.found = found
        super().__init__(
            f"invalid size for {format} (max size {max_size}, found {found})"
        )


class InvalidFormatError(ValidationError):
    """QRNG output format not served by the appliance."""

    def __init__(self, format: str):
        self.format = format
        super().__init__(f"unknown QRNG format {format!r} (expected hex, base64 or bytes)")


class ConfigurationError(PqkdError):
    """Malformed address or TLS material at client construction."""
    pass


class TransportError(PqkdError):
    """Network failure or non-2xx response from the appliance."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class DeserializationError(PqkdError):
    """A 2xx response body did not match the expected schema."""
    pass
