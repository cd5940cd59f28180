"""
Request Validation

Protocol limits for KME key requests and QRNG fetches.
"""

from typing import Any

from .exceptions import InvalidSizeError, NumberOfKeysError, SizeOfKeysError
from .models import QrngFormat

MIN_KEY_SIZE = 64
MAX_KEY_SIZE = 4096
KEY_SIZE_STEP = 8

MIN_KEY_COUNT = 1

MAX_SIZE_FOR_STRING_FORMAT = 256 * 1024
MAX_SIZE_FOR_BYTES_FORMAT = 16 * 1024 * 1024


def _is_int(value: Any) -> bool:
    # bool is an int subclass but never a valid size or count
    return isinstance(value, int) and not isinstance(value, bool)


def validate_key_size(size: int) -> None:
    """
    Check a key size in bits.

    Raises:
        SizeOfKeysError: If size is below 64, above 4096 or not a multiple of 8
    """
    if not _is_int(size):
        raise SizeOfKeysError()
    if size < MIN_KEY_SIZE or size > MAX_KEY_SIZE or size % KEY_SIZE_STEP != 0:
        raise SizeOfKeysError()


def validate_key_count(count: int) -> None:
    """
    Check the number of keys requested.

    Raises:
        NumberOfKeysError: If count is not an integer or is below one
    """
    if not _is_int(count) or count < MIN_KEY_COUNT:
        raise NumberOfKeysError()


def max_size_for(format: QrngFormat) -> int:
    if format is QrngFormat.BYTES:
        return MAX_SIZE_FOR_BYTES_FORMAT
    return MAX_SIZE_FOR_STRING_FORMAT


def validate_qrng_size(format: QrngFormat, size: int) -> None:
    """
    Check a QRNG size in bytes against the cap of its output format.

    String formats (hex, base64) are capped at 256 KiB of underlying
    randomness, the binary format at 16 MiB.

    Raises:
        InvalidSizeError: If size is not an integer, is negative or exceeds the cap
    """
    max_size = max_size_for(format)
    if not _is_int(size) or size < 0 or size > max_size:
        raise InvalidSizeError(format=str(format), max_size=max_size, found=size)
