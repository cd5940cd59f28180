"""
Request Builders

Fluent accumulators for KME operations and QRNG fetches. Parameters are
validated as they are added; the first failure is kept and raised when the
request is finalized. Dispatching is left to the client surfaces, which
subclass these builders with a blocking or a coroutine ``dispatch()``.
"""

import logging
from typing import Iterable, List, Optional

from .exceptions import InvalidFormatError, PqkdError
from .models import (
    DEFAULT_KEY_COUNT,
    DEFAULT_KEY_SIZE,
    KmeRequest,
    Operation,
    QrngFetch,
    QrngFormat,
    SizeLike,
    size_in_bytes,
)
from .validation import validate_key_count, validate_key_size, validate_qrng_size

logger = logging.getLogger(__name__)


class _RequestBuilder:

    def __init__(self):
        self._error: Optional[PqkdError] = None
        self._finalized = False

    @property
    def error(self) -> Optional[PqkdError]:
        """First validation error recorded, if any."""
        return self._error

    def _fail(self, error: PqkdError) -> None:
        logger.warning("Rejected request parameter: %s", error)
        self._error = error

    def _take(self) -> None:
        if self._finalized:
            raise RuntimeError("request builder already finalized")
        self._finalized = True
        if self._error is not None:
            raise self._error


class KmeRequestBuilder(_RequestBuilder):
    """
    Accumulates the parameters of one KME operation.

    Size and count are validated on the way in and rejected values are not
    applied. Key IDs are appended unconditionally, even once an error has
    been recorded, and stay visible through ``key_ids``.
    """

    def __init__(self, operation: Operation, sae_id: str):
        super().__init__()
        self._operation = operation
        self._sae_id = sae_id
        self._size = DEFAULT_KEY_SIZE
        self._number = DEFAULT_KEY_COUNT
        self._key_ids: List[str] = []

    @property
    def operation(self) -> Operation:
        return self._operation

    @property
    def sae_id(self) -> str:
        return self._sae_id

    @property
    def key_ids(self) -> List[str]:
        return list(self._key_ids)

    def with_key_size(self, size: int) -> "KmeRequestBuilder":
        """Set the key size in bits."""
        if self._error is None:
            try:
                validate_key_size(size)
            except PqkdError as e:
                self._fail(e)
            else:
                self._size = size
        return self

    def with_key_count(self, number: int) -> "KmeRequestBuilder":
        """Set the number of fresh keys to request."""
        if self._error is None:
            try:
                validate_key_count(number)
            except PqkdError as e:
                self._fail(e)
            else:
                self._number = number
        return self

    def with_key_id(self, key_id: str) -> "KmeRequestBuilder":
        self._key_ids.append(key_id)
        return self

    def with_key_ids(self, key_ids: Iterable[str]) -> "KmeRequestBuilder":
        self._key_ids.extend(key_ids)
        return self

    size = with_key_size
    number = with_key_count
    key_id = with_key_id

    def finalize(self) -> KmeRequest:
        """
        Complete the request.

        Returns:
            The immutable KmeRequest

        Raises:
            ValidationError: The first error recorded while building
            RuntimeError: If the builder was already finalized
        """
        self._take()
        return KmeRequest(
            operation=self._operation,
            sae_id=self._sae_id,
            size=self._size,
            number=self._number,
            key_ids=tuple(self._key_ids),
        )

    build = finalize


class QrngRequestBuilder(_RequestBuilder):
    """Accumulates one QRNG fetch."""

    def __init__(self, format: QrngFormat, size: SizeLike):
        super().__init__()
        try:
            self._format = QrngFormat(format)
        except ValueError as e:
            raise InvalidFormatError(str(format)) from e
        self._size = 0
        self.with_size(size)

    @property
    def format(self) -> QrngFormat:
        return self._format

    def with_size(self, size: SizeLike) -> "QrngRequestBuilder":
        if self._error is None:
            size = size_in_bytes(size)
            try:
                validate_qrng_size(self._format, size)
            except PqkdError as e:
                self._fail(e)
            else:
                self._size = size
        return self

    def finalize(self) -> QrngFetch:
        self._take()
        return QrngFetch(format=self._format, size=self._size)

    build = finalize
