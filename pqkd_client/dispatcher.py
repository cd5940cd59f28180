"""
Request Dispatcher

Maps finalized requests to a single HTTP call shape and maps raw responses
back to typed results. Both client surfaces execute the calls built here, so
the wire format lives in exactly one place.
"""

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Union
from urllib.parse import quote

import httpx
from pydantic import ValidationError as SchemaError

from .exceptions import DeserializationError, TransportError
from .models import (
    KeysEnvelope,
    KmeRequest,
    Operation,
    PqkdResponse,
    PqkdStatus,
    QrngEnvelope,
    QrngFetch,
    QrngFormat,
    QrngResponse,
)

logger = logging.getLogger(__name__)

_ERROR_EXCERPT_LENGTH = 200


class ResponseKind(Enum):
    STATUS = "status"
    KEYS = "keys"
    QRNG_TEXT = "qrng_text"
    QRNG_BINARY = "qrng_binary"


@dataclass(frozen=True)
class HttpCallSpec:
    """One HTTP call to the appliance, with the response shape it expects."""
    method: str
    url: str
    expects: ResponseKind
    operation: Optional[Operation] = None
    qrng_format: Optional[QrngFormat] = None
    params: Dict[str, str] = field(default_factory=dict)
    body: Optional[Dict[str, Any]] = None

    @property
    def content(self) -> Optional[bytes]:
        if self.body is None:
            return None
        return json.dumps(self.body, separators=(",", ":"), ensure_ascii=False).encode("utf-8")

    @property
    def headers(self) -> Dict[str, str]:
        if self.body is None:
            return {}
        return {"Content-Type": "application/json"}


def _join(base: Union[str, httpx.URL], path: str) -> str:
    return str(base).rstrip("/") + path


def _keys_path(sae_id: str, action: str) -> str:
    return f"/api/v1/keys/{quote(sae_id, safe='')}/{action}"


def build_status_call(kme_base: Union[str, httpx.URL], sae_id: str) -> HttpCallSpec:
    return HttpCallSpec(
        method="GET",
        url=_join(kme_base, _keys_path(sae_id, "status")),
        expects=ResponseKind.STATUS,
        operation=Operation.STATUS,
    )


def build_enc_keys_call(kme_base: Union[str, httpx.URL], request: KmeRequest) -> HttpCallSpec:
    """
    Build the enc_keys call.

    Requested key IDs take precedence over the key count: the body carries
    either ``key_IDs`` or ``number``, never both.
    """
    if request.key_ids:
        body = {"size": request.size, "key_IDs": list(request.key_ids)}
    else:
        body = {"size": request.size, "number": request.number}

    return HttpCallSpec(
        method="POST",
        url=_join(kme_base, _keys_path(request.sae_id, "enc_keys")),
        expects=ResponseKind.KEYS,
        operation=Operation.ENC_KEYS,
        body=body,
    )


def build_dec_keys_call(kme_base: Union[str, httpx.URL], request: KmeRequest) -> HttpCallSpec:
    body = {"key_IDs": [{"key_ID": key_id} for key_id in request.key_ids]}

    return HttpCallSpec(
        method="POST",
        url=_join(kme_base, _keys_path(request.sae_id, "dec_keys")),
        expects=ResponseKind.KEYS,
        operation=Operation.DEC_KEYS,
        body=body,
    )


def build_kme_call(kme_base: Union[str, httpx.URL], request: KmeRequest) -> HttpCallSpec:
    if request.operation is Operation.STATUS:
        return build_status_call(kme_base, request.sae_id)
    if request.operation is Operation.ENC_KEYS:
        return build_enc_keys_call(kme_base, request)
    if request.operation is Operation.DEC_KEYS:
        return build_dec_keys_call(kme_base, request)
    raise ValueError(f"Unknown KME operation: {request.operation}")


def build_qrng_call(qrng_base: Union[str, httpx.URL], fetch: QrngFetch) -> HttpCallSpec:
    if fetch.format is QrngFormat.BYTES:
        expects = ResponseKind.QRNG_BINARY
    else:
        expects = ResponseKind.QRNG_TEXT

    return HttpCallSpec(
        method="GET",
        url=_join(qrng_base, f"/qrng/{fetch.format.value}"),
        expects=expects,
        qrng_format=fetch.format,
        params={"size": str(fetch.size)},
    )


def parse_response(
    call: HttpCallSpec,
    status_code: int,
    content: bytes,
) -> Union[PqkdResponse, QrngResponse]:
    """
    Turn a raw HTTP response into the typed result the call expects.

    Args:
        call: The call that produced the response
        status_code: HTTP status of the response
        content: Raw response body

    Returns:
        PqkdResponse for KME calls, QrngResponse for QRNG calls

    Raises:
        TransportError: If the status is not 2xx
        DeserializationError: If a 2xx body does not match the expected schema
    """
    if not 200 <= status_code < 300:
        excerpt = content[:_ERROR_EXCERPT_LENGTH].decode("utf-8", errors="replace")
        logger.warning("%s %s failed with status %d", call.method, call.url, status_code)
        raise TransportError(
            f"{call.method} {call.url} failed with status {status_code}: {excerpt}",
            status_code=status_code,
        )

    try:
        if call.expects is ResponseKind.STATUS:
            status = PqkdStatus.model_validate_json(content)
            return PqkdResponse(operation=Operation.STATUS, status=status)

        if call.expects is ResponseKind.KEYS:
            envelope = KeysEnvelope.model_validate_json(content)
            logger.info(
                "Received %d key(s) from %s: %s",
                len(envelope.keys), call.url, [key.key_id for key in envelope.keys],
            )
            return PqkdResponse(operation=call.operation, keys=envelope.keys)

        if call.expects is ResponseKind.QRNG_TEXT:
            envelope = QrngEnvelope.model_validate_json(content)
            return QrngResponse(format=call.qrng_format, value=envelope.result)

    except SchemaError as e:
        logger.warning("Malformed response from %s: %s", call.url, e)
        raise DeserializationError(f"Malformed response from {call.url}: {e}") from e

    return QrngResponse(format=QrngFormat.BYTES, value=bytes(content))
