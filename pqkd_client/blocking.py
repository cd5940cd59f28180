"""
pQKD Client (blocking)

Same API as ``pqkd_client.client`` with ``dispatch()`` blocking the calling
thread for the HTTP round-trip.
"""

import logging

import httpx

from .builder import KmeRequestBuilder
from .builder import QrngRequestBuilder as BaseQrngRequestBuilder
from .connection import ConnectionBuilder, ConnectionConfig
from .dispatcher import HttpCallSpec, build_kme_call, build_qrng_call, parse_response
from .exceptions import TransportError
from .models import (
    KmeRequest,
    Operation,
    PqkdResponse,
    QrngFetch,
    QrngFormat,
    QrngResponse,
    SizeLike,
)

logger = logging.getLogger(__name__)


class PqkdRequestBuilder(KmeRequestBuilder):

    def __init__(self, client: "PqkdClient", operation: Operation, sae_id: str):
        super().__init__(operation, sae_id)
        self._client = client

    def dispatch(self) -> PqkdResponse:
        request = self.finalize()
        return self._client.execute_kme(request)

    send = dispatch


class QrngRequestBuilder(BaseQrngRequestBuilder):

    def __init__(self, client: "PqkdClient", format: QrngFormat, size: SizeLike):
        super().__init__(format, size)
        self._client = client

    def dispatch(self) -> QrngResponse:
        fetch = self.finalize()
        return self._client.execute_qrng(fetch)

    send = dispatch


class PqkdClient:
    """Blocking client for one pQKD appliance, safe to share across threads."""

    def __init__(self, config: ConnectionConfig):
        self._config = config
        self._http_client = httpx.Client(**config.client_kwargs())

    @property
    def kme_addr(self) -> httpx.URL:
        return self._config.kme_addr

    @property
    def qrng_addr(self) -> httpx.URL:
        return self._config.qrng_addr

    @property
    def local_target(self) -> bytes:
        return self._config.local_target

    def status(self, sae_id: str) -> PqkdRequestBuilder:
        return PqkdRequestBuilder(self, Operation.STATUS, sae_id)

    def enc_keys(self, sae_id: str) -> PqkdRequestBuilder:
        return PqkdRequestBuilder(self, Operation.ENC_KEYS, sae_id)

    def dec_keys(self, sae_id: str) -> PqkdRequestBuilder:
        return PqkdRequestBuilder(self, Operation.DEC_KEYS, sae_id)

    def qrng(self, format: QrngFormat, size: SizeLike) -> QrngRequestBuilder:
        return QrngRequestBuilder(self, format, size)

    def get_random_hex(self, size: SizeLike) -> str:
        return self.qrng(QrngFormat.HEX, size).dispatch().as_hex()

    def get_random_base64(self, size: SizeLike) -> str:
        return self.qrng(QrngFormat.BASE64, size).dispatch().as_base64()

    def get_random_bytes(self, size: SizeLike) -> bytes:
        return self.qrng(QrngFormat.BYTES, size).dispatch().as_bytes()

    def execute_kme(self, request: KmeRequest) -> PqkdResponse:
        return self._execute(build_kme_call(self._config.kme_addr, request))

    def execute_qrng(self, fetch: QrngFetch) -> QrngResponse:
        return self._execute(build_qrng_call(self._config.qrng_addr, fetch))

    def _execute(self, call: HttpCallSpec):
        logger.debug("Dispatching %s %s", call.method, call.url)
        try:
            response = self._http_client.request(
                call.method,
                call.url,
                params=call.params,
                content=call.content,
                headers=call.headers,
            )
        except httpx.HTTPError as e:
            logger.error("Cannot reach pQKD at %s: %s", call.url, e)
            raise TransportError(f"Request to {call.url} failed: {e}") from e

        return parse_response(call, response.status_code, response.content)

    def close(self) -> None:
        self._http_client.close()

    def __enter__(self) -> "PqkdClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class PqkdClientBuilder(ConnectionBuilder):

    def build(self) -> PqkdClient:
        return PqkdClient(self.config())
