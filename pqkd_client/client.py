"""
pQKD Client (asyncio)

Non-blocking client for the KME and QRNG services of a pQKD appliance.
Requests are built and validated with the shared builders; ``dispatch()``
suspends the calling task for the HTTP round-trip.

Example:
    client = PqkdClientBuilder.with_addr("http://172.16.0.154:8082").build()

    keys = (await client.enc_keys("Test_2SAE").with_key_size(1024).dispatch()).keys
    same = (await peer.dec_keys("Test_1SAE").with_key_id(keys[0].key_id).dispatch()).keys
"""

import logging
from typing import Optional

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
    """KME request builder bound to an async client."""

    def __init__(self, client: "PqkdClient", operation: Operation, sae_id: str):
        super().__init__(operation, sae_id)
        self._client = client

    async def dispatch(self) -> PqkdResponse:
        """
        Finalize the request and send it.

        Raises:
            ValidationError: Before any I/O, if a parameter was rejected
            TransportError: If the appliance cannot be reached or answers non-2xx
            DeserializationError: If the response body is malformed
        """
        request = self.finalize()
        return await self._client.execute_kme(request)

    send = dispatch


class QrngRequestBuilder(BaseQrngRequestBuilder):
    """QRNG request builder bound to an async client."""

    def __init__(self, client: "PqkdClient", format: QrngFormat, size: SizeLike):
        super().__init__(format, size)
        self._client = client

    async def dispatch(self) -> QrngResponse:
        fetch = self.finalize()
        return await self._client.execute_qrng(fetch)

    send = dispatch


class PqkdClient:
    """
    Async client for one pQKD appliance.

    The connection configuration is immutable; one client can serve any
    number of concurrent tasks.
    """

    def __init__(self, config: ConnectionConfig):
        self._config = config
        self._http_client = httpx.AsyncClient(**config.client_kwargs())

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
        """Status of the link with the partner SAE."""
        return PqkdRequestBuilder(self, Operation.STATUS, sae_id)

    def enc_keys(self, sae_id: str) -> PqkdRequestBuilder:
        """New keys to share with the partner SAE."""
        return PqkdRequestBuilder(self, Operation.ENC_KEYS, sae_id)

    def dec_keys(self, sae_id: str) -> PqkdRequestBuilder:
        """Keys previously issued to the partner SAE, by key ID."""
        return PqkdRequestBuilder(self, Operation.DEC_KEYS, sae_id)

    def qrng(self, format: QrngFormat, size: SizeLike) -> QrngRequestBuilder:
        return QrngRequestBuilder(self, format, size)

    async def get_random_hex(self, size: SizeLike) -> str:
        return (await self.qrng(QrngFormat.HEX, size).dispatch()).as_hex()

    async def get_random_base64(self, size: SizeLike) -> str:
        return (await self.qrng(QrngFormat.BASE64, size).dispatch()).as_base64()

    async def get_random_bytes(self, size: SizeLike) -> bytes:
        return (await self.qrng(QrngFormat.BYTES, size).dispatch()).as_bytes()

    async def execute_kme(self, request: KmeRequest) -> PqkdResponse:
        return await self._execute(build_kme_call(self._config.kme_addr, request))

    async def execute_qrng(self, fetch: QrngFetch) -> QrngResponse:
        return await self._execute(build_qrng_call(self._config.qrng_addr, fetch))

    async def _execute(self, call: HttpCallSpec):
        logger.debug("Dispatching %s %s", call.method, call.url)
        try:
            response = await self._http_client.request(
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

    async def aclose(self) -> None:
        await self._http_client.aclose()

    async def __aenter__(self) -> "PqkdClient":
        return self

    async def __aexit__(self, *exc_info) -> Optional[bool]:
        await self.aclose()
        return None


class PqkdClientBuilder(ConnectionBuilder):
    """
    Build a PqkdClient from the KME address, an optional QRNG address and
    an optional mutual-TLS identity.
    """

    def build(self) -> PqkdClient:
        return PqkdClient(self.config())
