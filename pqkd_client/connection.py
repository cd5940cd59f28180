"""
Connection Configuration

Addresses of the KME and QRNG services and the transport settings shared by
the blocking and asyncio clients. A ConnectionConfig is immutable once built
and can be read by any number of concurrent requests.
"""

import logging
import ssl
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

import httpx

from .config import Settings, get_settings
from .exceptions import ConfigurationError
from .tls import PathLike, build_ssl_context, load_tls_material

logger = logging.getLogger(__name__)

DEFAULT_KME_PORT = 8082
DEFAULT_QRNG_PORT = 8085

Transport = Union[httpx.BaseTransport, httpx.AsyncBaseTransport]


def parse_address(addr: Union[str, httpx.URL]) -> httpx.URL:
    """
    Parse a service address.

    Raises:
        ConfigurationError: If the address is not an http(s) URL with a host
    """
    try:
        url = httpx.URL(addr)
    except (httpx.InvalidURL, TypeError) as e:
        raise ConfigurationError(f"Invalid address {addr!r}: {e}") from e

    if url.scheme not in ("http", "https") or not url.host:
        raise ConfigurationError(f"Invalid address {addr!r}: expected http(s)://host[:port]")
    return url


def _with_port(url: httpx.URL, port: int) -> httpx.URL:
    try:
        return url.copy_with(port=port)
    except (httpx.InvalidURL, TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid port {port!r}: {e}") from e


@dataclass(frozen=True)
class ConnectionConfig:
    kme_addr: httpx.URL
    qrng_addr: httpx.URL
    ssl_context: Optional[ssl.SSLContext] = None
    local_target: bytes = b""
    transport: Optional[Transport] = None

    def client_kwargs(self) -> Dict[str, Any]:
        """Keyword arguments for httpx.Client / httpx.AsyncClient."""
        kwargs: Dict[str, Any] = {
            "timeout": None,
            "verify": self.ssl_context if self.ssl_context is not None else True,
        }
        if self.transport is not None:
            kwargs["transport"] = self.transport
        return kwargs


class ConnectionBuilder(ABC):
    """
    Collects addresses and TLS identity for a client.

    Subclasses provide ``build()`` for their concurrency surface.
    """

    def __init__(self, kme_addr: httpx.URL, qrng_addr: httpx.URL):
        self._kme_addr = kme_addr
        self._qrng_addr = qrng_addr
        self._ssl_context: Optional[ssl.SSLContext] = None
        self._local_target = b""
        self._transport: Optional[Transport] = None

    @classmethod
    def with_addr(cls, addr: Union[str, httpx.URL]):
        """
        Start from the KME address.

        The QRNG address defaults to the same URL on port 8085.
        """
        kme_addr = parse_address(addr)
        return cls(kme_addr, _with_port(kme_addr, DEFAULT_QRNG_PORT))

    @classmethod
    def with_url(cls, url: Union[str, httpx.URL]):
        """Start from the appliance host, with KME on 8082 and QRNG on 8085."""
        base = parse_address(url)
        return cls(
            _with_port(base, DEFAULT_KME_PORT),
            _with_port(base, DEFAULT_QRNG_PORT),
        )

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None):
        settings = settings or get_settings()

        builder = cls.with_addr(settings.kme_url)
        if settings.qrng_url:
            builder.with_qrng_addr(settings.qrng_url)
        if settings.tls_enabled:
            builder.with_tls_files(
                settings.ssl_ca_file, settings.ssl_cert_file, settings.ssl_key_file
            )
        if settings.local_target:
            builder.with_local_target(settings.local_target.encode("utf-8"))
        return builder

    def with_port_kme(self, port: int):
        self._kme_addr = _with_port(self._kme_addr, port)
        return self

    def with_port_qrng(self, port: int):
        self._qrng_addr = _with_port(self._qrng_addr, port)
        return self

    def with_qrng_addr(self, addr: Union[str, httpx.URL]):
        self._qrng_addr = parse_address(addr)
        return self

    def with_tls(self, ca_cert: bytes, client_cert: bytes, client_key: bytes):
        """
        Enable mutual TLS.

        Args:
            ca_cert: PEM CA certificate used to verify the appliance
            client_cert: PEM client certificate
            client_key: PEM PKCS#8 client private key, unencrypted

        Raises:
            ConfigurationError: If the material cannot be loaded
        """
        self._ssl_context = build_ssl_context(ca_cert, client_cert, client_key)
        return self

    def with_tls_files(self, ca_cert_file: PathLike, client_cert_file: PathLike, client_key_file: PathLike):
        return self.with_tls(*load_tls_material(ca_cert_file, client_cert_file, client_key_file))

    def with_local_target(self, local_target: bytes):
        self._local_target = bytes(local_target)
        return self

    def with_transport(self, transport: Transport):
        self._transport = transport
        return self

    def config(self) -> ConnectionConfig:
        logger.debug("KME at %s, QRNG at %s", self._kme_addr, self._qrng_addr)
        return ConnectionConfig(
            kme_addr=self._kme_addr,
            qrng_addr=self._qrng_addr,
            ssl_context=self._ssl_context,
            local_target=self._local_target,
            transport=self._transport,
        )

    @abstractmethod
    def build(self):
        """Create the client for this surface."""
