"""
TLS identity loading for mutual TLS with the appliance.
"""

import logging
import os
import ssl
import tempfile
from pathlib import Path
from typing import Tuple, Union

from cryptography import x509
from cryptography.hazmat.primitives import serialization

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def load_tls_material(
    ca_cert_file: PathLike,
    client_cert_file: PathLike,
    client_key_file: PathLike,
) -> Tuple[bytes, bytes, bytes]:
    """Read the CA certificate, client certificate and client key PEM files."""
    material = []
    for path in (ca_cert_file, client_cert_file, client_key_file):
        try:
            material.append(Path(path).read_bytes())
        except OSError as e:
            raise ConfigurationError(f"Cannot read TLS file {path}: {e}") from e
    return material[0], material[1], material[2]


def _check_identity(ca_cert: bytes, client_cert: bytes, client_key: bytes) -> None:
    try:
        x509.load_pem_x509_certificate(ca_cert)
    except ValueError as e:
        raise ConfigurationError(f"Invalid CA certificate: {e}") from e

    try:
        cert = x509.load_pem_x509_certificate(client_cert)
    except ValueError as e:
        raise ConfigurationError(f"Invalid client certificate: {e}") from e

    try:
        key = serialization.load_pem_private_key(client_key, password=None)
    except (ValueError, TypeError) as e:
        raise ConfigurationError(f"Invalid client key: {e}") from e

    spki = serialization.PublicFormat.SubjectPublicKeyInfo
    pem = serialization.Encoding.PEM
    if key.public_key().public_bytes(pem, spki) != cert.public_key().public_bytes(pem, spki):
        raise ConfigurationError("Client key does not match client certificate")


def _write_private(path: Path, data: bytes) -> None:
    """Create a file readable by the owner only."""
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
    with os.fdopen(fd, "wb") as f:
        f.write(data)


def build_ssl_context(ca_cert: bytes, client_cert: bytes, client_key: bytes) -> ssl.SSLContext:
    """
    Build an SSL context for mutual TLS from PEM-encoded buffers.

    The CA certificate becomes the only trust anchor; the client certificate
    and key are presented to the appliance.

    Raises:
        ConfigurationError: If any of the buffers is not valid PEM, or the
            key does not belong to the certificate
    """
    _check_identity(ca_cert, client_cert, client_key)

    try:
        context = ssl.create_default_context(cadata=ca_cert.decode("ascii"))
        # ssl only loads certificate chains from files
        with tempfile.TemporaryDirectory() as tmp:
            cert_path = Path(tmp) / "client_cert.pem"
            key_path = Path(tmp) / "client_key.pem"
            cert_path.write_bytes(client_cert)
            _write_private(key_path, client_key)
            context.load_cert_chain(certfile=str(cert_path), keyfile=str(key_path))
    except (ssl.SSLError, UnicodeDecodeError, OSError) as e:
        raise ConfigurationError(f"Cannot load TLS identity: {e}") from e

    logger.info("Mutual TLS identity loaded")
    return context
