from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple

import httpx
import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import NameOID


class MockAppliance:
    """Fake KME/QRNG endpoints behind an httpx.MockTransport, recording every request."""

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self._routes: Dict[Tuple[str, str], Tuple[int, Any, Optional[bytes]]] = {}
        self.error: Optional[Exception] = None

    def route(self, method: str, path: str, status_code: int = 200, json: Any = None, content: Optional[bytes] = None):
        self._routes[(method, path)] = (status_code, json, content)

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error

        route = self._routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"message": "not found"})

        status_code, payload, content = route
        if payload is not None:
            return httpx.Response(status_code, json=payload)
        return httpx.Response(status_code, content=content or b"")

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)


@pytest.fixture
def appliance():
    return MockAppliance()


@pytest.fixture
def status_payload():
    return {
        "max_key_count": 4096,
        "max_key_per_request": 64,
        "max_key_size": 4096,
        "source_KME_ID": "Test_2KME",
        "master_SAE_ID": "Test_2SAE",
        "stored_key_count": 0,
        "min_key_size": 64,
        "max_SAE_ID_count": 0,
        "key_size": 256,
    }


@pytest.fixture
def sample_keys():
    return [
        ("17d3e519-10e9-43e6-bd7a-72b2da710dcd", "lRXjNYtHITV4KXkdIJZN/Pv0ojAkuLGwzwumMev959w=GR6XALTLg+B5I6jP/OlVDLQR3+j8PtpevhajPYY0hkM="),
        ("8195ac8a-22b2-47ba-a54f-9c9eb75cd723", "UfjRtIkZWFmxlTX3dGQ3GdlnyQMkHSiWf7A29Wj4XsFrbq6DqGnu0nlzlBdijighv5Gwn2C7VUXpLgxaIj4v9g=="),
        ("8650d18d-5858-4830-b2f6-7641905ed936", "xgnwHNTlBoNpvtWa5JlvfVieibB5Yl6cT0fP6wzNZcvEzVjwueg07W7eY7BCd+VFoDqmZy17whqIjwKPhpy4XQ=="),
        ("ea81b590-ac56-4778-a979-9d523afdecb1", "7KCGzY4HKwLI7wcHRdTgdP4F+yZJsvAeLDDEz4IOc92XuPOE3eE6A79rqWjkFiosoKfaHSIsh2KtVz3r4f/XbA=="),
    ]


@pytest.fixture
def sample_keys_json(sample_keys):
    return {"keys": [{"key_ID": key_id, "key": key} for key_id, key in sample_keys]}


def _generate_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


def _name(common_name: str) -> x509.Name:
    return x509.Name([
        x509.NameAttribute(NameOID.ORGANIZATION_NAME, "pQKD Test"),
        x509.NameAttribute(NameOID.COMMON_NAME, common_name),
    ])


def _pem_key(key) -> bytes:
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )


@pytest.fixture(scope="session")
def pki():
    """Throwaway CA and client identity, PEM encoded."""
    now = datetime.now(timezone.utc)

    ca_key = _generate_key()
    ca_cert = x509.CertificateBuilder().subject_name(
        _name("pQKD Test CA")
    ).issuer_name(
        _name("pQKD Test CA")
    ).public_key(
        ca_key.public_key()
    ).serial_number(
        x509.random_serial_number()
    ).not_valid_before(
        now
    ).not_valid_after(
        now + timedelta(days=1)
    ).add_extension(
        x509.BasicConstraints(ca=True, path_length=None), critical=True,
    ).sign(ca_key, hashes.SHA256())

    client_key = _generate_key()
    client_cert = x509.CertificateBuilder().subject_name(
        _name("sae-1")
    ).issuer_name(
        ca_cert.subject
    ).public_key(
        client_key.public_key()
    ).serial_number(
        x509.random_serial_number()
    ).not_valid_before(
        now
    ).not_valid_after(
        now + timedelta(days=1)
    ).add_extension(
        x509.BasicConstraints(ca=False, path_length=None), critical=True,
    ).sign(ca_key, hashes.SHA256())

    return {
        "ca_cert": ca_cert.public_bytes(serialization.Encoding.PEM),
        "client_cert": client_cert.public_bytes(serialization.Encoding.PEM),
        "client_key": _pem_key(client_key),
        "other_key": _pem_key(_generate_key()),
    }


@pytest.fixture
def pki_files(tmp_path, pki):
    paths = {}
    for name in ("ca_cert", "client_cert", "client_key"):
        path = tmp_path / f"{name}.pem"
        path.write_bytes(pki[name])
        paths[name] = path
    return paths
