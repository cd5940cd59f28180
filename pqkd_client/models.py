"""
pQKD Client Data Models

Request models accumulated by the builders and response models produced by
the dispatcher. Wire field names of the appliance (``key_ID``,
``source_KME_ID``...) are mapped to snake_case attributes through aliases.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


DEFAULT_KEY_SIZE = 512
DEFAULT_KEY_COUNT = 1


class Operation(str, Enum):
    """KME operations supported by the appliance."""
    STATUS = "status"
    ENC_KEYS = "enc_keys"
    DEC_KEYS = "dec_keys"


class QrngFormat(str, Enum):
    """Output formats of the QRNG service."""
    HEX = "hex"
    BASE64 = "base64"
    BYTES = "bytes"

    def __str__(self) -> str:
        return self.value


class SizeUnit(Enum):
    BYTES = ("", 1)
    KILOBYTES = ("K", 1024)
    MEGABYTES = ("M", 1024 * 1024)

    @property
    def suffix(self) -> str:
        return self.value[0]

    @property
    def multiplier(self) -> int:
        return self.value[1]


@dataclass(frozen=True)
class QrngSize:
    """Amount of randomness, expressed in bytes, kilobytes or megabytes."""
    value: int
    unit: SizeUnit = SizeUnit.BYTES

    @classmethod
    def kilobytes(cls, value: int) -> "QrngSize":
        return cls(value, SizeUnit.KILOBYTES)

    @classmethod
    def megabytes(cls, value: int) -> "QrngSize":
        return cls(value, SizeUnit.MEGABYTES)

    def to_bytes(self) -> int:
        return self.value * self.unit.multiplier

    def __str__(self) -> str:
        return f"{self.value}{self.unit.suffix}"


SizeLike = Union[int, QrngSize]


def size_in_bytes(size: SizeLike) -> int:
    """Normalize an int byte count or a QrngSize to a byte count."""
    if isinstance(size, QrngSize):
        return size.to_bytes()
    return size


@dataclass(frozen=True)
class KmeRequest:
    """A finalized KME operation, ready for the dispatcher."""
    operation: Operation
    sae_id: str
    size: int = DEFAULT_KEY_SIZE
    number: int = DEFAULT_KEY_COUNT
    key_ids: Tuple[str, ...] = ()


@dataclass(frozen=True)
class QrngFetch:
    """A finalized QRNG fetch."""
    format: QrngFormat
    size: int


class PqkdStatus(BaseModel):
    """Status of the link between this pQKD device and its partner."""

    model_config = ConfigDict(frozen=True, strict=True)

    max_key_count: int
    max_key_per_request: int
    max_key_size: int
    source_kme_id: str = Field(alias="source_KME_ID")
    master_sae_id: str = Field(alias="master_SAE_ID")
    stored_key_count: int
    min_key_size: int
    max_sae_id_count: int = Field(alias="max_SAE_ID_count")
    key_size: int


class Key(BaseModel):
    """
    A key issued by the KME together with its ID.

    The key material is kept as the exact bytes received on the wire.
    Its encoding is defined by the appliance and is never decoded,
    trimmed or otherwise normalized here.
    """

    model_config = ConfigDict(frozen=True)

    key_id: str = Field(alias="key_ID")
    key_material: bytes = Field(alias="key", repr=False)

    @field_validator("key_material", mode="before")
    @classmethod
    def encode_wire_string(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.encode("utf-8")
        return v

    @property
    def key(self) -> str:
        """Key material as the text the appliance sent."""
        return self.key_material.decode("utf-8")


class KeysEnvelope(BaseModel):
    keys: Tuple[Key, ...]


class QrngEnvelope(BaseModel):
    model_config = ConfigDict(extra="ignore")

    result: str


@dataclass(frozen=True)
class PqkdResponse:
    """Typed result of a KME operation."""
    operation: Operation
    status: Optional[PqkdStatus] = None
    keys: Tuple[Key, ...] = ()

    def as_status(self) -> Optional[PqkdStatus]:
        return self.status if self.operation is Operation.STATUS else None


@dataclass(frozen=True)
class QrngResponse:
    """Randomness returned by the QRNG service."""
    format: QrngFormat
    value: Union[str, bytes]

    def as_hex(self) -> Optional[str]:
        return self.value if self.format is QrngFormat.HEX else None

    def as_base64(self) -> Optional[str]:
        return self.value if self.format is QrngFormat.BASE64 else None

    def as_bytes(self) -> Optional[bytes]:
        return self.value if self.format is QrngFormat.BYTES else None
