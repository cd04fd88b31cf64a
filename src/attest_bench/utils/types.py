"""Dataclass and enum definitions shared across the pipeline."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum

from attest_bench.core.schemes import Scheme
from attest_bench.utils.constants import (
    DEFAULT_ADDRESS_BOOK,
    DEFAULT_COUNTS,
    DEFAULT_JSONL_PATH,
    DEFAULT_RPC_TIMEOUT,
    DEFAULT_TXT_PATH,
)


class KeyEncoding(Enum):
    """Public-key encodings, listed in auto-detection precedence order.

    ECDSA keys are tried as RAW_POINT, UNCOMPRESSED_POINT, EMBEDDED_POINT
    and finally FIXED_PREFIX. Ed25519 keys always use ED25519_TRAILING.
    """

    RAW_POINT = "raw-point"
    UNCOMPRESSED_POINT = "uncompressed-point"
    EMBEDDED_POINT = "embedded-point"
    FIXED_PREFIX = "fixed-prefix"
    ED25519_TRAILING = "ed25519-trailing"


class DigestKind(str, Enum):
    """Which off-chain signer produced the attestation."""

    ETH_SIGNED = "eth-signed"  # keccak(prefix || keccak(data))
    SHA256 = "sha256"  # sha256(data)


class CallStyle(str, Enum):
    """Verifier entry points a payload can be encoded for."""

    UNIVERSAL = "universal"
    LEGACY_SHA256 = "legacy-sha256"
    LEGACY_ETH = "legacy-eth"

    @property
    def digest_kind(self) -> DigestKind:
        return DigestKind.ETH_SIGNED if self is CallStyle.LEGACY_ETH else DigestKind.SHA256


class SignatureMode(str, Enum):
    ONE = "one"
    TWO = "two"

    @property
    def signature_count(self) -> int:
        return 1 if self is SignatureMode.ONE else 2


@dataclass(frozen=True)
class Run:
    """One attestation event read from an experiment log.

    ``delta_*`` fields come from the TEE, ``sigma_*`` from the
    timestamp service. Signatures and keys stay base64 until normalized.
    """

    scheme: Scheme
    data: str
    delta_payload: str
    delta_signature: str
    sigma_signature: str
    delta_public_key: str | None = None
    sigma_public_key: str | None = None
    line: int | None = None  # source line, for diagnostics

    @property
    def has_public_keys(self) -> bool:
        return bool(self.delta_public_key) and bool(self.sigma_public_key)

    def to_json(self) -> str:
        """Serialize to one structured-log line."""
        obj = {
            "scheme": self.scheme.value,
            "data": self.data,
            "deltaPayload": self.delta_payload,
            "deltaSignature": self.delta_signature,
            "sigmaSignature": self.sigma_signature,
        }
        if self.has_public_keys:
            obj["deltaPublicKey"] = self.delta_public_key
            obj["sigmaPublicKey"] = self.sigma_public_key
        return json.dumps(obj, separators=(",", ":"))


@dataclass(frozen=True)
class Signature:
    """Scheme-tagged normalized signature.

    ECDSA variants fill ``r`` and ``s`` (32 bytes each, big-endian);
    Ed25519 fills ``raw`` with the 64-byte blob.
    """

    scheme: Scheme
    r: bytes = b""
    s: bytes = b""
    raw: bytes = b""

    @property
    def r_int(self) -> int:
        return int.from_bytes(self.r, "big")

    @property
    def s_int(self) -> int:
        return int.from_bytes(self.s, "big")

    def to_bytes(self) -> bytes:
        if self.scheme.is_ecdsa:
            return self.r + self.s
        return self.raw


@dataclass(frozen=True)
class PublicKey:
    scheme: Scheme
    key: bytes
    encoding: KeyEncoding


@dataclass(frozen=True)
class RecoveredSigner:
    """Signer address recovered from a secp256k1 signature."""

    address: str  # EIP-55 checksummed
    recovery_id: int
    r: bytes
    s: bytes

    @property
    def rsv(self) -> bytes:
        return self.r + self.s + bytes([self.recovery_id])


@dataclass
class BatchRow:
    """One report row: a processed group of runs."""

    count: int
    scheme: str
    avg_cost: int
    payload_bytes: int
    costs: list[int] = field(default_factory=list)


@dataclass
class BenchmarkConfig:
    """Configuration for a benchmark run."""

    contract_address: str = ""
    counts: tuple[int, ...] = DEFAULT_COUNTS
    mode: SignatureMode = SignatureMode.TWO
    out: str = ""
    call_style: CallStyle = CallStyle.UNIVERSAL
    rpc_url: str = ""
    rpc_timeout: float = DEFAULT_RPC_TIMEOUT
    jsonl_path: str = DEFAULT_JSONL_PATH
    txt_path: str = DEFAULT_TXT_PATH
    address_book: str = DEFAULT_ADDRESS_BOOK
    log_level: str = "INFO"

    @property
    def output_path(self) -> str:
        return self.out or f"benchmark_{self.mode.value}.csv"

    @property
    def live_estimation(self) -> bool:
        return bool(self.rpc_url)
