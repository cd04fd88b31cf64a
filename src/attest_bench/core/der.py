"""DER ECDSA signature decoding and low-S canonicalization."""

from __future__ import annotations

from attest_bench.utils.constants import (
    DER_INTEGER_TAG,
    DER_SEQUENCE_TAG,
    SCALAR_LENGTH,
    SECP256K1_ORDER,
)
from attest_bench.utils.errors import MalformedSignature


def _strip_and_pad(magnitude: bytes, name: str) -> bytes:
    """Drop leading zero bytes (keeping one) and left-pad to 32 bytes."""
    j = 0
    while j < len(magnitude) - 1 and magnitude[j] == 0:
        j += 1
    stripped = magnitude[j:]
    if len(stripped) > SCALAR_LENGTH:
        raise MalformedSignature(
            f"DER integer {name} is {len(stripped)} bytes after stripping, "
            f"expected at most {SCALAR_LENGTH}: {stripped.hex()}"
        )
    return stripped.rjust(SCALAR_LENGTH, b"\x00")


def _read_integer(der: bytes, i: int, name: str) -> tuple[bytes, int]:
    if i >= len(der) or der[i] != DER_INTEGER_TAG:
        found = f"0x{der[i]:02x}" if i < len(der) else "end of input"
        raise MalformedSignature(f"Expected DER INTEGER for {name} at offset {i}, found {found}")
    if i + 1 >= len(der):
        raise MalformedSignature(f"DER INTEGER {name} is missing its length byte")
    length = der[i + 1]
    start = i + 2
    end = start + length
    if end > len(der):
        raise MalformedSignature(
            f"DER INTEGER {name} declares {length} bytes but only {len(der) - start} remain"
        )
    return der[start:end], end


def decode_der_signature(der: bytes) -> tuple[bytes, bytes]:
    """Parse a DER ``SEQUENCE { INTEGER r, INTEGER s }`` into fixed-width r, s.

    Some producers emit a wrong outer length, overstated or understated,
    so it never bounds the walk: only the INTEGER lengths do, checked
    against the bytes actually present. The INTEGER tags are still
    checked strictly.

    Returns:
        (r, s) as 32-byte big-endian values.

    Raises:
        MalformedSignature: on a tag mismatch, truncated integer, or a
            magnitude longer than 32 bytes.
    """
    if len(der) < 2 or der[0] != DER_SEQUENCE_TAG:
        found = f"0x{der[0]:02x}" if der else "empty input"
        raise MalformedSignature(f"Expected DER SEQUENCE tag 0x30, found {found}")

    r, i = _read_integer(der, 2, "r")
    s, _ = _read_integer(der, i, "s")
    return _strip_and_pad(r, "r"), _strip_and_pad(s, "s")


def canonicalize_low_s(s: int, order: int = SECP256K1_ORDER) -> int:
    """Enforce low-S: if s > n/2, replace with n - s."""
    if s > order // 2:
        return order - s
    return s


def canonicalize_low_s_bytes(s: bytes, order: int = SECP256K1_ORDER) -> bytes:
    value = canonicalize_low_s(int.from_bytes(s, "big"), order)
    return value.to_bytes(SCALAR_LENGTH, "big")
