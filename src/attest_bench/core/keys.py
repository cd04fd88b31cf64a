"""Public-key extraction across raw, uncompressed and SPKI-wrapped encodings.

Producers changed their key encoding between versions without tagging
it, so detection follows a fixed precedence (see ``KeyEncoding``): the
structural scan for an embedded uncompressed point is always tried
before the fixed-offset slice, which only fits one producer layout.
"""

from __future__ import annotations

import base64
import binascii

from attest_bench.core.schemes import Scheme
from attest_bench.utils.constants import (
    ECDSA_RAW_KEY_LENGTH,
    ED25519_KEY_LENGTH,
    EMBEDDED_POINT_PATTERN,
    LEGACY_KEY_PREFIX_LENGTH,
    UNCOMPRESSED_POINT_MARKER,
)
from attest_bench.utils.errors import MalformedKey
from attest_bench.utils.types import KeyEncoding, PublicKey


def extract_embedded_point(blob: bytes) -> bytes | None:
    """Structural scan: the 64 bytes after the first ``03 42 00 04`` header.

    Returns None when the pattern is absent or too few bytes follow it.
    """
    idx = blob.find(EMBEDDED_POINT_PATTERN)
    if idx < 0:
        return None
    start = idx + len(EMBEDDED_POINT_PATTERN)
    point = blob[start : start + ECDSA_RAW_KEY_LENGTH]
    if len(point) != ECDSA_RAW_KEY_LENGTH:
        return None
    return point


def extract_fixed_prefix(blob: bytes) -> bytes | None:
    """Fixed-offset slice: assume a 27-byte prefix, take the trailing 64 bytes."""
    if len(blob) < LEGACY_KEY_PREFIX_LENGTH + ECDSA_RAW_KEY_LENGTH:
        return None
    return blob[-ECDSA_RAW_KEY_LENGTH:]


def _extract_ecdsa(blob: bytes) -> tuple[bytes, KeyEncoding] | None:
    if len(blob) == ECDSA_RAW_KEY_LENGTH:
        return blob, KeyEncoding.RAW_POINT
    if len(blob) == ECDSA_RAW_KEY_LENGTH + 1 and blob[0] == UNCOMPRESSED_POINT_MARKER:
        return blob[1:], KeyEncoding.UNCOMPRESSED_POINT
    point = extract_embedded_point(blob)
    if point is not None:
        return point, KeyEncoding.EMBEDDED_POINT
    point = extract_fixed_prefix(blob)
    if point is not None:
        return point, KeyEncoding.FIXED_PREFIX
    return None


def normalize_public_key(scheme: Scheme, blob: bytes) -> PublicKey:
    """Normalize decoded key bytes to the scheme's fixed-length form.

    Raises:
        MalformedKey: if no encoding matches or the result has the
            wrong length for the scheme.
    """
    if scheme.is_ecdsa:
        found = _extract_ecdsa(blob)
        if found is None:
            raise MalformedKey(
                f"Unrecognized {scheme.value} public key encoding "
                f"({len(blob)} bytes, no embedded uncompressed point)"
            )
        key, encoding = found
    else:
        if len(blob) < ED25519_KEY_LENGTH:
            raise MalformedKey(
                f"Ed25519 public key needs at least {ED25519_KEY_LENGTH} bytes, got {len(blob)}"
            )
        key, encoding = blob[-ED25519_KEY_LENGTH:], KeyEncoding.ED25519_TRAILING

    if len(key) != scheme.public_key_length:
        raise MalformedKey(
            f"{scheme.value} public key normalized to {len(key)} bytes, "
            f"expected {scheme.public_key_length}"
        )
    return PublicKey(scheme=scheme, key=bytes(key), encoding=encoding)


def public_key_from_base64(scheme: Scheme, blob: str | None) -> PublicKey:
    if not blob:
        raise MalformedKey(f"No {scheme.value} public key present")
    try:
        raw = base64.b64decode(blob, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise MalformedKey(f"Public key is not valid base64: {exc}")
    return normalize_public_key(scheme, raw)
