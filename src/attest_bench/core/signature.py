"""Scheme dispatch from an encoded signature blob to a normalized Signature."""

from __future__ import annotations

import base64
import binascii

from attest_bench.core.der import canonicalize_low_s_bytes, decode_der_signature
from attest_bench.core.schemes import Scheme
from attest_bench.utils.constants import ED25519_SIGNATURE_LENGTH
from attest_bench.utils.errors import MalformedSignature
from attest_bench.utils.types import Signature


def decode_base64(blob: str, what: str = "signature") -> bytes:
    try:
        return base64.b64decode(blob, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise MalformedSignature(f"{what} is not valid base64: {exc}")


def normalize_signature(scheme: Scheme, raw: bytes) -> Signature:
    """Turn raw signature bytes into the verifier's canonical layout.

    ECDSA signatures are DER-decoded into 32-byte r and s; only the
    secp256k1 path is low-S canonicalized. Ed25519 signatures must
    already be the raw 64-byte blob.
    """
    if scheme.is_ecdsa:
        r, s = decode_der_signature(raw)
        if scheme.canonicalizes_low_s:
            s = canonicalize_low_s_bytes(s)
        return Signature(scheme=scheme, r=r, s=s)

    if len(raw) != ED25519_SIGNATURE_LENGTH:
        raise MalformedSignature(
            f"Ed25519 signature must be {ED25519_SIGNATURE_LENGTH} bytes, got {len(raw)}"
        )
    return Signature(scheme=scheme, raw=bytes(raw))


def signature_from_base64(scheme: Scheme, blob: str) -> Signature:
    return normalize_signature(scheme, decode_base64(blob))
