"""secp256k1 signer recovery.

Given a digest and a canonical (r, s), rebuild the candidate public keys
for recovery ids 27 and 28 and map them to account addresses the way
the on-chain ``ecrecover`` precompile does.
"""

from __future__ import annotations

import hashlib

from ecdsa import SECP256k1
from ecdsa.ellipticcurve import INFINITY, PointJacobi
from ecdsa.numbertheory import SquareRootError, inverse_mod, square_root_mod_prime
from eth_utils import keccak, to_checksum_address

from attest_bench.core.schemes import Scheme
from attest_bench.utils.constants import (
    ADDRESS_LENGTH,
    ETH_SIGNED_MESSAGE_PREFIX,
    RECOVERY_IDS,
    SCALAR_LENGTH,
    SECP256K1_FIELD_P,
    SECP256K1_ORDER,
)
from attest_bench.utils.errors import RecoveryError
from attest_bench.utils.types import DigestKind, RecoveredSigner, Signature

CURVE = SECP256k1.curve
GENERATOR = SECP256k1.generator


def eth_signed_digest(data: bytes) -> bytes:
    """Domain-separated digest: keccak(prefix || keccak(data))."""
    return keccak(ETH_SIGNED_MESSAGE_PREFIX + keccak(data))


def sha256_digest(data: bytes) -> bytes:
    return hashlib.sha256(data).digest()


def compute_digest(data: str | bytes, kind: DigestKind) -> bytes:
    """Hash a signed payload with the digest variant its signer used."""
    if isinstance(data, str):
        data = data.encode("utf-8")
    if kind is DigestKind.ETH_SIGNED:
        return eth_signed_digest(data)
    return sha256_digest(data)


def point_to_address(x: int, y: int) -> bytes:
    """Account identifier: last 20 bytes of keccak(X || Y)."""
    encoded = x.to_bytes(SCALAR_LENGTH, "big") + y.to_bytes(SCALAR_LENGTH, "big")
    return keccak(encoded)[-ADDRESS_LENGTH:]


def public_key_to_address(public_key: bytes) -> str:
    """Checksummed address for a 64-byte X || Y public key."""
    if len(public_key) != 2 * SCALAR_LENGTH:
        raise ValueError(f"Expected 64-byte public key, got {len(public_key)}")
    return to_checksum_address(keccak(public_key)[-ADDRESS_LENGTH:])


def recover_point(digest: bytes, r: int, s: int, recovery_id: int) -> tuple[int, int] | None:
    """Recover the public point for one recovery id, or None if it fails.

    recovery_id 27 selects the R point with even y, 28 the odd one.
    """
    if recovery_id not in RECOVERY_IDS:
        raise ValueError(f"Recovery id must be one of {RECOVERY_IDS}, got {recovery_id}")
    n = SECP256K1_ORDER
    p = SECP256K1_FIELD_P
    if not (0 < r < n and 0 < s < n):
        return None

    x = r
    alpha = (pow(x, 3, p) + CURVE.a() * x + CURVE.b()) % p
    try:
        beta = square_root_mod_prime(alpha, p)
    except SquareRootError:
        return None
    parity = recovery_id - RECOVERY_IDS[0]
    y = beta if beta % 2 == parity else p - beta
    if not CURVE.contains_point(x, y):
        return None

    R = PointJacobi(CURVE, x, y, 1, n)
    e = int.from_bytes(digest, "big") % n
    r_inv = inverse_mod(r, n)
    Q = GENERATOR * ((-e * r_inv) % n) + R * ((s * r_inv) % n)
    if Q == INFINITY:
        return None
    return int(Q.x()), int(Q.y())


def recover_candidate(digest: bytes, r: int, s: int, recovery_id: int) -> str | None:
    """Checksummed address for one recovery id, or None if it is not well-formed."""
    point = recover_point(digest, r, s, recovery_id)
    if point is None:
        return None
    address = point_to_address(*point)
    if len(address) != ADDRESS_LENGTH or not any(address):
        return None
    return to_checksum_address(address)


def recover_signer(
    digest: bytes,
    signature: Signature,
    expected: str | None = None,
) -> RecoveredSigner:
    """Probe recovery ids 27 then 28 and accept the first valid address.

    When ``expected`` is given only a candidate equal to it is accepted,
    which resolves the 27/28 ambiguity for signatures whose signer is
    known.

    Raises:
        RecoveryError: if no recovery id yields an acceptable address;
            usually a corrupted signature or the wrong digest kind.
    """
    if signature.scheme is not Scheme.ECDSA_K1:
        raise RecoveryError(f"Signer recovery is only defined for ecdsa-k1, not {signature.scheme.value}")
    if len(digest) != SCALAR_LENGTH:
        raise RecoveryError(f"Digest must be {SCALAR_LENGTH} bytes, got {len(digest)}")

    r, s = signature.r_int, signature.s_int
    for recovery_id in RECOVERY_IDS:
        candidate = recover_candidate(digest, r, s, recovery_id)
        if candidate is None:
            continue
        if expected is not None and candidate.lower() != expected.lower():
            continue
        return RecoveredSigner(
            address=candidate,
            recovery_id=recovery_id,
            r=signature.r,
            s=signature.s,
        )

    detail = f" matching {expected}" if expected else ""
    raise RecoveryError(
        f"No recovery id in {RECOVERY_IDS} produced a valid address{detail}; "
        "the signature is corrupt or the digest kind is wrong"
    )
