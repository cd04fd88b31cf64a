"""The enumerated set of signature schemes the verifier understands."""

from __future__ import annotations

from enum import Enum

from ecdsa import NIST256p, SECP256k1
from ecdsa.curves import Curve

from attest_bench.utils.constants import ECDSA_RAW_KEY_LENGTH, ED25519_KEY_LENGTH


class Scheme(str, Enum):
    """Signature scheme tag as written in the experiment log.

    All scheme-specific branching goes through the properties below so
    call sites never compare raw scheme strings.
    """

    ECDSA_K1 = "ecdsa-k1"
    ECDSA_R1 = "ecdsa-r1"
    ED25519 = "ed25519"

    @classmethod
    def parse(cls, value: str) -> Scheme:
        """Look up a scheme by its log tag (case-insensitive)."""
        try:
            return cls(value.strip().lower())
        except ValueError:
            known = ", ".join(s.value for s in cls)
            raise ValueError(f"Unknown scheme {value!r} (expected one of: {known})")

    @property
    def is_ecdsa(self) -> bool:
        return self is not Scheme.ED25519

    @property
    def curve(self) -> Curve | None:
        """The ``ecdsa`` curve for ECDSA variants, None for Ed25519."""
        if self is Scheme.ECDSA_K1:
            return SECP256k1
        if self is Scheme.ECDSA_R1:
            return NIST256p
        return None

    @property
    def public_key_length(self) -> int:
        return ECDSA_RAW_KEY_LENGTH if self.is_ecdsa else ED25519_KEY_LENGTH

    @property
    def canonicalizes_low_s(self) -> bool:
        # Low-S is only defined for secp256k1; P-256 and Ed25519 pass through.
        return self is Scheme.ECDSA_K1

    @property
    def supports_recovery(self) -> bool:
        return self is Scheme.ECDSA_K1

    def __str__(self) -> str:
        return self.value
