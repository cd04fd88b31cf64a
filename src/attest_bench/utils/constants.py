"""Curve, encoding and cost constants for attestation normalization."""

from ecdsa import SECP256k1

# -- secp256k1 --
SECP256K1_ORDER: int = SECP256k1.order
SECP256K1_HALF_ORDER: int = SECP256K1_ORDER // 2
SECP256K1_FIELD_P: int = SECP256k1.curve.p()

# -- Recovery --
RECOVERY_IDS: tuple[int, int] = (27, 28)
ADDRESS_LENGTH: int = 20
ETH_SIGNED_MESSAGE_PREFIX: bytes = b"\x19Ethereum Signed Message:\n32"

# -- DER --
DER_SEQUENCE_TAG: int = 0x30
DER_INTEGER_TAG: int = 0x02
SCALAR_LENGTH: int = 32

# -- Key encodings --
ECDSA_RAW_KEY_LENGTH: int = 64
ED25519_KEY_LENGTH: int = 32
ED25519_SIGNATURE_LENGTH: int = 64
UNCOMPRESSED_POINT_MARKER: int = 0x04
# BIT STRING, 66 bytes, 0 unused bits, uncompressed point marker
EMBEDDED_POINT_PATTERN: bytes = b"\x03\x42\x00\x04"
LEGACY_KEY_PREFIX_LENGTH: int = 27

# -- Gas --
TX_BASE_GAS: int = 21_000
CALLDATA_ZERO_BYTE_GAS: int = 4
CALLDATA_NONZERO_BYTE_GAS: int = 16
# Approximate verifier execution cost per signature, keyed by scheme value
SCHEME_VERIFY_GAS: dict[str, int] = {
    "ecdsa-k1": 6_000,
    "ecdsa-r1": 210_000,
    "ed25519": 450_000,
}

# -- Benchmark defaults --
DEFAULT_COUNTS: tuple[int, ...] = (5, 10, 15, 20, 25)
DEFAULT_JSONL_PATH: str = "occlum/experiment_data.jsonl"
DEFAULT_TXT_PATH: str = "occlum/experiment_data.txt"
DEFAULT_ADDRESS_BOOK: str = "addresses.json"
DEFAULT_RPC_TIMEOUT: float = 30.0
