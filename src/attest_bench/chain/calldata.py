"""ABI calldata for the verifier contracts.

The universal verifier takes a scheme tag and one or two
``(data, signature, publicKey)`` tuples. The older single-scheme
verifier has fixed-name functions that take the recovered ``r||s||v``
signature and the expected signer address instead of a key.
"""

from __future__ import annotations

from dataclasses import dataclass

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError
from eth_utils import function_signature_to_4byte_selector

from attest_bench.core.schemes import Scheme
from attest_bench.utils.errors import ExternalCallError
from attest_bench.utils.types import CallStyle, RecoveredSigner

ATTESTATION_TUPLE = "(bytes,bytes,bytes)"
_SIGNER_ARGS = ("string", "bytes", "address")


@dataclass(frozen=True)
class AbiFunction:
    """A verifier entry point: name plus top-level argument types."""

    name: str
    types: tuple[str, ...]

    @property
    def signature(self) -> str:
        return f"{self.name}({','.join(self.types)})"

    @property
    def selector(self) -> bytes:
        return function_signature_to_4byte_selector(self.signature)


UNIVERSAL_ONE = AbiFunction("verify", ("string", ATTESTATION_TUPLE))
UNIVERSAL_TWO = AbiFunction("verifyTwo", ("string", ATTESTATION_TUPLE, ATTESTATION_TUPLE))

LEGACY_FUNCTIONS: dict[tuple[CallStyle, int], AbiFunction] = {
    (CallStyle.LEGACY_SHA256, 1): AbiFunction("verifySignatureSha256", _SIGNER_ARGS),
    (CallStyle.LEGACY_SHA256, 2): AbiFunction("verifyTwoSignaturesSha256", _SIGNER_ARGS * 2),
    (CallStyle.LEGACY_ETH, 1): AbiFunction("verifySignature", _SIGNER_ARGS),
    (CallStyle.LEGACY_ETH, 2): AbiFunction("verifyTwoSignatures", _SIGNER_ARGS * 2),
}


@dataclass(frozen=True)
class Attestation:
    """One normalized (data, signature, publicKey) triple."""

    data: str
    signature: bytes
    public_key: bytes

    def as_tuple(self) -> tuple[bytes, bytes, bytes]:
        return (self.data.encode("utf-8"), self.signature, self.public_key)


@dataclass(frozen=True)
class SignerProof:
    """Data plus recovered signature/address for the legacy verifier."""

    data: str
    signer: RecoveredSigner


def encode_call(function: AbiFunction, args: list) -> bytes:
    """4-byte selector followed by the ABI-encoded arguments."""
    return function.selector + encode(list(function.types), args)


def encode_universal_call(scheme: Scheme, attestations: list[Attestation]) -> bytes:
    if len(attestations) == 1:
        function = UNIVERSAL_ONE
    elif len(attestations) == 2:
        function = UNIVERSAL_TWO
    else:
        raise ValueError(f"Expected 1 or 2 attestations, got {len(attestations)}")
    return encode_call(function, [scheme.value] + [a.as_tuple() for a in attestations])


def encode_legacy_call(style: CallStyle, proofs: list[SignerProof]) -> bytes:
    key = (style, len(proofs))
    if key not in LEGACY_FUNCTIONS:
        raise ValueError(f"No legacy verifier function for {style.value} with {len(proofs)} signatures")
    args: list = []
    for proof in proofs:
        args.extend([proof.data, proof.signer.rsv, proof.signer.address])
    return encode_call(LEGACY_FUNCTIONS[key], args)


def decode_bool_result(result: bytes) -> bool:
    """Decode a ``returns (bool)`` eth_call result.

    Raises:
        ExternalCallError: if the node returned empty or malformed output,
            e.g. no contract at the address or a revert without data.
    """
    try:
        (value,) = decode(["bool"], result)
    except DecodingError as exc:
        raise ExternalCallError(f"Verifier returned undecodable output 0x{result.hex()}: {exc}")
    return value
