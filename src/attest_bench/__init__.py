"""attest-bench: normalize attestation signatures and keys into verifier calldata."""

__version__ = "0.1.0"
