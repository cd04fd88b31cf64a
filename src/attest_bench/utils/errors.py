"""Exception taxonomy for ingestion, normalization and verifier calls."""

from __future__ import annotations


class AttestBenchError(Exception):
    """Base class for all attest-bench failures.

    ``run_index`` is filled in by the batch assembler so the driver can
    report which run of the corpus failed.
    """

    def __init__(self, message: str, *, run_index: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.run_index = run_index

    def with_run_index(self, run_index: int) -> AttestBenchError:
        if self.run_index is None:
            self.run_index = run_index
        return self

    def __str__(self) -> str:
        if self.run_index is None:
            return self.message
        return f"run #{self.run_index}: {self.message}"


class IngestionError(AttestBenchError):
    """No usable run could be read from any log source."""


class MalformedSignature(AttestBenchError):
    """Signature bytes do not match the expected DER or raw layout."""


class RecoveryError(AttestBenchError):
    """No recovery id produced a valid signer address."""


class MalformedKey(AttestBenchError):
    """Public key encoding or length is not recognized for the scheme."""


class VerificationMismatch(AttestBenchError):
    """The external verifier reported the payload as invalid."""


class ExternalCallError(AttestBenchError):
    """Network or node failure while talking to the chain client."""


class ConfigError(AttestBenchError):
    """An environment or CLI setting has an invalid value."""
