"""Group runs, normalize each one, and aggregate per-group cost metrics."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from attest_bench.analysis.metrics import CostEstimator, CostSummary
from attest_bench.chain.calldata import (
    Attestation,
    SignerProof,
    encode_legacy_call,
    encode_universal_call,
)
from attest_bench.core.keys import public_key_from_base64
from attest_bench.core.recovery import compute_digest, recover_signer
from attest_bench.core.schemes import Scheme
from attest_bench.core.signature import signature_from_base64
from attest_bench.utils.errors import AttestBenchError, MalformedSignature
from attest_bench.utils.types import (
    BatchRow,
    CallStyle,
    DigestKind,
    PublicKey,
    RecoveredSigner,
    Run,
    Signature,
    SignatureMode,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PreparedRun:
    """A run with both attestations normalized to verifier layout."""

    run: Run
    delta_signature: Signature
    sigma_signature: Signature
    delta_key: PublicKey | None = None
    sigma_key: PublicKey | None = None
    delta_signer: RecoveredSigner | None = None
    sigma_signer: RecoveredSigner | None = None


@dataclass(frozen=True)
class GroupPlan:
    requested: int
    start: int
    size: int


def prepare_run(run: Run, digest_kind: DigestKind, require_keys: bool = True) -> PreparedRun:
    """Decode signatures, extract keys and recover signers for one run.

    The delta (TEE) signature covers ``data``; the sigma (timestamp)
    signature covers ``delta_payload``.
    """
    delta_sig = signature_from_base64(run.scheme, run.delta_signature)
    sigma_sig = signature_from_base64(run.scheme, run.sigma_signature)

    delta_key = sigma_key = None
    if require_keys or run.has_public_keys:
        delta_key = public_key_from_base64(run.scheme, run.delta_public_key)
        sigma_key = public_key_from_base64(run.scheme, run.sigma_public_key)

    delta_signer = sigma_signer = None
    if run.scheme.supports_recovery:
        delta_signer = recover_signer(compute_digest(run.data, digest_kind), delta_sig)
        sigma_signer = recover_signer(compute_digest(run.delta_payload, digest_kind), sigma_sig)

    return PreparedRun(
        run=run,
        delta_signature=delta_sig,
        sigma_signature=sigma_sig,
        delta_key=delta_key,
        sigma_key=sigma_key,
        delta_signer=delta_signer,
        sigma_signer=sigma_signer,
    )


def build_payload(prepared: PreparedRun, mode: SignatureMode, style: CallStyle) -> bytes:
    """Encode the verifier calldata for one prepared run."""
    run = prepared.run
    count = mode.signature_count

    if style is CallStyle.UNIVERSAL:
        attestations = [
            Attestation(run.data, prepared.delta_signature.to_bytes(), prepared.delta_key.key),
            Attestation(run.delta_payload, prepared.sigma_signature.to_bytes(), prepared.sigma_key.key),
        ]
        return encode_universal_call(run.scheme, attestations[:count])

    if prepared.delta_signer is None or prepared.sigma_signer is None:
        raise MalformedSignature(
            f"{style.value} calls need recoverable ecdsa-k1 signatures, run uses {run.scheme.value}"
        )
    proofs = [
        SignerProof(run.data, prepared.delta_signer),
        SignerProof(run.delta_payload, prepared.sigma_signer),
    ]
    return encode_legacy_call(style, proofs[:count])


def plan_groups(total_runs: int, counts: list[int] | tuple[int, ...]) -> list[GroupPlan]:
    """Slice ``total_runs`` into consecutive groups sized by ``counts``.

    The cursor advances by the requested count; a group that runs past
    the end is truncated, and counts after exhaustion produce no group.

    Every planned group lies inside the corpus, so the last-run filler in
    ``BatchAssembler`` is only reached through direct ``assemble_group``
    or ``payload_for`` calls.
    """
    plans = []
    cursor = 0
    for requested in counts:
        size = min(requested, max(total_runs - cursor, 0))
        if size > 0:
            plans.append(GroupPlan(requested=requested, start=cursor, size=size))
        else:
            logger.info("skipping group of %d: no runs remain", requested)
        cursor += requested
    return plans


class BatchAssembler:
    """Drive normalization and cost estimation over groups of runs."""

    def __init__(
        self,
        runs: list[Run],
        estimator: CostEstimator,
        mode: SignatureMode = SignatureMode.TWO,
        style: CallStyle = CallStyle.UNIVERSAL,
    ) -> None:
        self.runs = runs
        self.estimator = estimator
        self.mode = mode
        self.style = style

    def _run_at(self, index: int) -> tuple[int, Run]:
        if index < len(self.runs):
            return index, self.runs[index]
        # Filler reuse skews the group's metrics; kept for report compatibility.
        filler = len(self.runs) - 1
        logger.warning("run #%d missing, reusing run #%d as filler", index, filler)
        return filler, self.runs[filler]

    def payload_for(self, index: int) -> bytes:
        """Prepare and encode the run at ``index`` (with filler fallback)."""
        return self._encode(*self._run_at(index))

    def _encode(self, real_index: int, run: Run) -> bytes:
        try:
            prepared = prepare_run(
                run,
                self.style.digest_kind,
                require_keys=self.style is CallStyle.UNIVERSAL,
            )
            return build_payload(prepared, self.mode, self.style)
        except AttestBenchError as exc:
            raise exc.with_run_index(real_index)

    def assemble_group(self, start: int, size: int) -> BatchRow:
        """Process ``size`` runs from ``start`` sequentially into one row."""
        costs = []
        schemes: list[Scheme] = []
        representative: bytes | None = None
        for i in range(size):
            index = start + i
            real_index, run = self._run_at(index)
            payload = self._encode(real_index, run)
            if representative is None:
                representative = payload
            try:
                cost = self.estimator.estimate(run.scheme, payload, self.mode.signature_count)
            except AttestBenchError as exc:
                raise exc.with_run_index(real_index)
            costs.append(cost)
            if run.scheme not in schemes:
                schemes.append(run.scheme)

        summary = CostSummary(costs)
        return BatchRow(
            count=size,
            scheme="+".join(s.value for s in schemes),
            avg_cost=summary.average(),
            payload_bytes=len(representative) if representative is not None else 0,
            costs=costs,
        )

    def run(self, counts: list[int] | tuple[int, ...]) -> list[BatchRow]:
        if not self.runs:
            return []
        rows = []
        for plan in plan_groups(len(self.runs), counts):
            row = self.assemble_group(plan.start, plan.size)
            summary = CostSummary(row.costs)
            spread = summary.stats()
            lo, hi = summary.confidence_interval()
            logger.info(
                "[%s] count=%d scheme=%s avg_cost=%d std=%.1f range=[%d, %d] ci95=[%.0f, %.0f] payload_bytes=%d",
                self.mode.value,
                row.count,
                row.scheme,
                row.avg_cost,
                spread["std"],
                spread["min"],
                spread["max"],
                lo,
                hi,
                row.payload_bytes,
            )
            rows.append(row)
        return rows
