"""Verification cost estimation and per-group cost statistics."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

import numpy as np
from scipy import stats

from attest_bench.core.schemes import Scheme
from attest_bench.utils.constants import (
    CALLDATA_NONZERO_BYTE_GAS,
    CALLDATA_ZERO_BYTE_GAS,
    SCHEME_VERIFY_GAS,
    TX_BASE_GAS,
)

if TYPE_CHECKING:
    from attest_bench.chain.rpc import RpcClient


def calldata_gas(payload: bytes) -> int:
    """Intrinsic calldata cost: 4 gas per zero byte, 16 per non-zero byte."""
    zeros = payload.count(0)
    return zeros * CALLDATA_ZERO_BYTE_GAS + (len(payload) - zeros) * CALLDATA_NONZERO_BYTE_GAS


def static_cost(scheme: Scheme, payload: bytes, signature_count: int) -> int:
    """Heuristic cost when no node is available for live estimation."""
    return TX_BASE_GAS + calldata_gas(payload) + SCHEME_VERIFY_GAS[scheme.value] * signature_count


class CostEstimator(Protocol):
    def estimate(self, scheme: Scheme, payload: bytes, signature_count: int) -> int: ...


class StaticCostEstimator:
    """Cost keyed by scheme and payload size, no network access."""

    live = False

    def estimate(self, scheme: Scheme, payload: bytes, signature_count: int) -> int:
        return static_cost(scheme, payload, signature_count)


class LiveCostEstimator:
    """Cost from ``eth_estimateGas`` against the deployed verifier."""

    live = True

    def __init__(self, rpc: RpcClient, contract_address: str, sender: str | None = None) -> None:
        self.rpc = rpc
        self.contract_address = contract_address
        self.sender = sender

    def estimate(self, scheme: Scheme, payload: bytes, signature_count: int) -> int:
        return self.rpc.estimate_gas(self.contract_address, payload, self.sender)


class CostSummary:
    """Statistics over the per-run costs of one group."""

    def __init__(self, costs: list[int]) -> None:
        self.costs = costs

    def average(self) -> int:
        """Integer floor of the mean, 0 for an empty group."""
        if not self.costs:
            return 0
        return sum(self.costs) // len(self.costs)

    def stats(self) -> dict:
        if not self.costs:
            return {"count": 0, "mean": 0.0, "std": 0.0, "min": 0, "max": 0}
        values = np.array(self.costs, dtype=np.float64)
        return {
            "count": len(self.costs),
            "mean": float(np.mean(values)),
            "std": float(np.std(values)),
            "min": int(np.min(values)),
            "max": int(np.max(values)),
        }

    def confidence_interval(self, alpha: float = 0.95) -> tuple[float, float]:
        """Student-t interval on the mean cost.

        Degenerates to (mean, mean) when there is no spread to estimate.
        """
        if not self.costs:
            return (0.0, 0.0)
        values = np.array(self.costs, dtype=np.float64)
        mean = float(np.mean(values))
        if len(values) < 2 or np.std(values) == 0:
            return (mean, mean)
        lo, hi = stats.t.interval(alpha, len(values) - 1, loc=mean, scale=stats.sem(values))
        return (float(lo), float(hi))
