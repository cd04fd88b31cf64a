"""Environment-driven configuration for the benchmark driver."""

from __future__ import annotations

import os
from typing import Mapping

from attest_bench.utils.constants import (
    DEFAULT_ADDRESS_BOOK,
    DEFAULT_JSONL_PATH,
    DEFAULT_RPC_TIMEOUT,
    DEFAULT_TXT_PATH,
)
from attest_bench.utils.errors import ConfigError
from attest_bench.utils.types import BenchmarkConfig, CallStyle, SignatureMode


def parse_counts(raw: str) -> tuple[int, ...]:
    """Parse a comma-separated group-size list such as ``"5,10,15"``."""
    counts = []
    for part in raw.split(","):
        part = part.strip()
        if not part:
            continue
        try:
            value = int(part, 10)
        except ValueError:
            raise ConfigError(f"COUNTS entry {part!r} is not an integer")
        if value <= 0:
            raise ConfigError(f"COUNTS entry {value} must be positive")
        counts.append(value)
    if not counts:
        raise ConfigError("COUNTS must list at least one group size")
    return tuple(counts)


def _enum_value(enum_cls, raw: str, name: str):
    try:
        return enum_cls(raw.strip().lower())
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ConfigError(f"{name}={raw!r} is invalid (expected one of: {allowed})")


def load_config(environ: Mapping[str, str] | None = None) -> BenchmarkConfig:
    """Build a BenchmarkConfig from environment variables.

    Every variable is optional; unset ones fall back to the dataclass
    defaults.
    """
    env = os.environ if environ is None else environ

    counts_raw = env.get("COUNTS", "")
    timeout_raw = env.get("RPC_TIMEOUT", "")
    try:
        timeout = float(timeout_raw) if timeout_raw else DEFAULT_RPC_TIMEOUT
    except ValueError:
        raise ConfigError(f"RPC_TIMEOUT={timeout_raw!r} is not a number")

    config = BenchmarkConfig(
        contract_address=env.get("CONTRACT_ADDRESS", "").strip(),
        mode=_enum_value(SignatureMode, env.get("MODE", "two"), "MODE"),
        out=env.get("OUT", ""),
        call_style=_enum_value(CallStyle, env.get("CALL_STYLE", "universal"), "CALL_STYLE"),
        rpc_url=env.get("RPC_URL", "").strip(),
        rpc_timeout=timeout,
        jsonl_path=env.get("EXPERIMENT_JSONL", DEFAULT_JSONL_PATH),
        txt_path=env.get("EXPERIMENT_TXT", DEFAULT_TXT_PATH),
        address_book=env.get("ADDRESS_BOOK", DEFAULT_ADDRESS_BOOK),
        log_level=env.get("LOG_LEVEL", "INFO").upper(),
    )
    if counts_raw.strip():
        config.counts = parse_counts(counts_raw)
    return config
