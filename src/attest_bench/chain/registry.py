"""Persisted address book of deployed verifier contracts.

The book is a plain value object: callers load it, pass it around,
mutate it, and save it explicitly. Nothing is cached at module level.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path

from eth_utils import is_address, to_checksum_address

from attest_bench.core.schemes import Scheme
from attest_bench.utils.errors import ConfigError

ROUTER_KEY = "router"


@dataclass
class AddressBook:
    """Current and historical verifier addresses keyed by scheme tag.

    The universal router is stored under ``"router"``.
    """

    verifiers: dict[str, str] = field(default_factory=dict)
    history: dict[str, list[str]] = field(default_factory=dict)

    @classmethod
    def load(cls, path: str | Path) -> AddressBook:
        path = Path(path)
        if not path.is_file():
            return cls()
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise ConfigError(f"Address book {path} is not valid JSON: {exc}")
        if not isinstance(raw, dict):
            raise ConfigError(f"Address book {path} must hold a JSON object")
        return cls(
            verifiers=dict(raw.get("verifiers", {})),
            history={k: list(v) for k, v in raw.get("history", {}).items()},
        )

    def save(self, path: str | Path) -> None:
        Path(path).write_text(
            json.dumps({"verifiers": self.verifiers, "history": self.history}, indent=2) + "\n",
            encoding="utf-8",
        )

    def register(self, key: str | Scheme, address: str) -> str:
        """Record ``address`` as the current verifier for ``key``."""
        name = key.value if isinstance(key, Scheme) else key
        if not is_address(address):
            raise ConfigError(f"{address!r} is not a valid address")
        address = to_checksum_address(address)
        self.verifiers[name] = address
        self.history.setdefault(name, []).append(address)
        return address

    def get(self, key: str | Scheme) -> str | None:
        name = key.value if isinstance(key, Scheme) else key
        return self.verifiers.get(name)

    @property
    def router(self) -> str | None:
        return self.verifiers.get(ROUTER_KEY)
