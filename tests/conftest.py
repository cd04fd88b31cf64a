"""Shared fixtures: deterministic keys and signed runs built with python-ecdsa."""

import base64
import hashlib
import json

import pytest
from ecdsa import NIST256p, SECP256k1, SigningKey
from ecdsa.util import sigencode_der

from attest_bench.core.schemes import Scheme
from attest_bench.utils.types import Run

ED25519_SPKI_PREFIX = bytes.fromhex("302a300506032b6570032100")


def b64(raw: bytes) -> str:
    return base64.b64encode(raw).decode("ascii")


def sign_der(sk: SigningKey, data: str) -> bytes:
    """DER signature over sha256(data), deterministic (RFC 6979)."""
    digest = hashlib.sha256(data.encode("utf-8")).digest()
    return sk.sign_digest_deterministic(digest, hashfunc=hashlib.sha256, sigencode=sigencode_der)


class Signers:
    """TEE and timestamp-service keys for each ECDSA curve."""

    def __init__(self) -> None:
        self.keys = {
            Scheme.ECDSA_K1: (
                SigningKey.from_secret_exponent(0xA11CE, curve=SECP256k1),
                SigningKey.from_secret_exponent(0x7157A, curve=SECP256k1),
            ),
            Scheme.ECDSA_R1: (
                SigningKey.from_secret_exponent(0xB0B, curve=NIST256p),
                SigningKey.from_secret_exponent(0xCAFE, curve=NIST256p),
            ),
        }

    def tee(self, scheme: Scheme) -> SigningKey:
        return self.keys[scheme][0]

    def ts(self, scheme: Scheme) -> SigningKey:
        return self.keys[scheme][1]


@pytest.fixture(scope="session")
def signers():
    return Signers()


@pytest.fixture(scope="session")
def make_run(signers):
    """Factory: make_run(i, scheme=..., key_format=...) -> Run.

    key_format is "uncompressed" (65 bytes), "raw" (64) or "der" (SPKI).
    """

    def _make(i: int, scheme: Scheme = Scheme.ECDSA_K1, key_format: str = "uncompressed") -> Run:
        data = f"pagerank-result-{i}"
        payload = f"delta-payload-{i}"
        if scheme is Scheme.ED25519:
            tee_key = hashlib.sha256(b"tee-ed25519").digest()
            ts_key = hashlib.sha256(b"ts-ed25519").digest()
            return Run(
                scheme=scheme,
                data=data,
                delta_payload=payload,
                delta_signature=b64(hashlib.sha512(data.encode()).digest()),
                sigma_signature=b64(hashlib.sha512(payload.encode()).digest()),
                delta_public_key=b64(ED25519_SPKI_PREFIX + tee_key),
                sigma_public_key=b64(ts_key),
                line=i + 1,
            )

        tee, ts = signers.tee(scheme), signers.ts(scheme)

        def encode_key(sk):
            vk = sk.get_verifying_key()
            if key_format == "der":
                return vk.to_der()
            if key_format == "raw":
                return vk.to_string("raw")
            return vk.to_string("uncompressed")

        return Run(
            scheme=scheme,
            data=data,
            delta_payload=payload,
            delta_signature=b64(sign_der(tee, data)),
            sigma_signature=b64(sign_der(ts, payload)),
            delta_public_key=b64(encode_key(tee)),
            sigma_public_key=b64(encode_key(ts)),
            line=i + 1,
        )

    return _make


@pytest.fixture
def write_jsonl(tmp_path):
    """Factory writing runs (or raw dicts/strings) as JSONL lines."""

    def _write(entries, name: str = "experiment_data.jsonl"):
        path = tmp_path / name
        lines = []
        for entry in entries:
            if isinstance(entry, Run):
                lines.append(entry.to_json())
            elif isinstance(entry, dict):
                lines.append(json.dumps(entry))
            else:
                lines.append(entry)
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return path

    return _write
