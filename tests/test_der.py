"""Tests for DER decoding, low-S canonicalization and signature dispatch."""

import base64
import secrets

import pytest
from ecdsa.util import sigencode_der

from attest_bench.core.der import (
    canonicalize_low_s,
    canonicalize_low_s_bytes,
    decode_der_signature,
)
from attest_bench.core.schemes import Scheme
from attest_bench.core.signature import normalize_signature, signature_from_base64
from attest_bench.utils.constants import SECP256K1_HALF_ORDER, SECP256K1_ORDER
from attest_bench.utils.errors import MalformedSignature

N = SECP256K1_ORDER


def der(r: int, s: int) -> bytes:
    return sigencode_der(r, s, N)


class TestDecodeDer:
    def test_full_width_values(self):
        r = (1 << 255) - 19
        s = (1 << 254) + 7
        r_out, s_out = decode_der_signature(der(r, s))
        assert r_out == r.to_bytes(32, "big")
        assert s_out == s.to_bytes(32, "big")

    def test_high_bit_padding_is_stripped(self):
        # r with top bit set gets a 0x00 sign byte in DER (33 bytes)
        r = N - 12345
        encoded = der(r, 5)
        assert encoded[3] == 33
        r_out, s_out = decode_der_signature(encoded)
        assert len(r_out) == 32
        assert int.from_bytes(r_out, "big") == r
        assert s_out == (5).to_bytes(32, "big")

    def test_short_values_are_left_padded(self):
        r_out, s_out = decode_der_signature(der(0x1234, 1))
        assert r_out == b"\x00" * 30 + b"\x12\x34"
        assert s_out == b"\x00" * 31 + b"\x01"

    def test_random_values_match_zero_padded_magnitudes(self):
        for _ in range(50):
            r = secrets.randbelow(N - 1) + 1
            s = secrets.randbelow(N - 1) + 1
            r_out, s_out = decode_der_signature(der(r, s))
            assert r_out == r.to_bytes(32, "big")
            assert s_out == s.to_bytes(32, "big")

    def test_lenient_sequence_length(self):
        encoded = bytearray(der(77, 88))
        encoded[1] = 0x7F  # longer than the actual body
        r_out, s_out = decode_der_signature(bytes(encoded))
        assert int.from_bytes(r_out, "big") == 77
        assert int.from_bytes(s_out, "big") == 88

    def test_understated_sequence_length(self):
        encoded = bytearray(der(77, 88))
        encoded[1] = 3  # shorter than the two INTEGERs that follow
        r_out, s_out = decode_der_signature(bytes(encoded))
        assert int.from_bytes(r_out, "big") == 77
        assert int.from_bytes(s_out, "big") == 88

    def test_bad_sequence_tag(self):
        encoded = bytearray(der(1, 2))
        encoded[0] = 0x31
        with pytest.raises(MalformedSignature, match="SEQUENCE"):
            decode_der_signature(bytes(encoded))

    def test_empty_input(self):
        with pytest.raises(MalformedSignature):
            decode_der_signature(b"")

    def test_bad_integer_tag_for_r(self):
        encoded = bytearray(der(1, 2))
        encoded[2] = 0x04
        with pytest.raises(MalformedSignature, match="for r"):
            decode_der_signature(bytes(encoded))

    def test_bad_integer_tag_for_s(self):
        encoded = bytearray(der(1, 2))
        encoded[5] = 0x03
        with pytest.raises(MalformedSignature, match="for s"):
            decode_der_signature(bytes(encoded))

    def test_oversize_magnitude(self):
        big = b"\x01" + b"\xff" * 32  # 33 significant bytes
        body = b"\x02" + bytes([len(big)]) + big + b"\x02\x01\x01"
        with pytest.raises(MalformedSignature, match="at most 32"):
            decode_der_signature(b"\x30" + bytes([len(body)]) + body)

    def test_truncated_integer(self):
        encoded = der((1 << 255) - 19, 3)
        with pytest.raises(MalformedSignature):
            decode_der_signature(encoded[:20])


class TestCanonicalize:
    def test_high_s_is_flipped(self):
        s = N - 10
        assert canonicalize_low_s(s) == 10

    def test_half_order_boundary(self):
        assert canonicalize_low_s(SECP256K1_HALF_ORDER) == SECP256K1_HALF_ORDER
        assert canonicalize_low_s(SECP256K1_HALF_ORDER + 1) == N - SECP256K1_HALF_ORDER - 1

    def test_result_always_low_and_idempotent(self):
        for _ in range(200):
            s = secrets.randbelow(N - 1) + 1
            once = canonicalize_low_s(s)
            assert once <= N // 2
            assert canonicalize_low_s(once) == once

    def test_bytes_variant(self):
        s = (N - 1).to_bytes(32, "big")
        assert canonicalize_low_s_bytes(s) == (1).to_bytes(32, "big")


class TestNormalizeSignature:
    def test_k1_is_canonicalized(self):
        high_s = N - 99
        sig = normalize_signature(Scheme.ECDSA_K1, der(1234, high_s))
        assert sig.s_int == 99
        assert len(sig.to_bytes()) == 64

    def test_r1_keeps_high_s(self):
        high_s = N - 99
        sig = normalize_signature(Scheme.ECDSA_R1, der(1234, high_s))
        assert sig.s_int == high_s

    def test_ed25519_raw_blob(self):
        blob = bytes(range(64))
        sig = normalize_signature(Scheme.ED25519, blob)
        assert sig.to_bytes() == blob

    def test_ed25519_wrong_length(self):
        with pytest.raises(MalformedSignature, match="64 bytes"):
            normalize_signature(Scheme.ED25519, bytes(70))

    def test_invalid_base64(self):
        with pytest.raises(MalformedSignature, match="base64"):
            signature_from_base64(Scheme.ECDSA_K1, "not base64!!")

    def test_from_base64(self):
        blob = base64.b64encode(der(5, 6)).decode()
        sig = signature_from_base64(Scheme.ECDSA_K1, blob)
        assert sig.r_int == 5 and sig.s_int == 6
