"""Tests for structured and legacy experiment-log ingestion."""

import json
import logging

import pytest

from attest_bench.core.schemes import Scheme
from attest_bench.ingest.log_parser import (
    load_runs,
    parse_legacy_text,
    parse_structured_line,
    parse_structured_log,
    read_legacy_log,
    read_single_scheme_log,
    read_structured_log,
)
from attest_bench.utils.errors import IngestionError

FULL_RECORD = {
    "scheme": "ecdsa-r1",
    "data": "result-0",
    "deltaPayload": "payload-0",
    "deltaSignature": "ZGVsdGE=",
    "sigmaSignature": "c2lnbWE=",
    "deltaPublicKey": "a2V5MQ==",
    "sigmaPublicKey": "a2V5Mg==",
}

LEGACY_NEW_LABELS = """\
=== Run 1 ===
Result: 0.15,0.35,0.5
TEE Signature (base64): MEUCIQ==
TS Signature (base64): MEQCIA==
Intermediate Payload: abc123
"""

LEGACY_OLD_LABELS = """\
Computation Result = 0.2,0.8
Delta Signature: MEYCIQ==
Sigma Signature: MEUCIA==
Delta Payload: def456
"""


class TestStructuredLog:
    def test_full_record(self):
        run = parse_structured_line(json.dumps(FULL_RECORD), 1)
        assert run.scheme is Scheme.ECDSA_R1
        assert run.data == "result-0"
        assert run.delta_payload == "payload-0"
        assert run.delta_public_key == "a2V5MQ=="
        assert run.line == 1

    def test_alias_field_names(self):
        record = dict(FULL_RECORD)
        record["deltaBase64Sig"] = record.pop("deltaSignature")
        record["sigmaBase64Sig"] = record.pop("sigmaSignature")
        record["deltaPublicKeyBase64"] = record.pop("deltaPublicKey")
        record["sigmaPublicKeyBase64"] = record.pop("sigmaPublicKey")
        run = parse_structured_line(json.dumps(record), 3)
        assert run.delta_signature == "ZGVsdGE="
        assert run.sigma_signature == "c2lnbWE="
        assert run.sigma_public_key == "a2V5Mg=="

    def test_bad_lines_are_skipped_with_warning(self, caplog, make_run):
        good = make_run(0).to_json()
        text = "\n".join([good, "{not json", '["list"]', "", '{"scheme": "ecdsa-k1"}', good])
        with caplog.at_level(logging.WARNING, logger="attest_bench.ingest.log_parser"):
            runs = parse_structured_log(text)
        assert len(runs) == 2
        assert [r.line for r in runs] == [1, 6]
        messages = " ".join(r.getMessage() for r in caplog.records)
        assert "line 2" in messages
        assert "line 3" in messages
        assert "line 5" in messages

    def test_unknown_scheme_is_skipped(self, caplog):
        record = dict(FULL_RECORD, scheme="schnorr-k1")
        with caplog.at_level(logging.WARNING):
            assert parse_structured_line(json.dumps(record), 7) is None
        assert "line 7" in caplog.text

    def test_non_string_field_is_skipped(self):
        record = dict(FULL_RECORD, data=42)
        assert parse_structured_line(json.dumps(record), 1) is None

    def test_round_trip_through_writer(self, write_jsonl, make_run):
        runs = [make_run(i, Scheme.ECDSA_R1) for i in range(3)]
        # make_run numbers its runs from line 1, matching the file layout
        assert read_structured_log(write_jsonl(runs)) == runs

    def test_invalid_utf8_line_is_skipped(self, tmp_path, make_run, caplog):
        path = tmp_path / "experiment_data.jsonl"
        good = make_run(0).to_json().encode("utf-8")
        path.write_bytes(b'{"scheme":"\xff\xfe"}\n' + good + b"\n")
        with caplog.at_level(logging.WARNING):
            runs = read_structured_log(path)
        assert len(runs) == 1
        assert runs[0].line == 2
        assert "line 1" in caplog.text
        assert "UTF-8" in caplog.text

    def test_missing_file_yields_empty(self, tmp_path):
        assert read_structured_log(tmp_path / "nope.jsonl") == []


class TestSingleSchemeLog:
    def test_implicit_scheme_and_no_keys(self, write_jsonl):
        path = write_jsonl(
            [
                {
                    "data": "d",
                    "deltaPayload": "p",
                    "deltaBase64Sig": "AA==",
                    "sigmaBase64Sig": "AQ==",
                }
            ]
        )
        runs = read_single_scheme_log(path)
        assert len(runs) == 1
        assert runs[0].scheme is Scheme.ECDSA_K1
        assert not runs[0].has_public_keys

    def test_keys_are_not_required(self, write_jsonl):
        path = write_jsonl([{"data": "d", "deltaPayload": "p", "deltaSignature": "AA==", "sigmaSignature": "AQ=="}])
        assert len(read_single_scheme_log(path)) == 1
        assert read_structured_log(path) == []


class TestLegacyText:
    def test_new_labels(self):
        runs = parse_legacy_text(LEGACY_NEW_LABELS)
        assert len(runs) == 1
        run = runs[0]
        assert run.scheme is Scheme.ECDSA_K1
        assert run.data == "0.15,0.35,0.5"
        assert run.delta_signature == "MEUCIQ=="
        assert run.sigma_signature == "MEQCIA=="
        assert run.delta_payload == "abc123"
        assert run.delta_public_key is None

    def test_old_labels(self):
        runs = parse_legacy_text(LEGACY_OLD_LABELS)
        assert len(runs) == 1
        assert runs[0].data == "0.2,0.8"
        assert runs[0].delta_payload == "def456"

    def test_mixed_spellings_and_markers(self):
        text = LEGACY_NEW_LABELS + "----------\n" + LEGACY_OLD_LABELS + "\nsome unrelated chatter\n"
        runs = parse_legacy_text(text)
        assert [r.data for r in runs] == ["0.15,0.35,0.5", "0.2,0.8"]

    def test_repeated_label_starts_new_stanza(self):
        runs = parse_legacy_text(LEGACY_OLD_LABELS + LEGACY_OLD_LABELS.replace("0.2,0.8", "0.9,0.1"))
        assert [r.data for r in runs] == ["0.2,0.8", "0.9,0.1"]

    def test_incomplete_stanza_is_dropped(self, caplog):
        text = "Result: 1\nTEE Signature: AA==\n=====\n" + LEGACY_OLD_LABELS
        with caplog.at_level(logging.WARNING):
            runs = parse_legacy_text(text)
        assert len(runs) == 1
        assert "incomplete stanza" in caplog.text

    def test_invalid_utf8_chatter_is_skipped(self, tmp_path):
        path = tmp_path / "experiment_data.txt"
        path.write_bytes(b"garbage \xff\xfe\n" + LEGACY_OLD_LABELS.encode("utf-8"))
        runs = read_legacy_log(path)
        assert len(runs) == 1
        assert runs[0].data == "0.2,0.8"

    def test_no_stanzas(self):
        assert parse_legacy_text("nothing to see here\n") == []


class TestLoadRuns:
    def test_structured_takes_precedence(self, tmp_path, write_jsonl, make_run):
        jsonl = write_jsonl([make_run(0), make_run(1)])
        txt = tmp_path / "experiment_data.txt"
        txt.write_text(LEGACY_OLD_LABELS, encoding="utf-8")
        runs = load_runs(jsonl, txt)
        assert len(runs) == 2
        assert runs[0].has_public_keys

    def test_falls_back_to_legacy(self, tmp_path):
        txt = tmp_path / "experiment_data.txt"
        txt.write_text(LEGACY_NEW_LABELS + LEGACY_OLD_LABELS, encoding="utf-8")
        runs = load_runs(tmp_path / "missing.jsonl", txt)
        assert len(runs) == 2

    def test_falls_back_when_structured_is_all_malformed(self, tmp_path, write_jsonl):
        jsonl = write_jsonl(["{broken", "{}"])
        txt = tmp_path / "experiment_data.txt"
        txt.write_text(LEGACY_OLD_LABELS, encoding="utf-8")
        assert len(load_runs(jsonl, txt)) == 1

    def test_nothing_found_raises(self, tmp_path):
        with pytest.raises(IngestionError, match="No runs found"):
            load_runs(tmp_path / "a.jsonl", tmp_path / "b.txt")
