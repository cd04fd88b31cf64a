"""Experiment log ingestion.

Two sources describe the same runs:

* a structured JSONL log, one object per line, written by newer
  producers; and
* a free-form legacy text log made of labeled stanzas, whose labels were
  renamed once without any version marker.

``load_runs`` prefers the structured log and falls back to the text log.
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path

from attest_bench.core.schemes import Scheme
from attest_bench.utils.errors import IngestionError
from attest_bench.utils.types import Run

logger = logging.getLogger(__name__)

# canonical field -> accepted spellings, first one preferred
STRUCTURED_FIELDS: dict[str, tuple[str, ...]] = {
    "scheme": ("scheme",),
    "data": ("data",),
    "delta_payload": ("deltaPayload",),
    "delta_signature": ("deltaSignature", "deltaBase64Sig"),
    "sigma_signature": ("sigmaSignature", "sigmaBase64Sig"),
    "delta_public_key": ("deltaPublicKey", "deltaPublicKeyBase64"),
    "sigma_public_key": ("sigmaPublicKey", "sigmaPublicKeyBase64"),
}
SINGLE_SCHEME_FIELDS = ("data", "delta_payload", "delta_signature", "sigma_signature")
IMPLICIT_SCHEME = Scheme.ECDSA_K1

# legacy stanza labels, both historical spellings
LEGACY_LABELS: dict[str, tuple[str, ...]] = {
    "data": ("Result", "Computation Result"),
    "delta_signature": ("Delta Signature", "TEE Signature"),
    "sigma_signature": ("Sigma Signature", "TS Signature"),
    "delta_payload": ("Delta Payload", "Intermediate Payload"),
}
_SECTION_MARKER = re.compile(r"^\s*(?:={3,}|-{3,}).*$")
_LEGACY_LINE = re.compile(
    r"^\s*(?P<label>"
    + "|".join(
        re.escape(label)
        for labels in LEGACY_LABELS.values()
        for label in sorted(labels, key=len, reverse=True)
    )
    + r")\s*(?:\(base64\))?\s*[:=]\s*(?P<value>.*?)\s*$",
    re.IGNORECASE,
)
_LABEL_TO_FIELD = {
    label.lower(): name for name, labels in LEGACY_LABELS.items() for label in labels
}


def _decoded_lines(content: str | bytes):
    """Yield ``(lineno, line)``; undecodable byte lines are warned about and skipped."""
    for lineno, line in enumerate(content.splitlines(), start=1):
        if isinstance(line, bytes):
            try:
                line = line.decode("utf-8")
            except UnicodeDecodeError as exc:
                logger.warning("line %d: skipping line that is not valid UTF-8 (%s)", lineno, exc.reason)
                continue
        yield lineno, line


def _lookup(obj: dict, name: str):
    for key in STRUCTURED_FIELDS[name]:
        value = obj.get(key)
        if value not in (None, ""):
            return value
    return None


def parse_structured_line(line: str, lineno: int, single_scheme: bool = False) -> Run | None:
    """Parse one JSONL line into a Run, or None (with a warning) if unusable."""
    try:
        obj = json.loads(line)
    except json.JSONDecodeError as exc:
        logger.warning("line %d: skipping unparsable JSON (%s)", lineno, exc.msg)
        return None
    if not isinstance(obj, dict):
        logger.warning("line %d: skipping non-object JSON value", lineno)
        return None

    required = SINGLE_SCHEME_FIELDS if single_scheme else tuple(STRUCTURED_FIELDS)
    values = {name: _lookup(obj, name) for name in STRUCTURED_FIELDS}
    missing = [STRUCTURED_FIELDS[name][0] for name in required if values[name] is None]
    if missing:
        logger.warning("line %d: skipping record missing %s", lineno, ", ".join(missing))
        return None
    non_text = [STRUCTURED_FIELDS[n][0] for n, v in values.items() if v is not None and not isinstance(v, str)]
    if non_text:
        logger.warning("line %d: skipping record with non-string %s", lineno, ", ".join(non_text))
        return None

    if single_scheme:
        scheme = IMPLICIT_SCHEME
    else:
        try:
            scheme = Scheme.parse(values["scheme"])
        except ValueError as exc:
            logger.warning("line %d: skipping record: %s", lineno, exc)
            return None

    return Run(
        scheme=scheme,
        data=values["data"],
        delta_payload=values["delta_payload"],
        delta_signature=values["delta_signature"],
        sigma_signature=values["sigma_signature"],
        delta_public_key=None if single_scheme else values["delta_public_key"],
        sigma_public_key=None if single_scheme else values["sigma_public_key"],
        line=lineno,
    )


def parse_structured_log(content: str | bytes, single_scheme: bool = False) -> list[Run]:
    runs = []
    for lineno, line in _decoded_lines(content):
        if not line.strip():
            continue
        run = parse_structured_line(line, lineno, single_scheme=single_scheme)
        if run is not None:
            runs.append(run)
    return runs


def read_structured_log(path: str | Path) -> list[Run]:
    """Read a multi-scheme JSONL log. Missing or empty files yield []."""
    path = Path(path)
    if not path.is_file():
        logger.info("structured log %s not found", path)
        return []
    return parse_structured_log(path.read_bytes())


def read_single_scheme_log(path: str | Path) -> list[Run]:
    """Read the older JSONL variant that carries no scheme or keys."""
    path = Path(path)
    if not path.is_file():
        logger.info("single-scheme log %s not found", path)
        return []
    return parse_structured_log(path.read_bytes(), single_scheme=True)


def _flush_stanza(fields: dict[str, str], start_line: int, runs: list[Run]) -> None:
    if not fields:
        return
    missing = [LEGACY_LABELS[name][0] for name in LEGACY_LABELS if not fields.get(name)]
    if missing:
        logger.warning(
            "stanza at line %d: skipping incomplete stanza missing %s",
            start_line,
            ", ".join(missing),
        )
        return
    runs.append(
        Run(
            scheme=IMPLICIT_SCHEME,
            data=fields["data"],
            delta_payload=fields["delta_payload"],
            delta_signature=fields["delta_signature"],
            sigma_signature=fields["sigma_signature"],
            line=start_line,
        )
    )


def parse_legacy_text(content: str | bytes) -> list[Run]:
    """Scan free-form text for labeled stanzas.

    A stanza ends at a section marker line (``===`` or ``---``) or when a
    label already seen in the current stanza appears again.
    """
    runs: list[Run] = []
    fields: dict[str, str] = {}
    start_line = 1
    for lineno, line in _decoded_lines(content):
        if _SECTION_MARKER.match(line):
            _flush_stanza(fields, start_line, runs)
            fields = {}
            start_line = lineno + 1
            continue
        match = _LEGACY_LINE.match(line)
        if match is None:
            continue
        name = _LABEL_TO_FIELD[match.group("label").lower()]
        if name in fields:
            _flush_stanza(fields, start_line, runs)
            fields = {}
            start_line = lineno
        elif not fields:
            start_line = lineno
        fields[name] = match.group("value")
    _flush_stanza(fields, start_line, runs)
    return runs


def read_legacy_log(path: str | Path) -> list[Run]:
    path = Path(path)
    if not path.is_file():
        logger.info("legacy log %s not found", path)
        return []
    return parse_legacy_text(path.read_bytes())


def load_runs(structured_path: str | Path, legacy_path: str | Path) -> list[Run]:
    """Load runs, preferring the structured log over the legacy text log.

    Raises:
        IngestionError: if neither source yields a single run.
    """
    runs = read_structured_log(structured_path)
    if runs:
        logger.info("loaded %d runs from %s", len(runs), structured_path)
        return runs

    runs = read_legacy_log(legacy_path)
    if runs:
        logger.info("loaded %d runs from legacy log %s", len(runs), legacy_path)
        return runs

    raise IngestionError(
        f"No runs found in {structured_path} or {legacy_path}; "
        "both sources are missing, empty, or entirely malformed"
    )
