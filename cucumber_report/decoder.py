"""Line-by-line decoding of Cucumber ndjson message streams."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Iterator, Union

import structlog

from .errors import ReportFormatError
from .messages import Envelope

LOGGER = structlog.get_logger("cucumber_report")

MAX_LOGGED_LINE = 200


@dataclass
class DecodeStats:
    lines: int = 0
    decoded: int = 0
    skipped_lines: int = 0


def iter_envelopes(
    report: Union[str, bytes],
    stats: DecodeStats | None = None,
) -> Iterator[Envelope]:
    """Yield one envelope per recognised record of ``report``.

    Blank lines are ignored. A line that is not a JSON object, or that does not
    match the envelope model, is logged and skipped. Envelopes that carry none
    of the four record kinds the correlator handles are dropped silently.
    """

    if isinstance(report, bytes):
        report = report.decode("utf-8", errors="replace")
    if not isinstance(report, str):
        raise ReportFormatError(
            f"ndjson report must be text, got {type(report).__name__}"
        )
    stats = stats if stats is not None else DecodeStats()

    for line_number, line in enumerate(report.split("\n"), start=1):
        if not line.strip():
            continue
        stats.lines += 1
        try:
            payload = json.loads(line)
            if not isinstance(payload, dict):
                raise ValueError(f"expected a JSON object, got {type(payload).__name__}")
            envelope = Envelope.model_validate(payload)
        except ValueError as exc:
            stats.skipped_lines += 1
            LOGGER.warning(
                "record_decode_failed",
                line_number=line_number,
                line=line[:MAX_LOGGED_LINE],
                error=str(exc).splitlines()[0] if str(exc) else type(exc).__name__,
            )
            continue
        stats.decoded += 1
        if envelope.is_known:
            yield envelope
