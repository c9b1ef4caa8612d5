"""Picks the report reader matching a report file."""

from __future__ import annotations

from typing import Union

from .correlator import read_ndjson_report
from .json_reader import read_json_report
from .view import ReportView


def read_report(file_name: str, report: Union[str, bytes]) -> ReportView:
    """``*.json`` files are JSON report trees, anything else an ndjson message stream."""

    if file_name.endswith(".json"):
        return read_json_report(report)
    return read_ndjson_report(report)
