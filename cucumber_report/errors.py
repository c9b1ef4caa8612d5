"""Exceptions raised by the report readers."""

from __future__ import annotations


class ReportFormatError(ValueError):
    """Raised when a report is structurally unusable and no partial result exists."""
