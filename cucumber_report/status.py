"""Step and scenario status vocabulary shared by both report readers."""

from __future__ import annotations

from enum import Enum
from typing import Iterable, Optional


class Status(str, Enum):
    """Execution status of a scenario as shown in summaries."""

    SUCCESS = "success"
    FAILED = "failed"
    UNDEFINED = "undefined"
    PENDING = "pending"
    SKIPPED = "skipped"


# Highest precedence first. A scan that stops at the first terminal step
# would read a skipped step ahead of a failure as skipped.
PRECEDENCE: tuple[Status, ...] = (
    Status.FAILED,
    Status.UNDEFINED,
    Status.PENDING,
    Status.SKIPPED,
)

STATUS_EMOJI: dict[Status, str] = {
    Status.SUCCESS: "✅",
    Status.FAILED: "❌",
    Status.PENDING: "⌛",
    Status.UNDEFINED: "❓",
    Status.SKIPPED: "⏭️",
}


def to_status(raw: Optional[str]) -> Optional[Status]:
    """Map a reported step status (``FAILED``, ``failed``...) to a terminal Status.

    Returns ``None`` for passing steps and for values outside the known set.
    """

    if not raw:
        return None
    try:
        status = Status(raw.lower())
    except ValueError:
        return None
    return None if status is Status.SUCCESS else status


def classify(raw_statuses: Iterable[Optional[str]]) -> Status:
    """Classify an executed unit from the statuses of its steps.

    Steps without a result are passed as ``None``. ``failed`` beats
    ``undefined`` beats ``pending`` beats ``skipped``; anything else is a
    success.
    """

    seen = {to_status(raw) for raw in raw_statuses}
    for status in PRECEDENCE:
        if status in seen:
            return status
    return Status.SUCCESS


def status_emoji(status: str) -> str:
    try:
        return STATUS_EMOJI[Status(status)]
    except ValueError:
        return "-"
