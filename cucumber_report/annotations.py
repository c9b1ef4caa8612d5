"""Turns a report view into check-run annotations, summary text and output variables."""

from __future__ import annotations

import re
from typing import Optional

from pydantic import BaseModel, Field

from .config import ReportSettings
from .locator import FileLocator
from .models import FileReport, GlobalInfo, StepRecord
from .status import status_emoji
from .view import ReportView

# GitHub accepts at most 50 annotations per check-run request.
MAX_ANNOTATIONS = 49


class Annotation(BaseModel):
    path: str
    start_line: int = 0
    end_line: int = 0
    start_column: int = 0
    end_column: int = 0
    annotation_level: str
    title: str
    message: str


class CheckRunOutput(BaseModel):
    title: str
    summary: str
    annotations: list[Annotation] = Field(default_factory=list)


class CheckRun(BaseModel):
    """Payload of a completed check run, written to disk for publication."""

    name: str
    head_sha: Optional[str] = None
    status: str = "completed"
    conclusion: str
    output: CheckRunOutput


def step_annotation(record: StepRecord, level: str, error_type: str, locator: FileLocator) -> Annotation:
    return Annotation(
        path=locator.resolve(record.file),
        start_line=record.line or 0,
        end_line=record.line or 0,
        annotation_level=level,
        title=f"{record.title} {error_type}",
        message=f"Scenario: {record.title}\nStep: {record.step}\nError: \n{record.error}",
    )


def report_detail_annotation(file_report: FileReport, locator: FileLocator) -> Annotation:
    message = "\n".join(
        f"{status_emoji(scenario.status)} Scenario: {scenario.name}" for scenario in file_report.scenarios
    )
    return Annotation(
        path=locator.resolve(file_report.file),
        annotation_level="notice",
        title=f"Feature: {file_report.name} Report",
        message=message,
    )


def build_annotations(view: ReportView, settings: ReportSettings, locator: FileLocator) -> list[Annotation]:
    """Failed steps always; undefined and pending steps only when a level is configured."""

    annotations = [
        step_annotation(record, settings.annotation_status_on_error, "Failed", locator)
        for record in view.failed_steps
    ]
    if settings.annotation_status_on_undefined:
        annotations.extend(
            step_annotation(record, settings.annotation_status_on_undefined, "Undefined", locator)
            for record in view.undefined_steps
        )
    if settings.annotation_status_on_pending:
        annotations.extend(
            step_annotation(record, settings.annotation_status_on_pending, "Pending", locator)
            for record in view.pending_steps
        )
    return annotations[:MAX_ANNOTATIONS]


def build_summary_annotations(view: ReportView, locator: FileLocator) -> list[Annotation]:
    return [report_detail_annotation(file_report, locator) for file_report in view.list_all_scenario_by_file]


def scenario_summary(info: GlobalInfo) -> dict[str, int]:
    return {
        "failed": info.failed_scenario_number,
        "undefined": info.undefined_scenario_number,
        "pending": info.pending_scenario_number,
        "passed": info.succeed_scenario_number,
    }


def step_summary(info: GlobalInfo) -> dict[str, int]:
    return {
        "failed": info.failed_steps_number,
        "undefined": info.undefined_steps_number,
        "skipped": info.skipped_steps_number,
        "pending": info.pending_step_number,
        "passed": info.succeed_steps_number,
    }


def summary_line(item_number: int, item_type: str, counts: dict[str, int]) -> str:
    """``    3 Scenarios (1 failed, 2 passed)`` with empty buckets left out."""

    details = ", ".join(f"{count} {key}" for key, count in counts.items() if count > 0)
    return f"    {item_number} {item_type} ({details})"


def summary_text(info: GlobalInfo) -> str:
    return "\n".join(
        [
            summary_line(info.scenario_number, "Scenarios", scenario_summary(info)),
            summary_line(info.steps_number, "Steps", step_summary(info)),
        ]
    )


def report_output_name(file_name: str) -> str:
    """Output variable prefix for a report file: whitespace to ``_``, ``.json`` dropped."""

    return re.sub(r"\.json$", "", re.sub(r"\s+", "_", file_name))


def output_variables(report_name: str, info: GlobalInfo) -> dict[str, int]:
    variables = {f"{report_name}_{kind}_scenarios": count for kind, count in scenario_summary(info).items()}
    variables.update({f"{report_name}_{kind}_steps": count for kind, count in step_summary(info).items()})
    return variables


def check_conclusion(info: GlobalInfo, settings: ReportSettings) -> str:
    """First configured non-success status among failed, undefined, pending wins."""

    if info.failed_scenario_number > 0 and settings.check_status_on_error != "success":
        return settings.check_status_on_error
    if info.undefined_steps_number > 0 and settings.check_status_on_undefined != "success":
        return settings.check_status_on_undefined
    if info.pending_step_number > 0 and settings.check_status_on_pending != "success":
        return settings.check_status_on_pending
    return "success"


def check_title(info: GlobalInfo, settings: ReportSettings) -> str:
    errors = info.failed_scenario_number
    if settings.show_number_of_error_on_check_title and errors > 0:
        return f"{settings.name} ({errors} error{'s' if errors > 1 else ''})"
    return settings.name
