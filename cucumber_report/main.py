"""Entry point for the cucumber-report CLI."""

from __future__ import annotations

import glob
import json
import os
import sys
from pathlib import Path
from typing import Optional

import structlog
import typer

if __package__ in {None, ""}:
    sys.path.append(str(Path(__file__).resolve().parents[1]))
    __package__ = "cucumber_report"

from .annotations import (
    CheckRun,
    CheckRunOutput,
    build_annotations,
    build_summary_annotations,
    check_conclusion,
    check_title,
    output_variables,
    report_output_name,
    summary_text,
)
from .config import ReportSettings, SettingsError, load_settings
from .console_reporter import ConsoleReporter
from .errors import ReportFormatError
from .locator import FileLocator
from .logging_utils import configure_logging
from .output_config import get_log_format, get_output_format
from .readers import read_report

app = typer.Typer(help="Summarize Cucumber reports into check-run annotations and action outputs.")

LOGGER = structlog.get_logger("cucumber_report")


def _find_reports(settings: ReportSettings) -> list[Path]:
    """Match every newline separated glob of ``settings.path``, keeping the first hit of each file."""

    found: dict[Path, None] = {}
    for pattern in settings.path.splitlines():
        pattern = pattern.strip()
        if not pattern:
            continue
        if not Path(pattern).is_absolute():
            pattern = os.path.join(glob.escape(str(settings.workspace)), pattern)
        for match in sorted(glob.glob(pattern, recursive=True)):
            if Path(match).is_file():
                found.setdefault(Path(match), None)
    return list(found)


def _head_sha() -> Optional[str]:
    """Head commit of the pull request when running for one, else the workflow commit."""

    event_path = os.environ.get("GITHUB_EVENT_PATH")
    if event_path and Path(event_path).is_file():
        try:
            event = json.loads(Path(event_path).read_text(encoding="utf-8"))
        except ValueError:
            LOGGER.warning("github_event_unreadable", path=event_path)
            event = {}
        sha = ((event.get("pull_request") or {}).get("head") or {}).get("sha")
        if sha:
            return sha
    return os.environ.get("GITHUB_SHA")


def _publish_outputs(variables: dict[str, int]) -> None:
    output_file = os.environ.get("GITHUB_OUTPUT")
    for key, value in variables.items():
        LOGGER.debug("output_set", key=key, value=value)
    if not output_file:
        return
    with open(output_file, "a", encoding="utf-8") as fp:
        for key, value in variables.items():
            fp.write(f"{key}={value}\n")


def _write_step_summary(title: str, summary: str) -> None:
    summary_file = os.environ.get("GITHUB_STEP_SUMMARY")
    if not summary_file:
        return
    with open(summary_file, "a", encoding="utf-8") as fp:
        fp.write(f"#### {title}\n\n{summary}\n")


def _write_json(destination: Path, payload: str) -> Path:
    destination.parent.mkdir(parents=True, exist_ok=True)
    destination.write_text(payload, encoding="utf-8")
    return destination


def process_report(
    report_file: Path,
    settings: ReportSettings,
    locator: FileLocator,
    reporter: ConsoleReporter,
) -> bool:
    """Summarize one report file. Returns True when it crosses the job failure threshold."""

    logger = LOGGER.bind(report=str(report_file))
    logger.info("report_processing")

    view = read_report(report_file.name, report_file.read_text(encoding="utf-8", errors="replace"))
    info = view.global_information
    report_name = report_output_name(report_file.name)

    _publish_outputs(output_variables(report_name, info))
    summary = summary_text(info)
    annotations = build_annotations(view, settings, locator)
    title = check_title(info, settings)
    conclusion = check_conclusion(info, settings)

    diagnostics = view.diagnostics
    if diagnostics.skipped_lines or diagnostics.orphan_results or diagnostics.unknown_statuses:
        logger.warning("report_input_tolerated", **diagnostics.model_dump())

    logger.info("summary_created", conclusion=conclusion, annotations=len(annotations))
    _write_step_summary(title, summary)

    check_run = CheckRun(
        name=settings.name,
        head_sha=_head_sha(),
        conclusion=conclusion,
        output=CheckRunOutput(title=title, summary=summary, annotations=annotations),
    )
    check_file = _write_json(settings.output_dir / f"{report_name}.check.json", check_run.model_dump_json(indent=2))
    logger.info("check_run_written", path=str(check_file))

    if settings.show_global_summary_report:
        summary_output = CheckRunOutput(
            title=title,
            summary=summary,
            annotations=build_summary_annotations(view, locator),
        )
        summary_file = _write_json(
            settings.output_dir / f"{report_name}.summary.json", summary_output.model_dump_json(indent=2)
        )
        logger.info("global_summary_written", path=str(summary_file))

    reporter.report_summary(
        report_file=str(report_file),
        title=title,
        info=info,
        conclusion=conclusion,
        summary=summary,
        failures=view.failed_steps,
        files=view.list_all_scenario_by_file,
    )

    threshold = settings.number_of_test_error_to_fail_job
    return threshold != -1 and len(annotations) >= threshold


@app.command()
def summarize(
    path: Optional[str] = typer.Option(None, envvar="INPUT_PATH", help="Glob of Cucumber report files."),
    name: Optional[str] = typer.Option(None, envvar="INPUT_NAME", help="Name of the check run."),
    workspace: Optional[Path] = typer.Option(
        None,
        envvar="GITHUB_WORKSPACE",
        help="Repository root used for report globs and annotation paths.",
    ),
    config: Optional[Path] = typer.Option(None, "--config", help="Optional YAML/JSON settings file."),
    check_status_on_error: Optional[str] = typer.Option(None, envvar="INPUT_CHECK-STATUS-ON-ERROR"),
    check_status_on_undefined: Optional[str] = typer.Option(None, envvar="INPUT_CHECK-STATUS-ON-UNDEFINED"),
    check_status_on_pending: Optional[str] = typer.Option(None, envvar="INPUT_CHECK-STATUS-ON-PENDING"),
    annotation_status_on_error: Optional[str] = typer.Option(None, envvar="INPUT_ANNOTATION-STATUS-ON-ERROR"),
    annotation_status_on_undefined: Optional[str] = typer.Option(
        None, envvar="INPUT_ANNOTATION-STATUS-ON-UNDEFINED"
    ),
    annotation_status_on_pending: Optional[str] = typer.Option(None, envvar="INPUT_ANNOTATION-STATUS-ON-PENDING"),
    show_number_of_error_on_check_title: Optional[bool] = typer.Option(
        None,
        "--show-number-of-error-on-check-title/--hide-number-of-error-on-check-title",
        envvar="INPUT_SHOW-NUMBER-OF-ERROR-ON-CHECK-TITLE",
    ),
    number_of_test_error_to_fail_job: Optional[int] = typer.Option(
        None,
        envvar="INPUT_NUMBER-OF-TEST-ERROR-TO-FAIL-JOB",
        help="Fail when a report yields at least this many annotations (-1 disables).",
    ),
    show_global_summary_report: Optional[bool] = typer.Option(
        None,
        "--show-global-summary-report/--no-global-summary-report",
        envvar="INPUT_SHOW-GLOBAL-SUMMARY-REPORT",
    ),
    output_dir: Optional[Path] = typer.Option(None, help="Directory receiving check-run payloads."),
    output_format: Optional[str] = typer.Option(
        None,
        "--output-format",
        help="Console format: auto, rich, plain or json (env CONSOLE_OUTPUT_FORMAT).",
    ),
    log_level: str = typer.Option("INFO", envvar="CUCUMBER_REPORT_LOG_LEVEL", help="Log level."),
) -> None:
    """Read every report matching --path and write one check-run payload per report."""

    console_format = get_output_format(output_format)
    configure_logging(log_level, get_log_format(console_format))
    reporter = ConsoleReporter(output_format=console_format)

    try:
        settings = load_settings(
            config,
            path=path,
            name=name,
            workspace=workspace,
            check_status_on_error=check_status_on_error,
            check_status_on_undefined=check_status_on_undefined,
            check_status_on_pending=check_status_on_pending,
            annotation_status_on_error=annotation_status_on_error,
            annotation_status_on_undefined=annotation_status_on_undefined,
            annotation_status_on_pending=annotation_status_on_pending,
            show_number_of_error_on_check_title=show_number_of_error_on_check_title,
            number_of_test_error_to_fail_job=number_of_test_error_to_fail_job,
            show_global_summary_report=show_global_summary_report,
            output_dir=output_dir,
        )
    except SettingsError as exc:
        raise typer.BadParameter(str(exc)) from exc

    reports = _find_reports(settings)
    LOGGER.info("reports_found", path=settings.path, count=len(reports))
    if not reports:
        reporter.print_info(f"No Cucumber report matches {settings.path}")
        return

    locator = FileLocator(settings.workspace)
    failed = False
    for report_file in reports:
        try:
            failed = process_report(report_file, settings, locator, reporter) or failed
        except ReportFormatError as exc:
            LOGGER.error("report_read_failed", report=str(report_file), error=str(exc))
            reporter.print_error(f"{report_file}: {exc}")
            failed = True

    if failed:
        raise typer.Exit(code=1)


def run() -> None:
    """CLI entry point for console_scripts."""

    app()


if __name__ == "__main__":  # pragma: no cover
    run()
