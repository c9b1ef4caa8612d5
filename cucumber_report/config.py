"""Settings of the report CLI, loadable from a YAML/JSON file and overridable per option."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Literal, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

CheckConclusion = Literal["success", "neutral", "failure", "cancelled", "timed_out", "action_required"]
AnnotationLevel = Literal["notice", "warning", "failure"]

DEFAULT_OUTPUT_DIR = Path("artifacts/cucumber-report")


class SettingsError(ValueError):
    """Raised when a settings file cannot be turned into ReportSettings."""


class ReportSettings(BaseModel):
    """Inputs of one CLI run. Keys accept both ``snake_case`` and the action's ``kebab-case``."""

    model_config = ConfigDict(extra="forbid")

    path: str
    name: str = "Cucumber report"
    workspace: Path = Field(default_factory=Path.cwd)
    check_status_on_error: CheckConclusion = "success"
    check_status_on_undefined: CheckConclusion = "success"
    check_status_on_pending: CheckConclusion = "success"
    annotation_status_on_error: AnnotationLevel = "failure"
    annotation_status_on_undefined: Optional[AnnotationLevel] = None
    annotation_status_on_pending: Optional[AnnotationLevel] = None
    show_number_of_error_on_check_title: bool = True
    number_of_test_error_to_fail_job: int = -1
    show_global_summary_report: bool = False
    output_dir: Path = DEFAULT_OUTPUT_DIR

    @field_validator("annotation_status_on_undefined", "annotation_status_on_pending", mode="before")
    @classmethod
    def _blank_is_unset(cls, value: Any) -> Any:
        # action inputs arrive as empty strings when not configured
        if isinstance(value, str) and not value.strip():
            return None
        return value


def _normalize_keys(payload: dict[str, Any]) -> dict[str, Any]:
    return {str(key).replace("-", "_"): value for key, value in payload.items()}


def _load_file(config_path: Path) -> dict[str, Any]:
    if not config_path.exists():
        raise SettingsError(f"Settings file {config_path} does not exist")
    text = config_path.read_text(encoding="utf-8")
    try:
        if config_path.suffix.lower() == ".json":
            payload = json.loads(text)
        else:
            payload = yaml.safe_load(text) or {}
    except (ValueError, yaml.YAMLError) as exc:
        raise SettingsError(f"Settings file {config_path} is not valid: {exc}") from exc
    if not isinstance(payload, dict):
        raise SettingsError("Settings file must deserialize into a mapping")
    return _normalize_keys(payload)


def load_settings(config_path: Optional[Path] = None, **overrides: Any) -> ReportSettings:
    """Build settings from an optional file; overrides that are not ``None`` win."""

    payload = _load_file(config_path) if config_path is not None else {}
    payload.update({key: value for key, value in _normalize_keys(overrides).items() if value is not None})
    try:
        return ReportSettings.model_validate(payload)
    except ValidationError as exc:
        raise SettingsError(str(exc)) from exc
