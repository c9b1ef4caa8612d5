"""Reader for the nested ``cucumber-js --format json`` report tree."""

from __future__ import annotations

from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from .errors import ReportFormatError
from .models import Diagnostics, FileReport, GlobalInfo, ScenarioStatus, StepRecord
from .status import classify


class _Node(BaseModel):
    model_config = ConfigDict(extra="ignore")


class JsonStepResult(_Node):
    status: str = ""
    error_message: Optional[str] = None


class JsonStep(_Node):
    name: str = ""
    keyword: str = ""
    line: int = 0
    result: Optional[JsonStepResult] = None


class JsonElement(_Node):
    name: str = ""
    type: str = ""
    line: int = 0
    before: list[JsonStep] = Field(default_factory=list)
    after: list[JsonStep] = Field(default_factory=list)
    steps: list[JsonStep] = Field(default_factory=list)

    @property
    def all_steps(self) -> list[JsonStep]:
        return [*self.before, *self.after, *self.steps]

    def steps_with_status(self, status: str) -> list[JsonStep]:
        return [step for step in self.all_steps if step.result and step.result.status == status]

    def has_status(self, status: str) -> bool:
        return bool(self.steps_with_status(status))

    @property
    def status(self) -> str:
        return classify(step.result.status if step.result else None for step in self.all_steps).value


class JsonFeature(_Node):
    uri: str = ""
    name: str = ""
    elements: list[JsonElement] = Field(default_factory=list)

    @property
    def scenarios(self) -> list[JsonElement]:
        return [element for element in self.elements if element.type == "scenario"]


_REPORT_ADAPTER = TypeAdapter(list[JsonFeature])


def _feature_info(feature: JsonFeature) -> GlobalInfo:
    scenarios = feature.scenarios
    failed = sum(1 for scenario in scenarios if scenario.has_status("failed"))
    undefined = sum(1 for scenario in scenarios if scenario.has_status("undefined"))
    pending = sum(1 for scenario in scenarios if scenario.has_status("pending"))

    def count(status: str) -> int:
        return sum(len(scenario.steps_with_status(status)) for scenario in scenarios)

    total_steps = sum(len(scenario.steps) for scenario in scenarios)
    failed_steps = count("failed")
    skipped_steps = count("skipped")
    undefined_steps = count("undefined")
    pending_steps = count("pending")

    return GlobalInfo(
        scenario_number=len(scenarios),
        failed_scenario_number=failed,
        undefined_scenario_number=undefined,
        pending_scenario_number=pending,
        succeed_scenario_number=max(0, len(scenarios) - failed - undefined - pending),
        steps_number=total_steps,
        failed_steps_number=failed_steps,
        skipped_steps_number=skipped_steps,
        undefined_steps_number=undefined_steps,
        pending_step_number=pending_steps,
        succeed_steps_number=max(
            0, total_steps - failed_steps - skipped_steps - undefined_steps - pending_steps
        ),
    )


class JsonReportView:
    """Report view over a parsed JSON tree; projections are recomputed per access."""

    def __init__(self, features: list[JsonFeature]) -> None:
        self._features = features

    @property
    def list_all_scenario_by_file(self) -> list[FileReport]:
        return [
            FileReport(
                file=feature.uri,
                name=feature.name,
                scenarios=[
                    ScenarioStatus(name=scenario.name, status=scenario.status)
                    for scenario in feature.scenarios
                ],
            )
            for feature in self._features
        ]

    @property
    def global_information(self) -> GlobalInfo:
        info = GlobalInfo()
        for feature in self._features:
            info = info.combine(_feature_info(feature))
        return info

    @property
    def failed_steps(self) -> list[StepRecord]:
        return self._first_steps("failed")

    @property
    def undefined_steps(self) -> list[StepRecord]:
        return self._first_steps("undefined")

    @property
    def pending_steps(self) -> list[StepRecord]:
        return self._first_steps("pending")

    @property
    def diagnostics(self) -> Diagnostics:
        return Diagnostics()

    def _first_steps(self, status: str) -> list[StepRecord]:
        """One record per scenario: its first step with ``status``."""

        records: list[StepRecord] = []
        for feature in self._features:
            for scenario in feature.scenarios:
                matching = scenario.steps_with_status(status)
                if not matching:
                    continue
                step = matching[0]
                records.append(
                    StepRecord(
                        file=feature.uri,
                        line=step.line,
                        title=scenario.name,
                        step=step.name,
                        error=(step.result.error_message if step.result else None) or "",
                    )
                )
        return records


def read_json_report(report: Union[str, bytes]) -> JsonReportView:
    """Parse a JSON report tree; anything but an array of features is rejected."""

    try:
        features = _REPORT_ADAPTER.validate_json(report)
    except ValidationError as exc:
        raise ReportFormatError(f"JSON report is not a list of features: {exc.error_count()} error(s)") from exc
    return JsonReportView(features)
