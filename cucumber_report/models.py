"""Pydantic models exposed by the report readers."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class GlobalInfo(BaseModel):
    """Scenario and step counters of one report.

    Serialized with the camelCase names used by the action outputs
    (``scenarioNumber``, ``pendingStepNumber``...).
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    scenario_number: int = 0
    failed_scenario_number: int = 0
    pending_scenario_number: int = 0
    undefined_scenario_number: int = 0
    succeed_scenario_number: int = 0
    steps_number: int = 0
    failed_steps_number: int = 0
    skipped_steps_number: int = 0
    undefined_steps_number: int = 0
    succeed_steps_number: int = 0
    pending_step_number: int = 0

    def combine(self, other: "GlobalInfo") -> "GlobalInfo":
        """Return the field-wise sum of two counter sets."""

        return GlobalInfo(
            **{name: getattr(self, name) + getattr(other, name) for name in GlobalInfo.model_fields}
        )


class StepRecord(BaseModel):
    """A failed, undefined or pending step ready to become an annotation."""

    file: str
    line: int = 0
    title: str
    step: str
    error: str = ""


class ScenarioStatus(BaseModel):
    name: str
    status: str


class FileReport(BaseModel):
    """Scenarios of one feature file with their execution status."""

    file: str
    name: str
    scenarios: list[ScenarioStatus] = Field(default_factory=list)


class Diagnostics(BaseModel):
    """Input problems that were tolerated while reading a report."""

    skipped_lines: int = 0
    orphan_results: int = 0
    unknown_statuses: dict[str, int] = Field(default_factory=dict)
