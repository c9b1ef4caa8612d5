"""Read-only projections over a finalized set of identity tables."""

from __future__ import annotations

from typing import Protocol

from .models import Diagnostics, FileReport, GlobalInfo, ScenarioStatus, StepRecord
from .status import classify
from .tables import IdentityTables


class ReportView(Protocol):
    """What the reporting layer reads from a parsed report, whatever its format."""

    @property
    def list_all_scenario_by_file(self) -> list[FileReport]: ...

    @property
    def global_information(self) -> GlobalInfo: ...

    @property
    def failed_steps(self) -> list[StepRecord]: ...

    @property
    def undefined_steps(self) -> list[StepRecord]: ...

    @property
    def pending_steps(self) -> list[StepRecord]: ...

    @property
    def diagnostics(self) -> Diagnostics: ...


def scenarios_by_file(tables: IdentityTables) -> list[FileReport]:
    """One entry per feature, listing one status per executed pickle."""

    reports: list[FileReport] = []
    for feature in tables.features:
        statuses: list[ScenarioStatus] = []
        for scenario_id in feature.scenario_ids:
            scenario = tables.scenarios.get(scenario_id)
            if scenario is None:
                continue
            for pickle_id in scenario.pickle_ids:
                pickle = tables.pickles.get(pickle_id)
                if pickle is None:
                    continue
                test_case = tables.test_case_of(pickle)
                status = classify(tables.results_of(test_case))
                statuses.append(ScenarioStatus(name=scenario.name, status=status.value))
        reports.append(FileReport(file=feature.uri, name=feature.name, scenarios=statuses))
    return reports


def steps_by_status(tables: IdentityTables, status: str) -> list[StepRecord]:
    """Steps whose result carries ``status``, skipping those without a known location."""

    records: list[StepRecord] = []
    for step in tables.test_steps.values():
        if step.result is None or step.result.status != status:
            continue
        pickle_step = tables.pickle_step_of(step)
        pickle = tables.pickle_of(pickle_step)
        if pickle_step is None or pickle is None:
            continue
        uri = pickle.uri
        if not uri:
            scenario = tables.scenario_of(pickle)
            uri = scenario.uri if scenario is not None else ""
        records.append(
            StepRecord(
                file=uri,
                line=pickle_step.line,
                title=pickle.name,
                step=pickle_step.text,
                error=step.result.message or "",
            )
        )
    return records


class NdjsonReportView:
    """Projections recomputed on every access from the correlator's tables."""

    def __init__(
        self,
        tables: IdentityTables,
        global_info: GlobalInfo,
        diagnostics: Diagnostics,
    ) -> None:
        self._tables = tables
        self._global_info = global_info
        self._diagnostics = diagnostics

    @property
    def list_all_scenario_by_file(self) -> list[FileReport]:
        return scenarios_by_file(self._tables)

    @property
    def global_information(self) -> GlobalInfo:
        return self._global_info.model_copy()

    @property
    def failed_steps(self) -> list[StepRecord]:
        return steps_by_status(self._tables, "FAILED")

    @property
    def undefined_steps(self) -> list[StepRecord]:
        return steps_by_status(self._tables, "UNDEFINED")

    @property
    def pending_steps(self) -> list[StepRecord]:
        return steps_by_status(self._tables, "PENDING")

    @property
    def diagnostics(self) -> Diagnostics:
        return self._diagnostics.model_copy(deep=True)
