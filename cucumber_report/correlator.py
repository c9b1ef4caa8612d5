"""Rebuilds the feature / pickle / test step graph from a Cucumber message stream.

Cucumber's ``message`` formatter emits flat envelopes that refer to each other
by id: a ``pickle`` points at the scenario it was compiled from, a
``testCase`` at its pickle and pickle steps, a ``testStepFinished`` at a test
step. :class:`NdjsonCorrelator` applies the envelopes in stream order to a set
of :class:`~cucumber_report.tables.IdentityTables`, keeps step counters up to
date as results arrive, and derives the scenario counters once the stream is
exhausted.
"""

from __future__ import annotations

from typing import Union

import structlog

from . import messages
from .decoder import DecodeStats, iter_envelopes
from .models import Diagnostics, GlobalInfo
from .status import Status, classify
from .tables import (
    Feature,
    IdentityTables,
    Pickle,
    PickleStep,
    Scenario,
    StepDefinition,
    StepResult,
    TestCase,
    TestStep,
)
from .view import NdjsonReportView

LOGGER = structlog.get_logger("cucumber_report")

STEP_COUNTERS: dict[str, str] = {
    "FAILED": "failed_steps_number",
    "PENDING": "pending_step_number",
    "UNDEFINED": "undefined_steps_number",
    "SKIPPED": "skipped_steps_number",
    "PASSED": "succeed_steps_number",
}

SCENARIO_COUNTERS: dict[Status, str] = {
    Status.FAILED: "failed_scenario_number",
    Status.PENDING: "pending_scenario_number",
    Status.UNDEFINED: "undefined_scenario_number",
}


class NdjsonCorrelator:
    """Owns the tables and counters of exactly one report read."""

    def __init__(self) -> None:
        self.tables = IdentityTables()
        self.global_info = GlobalInfo()
        self.diagnostics = Diagnostics()
        self._finalized = False

    def feed(self, envelope: messages.Envelope) -> None:
        """Apply one envelope to the tables."""

        if envelope.gherkin_document is not None:
            self.gherkin_document(envelope.gherkin_document)
        elif envelope.pickle is not None:
            self.pickle(envelope.pickle)
        elif envelope.test_case is not None:
            self.test_case(envelope.test_case)
        elif envelope.test_step_finished is not None:
            self.test_step_finished(envelope.test_step_finished)

    def gherkin_document(self, document: messages.GherkinDocument) -> None:
        feature_node = document.feature
        if feature_node is None:
            LOGGER.debug("gherkin_document_without_feature", uri=document.uri)
            return

        feature = Feature(uri=document.uri, name=feature_node.name, line=feature_node.location.line)
        for child in feature_node.children:
            if child.scenario is None:
                continue
            scenario = Scenario(
                id=child.scenario.id,
                name=child.scenario.name,
                line=child.scenario.location.line,
                uri=document.uri,
            )
            self.tables.scenarios[scenario.id] = scenario
            feature.scenario_ids.append(scenario.id)

        for child in feature_node.children:
            node = child.background or child.scenario
            if node is None:
                continue
            for step in node.steps:
                self.tables.step_definitions[step.id] = StepDefinition(id=step.id, line=step.location.line)

        self.tables.features.append(feature)

    def pickle(self, pickle: messages.Pickle) -> None:
        # Only the first AST node decides the declared scenario; for example
        # rows the second id points at the table row.
        scenario_id = pickle.ast_node_ids[0] if pickle.ast_node_ids else None
        scenario = self.tables.scenarios.get(scenario_id) if scenario_id else None

        record = Pickle(
            id=pickle.id,
            name=pickle.name,
            uri=pickle.uri or (scenario.uri if scenario else ""),
            scenario_id=scenario.id if scenario else None,
        )
        for step in pickle.steps:
            definition_id = step.ast_node_ids[0] if step.ast_node_ids else None
            definition = self.tables.step_definitions.get(definition_id) if definition_id else None
            pickle_step = PickleStep(
                id=step.id,
                text=step.text,
                pickle_id=pickle.id,
                line=definition.line if definition else 0,
            )
            record.step_ids.append(pickle_step.id)
            self.tables.pickle_steps[pickle_step.id] = pickle_step

        if scenario is not None:
            if pickle.id not in scenario.pickle_ids:
                scenario.pickle_ids.append(pickle.id)
        else:
            LOGGER.debug("pickle_scenario_unresolved", pickle_id=pickle.id, ast_node_id=scenario_id)
        self.tables.pickles[pickle.id] = record

    def test_case(self, test_case: messages.TestCase) -> None:
        self.global_info.scenario_number += 1

        record = TestCase(id=test_case.id, pickle_id=test_case.pickle_id)
        for planned in test_case.test_steps:
            pickle_step_id = planned.pickle_step_id
            if pickle_step_id is not None and pickle_step_id not in self.tables.pickle_steps:
                LOGGER.debug(
                    "test_step_pickle_step_unresolved",
                    test_step_id=planned.id,
                    pickle_step_id=pickle_step_id,
                )
                pickle_step_id = None
            step = TestStep(id=planned.id, pickle_step_id=pickle_step_id)
            self.tables.test_steps[step.id] = step
            record.step_ids.append(step.id)

        pickle = self.tables.pickles.get(test_case.pickle_id)
        if pickle is not None:
            pickle.test_case_id = record.id
        self.tables.test_cases[record.id] = record

    def test_step_finished(self, event: messages.TestStepFinished) -> None:
        step = self.tables.test_steps.get(event.test_step_id)
        if step is None:
            self.diagnostics.orphan_results += 1
            LOGGER.debug("test_step_result_orphaned", test_step_id=event.test_step_id)
            return

        result = event.test_step_result
        self.global_info.steps_number += 1
        step.result = StepResult(status=result.status, message=result.message)

        counter = STEP_COUNTERS.get(result.status)
        if counter is None:
            unknown = self.diagnostics.unknown_statuses
            unknown[result.status] = unknown.get(result.status, 0) + 1
            LOGGER.warning("unknown_step_status", status=result.status, test_step_id=step.id)
            return
        setattr(self.global_info, counter, getattr(self.global_info, counter) + 1)

    def finalize(self) -> None:
        """Derive the scenario counters from the completed graph.

        Each declared scenario is classified once, from the test case of the
        first pickle reached through the test steps.
        """

        if self._finalized:
            return
        self._finalized = True

        seen: set[str] = set()
        for step in self.tables.test_steps.values():
            pickle = self.tables.pickle_of(self.tables.pickle_step_of(step))
            if pickle is None or pickle.scenario_id is None or pickle.scenario_id in seen:
                continue
            seen.add(pickle.scenario_id)

            test_case = self.tables.test_case_of(pickle)
            if test_case is None:
                continue
            counter = SCENARIO_COUNTERS.get(classify(self.tables.results_of(test_case)))
            if counter is not None:
                setattr(self.global_info, counter, getattr(self.global_info, counter) + 1)

        info = self.global_info
        info.succeed_scenario_number = max(
            0,
            info.scenario_number
            - info.failed_scenario_number
            - info.pending_scenario_number
            - info.undefined_scenario_number,
        )

    def view(self) -> NdjsonReportView:
        return NdjsonReportView(self.tables, self.global_info, self.diagnostics)


def read_ndjson_report(report: Union[str, bytes]) -> NdjsonReportView:
    """Correlate a complete ndjson message stream and return its report view."""

    correlator = NdjsonCorrelator()
    stats = DecodeStats()
    for envelope in iter_envelopes(report, stats):
        correlator.feed(envelope)
    correlator.diagnostics.skipped_lines = stats.skipped_lines
    correlator.finalize()

    LOGGER.debug(
        "ndjson_report_read",
        lines=stats.lines,
        skipped_lines=stats.skipped_lines,
        features=len(correlator.tables.features),
        test_cases=len(correlator.tables.test_cases),
        steps=correlator.global_info.steps_number,
    )
    return correlator.view()
