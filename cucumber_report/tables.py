"""Entity records and the id-keyed tables the correlator fills in.

Entities never hold references to each other, only ids; lookups go through
:class:`IdentityTables` so a missing id simply resolves to ``None``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class Feature:
    uri: str
    name: str
    line: int
    scenario_ids: list[str] = field(default_factory=list)


@dataclass
class Scenario:
    id: str
    name: str
    line: int
    uri: str
    pickle_ids: list[str] = field(default_factory=list)


@dataclass
class StepDefinition:
    id: str
    line: int


@dataclass
class Pickle:
    id: str
    name: str
    uri: str
    scenario_id: Optional[str]
    step_ids: list[str] = field(default_factory=list)
    test_case_id: Optional[str] = None


@dataclass
class PickleStep:
    id: str
    text: str
    pickle_id: str
    line: int = 0


@dataclass
class TestCase:
    id: str
    pickle_id: str
    step_ids: list[str] = field(default_factory=list)


@dataclass
class StepResult:
    status: str
    message: Optional[str] = None


@dataclass
class TestStep:
    id: str
    pickle_step_id: Optional[str]
    result: Optional[StepResult] = None


@dataclass
class IdentityTables:
    """All entities of one report read, each kind in its own mapping."""

    features: list[Feature] = field(default_factory=list)
    scenarios: dict[str, Scenario] = field(default_factory=dict)
    step_definitions: dict[str, StepDefinition] = field(default_factory=dict)
    pickles: dict[str, Pickle] = field(default_factory=dict)
    pickle_steps: dict[str, PickleStep] = field(default_factory=dict)
    test_cases: dict[str, TestCase] = field(default_factory=dict)
    test_steps: dict[str, TestStep] = field(default_factory=dict)

    def pickle_step_of(self, step: TestStep) -> Optional[PickleStep]:
        if step.pickle_step_id is None:
            return None
        return self.pickle_steps.get(step.pickle_step_id)

    def pickle_of(self, pickle_step: Optional[PickleStep]) -> Optional[Pickle]:
        if pickle_step is None:
            return None
        return self.pickles.get(pickle_step.pickle_id)

    def scenario_of(self, pickle: Optional[Pickle]) -> Optional[Scenario]:
        if pickle is None or pickle.scenario_id is None:
            return None
        return self.scenarios.get(pickle.scenario_id)

    def test_case_of(self, pickle: Pickle) -> Optional[TestCase]:
        if pickle.test_case_id is None:
            return None
        return self.test_cases.get(pickle.test_case_id)

    def results_of(self, test_case: Optional[TestCase]) -> list[Optional[str]]:
        """Result statuses of a test case's steps in planned order, ``None`` when not finished."""

        if test_case is None:
            return []
        statuses: list[Optional[str]] = []
        for step_id in test_case.step_ids:
            step = self.test_steps.get(step_id)
            statuses.append(step.result.status if step is not None and step.result else None)
        return statuses
