"""Pydantic models for the subset of Cucumber messages the correlator reads.

Only the fields used downstream are declared; everything else in an envelope
is ignored so newer message schema versions keep decoding.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel


class Message(BaseModel):
    """Base model accepting the camelCase keys emitted by Cucumber."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    @field_validator("*", mode="before")
    @classmethod
    def _null_as_default(cls, value: Any, info: ValidationInfo) -> Any:
        # Cucumber writers emit null for absent optional values; ids stay required.
        if value is not None or info.field_name is None:
            return value
        field = cls.model_fields[info.field_name]
        if field.is_required():
            return value
        return field.get_default(call_default_factory=True)


class Location(Message):
    line: int = 0
    column: Optional[int] = None


class GherkinStep(Message):
    id: str
    text: str = ""
    keyword: str = ""
    location: Location = Field(default_factory=Location)


class GherkinScenario(Message):
    id: str
    name: str = ""
    keyword: str = ""
    location: Location = Field(default_factory=Location)
    steps: list[GherkinStep] = Field(default_factory=list)


class GherkinBackground(Message):
    id: str = ""
    name: str = ""
    location: Location = Field(default_factory=Location)
    steps: list[GherkinStep] = Field(default_factory=list)


class FeatureChild(Message):
    """One child node of a feature; at most one of the fields is set."""

    background: Optional[GherkinBackground] = None
    scenario: Optional[GherkinScenario] = None


class GherkinFeature(Message):
    name: str = ""
    location: Location = Field(default_factory=Location)
    children: list[FeatureChild] = Field(default_factory=list)


class GherkinDocument(Message):
    uri: str = ""
    feature: Optional[GherkinFeature] = None


class PickleStep(Message):
    id: str
    text: str = ""
    ast_node_ids: list[str] = Field(default_factory=list)


class Pickle(Message):
    id: str
    uri: str = ""
    name: str = ""
    ast_node_ids: list[str] = Field(default_factory=list)
    steps: list[PickleStep] = Field(default_factory=list)


class PlannedTestStep(Message):
    """A test step slot; hook steps carry ``hook_id`` instead of ``pickle_step_id``."""

    id: str
    pickle_step_id: Optional[str] = None
    hook_id: Optional[str] = None


class TestCase(Message):
    id: str
    pickle_id: str = ""
    test_steps: list[PlannedTestStep] = Field(default_factory=list)


class TestStepResult(Message):
    status: str = "UNKNOWN"
    message: Optional[str] = None


class TestStepFinished(Message):
    test_step_id: str
    test_case_started_id: Optional[str] = None
    test_step_result: TestStepResult = Field(default_factory=TestStepResult)


class Envelope(Message):
    """A decoded ndjson record. Records with none of these fields are ignored."""

    gherkin_document: Optional[GherkinDocument] = None
    pickle: Optional[Pickle] = None
    test_case: Optional[TestCase] = None
    test_step_finished: Optional[TestStepFinished] = None

    @property
    def is_known(self) -> bool:
        return any(
            value is not None
            for value in (self.gherkin_document, self.pickle, self.test_case, self.test_step_finished)
        )
