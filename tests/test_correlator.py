from __future__ import annotations

import pytest

from cucumber_report.correlator import NdjsonCorrelator, read_ndjson_report
from cucumber_report.decoder import iter_envelopes
from cucumber_report.errors import ReportFormatError
from cucumber_report.models import GlobalInfo, StepRecord
from message_builders import (
    FEATURE_URI,
    background_node,
    gherkin_document,
    login_failure_stream,
    ndjson,
    pickle,
    planned_test_case,
    scenario_node,
    single_scenario_stream,
    step_finished,
    step_node,
)


def _step_buckets(info: GlobalInfo) -> int:
    return (
        info.failed_steps_number
        + info.skipped_steps_number
        + info.undefined_steps_number
        + info.pending_step_number
        + info.succeed_steps_number
    )


def _outline_stream() -> list:
    """Scenario outline "Valid user" with two example rows plus a passing "Logout" scenario."""

    return [
        gherkin_document(
            [
                background_node("bg", [step_node("bg1", "the login page", 2)]),
                scenario_node("s1", "Valid user", 4, [step_node("st1", "<user> logs in", 5)]),
                scenario_node("s2", "Logout", 10, [step_node("st2", "the user logs out", 11)]),
            ]
        ),
        pickle("p1", "Valid user", ["s1", "row1"], [("p1-bg", "the login page", "bg1"), ("p1-1", "alice logs in", "st1")]),
        pickle("p2", "Valid user", ["s1", "row2"], [("p2-bg", "the login page", "bg1"), ("p2-1", "bob logs in", "st1")]),
        pickle("p3", "Logout", ["s2"], [("p3-1", "the user logs out", "st2")]),
        planned_test_case("tc1", "p1", [("ts1a", "p1-bg"), ("ts1b", "p1-1")]),
        planned_test_case("tc2", "p2", [("ts2a", "p2-bg"), ("ts2b", "p2-1")]),
        planned_test_case("tc3", "p3", [("ts3a", "p3-1")]),
        step_finished("ts1a", "PASSED"),
        step_finished("ts1b", "PASSED"),
        step_finished("ts2a", "PASSED"),
        step_finished("ts2b", "FAILED", "bob is locked"),
        step_finished("ts3a", "PASSED"),
    ]


def test_failed_login_end_to_end() -> None:
    view = read_ndjson_report(ndjson(*login_failure_stream()))
    info = view.global_information

    assert info.scenario_number == 1
    assert info.failed_scenario_number == 1
    assert info.succeed_scenario_number == 0
    assert info.steps_number == 1
    assert info.failed_steps_number == 1
    assert view.failed_steps == [
        StepRecord(file=FEATURE_URI, line=4, title="Valid user", step="the user logs in", error="boom")
    ]
    assert view.undefined_steps == []
    assert view.pending_steps == []

    listing = view.list_all_scenario_by_file
    assert len(listing) == 1
    assert listing[0].file == FEATURE_URI
    assert listing[0].name == "Login"
    assert [(entry.name, entry.status) for entry in listing[0].scenarios] == [("Valid user", "failed")]


def test_global_information_serializes_with_camel_case_names() -> None:
    info = read_ndjson_report(ndjson(*login_failure_stream())).global_information
    payload = info.model_dump(by_alias=True)

    assert payload["scenarioNumber"] == 1
    assert payload["failedStepsNumber"] == 1
    assert payload["pendingStepNumber"] == 0
    assert len(payload) == 11


@pytest.mark.parametrize(
    ("statuses", "expected"),
    [
        (["SKIPPED", "FAILED"], "failed"),
        (["FAILED", "SKIPPED"], "failed"),
        (["SKIPPED", "PASSED"], "skipped"),
        (["PASSED", "PENDING", "UNDEFINED"], "undefined"),
        (["PASSED", "PASSED"], "success"),
        ([None, None], "success"),
    ],
)
def test_scenario_status_precedence(statuses: list, expected: str) -> None:
    view = read_ndjson_report(ndjson(*single_scenario_stream(statuses)))

    assert view.list_all_scenario_by_file[0].scenarios[0].status == expected


def test_skipped_scenario_counts_as_succeeded_scenario() -> None:
    info = read_ndjson_report(ndjson(*single_scenario_stream(["SKIPPED", "PASSED"]))).global_information

    assert info.failed_scenario_number == 0
    assert info.pending_scenario_number == 0
    assert info.undefined_scenario_number == 0
    assert info.succeed_scenario_number == 1
    assert info.skipped_steps_number == 1
    assert info.succeed_steps_number == 1


def test_step_buckets_and_scenario_rollup_are_consistent() -> None:
    info = read_ndjson_report(ndjson(*_outline_stream())).global_information

    assert info.steps_number == 5
    assert _step_buckets(info) == info.steps_number
    assert info.succeed_scenario_number == max(
        0,
        info.scenario_number
        - info.failed_scenario_number
        - info.pending_scenario_number
        - info.undefined_scenario_number,
    )


def test_outline_lists_every_pickle_but_rolls_up_each_scenario_once() -> None:
    view = read_ndjson_report(ndjson(*_outline_stream()))
    info = view.global_information

    # one test case per pickle
    assert info.scenario_number == 3
    # the declared outline is classified from its first pickle, which passed
    assert info.failed_scenario_number == 0
    assert info.succeed_scenario_number == 3

    scenarios = view.list_all_scenario_by_file[0].scenarios
    assert [(entry.name, entry.status) for entry in scenarios] == [
        ("Valid user", "success"),
        ("Valid user", "failed"),
        ("Logout", "success"),
    ]
    assert view.failed_steps == [
        StepRecord(file=FEATURE_URI, line=5, title="Valid user", step="bob logs in", error="bob is locked")
    ]


def test_background_steps_resolve_their_declared_line() -> None:
    stream = _outline_stream()
    stream[-5] = step_finished("ts1a", "PENDING")
    view = read_ndjson_report(ndjson(*stream))

    assert view.pending_steps == [
        StepRecord(file=FEATURE_URI, line=2, title="Valid user", step="the login page", error="")
    ]


def test_reading_twice_yields_identical_views() -> None:
    report = ndjson(*_outline_stream())
    first = read_ndjson_report(report)
    second = read_ndjson_report(report)

    assert first.global_information == second.global_information
    assert first.list_all_scenario_by_file == second.list_all_scenario_by_file
    assert first.failed_steps == second.failed_steps
    assert first.diagnostics == second.diagnostics


def test_orphan_step_result_changes_nothing() -> None:
    baseline = read_ndjson_report(ndjson(*login_failure_stream()))
    with_orphan = read_ndjson_report(ndjson(*login_failure_stream(), step_finished("missing", "FAILED", "ghost")))

    assert with_orphan.global_information == baseline.global_information
    assert with_orphan.failed_steps == baseline.failed_steps
    assert with_orphan.diagnostics.orphan_results == 1


def test_malformed_line_is_skipped() -> None:
    stream = login_failure_stream()
    clean = read_ndjson_report(ndjson(*stream))
    corrupted = read_ndjson_report(ndjson(*stream[:2], '{"pickle": {"id": ', *stream[2:]))

    assert corrupted.global_information == clean.global_information
    assert corrupted.failed_steps == clean.failed_steps
    assert corrupted.diagnostics.skipped_lines == 1
    assert clean.diagnostics.skipped_lines == 0


def test_unknown_status_is_counted_as_step_but_reported_in_diagnostics() -> None:
    view = read_ndjson_report(ndjson(*single_scenario_stream(["PASSED", "AMBIGUOUS"])))
    info = view.global_information

    assert info.steps_number == 2
    assert _step_buckets(info) == 1
    assert view.diagnostics.unknown_statuses == {"AMBIGUOUS": 1}


def test_hook_steps_count_but_are_not_annotated() -> None:
    stream = [
        gherkin_document([scenario_node("s1", "Valid user", 3, [step_node("st1", "the user logs in", 4)])]),
        pickle("p1", "Valid user", ["s1"], [("ps1", "the user logs in", "st1")]),
        planned_test_case("tc1", "p1", [("hook1", None), ("ts1", "ps1")]),
        step_finished("hook1", "FAILED", "database down"),
        step_finished("ts1", "SKIPPED"),
    ]
    view = read_ndjson_report(ndjson(*stream))

    assert view.global_information.failed_steps_number == 1
    assert view.global_information.failed_scenario_number == 1
    assert view.failed_steps == []


def test_unresolved_step_definition_defaults_to_line_zero() -> None:
    stream = [
        gherkin_document([scenario_node("s1", "Valid user", 3, [])]),
        pickle("p1", "Valid user", ["s1"], [("ps1", "the user logs in", "unknown-step")]),
        planned_test_case("tc1", "p1", [("ts1", "ps1")]),
        step_finished("ts1", "UNDEFINED"),
    ]
    view = read_ndjson_report(ndjson(*stream))

    assert view.undefined_steps == [
        StepRecord(file=FEATURE_URI, line=0, title="Valid user", step="the user logs in", error="")
    ]
    assert view.global_information.undefined_scenario_number == 1


def test_test_case_with_unknown_pickle_still_counts() -> None:
    stream = [
        gherkin_document([scenario_node("s1", "Valid user", 3, [step_node("st1", "the user logs in", 4)])]),
        planned_test_case("tc1", "missing-pickle", [("ts1", "missing-step")]),
        step_finished("ts1", "FAILED", "boom"),
    ]
    view = read_ndjson_report(ndjson(*stream))
    info = view.global_information

    assert info.scenario_number == 1
    assert info.steps_number == 1
    assert info.failed_steps_number == 1
    # the failure cannot be attributed to a scenario or a location
    assert info.failed_scenario_number == 0
    assert view.failed_steps == []
    assert view.list_all_scenario_by_file[0].scenarios == []


def test_document_without_feature_is_ignored() -> None:
    view = read_ndjson_report(ndjson({"gherkinDocument": {"uri": "features/empty.feature"}}))

    assert view.list_all_scenario_by_file == []
    assert view.global_information == GlobalInfo()


def test_empty_report_yields_empty_view() -> None:
    view = read_ndjson_report("")

    assert view.global_information == GlobalInfo()
    assert view.failed_steps == []
    assert view.list_all_scenario_by_file == []


def test_non_text_report_is_rejected() -> None:
    with pytest.raises(ReportFormatError):
        read_ndjson_report(["not", "text"])  # type: ignore[arg-type]


def test_finalize_runs_once() -> None:
    correlator = NdjsonCorrelator()
    for envelope in iter_envelopes(ndjson(*login_failure_stream())):
        correlator.feed(envelope)
    correlator.finalize()
    correlator.finalize()

    assert correlator.global_info.failed_scenario_number == 1
    assert correlator.global_info.succeed_scenario_number == 0


def test_null_text_fields_keep_the_document() -> None:
    stream = login_failure_stream()
    stream[0] = gherkin_document(
        [
            scenario_node("s1", "Valid user", 3, [step_node("st1", "the user logs in", 4)]),
            scenario_node("s9", None, 8, []),
        ]
    )
    view = read_ndjson_report(ndjson(*stream))

    assert view.diagnostics.skipped_lines == 0
    assert view.global_information.failed_scenario_number == 1
    assert view.failed_steps == [
        StepRecord(file=FEATURE_URI, line=4, title="Valid user", step="the user logs in", error="boom")
    ]
    assert view.list_all_scenario_by_file[0].name == "Login"


def test_null_id_still_rejects_the_record() -> None:
    stream = login_failure_stream()
    stream[2] = {"testCase": {"id": None, "pickleId": "p1", "testSteps": []}}
    view = read_ndjson_report(ndjson(*stream))

    assert view.diagnostics.skipped_lines == 1
    assert view.global_information.scenario_number == 0


def test_outline_pickles_are_kept_in_stream_order() -> None:
    correlator = NdjsonCorrelator()
    for envelope in iter_envelopes(ndjson(*_outline_stream())):
        correlator.feed(envelope)

    assert correlator.tables.scenarios["s1"].pickle_ids == ["p1", "p2"]
    assert correlator.tables.scenarios["s2"].pickle_ids == ["p3"]
