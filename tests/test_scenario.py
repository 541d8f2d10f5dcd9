import pytest

from counter_harness.common import INITIAL_COUNT, ScenarioResult
from counter_harness.errors import QueryError
from counter_harness.scenario import (
    EXIT_SCENARIO_FAILED,
    EXIT_SUCCESS,
    NamedScenario,
    RunReport,
    ScenarioRunner,
    counter_scenarios,
    expect,
    scenario,
)


def test_counter_scenarios_pass(gateway, contract, funded_identity):
    results = ScenarioRunner(gateway).run(counter_scenarios(), contract, funded_identity)
    assert results == [
        ScenarioResult("test_initialization", True),
        ScenarioResult("test_increment", True),
        ScenarioResult("test_reset", True),
        ScenarioResult("test_query_idempotent", True),
    ]
    assert gateway.query_count(contract) == INITIAL_COUNT


def test_increment_after_initialization(gateway, contract, funded_identity):
    gateway.increment(funded_identity, contract)
    assert gateway.query_count(contract) == INITIAL_COUNT + 1


def test_without_initialization_check():
    names = [s.name for s in counter_scenarios(check_initialization=False)]
    assert names == ["test_increment", "test_reset", "test_query_idempotent"]


def test_scenario_decorator():
    @scenario
    def plain(gateway, identity, ref):
        pass

    @scenario(name="renamed")
    def other(gateway, identity, ref):
        pass

    assert plain == NamedScenario("plain", plain.fn)
    assert other.name == "renamed"


def recording(log, name, error=None):
    def fn(gateway, identity, ref):
        log.append(name)
        if error is not None:
            raise error

    return NamedScenario(name, fn)


def test_scenarios_run_in_order(gateway, contract, funded_identity):
    log = []
    scenarios = [recording(log, name) for name in "abcde"]
    ScenarioRunner(gateway).run(scenarios, contract, funded_identity)
    assert log == list("abcde")


def test_halts_on_first_failure(gateway, contract, funded_identity):
    log = []
    scenarios = [
        recording(log, "first"),
        recording(log, "second", AssertionError("expected 1 instead of 2")),
        recording(log, "third"),
    ]
    results = ScenarioRunner(gateway).run(scenarios, contract, funded_identity)
    assert log == ["first", "second"]
    assert results == [
        ScenarioResult("first", True),
        ScenarioResult("second", False, "expected 1 instead of 2"),
    ]


def test_keep_going_aggregates(gateway, contract, funded_identity):
    log = []
    scenarios = [
        recording(log, "first", AssertionError()),
        recording(log, "second", QueryError("Query failed")),
        recording(log, "third"),
    ]
    runner = ScenarioRunner(gateway, halt_on_failure=False)
    report = runner.report(scenarios, contract, funded_identity)
    assert log == ["first", "second", "third"]
    assert [r.passed for r in report.results] == [False, False, True]
    assert report.results[0].error == "AssertionError"
    assert report.results[1].error == "Query failed"
    assert not report.all_passed
    assert report.exit_code == EXIT_SCENARIO_FAILED


def test_unexpected_errors_propagate(gateway, contract, funded_identity):
    scenarios = [recording([], "broken", KeyError("count"))]
    with pytest.raises(KeyError):
        ScenarioRunner(gateway).run(scenarios, contract, funded_identity)


def test_wrong_initial_count_fails(gateway, contract, funded_identity):
    results = ScenarioRunner(gateway).run(
        counter_scenarios(initial_count=56), contract, funded_identity
    )
    assert results == [
        ScenarioResult(
            "test_initialization",
            False,
            f"The counter on initialization expected to be 56 instead of {INITIAL_COUNT}",
        )
    ]


def test_expect():
    expect(True, "fine")
    with pytest.raises(AssertionError, match="broken"):
        expect(False, "broken")


def test_report():
    report = RunReport([ScenarioResult("a", True), ScenarioResult("b", True)])
    assert report.all_passed
    assert report.exit_code == EXIT_SUCCESS
    assert len(report.passed) == 2
    assert report.failed == []


def test_invalid_reset_value_fails_the_scenario(gateway, contract, funded_identity):
    @scenario
    def reset_below_zero(gateway, identity, ref):
        gateway.reset(identity, ref, -1)

    [result] = ScenarioRunner(gateway).run([reset_below_zero], contract, funded_identity)
    assert not result.passed
    assert "non-negative" in result.error
