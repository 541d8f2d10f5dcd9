import dataclasses
import functools
import logging
from typing import Callable, Iterable, List

from .common import INITIAL_COUNT, ContractReference, Identity, ScenarioResult
from .errors import HarnessError, ScenarioAssertionError
from .gateway import ContractGateway

EXIT_SUCCESS = 0
EXIT_SCENARIO_FAILED = 1
EXIT_ERROR = 2


@dataclasses.dataclass(frozen=True)
class NamedScenario:
    name: str
    fn: Callable[[ContractGateway, Identity, ContractReference], None]

    def __call__(self, gateway, identity, ref):
        return self.fn(gateway, identity, ref)


def scenario(fn=None, *, name: str = None):
    """
    Turn a function of (gateway, identity, ref) into a NamedScenario.
    """
    if fn is None:
        return functools.partial(scenario, name=name)
    return NamedScenario(name or fn.__name__, fn)


def expect(condition: bool, message: str) -> None:
    if not condition:
        raise ScenarioAssertionError(message)


@dataclasses.dataclass(frozen=True)
class RunReport:
    results: List[ScenarioResult]

    @property
    def passed(self) -> List[ScenarioResult]:
        return [r for r in self.results if r.passed]

    @property
    def failed(self) -> List[ScenarioResult]:
        return [r for r in self.results if not r.passed]

    @property
    def all_passed(self) -> bool:
        return not self.failed

    @property
    def exit_code(self) -> int:
        return EXIT_SUCCESS if self.all_passed else EXIT_SCENARIO_FAILED


class ScenarioRunner:
    """
    Runs scenarios one after another against the same contract.

    Scenarios share the remote counter, so they never run concurrently and
    always in the given order. With `halt_on_failure` the first failing
    scenario ends the run; otherwise every scenario runs and all results
    are reported.
    """

    def __init__(self, gateway: ContractGateway, halt_on_failure: bool = True):
        self.gateway = gateway
        self.halt_on_failure = halt_on_failure

    def run(
        self,
        scenarios: Iterable[NamedScenario],
        ref: ContractReference,
        identity: Identity,
    ) -> List[ScenarioResult]:
        results = []
        for named in scenarios:
            result = self.run_one(named, ref, identity)
            results.append(result)
            if not result.passed and self.halt_on_failure:
                logging.error(f"Stopping after the failure of {named.name}")
                break
        return results

    def report(
        self,
        scenarios: Iterable[NamedScenario],
        ref: ContractReference,
        identity: Identity,
    ) -> RunReport:
        return RunReport(self.run(scenarios, ref, identity))

    def run_one(
        self, named: NamedScenario, ref: ContractReference, identity: Identity
    ) -> ScenarioResult:
        logging.info(f"Testing {named.name}")
        try:
            named(self.gateway, identity, ref)
        except (AssertionError, HarnessError) as e:
            logging.error(f"[FAILURE] {named.name}: {e}")
            return ScenarioResult(named.name, False, str(e) or type(e).__name__)
        logging.info(f"[SUCCESS] {named.name}")
        return ScenarioResult(named.name, True)


def counter_scenarios(
    initial_count: int = INITIAL_COUNT, check_initialization: bool = True
) -> List[NamedScenario]:
    """
    The counter contract checks: initial value, increment, reset and
    repeatable reads.
    """

    @scenario(name="test_initialization")
    def initialization(gateway, identity, ref):
        count = gateway.query_count(ref)
        expect(
            count == initial_count,
            f"The counter on initialization expected to be {initial_count} instead of {count}",
        )

    @scenario(name="test_increment")
    def increment(gateway, identity, ref):
        before = gateway.query_count(ref)
        gateway.increment(identity, ref)
        after = gateway.query_count(ref)
        expect(
            after == before + 1,
            f"After increment, counter expected to be {before + 1} instead of {after}",
        )

    @scenario(name="test_reset")
    def reset(gateway, identity, ref):
        gateway.reset(identity, ref, initial_count)
        count = gateway.query_count(ref)
        expect(
            count == initial_count,
            f"After reset, counter expected to be {initial_count} instead of {count}",
        )

    @scenario(name="test_query_idempotent")
    def query_idempotent(gateway, identity, ref):
        first = gateway.query_count(ref)
        second = gateway.query_count(ref)
        expect(first == second, f"Two queries returned {first} and {second}")

    scenarios = [increment, reset, query_idempotent]
    if check_initialization:
        scenarios.insert(0, initialization)
    return scenarios
