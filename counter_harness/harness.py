"""
End to end workflow and command line interface of the counter harness.

    counter_harness run    provision, fund, deploy (or locate) and run the counter scenarios
    counter_harness query  print the current counter value of the configured contract
    counter_harness fund   provision and fund the identity only
"""

import argparse
import functools
import logging
import sys
from typing import List, Optional, Sequence, Tuple

from . import LoggingMixin
from .cli import CLI
from .client_base import ChainClient
from .common import ContractReference, Identity, init_msg
from .config import TRANSPORTS, HarnessConfig
from .deployer import ContractDeployer
from .errors import HarnessError
from .faucet import FaucetClient, FaucetFunder
from .gateway import ContractGateway
from .identity import IdentityProvisioner
from .python_client import PythonClient
from .scenario import (
    EXIT_ERROR,
    EXIT_SUCCESS,
    NamedScenario,
    RunReport,
    ScenarioRunner,
    counter_scenarios,
)

CLIENTS = {"lcd": PythonClient, "cli": CLI}


def make_chain_client(config: HarnessConfig) -> ChainClient:
    return CLIENTS[config.transport](config)


class CounterHarness(LoggingMixin):
    """
    Wires the components together from one HarnessConfig.

    Identity → funding → contract → scenarios, each step starting only after
    the previous one returned.
    """

    def __init__(
        self,
        config: HarnessConfig,
        client: ChainClient = None,
        faucet: FaucetClient = None,
    ):
        self.config = config
        self.client = client or make_chain_client(config)
        self.identities = IdentityProvisioner(self.client, config.mnemonic)
        self.funder = FaucetFunder(
            self.client,
            faucet or FaucetClient(config.faucet_url),
            max_attempts=config.funding_max_attempts,
            timeout_seconds=config.funding_timeout_seconds,
        )
        self.deployer = ContractDeployer(
            self.client,
            gas_limit=config.gas_limit,
            upload_gas_limit=config.upload_gas_limit,
            label_prefix=config.label_prefix,
            address_prefix=config.address_prefix,
        )
        self.gateway = ContractGateway(
            self.client, gas_limit=config.gas_limit, address_prefix=config.address_prefix
        )

    def funded_identity(self) -> Identity:
        identity = self.identities.provision()
        self.funder.ensure_funded(identity, self.config.funding_target)
        return identity

    def contract(self, identity: Identity) -> ContractReference:
        if self.config.locates_contract:
            return self.deployer.locate(
                self.config.code_hash, self.config.contract_address, self.config.code_id
            )
        return self.deployer.deploy_from_file(
            identity, self.config.contract_path, init_msg(self.config.initial_count)
        )

    def prepare(self) -> Tuple[Identity, ContractReference]:
        identity = self.funded_identity()
        return identity, self.contract(identity)

    def scenarios(self) -> List[NamedScenario]:
        # A contract deployed in an earlier run may hold any value.
        return counter_scenarios(
            self.config.initial_count,
            check_initialization=not self.config.locates_contract,
        )

    def run(
        self, scenarios: Sequence[NamedScenario] = None, halt_on_failure: bool = True
    ) -> RunReport:
        identity, ref = self.prepare()
        runner = ScenarioRunner(self.gateway, halt_on_failure=halt_on_failure)
        report = runner.report(scenarios or self.scenarios(), ref, identity)
        self.logger.info(
            f"{len(report.passed)} passed, {len(report.failed)} failed"
        )
        return report


def guarded_command(function):
    """
    Decorator of functions that implement CLI commands.

    Harness errors are printed and turned into a non-zero return code.
    """

    @functools.wraps(function)
    def wrapper(*args, **kwargs):
        try:
            rc = function(*args, **kwargs)
            if rc is not None:
                return rc
            return EXIT_SUCCESS
        except HarnessError as e:
            logging.error(f"{type(e).__name__}: {e}")
            print(str(e), file=sys.stderr)
            return EXIT_ERROR

    return wrapper


def load_config(args) -> HarnessConfig:
    config = HarnessConfig.read(args.config) if args.config else HarnessConfig.from_env()
    if args.transport:
        config = config.replace(transport=args.transport)
    return config


@guarded_command
def run_command(args) -> int:
    harness = CounterHarness(load_config(args))
    report = harness.run(halt_on_failure=not args.keep_going)
    for result in report.results:
        status = "PASSED" if result.passed else f"FAILED: {result.error}"
        print(f"{result.name}: {status}")
    return report.exit_code


@guarded_command
def query_command(args) -> int:
    config = load_config(args)
    harness = CounterHarness(config)
    ref = harness.deployer.locate(config.code_hash, config.contract_address, config.code_id)
    print(f"Counter value = {harness.gateway.query_count(ref)}")


@guarded_command
def fund_command(args) -> int:
    config = load_config(args)
    harness = CounterHarness(config)
    identity = harness.funded_identity()
    balance = harness.client.balance(identity.address, config.denom)
    print(f"{identity.address} : {balance}{config.denom}")


def parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config", default=None, help="JSON configuration file; environment variables override it"
    )
    common.add_argument(
        "--transport", choices=TRANSPORTS, default=None, help="lcd (secret-sdk) or cli (secretcli)"
    )
    common.add_argument(
        "--log-level",
        default="INFO",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        help="Logging level",
    )

    p = argparse.ArgumentParser(
        prog="counter_harness",
        description="Integration test harness for the Secret Network counter contract",
    )
    commands = p.add_subparsers(dest="command")
    commands.required = True

    run = commands.add_parser("run", parents=[common], help="Deploy and test the counter contract")
    run.add_argument(
        "--keep-going",
        action="store_true",
        help="Run every scenario and report all failures instead of stopping at the first",
    )
    run.set_defaults(function=run_command)

    query = commands.add_parser("query", parents=[common], help="Print the counter value")
    query.set_defaults(function=query_command)

    fund = commands.add_parser("fund", parents=[common], help="Fund the identity from the faucet")
    fund.set_defaults(function=fund_command)
    return p


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return args.function(args)


if __name__ == "__main__":
    sys.exit(main())
