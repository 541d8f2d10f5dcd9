import os
from pathlib import Path

import docker
import pytest

from counter_harness.common import INITIAL_COUNT, FundingTarget, init_msg
from counter_harness.config import HarnessConfig
from counter_harness.deployer import ContractDeployer
from counter_harness.docker_node import LocalSecretConfig, LocalSecretNode
from counter_harness.faucet import FaucetFunder
from counter_harness.gateway import ContractGateway
from counter_harness.identity import IdentityProvisioner
from tests.fake_chain import FakeChain, FakeFaucet

MNEMONIC = (
    "grant rice replace explain federal release fix clever romance raise often wild "
    "taxi quarter soccer fiber love must tape steak together observe swap guitar"
)
WASM = b"\0asm\x01\x00\x00\x00counter"


@pytest.fixture
def chain():
    return FakeChain()


@pytest.fixture
def faucet(chain):
    return FakeFaucet(chain)


@pytest.fixture
def config(tmp_path):
    contract = tmp_path / "contract.wasm"
    contract.write_bytes(WASM)
    return HarnessConfig(
        mnemonic=MNEMONIC, funding_threshold=1000, contract_path=str(contract)
    )


@pytest.fixture
def identity(chain):
    return IdentityProvisioner(chain, MNEMONIC).provision()


@pytest.fixture
def funded_identity(chain, faucet, identity):
    FaucetFunder(chain, faucet, initial_delay=0).ensure_funded(identity, FundingTarget(1000))
    return identity


@pytest.fixture
def deployer(chain):
    return ContractDeployer(chain)


@pytest.fixture
def contract(deployer, funded_identity):
    return deployer.deploy(funded_identity, WASM, init_msg(INITIAL_COUNT))


@pytest.fixture
def gateway(chain):
    return ContractGateway(chain)


# Integration test against a docker localsecret node.


def integration_enabled() -> bool:
    return os.environ.get("COUNTER_INTEGRATION") == "1"


@pytest.fixture(scope="session")
def contract_wasm_path():
    path = Path(os.environ.get("COUNTER_CONTRACT_PATH", "contract.wasm"))
    if not path.exists():
        pytest.skip(f"No contract wasm at {path}")
    return path


@pytest.fixture(scope="session")
def local_secret_node():
    if not integration_enabled():
        pytest.skip("Set COUNTER_INTEGRATION=1 to run against a localsecret container")
    docker_client = docker.from_env()
    tag = os.environ.get("LOCALSECRET_TAG", "latest")
    with LocalSecretNode(LocalSecretConfig(docker_client, docker_tag=tag)) as node:
        yield node
