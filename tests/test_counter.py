"""
End to end run against a localsecret container.

Needs docker, COUNTER_INTEGRATION=1 and a compiled counter contract at
COUNTER_CONTRACT_PATH (contract.wasm or contract.wasm.gz).
"""
import shutil

import pytest

from counter_harness.common import INITIAL_COUNT
from counter_harness.harness import CounterHarness


@pytest.mark.parametrize("transport", ["lcd", "cli"])
def test_counter_contract(local_secret_node, contract_wasm_path, transport):
    if transport == "cli" and shutil.which("secretcli") is None:
        pytest.skip("secretcli is not installed")
    config = local_secret_node.harness_config(
        contract_path=str(contract_wasm_path), transport=transport
    )
    harness = CounterHarness(config)
    report = harness.run()
    assert report.all_passed, report.failed
    assert harness.gateway.query_count(harness.deployer.reference) == INITIAL_COUNT
