import json

import pytest

from counter_harness.common import FundingTarget
from counter_harness.config import HarnessConfig
from counter_harness.errors import ConfigError


def test_defaults():
    config = HarnessConfig.from_env({})
    assert config == HarnessConfig.default()
    assert config.chain_id == "secretdev-1"
    assert config.transport == "lcd"
    assert config.initial_count == 16876
    assert config.funding_target == FundingTarget(100000000, "uscrt")
    assert not config.locates_contract


def test_environment_overrides():
    config = HarnessConfig.from_env(
        {
            "COUNTER_ENDPOINT": "http://node:1317",
            "COUNTER_FUNDING_THRESHOLD": "5",
            "COUNTER_CODE_ID": "3",
            "COUNTER_CONTRACT_ADDRESS": "secret1xyz",
            "COUNTER_TRANSPORT": "cli",
        }
    )
    assert config.endpoint == "http://node:1317"
    assert config.funding_threshold == 5
    assert config.code_id == 3
    assert config.transport == "cli"
    assert config.locates_contract


def test_read_file_then_environment(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"chain_id": "pulsar-3", "gas_limit": 2000000, "denom": "uscrt"}))
    config = HarnessConfig.read(path, {"COUNTER_GAS_LIMIT": "300000"})
    assert config.chain_id == "pulsar-3"
    assert config.gas_limit == 300000


def test_read_rejects_unknown_keys(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"grpcWebUrl": "http://localhost:9091"}))
    with pytest.raises(ConfigError, match="grpcWebUrl"):
        HarnessConfig.read(path, {})


def test_read_rejects_invalid_json(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("{")
    with pytest.raises(ConfigError):
        HarnessConfig.read(path, {})


def test_bad_integer():
    with pytest.raises(ConfigError, match="gas_limit"):
        HarnessConfig.from_env({"COUNTER_GAS_LIMIT": "lots"})


def test_unknown_transport():
    with pytest.raises(ConfigError):
        HarnessConfig(transport="grpc-web")


def test_replace():
    config = HarnessConfig().replace(funding_max_attempts="3")
    assert config.funding_max_attempts == 3
