import dataclasses
import json
import os
from typing import Mapping, Optional

from .common import (
    DEFAULT_ADDRESS_PREFIX,
    DEFAULT_CHAIN_ID,
    DEFAULT_DENOM,
    DEFAULT_FUNDING_THRESHOLD,
    DEFAULT_GAS_LIMIT,
    DEFAULT_LABEL_PREFIX,
    DEFAULT_UPLOAD_GAS_LIMIT,
    INITIAL_COUNT,
    FundingTarget,
)
from .errors import ConfigError

TRANSPORTS = ("lcd", "cli")

ENVIRONMENT_VARIABLES = {
    "endpoint": "COUNTER_ENDPOINT",
    "node_rpc": "COUNTER_NODE_RPC",
    "chain_id": "COUNTER_CHAIN_ID",
    "transport": "COUNTER_TRANSPORT",
    "faucet_url": "COUNTER_FAUCET_URL",
    "mnemonic": "COUNTER_MNEMONIC",
    "key_name": "COUNTER_KEY_NAME",
    "keyring_backend": "COUNTER_KEYRING_BACKEND",
    "address_prefix": "COUNTER_ADDRESS_PREFIX",
    "denom": "COUNTER_DENOM",
    "funding_threshold": "COUNTER_FUNDING_THRESHOLD",
    "funding_max_attempts": "COUNTER_FUNDING_MAX_ATTEMPTS",
    "funding_timeout_seconds": "COUNTER_FUNDING_TIMEOUT",
    "gas_limit": "COUNTER_GAS_LIMIT",
    "upload_gas_limit": "COUNTER_UPLOAD_GAS_LIMIT",
    "contract_path": "COUNTER_CONTRACT_PATH",
    "code_id": "COUNTER_CODE_ID",
    "code_hash": "COUNTER_CODE_HASH",
    "contract_address": "COUNTER_CONTRACT_ADDRESS",
    "initial_count": "COUNTER_INITIAL_COUNT",
    "label_prefix": "COUNTER_LABEL_PREFIX",
    "cli_command": "COUNTER_CLI",
    "command_timeout": "COUNTER_COMMAND_TIMEOUT",
}

INTEGER_FIELDS = (
    "funding_threshold",
    "funding_max_attempts",
    "funding_timeout_seconds",
    "gas_limit",
    "upload_gas_limit",
    "code_id",
    "initial_count",
    "command_timeout",
)


@dataclasses.dataclass(frozen=True)
class HarnessConfig:
    """
    Everything the harness needs to reach the chain, the faucet and the contract.

    Built once per run and handed to every component at construction time.
    """

    endpoint: str = "http://localhost:1317"
    node_rpc: str = "tcp://localhost:26657"
    chain_id: str = DEFAULT_CHAIN_ID
    transport: str = "lcd"
    faucet_url: str = "http://localhost:5000/faucet"
    mnemonic: Optional[str] = None
    key_name: str = "counter-harness"
    keyring_backend: str = "test"
    address_prefix: str = DEFAULT_ADDRESS_PREFIX
    denom: str = DEFAULT_DENOM
    funding_threshold: int = DEFAULT_FUNDING_THRESHOLD
    funding_max_attempts: int = 30
    funding_timeout_seconds: int = 300
    gas_limit: int = DEFAULT_GAS_LIMIT
    upload_gas_limit: int = DEFAULT_UPLOAD_GAS_LIMIT
    contract_path: str = "contract.wasm"
    code_id: Optional[int] = None
    code_hash: Optional[str] = None
    contract_address: Optional[str] = None
    initial_count: int = INITIAL_COUNT
    label_prefix: str = DEFAULT_LABEL_PREFIX
    cli_command: str = "secretcli"
    command_timeout: int = 180

    def __post_init__(self):
        if self.transport not in TRANSPORTS:
            raise ConfigError(
                f"Unknown transport {self.transport!r}, expected one of {', '.join(TRANSPORTS)}"
            )
        if self.funding_max_attempts < 1:
            raise ConfigError("funding_max_attempts must be at least 1")

    @property
    def funding_target(self) -> FundingTarget:
        return FundingTarget(self.funding_threshold, self.denom)

    @property
    def locates_contract(self) -> bool:
        """ True when an already deployed contract is configured. """
        return bool(self.contract_address) and (
            bool(self.code_hash) or self.code_id is not None
        )

    def replace(self, **changes) -> "HarnessConfig":
        return dataclasses.replace(self, **_parse(changes))

    def to_dict(self) -> dict:
        return dataclasses.asdict(self)

    @staticmethod
    def default() -> "HarnessConfig":
        return HarnessConfig()

    @staticmethod
    def from_env(environ: Mapping[str, str] = None) -> "HarnessConfig":
        return HarnessConfig(**_from_environment(environ))

    @staticmethod
    def read(file_name, environ: Mapping[str, str] = None) -> "HarnessConfig":
        """
        Read a JSON config file. Values from the file override the defaults,
        environment variables override both.
        """
        with open(file_name) as f:
            try:
                d = json.load(f)
            except json.JSONDecodeError as e:
                raise ConfigError(f"{file_name} is not valid JSON: {e}") from e
        if not isinstance(d, dict):
            raise ConfigError(f"{file_name} must contain a JSON object")
        unknown = set(d) - set(ENVIRONMENT_VARIABLES)
        if unknown:
            raise ConfigError(
                f"Unknown configuration keys in {file_name}: {', '.join(sorted(unknown))}"
            )
        d = _parse(d)
        d.update(_from_environment(environ))
        return HarnessConfig(**d)


def _from_environment(environ: Mapping[str, str] = None) -> dict:
    environ = os.environ if environ is None else environ
    values = {
        name: environ[variable]
        for name, variable in ENVIRONMENT_VARIABLES.items()
        if environ.get(variable)
    }
    return _parse(values)


def _parse(values: Mapping) -> dict:
    parsed = dict(values)
    for name in INTEGER_FIELDS:
        value = parsed.get(name)
        if value is None or isinstance(value, int):
            continue
        try:
            parsed[name] = int(value)
        except (TypeError, ValueError):
            raise ConfigError(f"{name} must be an integer, got {value!r}")
    return parsed
