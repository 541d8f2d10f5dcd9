import json
import logging
import os
import subprocess
from typing import Any, Optional

from . import LoggingMixin
from .client_base import ChainClient
from .common import Identity, TxOutcome, flatten_events, make_tempfile
from .config import HarnessConfig
from .errors import CommandTimeoutError, IdentityError, NonZeroExitCodeError
from .wait import wait_for_transaction


class CLI(ChainClient, LoggingMixin):
    """
    Binding that shells out to `secretcli`.

    Signing uses the key named `config.key_name` in the CLI's keyring.
    """

    QUERY_COMMANDS = ("query", "q")

    def __init__(self, config: HarnessConfig, cli_cmd: str = None):
        self.config = config
        self.cli_cmd = cli_cmd or config.cli_command
        self.command_timeout = config.command_timeout

    @property
    def client_type(self) -> str:
        return "cli"

    @property
    def _connection_details(self):
        return ["--node", self.config.node_rpc, "--chain-id", self.config.chain_id]

    @property
    def _keyring(self):
        return ["--keyring-backend", self.config.keyring_backend]

    def expand_args(self, args):
        string_args = [str(a) for a in args]
        if string_args and string_args[0] == "keys":
            return string_args + self._keyring
        return string_args + self._connection_details + ["--output", "json"]

    @staticmethod
    def parse_output(output: str) -> Any:
        try:
            return json.loads(output)
        except ValueError:
            return output.strip()

    def __call__(self, *args, stdin: str = None):
        command_line = [str(self.cli_cmd)] + self.expand_args(args)
        logging.info(f"EXECUTING: {' '.join(command_line)}")
        try:
            cp = subprocess.run(
                command_line,
                input=stdin.encode("utf-8") if stdin is not None else None,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                timeout=self.command_timeout,
            )
        except subprocess.TimeoutExpired:
            raise CommandTimeoutError(tuple(command_line), self.command_timeout)
        output = cp.stdout.decode("utf-8")
        if cp.returncode != 0:
            raise NonZeroExitCodeError(
                tuple(command_line), cp.returncode, cp.stderr.decode("utf-8") or output
            )
        logging.debug(f"OUTPUT {output!r}")
        return self.parse_output(output)

    def derive_identity(self, mnemonic: Optional[str] = None) -> Identity:
        name = self.config.key_name
        try:
            if mnemonic:
                self._delete_key(name)
                self("keys", "add", name, "--recover", stdin=f"{mnemonic}\n")
            elif not self._has_key(name):
                self("keys", "add", name)
            address = self("keys", "show", name, "-a")
        except NonZeroExitCodeError as e:
            raise IdentityError(f"Could not set up key {name}: {e.output}") from e
        if isinstance(address, dict):
            address = address["address"]
        return Identity(address=str(address).strip(), name=name, signer=name)

    def _has_key(self, name: str) -> bool:
        try:
            self("keys", "show", name, "-a")
        except NonZeroExitCodeError:
            return False
        return True

    def _delete_key(self, name: str) -> None:
        if self._has_key(name):
            self("keys", "delete", name, "-y")

    def balance(self, address: str, denom: str) -> int:
        response = self("query", "bank", "balances", address, "--denom", denom)
        return int(response.get("amount") or 0)

    def store_code(
        self, identity: Identity, wasm_byte_code: bytes, gas_limit: int
    ) -> TxOutcome:
        path = make_tempfile("contract-", wasm_byte_code)
        try:
            return self._transaction(
                identity, gas_limit, "tx", "compute", "store", path
            )
        finally:
            os.remove(path)

    def code_hash_by_code_id(self, code_id: int) -> str:
        response = self("query", "compute", "contract-hash-by-id", code_id)
        if isinstance(response, dict):
            response = response.get("code_hash", "")
        return str(response).strip()

    def instantiate(
        self,
        identity: Identity,
        code_id: int,
        code_hash: str,
        init_msg: Any,
        label: str,
        gas_limit: int,
    ) -> TxOutcome:
        return self._transaction(
            identity,
            gas_limit,
            "tx",
            "compute",
            "instantiate",
            code_id,
            json.dumps(init_msg),
            "--label",
            label,
            "--code-hash",
            code_hash,
        )

    def query_contract(self, address: str, code_hash: str, query: dict) -> Any:
        return self(
            "query",
            "compute",
            "query",
            address,
            json.dumps(query),
            "--code-hash",
            code_hash,
        )

    def execute_contract(
        self, identity: Identity, address: str, code_hash: str, msg: dict, gas_limit: int
    ) -> TxOutcome:
        return self._transaction(
            identity,
            gas_limit,
            "tx",
            "compute",
            "execute",
            address,
            json.dumps(msg),
            "--code-hash",
            code_hash,
        )

    def _transaction(self, identity: Identity, gas_limit: int, *args) -> TxOutcome:
        broadcast = self(
            *args,
            "--from",
            identity.signer,
            "--gas",
            gas_limit,
            "--keyring-backend",
            self.config.keyring_backend,
            "-y",
        )
        # Rejected by CheckTx; the transaction will never be included.
        if int(broadcast.get("code") or 0) != 0:
            return self.tx_outcome(broadcast)
        included = wait_for_transaction(self, broadcast["txhash"], self.command_timeout)
        return self.tx_outcome(included)

    @staticmethod
    def tx_outcome(response: dict) -> TxOutcome:
        gas_used = response.get("gas_used")
        return TxOutcome(
            code=int(response.get("code") or 0),
            raw_log=response.get("raw_log") or "",
            tx_hash=response.get("txhash", ""),
            events=flatten_events(response.get("logs")),
            gas_used=int(gas_used) if gas_used is not None else None,
        )
