import logging
import re
from typing import Any, Optional

from secret_sdk.client.lcd import LCDClient
from secret_sdk.core.wasm import (
    MsgExecuteContract,
    MsgInstantiateContract,
    MsgStoreCode,
)
from secret_sdk.key.mnemonic import MnemonicKey

from . import LoggingMixin
from .client_base import ChainClient
from .common import Identity, TxOutcome, flatten_events
from .config import HarnessConfig
from .errors import IdentityError
from .wait import wait_for_tx_info

# secret-sdk raises a plain Exception when CheckTx rejects a sync broadcast.
BROADCAST_REJECTED = re.compile(r"failed with code (\d+).*?Log: (.*)", re.DOTALL)


def _log_data(log) -> Any:
    """ secret-sdk hands back TxLog objects, the rest of the harness wants plain dicts. """
    if isinstance(log, dict):
        return log
    if hasattr(log, "to_data"):
        return log.to_data()
    return {"events": log.events}


class PythonClient(ChainClient, LoggingMixin):
    """
    Binding over the secret-sdk LCD (HTTP REST) client.

    Transactions are broadcast in sync mode, then the TxInfo is polled until
    the transaction is in a block.
    """

    def __init__(self, config: HarnessConfig, lcd: LCDClient = None):
        self.config = config
        self.lcd = lcd or LCDClient(url=config.endpoint, chain_id=config.chain_id)
        logging.info(
            f"PythonClient(url={config.endpoint}, chain_id={config.chain_id})"
        )

    @property
    def client_type(self) -> str:
        return "python"

    def derive_identity(self, mnemonic: Optional[str] = None) -> Identity:
        try:
            key = MnemonicKey(mnemonic=mnemonic) if mnemonic else MnemonicKey()
        except Exception as e:
            raise IdentityError(f"Could not derive a key from the mnemonic: {e}") from e
        wallet = self.lcd.wallet(key)
        return Identity(address=key.acc_address, name=self.config.key_name, signer=wallet)

    def balance(self, address: str, denom: str) -> int:
        coins, _ = self.lcd.bank.balance(address)
        coin = coins.get(denom)
        if coin is None:
            return 0
        return int(coin.amount)

    def store_code(
        self, identity: Identity, wasm_byte_code: bytes, gas_limit: int
    ) -> TxOutcome:
        # The message gzips the code itself.
        msg = MsgStoreCode(
            sender=identity.address,
            wasm_byte_code=wasm_byte_code,
            source="",
            builder="",
        )
        return self._broadcast(identity, msg, gas_limit)

    def code_hash_by_code_id(self, code_id: int) -> str:
        response = self.lcd.wasm.code_hash_by_code_id(code_id)
        if isinstance(response, dict):
            response = response["code_hash"]
        return str(response)

    def instantiate(
        self,
        identity: Identity,
        code_id: int,
        code_hash: str,
        init_msg: Any,
        label: str,
        gas_limit: int,
    ) -> TxOutcome:
        msg = MsgInstantiateContract(
            sender=identity.address,
            code_id=code_id,
            label=label,
            init_msg=init_msg,
            code_hash=code_hash,
            encryption_utils=self.lcd.encrypt_utils,
        )
        return self._broadcast(identity, msg, gas_limit)

    def query_contract(self, address: str, code_hash: str, query: dict) -> Any:
        return self.lcd.wasm.contract_query(address, query, contract_code_hash=code_hash)

    def execute_contract(
        self, identity: Identity, address: str, code_hash: str, msg: dict, gas_limit: int
    ) -> TxOutcome:
        execute = MsgExecuteContract(
            sender=identity.address,
            contract=address,
            msg=msg,
            code_hash=code_hash,
            encryption_utils=self.lcd.encrypt_utils,
        )
        return self._broadcast(identity, execute, gas_limit)

    def _broadcast(self, identity: Identity, msg, gas_limit: int) -> TxOutcome:
        self.logger.debug(f"Broadcasting {type(msg).__name__} from {identity.address}")
        try:
            result = identity.signer.create_and_broadcast_tx(msg_list=[msg], gas=gas_limit)
        except Exception as e:
            rejected = BROADCAST_REJECTED.search(str(e))
            if rejected is None:
                raise
            self.logger.error(f"Broadcast rejected: {e}")
            return TxOutcome(code=int(rejected.group(1)), raw_log=rejected.group(2).strip())

        if result.code:
            return TxOutcome(code=int(result.code), raw_log=result.raw_log or "", tx_hash=result.txhash)
        info = wait_for_tx_info(self.lcd, result.txhash, self.config.command_timeout)
        return self.tx_outcome(info)

    @staticmethod
    def tx_outcome(info) -> TxOutcome:
        """ TxOutcome of an included transaction (a secret-sdk TxInfo). """
        logs = info.logs or []
        # A failed contract call comes back as a single TxLog.
        if not isinstance(logs, list):
            logs = [logs]
        return TxOutcome(
            code=int(info.code or 0),
            raw_log=info.rawlog or "",
            tx_hash=info.txhash,
            events=flatten_events(_log_data(log) for log in logs),
            gas_used=info.gas_used,
        )
