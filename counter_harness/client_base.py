from abc import ABC, abstractmethod
from typing import Any, Optional

from .common import Identity, TxOutcome


class ChainClient(ABC):
    """
    Transport binding to a Secret Network node.

    Every method blocks until the node answered; transactions return only
    once they were included in a block.
    """

    @property
    @abstractmethod
    def client_type(self) -> str:
        return "abstract"

    @abstractmethod
    def derive_identity(self, mnemonic: Optional[str] = None) -> Identity:
        pass

    @abstractmethod
    def balance(self, address: str, denom: str) -> int:
        pass

    @abstractmethod
    def store_code(
        self, identity: Identity, wasm_byte_code: bytes, gas_limit: int
    ) -> TxOutcome:
        pass

    @abstractmethod
    def code_hash_by_code_id(self, code_id: int) -> str:
        pass

    @abstractmethod
    def instantiate(
        self,
        identity: Identity,
        code_id: int,
        code_hash: str,
        init_msg: Any,
        label: str,
        gas_limit: int,
    ) -> TxOutcome:
        pass

    @abstractmethod
    def query_contract(self, address: str, code_hash: str, query: dict) -> Any:
        pass

    @abstractmethod
    def execute_contract(
        self, identity: Identity, address: str, code_hash: str, msg: dict, gas_limit: int
    ) -> TxOutcome:
        pass
