import logging
from pathlib import Path
from typing import Any, Optional, Set

from . import LoggingMixin
from .client_base import ChainClient
from .common import (
    DEFAULT_ADDRESS_PREFIX,
    DEFAULT_GAS_LIMIT,
    DEFAULT_LABEL_PREFIX,
    DEFAULT_UPLOAD_GAS_LIMIT,
    ContractReference,
    Identity,
    TxOutcome,
    read_wasm,
    unique_label,
)
from .errors import AddressExtractionError, DeployError


def extract_contract_address(outcome: TxOutcome) -> str:
    address = outcome.find_event("message", "contract_address")
    if not address:
        raise AddressExtractionError(outcome.raw_log)
    return address


def extract_code_id(outcome: TxOutcome) -> int:
    code_id = outcome.find_event("message", "code_id")
    if code_id is None:
        code_id = outcome.find_event("store_code", "code_id")
    if code_id is None:
        raise DeployError("No code_id in the upload events", outcome.raw_log)
    return int(code_id)


class ContractDeployer(LoggingMixin):
    """
    Uploads the contract code and instantiates it, once per run.
    """

    def __init__(
        self,
        client: ChainClient,
        gas_limit: int = DEFAULT_GAS_LIMIT,
        upload_gas_limit: int = DEFAULT_UPLOAD_GAS_LIMIT,
        label_prefix: str = DEFAULT_LABEL_PREFIX,
        address_prefix: str = DEFAULT_ADDRESS_PREFIX,
    ):
        self.client = client
        self.gas_limit = gas_limit
        self.upload_gas_limit = upload_gas_limit
        self.label_prefix = label_prefix
        self.address_prefix = address_prefix
        self.used_labels: Set[str] = set()
        self.reference: Optional[ContractReference] = None

    def deploy(
        self,
        identity: Identity,
        code_bytes: bytes,
        init_message: Any,
        label: str = None,
    ) -> ContractReference:
        if self.reference is not None:
            raise DeployError(
                f"Contract already deployed at {self.reference.address} in this run"
            )
        label = label or unique_label(self.label_prefix)
        if label in self.used_labels:
            raise DeployError(f"Instantiation label {label!r} was already used")

        logging.info("Uploading contract")
        upload = self.client.store_code(identity, code_bytes, self.upload_gas_limit)
        if not upload.is_success:
            raise DeployError(
                f"Failed to upload the contract (code {upload.code})", upload.raw_log
            )
        code_id = extract_code_id(upload)
        code_hash = self.client.code_hash_by_code_id(code_id)
        logging.info(f"Contract code id: {code_id}, hash: {code_hash}")

        self.used_labels.add(label)
        contract = self.client.instantiate(
            identity, code_id, code_hash, init_message, label, self.gas_limit
        )
        if not contract.is_success:
            raise DeployError(
                f"Failed to instantiate the contract with the following error (code {contract.code})",
                contract.raw_log,
            )

        address = extract_contract_address(contract)
        logging.info(f"Contract address: {address}")
        self.reference = ContractReference.create(
            code_hash, address, code_id, prefix=self.address_prefix
        )
        return self.reference

    def deploy_from_file(
        self, identity: Identity, path: Path, init_message: Any
    ) -> ContractReference:
        return self.deploy(identity, read_wasm(path), init_message)

    def locate(
        self, code_hash: Optional[str], address: str, code_id: Optional[int] = None
    ) -> ContractReference:
        """
        Refer to a contract deployed earlier instead of deploying a new one.
        """
        if not code_hash:
            if code_id is None:
                raise DeployError("Locating a contract needs its code hash or code id")
            code_hash = self.client.code_hash_by_code_id(code_id)
        reference = ContractReference.create(
            code_hash, address, code_id, prefix=self.address_prefix
        )
        logging.info(f"Using contract {reference.address} (hash {reference.code_hash})")
        return reference
