import json
import logging
from typing import Any, Mapping

from . import LoggingMixin
from .client_base import ChainClient
from .common import (
    DEFAULT_ADDRESS_PREFIX,
    DEFAULT_GAS_LIMIT,
    GET_COUNT_QUERY,
    INCREMENT_MSG,
    ContractReference,
    CounterState,
    Identity,
    TxOutcome,
    reset_msg,
)
from .errors import InvalidResetValueError, QueryError, TxError

# Keys a contract or the node put in a query response to report a failure.
ERROR_FIELDS = ("err", "error", "generic_err")


def error_field(response: Mapping) -> Any:
    for key in ERROR_FIELDS:
        if key in response:
            return response[key]
    return None


class ContractGateway(LoggingMixin):
    """
    Typed calls to the counter contract over any ChainClient binding.

    Nothing is cached: every `query_count` is a live read.
    """

    def __init__(
        self,
        client: ChainClient,
        gas_limit: int = DEFAULT_GAS_LIMIT,
        address_prefix: str = DEFAULT_ADDRESS_PREFIX,
    ):
        self.client = client
        self.gas_limit = gas_limit
        self.address_prefix = address_prefix

    def assert_reference(self, ref: ContractReference) -> None:
        ref.validate(self.address_prefix)

    def query_state(self, ref: ContractReference) -> CounterState:
        self.assert_reference(ref)
        try:
            response = self.client.query_contract(ref.address, ref.code_hash, GET_COUNT_QUERY)
        except Exception as e:
            raise QueryError(f"Query failed with the following err: {e}") from e

        if isinstance(response, (str, bytes)):
            try:
                response = json.loads(response)
            except ValueError:
                raise QueryError(f"Query returned a non JSON response: {response!r}", response)
        if not isinstance(response, Mapping):
            raise QueryError(f"Unexpected query response: {response!r}", response)
        if error_field(response) is not None:
            raise QueryError(
                f"Query failed with the following err: {json.dumps(response)}", response
            )

        count = response.get("count")
        if isinstance(count, bool) or not isinstance(count, int):
            raise QueryError(f"Query response has no integer count: {response!r}", response)
        return CounterState(count)

    def query_count(self, ref: ContractReference) -> int:
        count = self.query_state(ref).count
        logging.info(f"Counter value = {count}")
        return count

    def increment(self, identity: Identity, ref: ContractReference) -> TxOutcome:
        return self._execute(identity, ref, INCREMENT_MSG)

    def reset(self, identity: Identity, ref: ContractReference, value: int) -> TxOutcome:
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise InvalidResetValueError(f"The counter can only be reset to a non-negative int, not {value!r}")
        return self._execute(identity, ref, reset_msg(value))

    def _execute(self, identity: Identity, ref: ContractReference, msg: dict) -> TxOutcome:
        self.assert_reference(ref)
        self.logger.info(f"Executing {json.dumps(msg)} on {ref.address}")
        outcome = self.client.execute_contract(
            identity, ref.address, ref.code_hash, msg, self.gas_limit
        )
        if not outcome.is_success:
            self.logger.error(f"Execute {json.dumps(msg)} failed: {outcome.raw_log}")
            raise TxError(outcome.code, outcome.raw_log, outcome.tx_hash)
        return outcome
