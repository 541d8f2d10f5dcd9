import logging
import time

import requests
import typing_extensions
from secret_sdk.exceptions import LCDResponseError

from .errors import HarnessError, NonZeroExitCodeError


class PredicateProtocol(typing_extensions.Protocol):
    def __str__(self) -> str:
        ...

    def is_satisfied(self) -> bool:
        ...


class WaitTimeoutError(HarnessError):
    pass


class LogsContainMessage:
    def __init__(self, node, message: str, times: int = 1) -> None:
        self.node = node
        self.message = message
        self.times = times

    def __str__(self) -> str:
        args = ", ".join(repr(a) for a in (self.node.name, self.message))
        return "<{}({})>".format(self.__class__.__name__, args)

    def is_satisfied(self) -> bool:
        return self.node.logs().count(self.message) >= self.times


class NodeCommittedBlocks(LogsContainMessage):
    def __init__(self, node, times: int) -> None:
        super().__init__(node, "committed state", times)


class EndpointResponds:
    def __init__(self, url: str) -> None:
        self.url = url

    def __str__(self) -> str:
        return "<{}({!r})>".format(self.__class__.__name__, self.url)

    def is_satisfied(self) -> bool:
        try:
            return requests.get(self.url, timeout=5).status_code < 500
        except requests.RequestException:
            return False


class TransactionIncluded:
    """
    Satisfied once the node knows the transaction; keeps what the node returned.
    """

    def __init__(self, cli, tx_hash: str) -> None:
        self.cli = cli
        self.tx_hash = tx_hash
        self.result = None

    def __str__(self) -> str:
        return "<{}({!r})>".format(self.__class__.__name__, self.tx_hash)

    def is_satisfied(self) -> bool:
        try:
            self.result = self.cli("query", "tx", self.tx_hash)
        except NonZeroExitCodeError:
            return False
        return True


class TransactionInfoAvailable:
    """
    Satisfied once the LCD endpoint serves the transaction; keeps the TxInfo.
    """

    def __init__(self, lcd, tx_hash: str) -> None:
        self.lcd = lcd
        self.tx_hash = tx_hash
        self.result = None

    def __str__(self) -> str:
        return "<{}({!r})>".format(self.__class__.__name__, self.tx_hash)

    def is_satisfied(self) -> bool:
        try:
            self.result = self.lcd.tx.tx_info(self.tx_hash)
        except LCDResponseError:
            # 404 until the transaction is in a block
            return False
        return True


def wait_on_using_wall_clock_time(
    predicate: PredicateProtocol, timeout_seconds: int
) -> None:
    elapsed = 0
    start_time = time.time()
    iteration_duration = 0
    epsilon = 0.10
    logging.info(f"Waiting for {predicate} for up to {timeout_seconds}s...")
    while elapsed < timeout_seconds:
        if predicate.is_satisfied():
            logging.info(f"SATISFIED {predicate} after {round(elapsed, 2)}s")
            return

        iteration_duration += epsilon
        # Don't wait more than half a second.
        iteration_duration = min(iteration_duration, 0.5)

        time.sleep(iteration_duration)

        elapsed = time.time() - start_time

    raise WaitTimeoutError(f"Failed to satisfy {predicate} after {round(elapsed, 2)}s")


def wait_for_node_started(node, startup_timeout: int, times: int = 2):
    wait_on_using_wall_clock_time(NodeCommittedBlocks(node, times), startup_timeout)


def wait_for_endpoint(url: str, timeout_seconds: int):
    wait_on_using_wall_clock_time(EndpointResponds(url), timeout_seconds)


def wait_for_transaction(cli, tx_hash: str, timeout_seconds: int):
    predicate = TransactionIncluded(cli, tx_hash)
    wait_on_using_wall_clock_time(predicate, timeout_seconds)
    return predicate.result


def wait_for_tx_info(lcd, tx_hash: str, timeout_seconds: int):
    predicate = TransactionInfoAvailable(lcd, tx_hash)
    wait_on_using_wall_clock_time(predicate, timeout_seconds)
    return predicate.result
