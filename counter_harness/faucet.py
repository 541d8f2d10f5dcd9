import logging
import time

import requests

from . import LoggingMixin
from .client_base import ChainClient
from .common import FundingTarget, Identity
from .errors import FaucetError, FundingTimeoutError

DEFAULT_MAX_ATTEMPTS = 30
# Initial delay in seconds between two faucet requests
INITIAL_DELAY = 1.0
MAX_DELAY = 10.0


class FaucetClient:
    """Thin wrapper around the faucet HTTP endpoint: GET <url>?address=<address>."""

    def __init__(self, url: str, timeout: float = 30):
        self.url = url
        self.timeout = timeout

    def request(self, address: str) -> None:
        try:
            response = requests.get(
                self.url, params={"address": address}, timeout=self.timeout
            )
        except requests.RequestException as e:
            raise FaucetError(address, None, str(e)) from e
        if response.status_code >= 400:
            raise FaucetError(address, response.status_code, response.text)


class FaucetFunder(LoggingMixin):
    """
    Polls the balance of an account and asks the faucet for tokens until the
    balance reaches the target.

    Failed faucet requests are logged and retried. The loop gives up with
    FundingTimeoutError after `max_attempts` faucet requests or once
    `timeout_seconds` elapsed, whichever comes first.
    """

    def __init__(
        self,
        client: ChainClient,
        faucet: FaucetClient,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        timeout_seconds: float = None,
        initial_delay: float = INITIAL_DELAY,
        max_delay: float = MAX_DELAY,
    ):
        self.client = client
        self.faucet = faucet
        self.max_attempts = max_attempts
        self.timeout_seconds = timeout_seconds
        self.initial_delay = initial_delay
        self.max_delay = max_delay

    def ensure_funded(self, identity: Identity, target: FundingTarget) -> int:
        address = identity.address
        deadline = (
            time.monotonic() + self.timeout_seconds
            if self.timeout_seconds is not None
            else None
        )
        delay = self.initial_delay
        attempt = 0

        while True:
            balance = self.client.balance(address, target.denom)
            if balance >= target.threshold_amount:
                logging.info(f"Balance of {address}: {balance}{target.denom}")
                return balance

            out_of_time = deadline is not None and time.monotonic() >= deadline
            if attempt >= self.max_attempts or out_of_time:
                raise FundingTimeoutError(
                    address, balance, target.threshold_amount, attempt
                )

            attempt += 1
            try:
                self.faucet.request(address)
            except FaucetError as e:
                self.logger.warning(f"failed to get tokens from faucet: {e}")

            self.logger.debug(
                f"Balance {balance} < {target.threshold_amount}, "
                f"checking again in {delay} seconds"
            )
            time.sleep(delay)
            delay = min(delay * 2, self.max_delay)
