from typing import Optional, Tuple, Union


class HarnessError(Exception):
    """
    Base of every error the harness raises on purpose.
    """


class ConfigError(HarnessError):
    pass


class IdentityError(HarnessError):
    pass


class FaucetError(HarnessError):
    def __init__(self, address: str, status: Optional[int] = None, body: str = ""):
        super().__init__(address, status, body)
        self.address = address
        self.status = status
        self.body = body

    def __str__(self) -> str:
        return f"Faucet request for {self.address} failed ({self.status}): {self.body}"


class FundingTimeoutError(HarnessError):
    def __init__(self, address: str, balance: int, target: int, attempts: int):
        super().__init__(address, balance, target, attempts)
        self.address = address
        self.balance = balance
        self.target = target
        self.attempts = attempts

    def __str__(self) -> str:
        return (
            f"Balance of {self.address} is {self.balance} after {self.attempts} "
            f"faucet requests, expected at least {self.target}"
        )


class DeployError(HarnessError):
    def __init__(self, reason: str, raw_log: str = ""):
        super().__init__(reason, raw_log)
        self.reason = reason
        self.raw_log = raw_log

    def __str__(self) -> str:
        if self.raw_log:
            return f"{self.reason}: {self.raw_log}"
        return self.reason


class AddressExtractionError(HarnessError):
    def __init__(self, raw_log: str = ""):
        super().__init__(raw_log)
        self.raw_log = raw_log

    def __str__(self) -> str:
        return f"No contract_address in the instantiation events; raw log: {self.raw_log}"


class InvalidResetValueError(HarnessError, ValueError):
    pass


class InvalidContractReferenceError(HarnessError):
    pass


class QueryError(HarnessError):
    def __init__(self, message: str, response=None):
        super().__init__(message, response)
        self.message = message
        self.response = response

    def __str__(self) -> str:
        return self.message


class TxError(HarnessError):
    def __init__(self, code: int, raw_log: str, tx_hash: str = ""):
        super().__init__(code, raw_log, tx_hash)
        self.code = code
        self.raw_log = raw_log
        self.tx_hash = tx_hash

    def __str__(self) -> str:
        return f"Transaction {self.tx_hash} failed with code {self.code}: {self.raw_log}"


class ScenarioAssertionError(AssertionError):
    pass


class NonZeroExitCodeError(HarnessError):
    def __init__(
        self, command: Tuple[Union[int, str], ...], exit_code: int, output: str
    ):
        super().__init__(command, exit_code, output)
        self.command = command
        self.exit_code = exit_code
        self.output = output

    def __str__(self) -> str:
        return f"{' '.join(str(c) for c in self.command)} exited with {self.exit_code}: {self.output}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({repr(self.command)}, {self.exit_code}, {repr(self.output)})"


class CommandTimeoutError(HarnessError):
    def __init__(self, command: Union[Tuple[str, ...], str], timeout: int) -> None:
        super().__init__(command, timeout)
        self.command = command
        self.timeout = timeout

    def __str__(self) -> str:
        command = " ".join(self.command) if isinstance(self.command, tuple) else self.command
        return f"{command} did not finish within {self.timeout}s"
