import dataclasses
import gzip
import os
import random
import re
import string
import tempfile
from pathlib import Path
from typing import Any, Iterable, List, Mapping, Optional

from bech32 import bech32_decode

from .errors import InvalidContractReferenceError

DEFAULT_CHAIN_ID = "secretdev-1"
DEFAULT_DENOM = "uscrt"
DEFAULT_ADDRESS_PREFIX = "secret"
DEFAULT_LABEL_PREFIX = "secret-counter"

DEFAULT_GAS_LIMIT = 1000000
DEFAULT_UPLOAD_GAS_LIMIT = 5000000
DEFAULT_FUNDING_THRESHOLD = 100000000
INITIAL_COUNT = 16876

GET_COUNT_QUERY = {"get_count": {}}
INCREMENT_MSG = {"increment": {}}

CODE_HASH_PATTERN = re.compile(r"^[0-9a-f]{64}$")


def init_msg(count: int) -> dict:
    return {"count": count}


def reset_msg(count: int) -> dict:
    return {"reset": {"count": count}}


@dataclasses.dataclass(frozen=True)
class Identity:
    address: str
    name: str = ""
    # Whatever the chain client binding signs with: a wallet object or a keyring key name.
    signer: Any = dataclasses.field(default=None, repr=False, compare=False)


@dataclasses.dataclass(frozen=True)
class FundingTarget:
    threshold_amount: int
    denom: str = DEFAULT_DENOM


@dataclasses.dataclass(frozen=True)
class CounterState:
    count: int


@dataclasses.dataclass(frozen=True)
class ContractReference:
    code_hash: str
    address: str
    code_id: Optional[int] = None

    @classmethod
    def create(
        cls,
        code_hash: str,
        address: str,
        code_id: Optional[int] = None,
        prefix: str = DEFAULT_ADDRESS_PREFIX,
    ) -> "ContractReference":
        reference = cls((code_hash or "").strip().lower(), (address or "").strip(), code_id)
        reference.validate(prefix)
        return reference

    def validate(self, prefix: str = DEFAULT_ADDRESS_PREFIX) -> None:
        if not self.code_hash:
            raise InvalidContractReferenceError("Contract code hash is empty")
        if not CODE_HASH_PATTERN.match(self.code_hash):
            raise InvalidContractReferenceError(
                f"Contract code hash {self.code_hash!r} is not a 32 byte base16 string"
            )
        if not self.address:
            raise InvalidContractReferenceError("Contract address is empty")
        if not is_valid_address(self.address, prefix):
            raise InvalidContractReferenceError(
                f"Contract address {self.address!r} is not a valid {prefix} address"
            )


@dataclasses.dataclass(frozen=True)
class TxEvent:
    type: str
    key: str
    value: str


@dataclasses.dataclass(frozen=True)
class TxOutcome:
    code: int
    raw_log: str
    tx_hash: str = ""
    events: List[TxEvent] = dataclasses.field(default_factory=list)
    gas_used: Optional[int] = None

    @property
    def is_success(self) -> bool:
        return self.code == 0

    def find_event(self, event_type: str, key: str) -> Optional[str]:
        for event in self.events:
            if event.type == event_type and event.key == key:
                return event.value
        return None


@dataclasses.dataclass(frozen=True)
class ScenarioResult:
    name: str
    passed: bool
    error: Optional[str] = None


def flatten_events(logs: Optional[Iterable[Mapping]]) -> List[TxEvent]:
    """
    Flatten the event log of a transaction into a list of TxEvent.

    Accepts the nested shape returned by the chain:

        [{"msg_index": 0, "events": [{"type": "message", "attributes": [{"key": ..., "value": ...}]}]}]

    as well as the flat "array log" shape where every entry is {"type", "key", "value"}.
    """
    events = []
    for entry in logs or []:
        if "events" in entry:
            events.extend(flatten_events(entry["events"]))
        elif "attributes" in entry:
            for attribute in entry["attributes"] or []:
                events.append(
                    TxEvent(entry["type"], attribute["key"], attribute.get("value") or "")
                )
        else:
            events.append(TxEvent(entry["type"], entry["key"], entry.get("value") or ""))
    return events


def is_valid_address(address: str, prefix: str = DEFAULT_ADDRESS_PREFIX) -> bool:
    hrp, data = bech32_decode(address)
    return hrp == prefix and bool(data)


def random_string(length: int) -> str:
    return "".join(random.choice(string.ascii_letters) for _ in range(length)).lower()


def unique_label(prefix: str = DEFAULT_LABEL_PREFIX) -> str:
    return f"{prefix}-{random_string(10)}"


def read_wasm(path: Path) -> bytes:
    """
    Read contract code, transparently decompressing `.wasm.gz` files.
    """
    path = Path(path)
    with open(path, "rb") as f:
        data = f.read()
    if path.suffix == ".gz":
        return gzip.decompress(data)
    return data


def make_tempfile(prefix: str, content: bytes) -> str:
    fd, path = tempfile.mkstemp(prefix=prefix)

    with os.fdopen(fd, "wb") as tmp:
        tmp.write(content)

    return path
