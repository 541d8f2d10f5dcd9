import gzip

import pytest

from counter_harness.common import (
    ContractReference,
    TxEvent,
    TxOutcome,
    flatten_events,
    is_valid_address,
    read_wasm,
    unique_label,
)
from counter_harness.errors import InvalidContractReferenceError
from tests.fake_chain import make_address

CODE_HASH = "fd62bc320d0c22e85d5e282778a9346b556ee0ea693bf46581e84284bcc35eef"


def test_valid_address():
    assert is_valid_address(make_address("alice"))


@pytest.mark.parametrize(
    "address",
    [
        "",
        "secret1",
        make_address("alice", prefix="cosmos"),
        make_address("alice")[:-1] + ("q" if make_address("alice")[-1] != "q" else "p"),
        "secret1qqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqq",
    ],
)
def test_invalid_address(address):
    assert not is_valid_address(address)


def test_contract_reference_normalizes_code_hash():
    address = make_address("counter")
    ref = ContractReference.create(CODE_HASH.upper(), address, 7)
    assert ref == ContractReference(CODE_HASH, address, 7)


@pytest.mark.parametrize(
    "code_hash, address",
    [
        ("", make_address("counter")),
        (CODE_HASH, ""),
        ("not-a-hash", make_address("counter")),
        (CODE_HASH, "secret10pyejy"),
        (CODE_HASH, make_address("counter", prefix="terra")),
    ],
)
def test_contract_reference_rejects(code_hash, address):
    with pytest.raises(InvalidContractReferenceError):
        ContractReference.create(code_hash, address)


def test_flatten_nested_events():
    logs = [
        {
            "msg_index": 0,
            "events": [
                {
                    "type": "message",
                    "attributes": [
                        {"key": "action", "value": "instantiate"},
                        {"key": "contract_address", "value": "secret1abc"},
                    ],
                },
                {"type": "wasm", "attributes": [{"key": "contract_address"}]},
            ],
        }
    ]
    assert flatten_events(logs) == [
        TxEvent("message", "action", "instantiate"),
        TxEvent("message", "contract_address", "secret1abc"),
        TxEvent("wasm", "contract_address", ""),
    ]


def test_flatten_array_log():
    array_log = [
        {"msg": 0, "type": "message", "key": "action", "value": "instantiate"},
        {"msg": 0, "type": "message", "key": "contract_address", "value": "secret1abc"},
    ]
    outcome = TxOutcome(0, "", events=flatten_events(array_log))
    assert outcome.find_event("message", "contract_address") == "secret1abc"
    assert outcome.find_event("wasm", "contract_address") is None


def test_flatten_nothing():
    assert flatten_events(None) == []


def test_unique_labels():
    labels = {unique_label("secret-counter") for _ in range(50)}
    assert len(labels) == 50
    assert all(label.startswith("secret-counter-") for label in labels)


def test_read_wasm(tmp_path):
    plain = tmp_path / "contract.wasm"
    plain.write_bytes(b"\0asm")
    compressed = tmp_path / "contract.wasm.gz"
    compressed.write_bytes(gzip.compress(b"\0asm"))
    assert read_wasm(plain) == b"\0asm"
    assert read_wasm(compressed) == b"\0asm"
