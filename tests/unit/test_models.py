import logging

from abi_resolver.models import (
    ConstructorEntry,
    ContractRecord,
    ErrorEntry,
    EventEntry,
    FallbackEntry,
    FunctionEntry,
    ReceiveEntry,
    ResolutionResult,
    Tier,
    dump_abi,
    parse_abi_entries,
)

from .._helpers import ERC20_ABI, PROXY_ABI


def test_entries_are_typed_by_kind_in_source_order():
    raw = PROXY_ABI + ERC20_ABI + [{"type": "error", "name": "Unauthorized", "inputs": []}]

    entries = parse_abi_entries(raw)

    assert [type(e) for e in entries] == [
        ConstructorEntry,
        FallbackEntry,
        ReceiveEntry,
        FunctionEntry,
        EventEntry,
        ErrorEntry,
    ]
    assert dump_abi(entries) == raw


def test_function_without_type_key_round_trips_unchanged():
    raw = [{"name": "owner", "inputs": [], "outputs": [{"name": "", "type": "address"}], "constant": True}]

    entries = parse_abi_entries(raw)

    assert isinstance(entries[0], FunctionEntry)
    assert dump_abi(entries) == raw


def test_duplicate_entries_are_kept():
    raw = [ERC20_ABI[0], ERC20_ABI[0]]
    assert len(parse_abi_entries(raw)) == 2


def test_unknown_or_malformed_entries_are_dropped(caplog):
    raw = [
        {"type": "modifier", "name": "onlyOwner"},
        {"type": "function", "inputs": []},
        {"type": "function", "name": "f", "stateMutability": "sometimes"},
        "not-an-object",
        {"type": "receive", "stateMutability": "payable"},
    ]

    with caplog.at_level(logging.WARNING, logger="abi_resolver.models"):
        entries = parse_abi_entries(raw)

    assert dump_abi(entries) == [{"type": "receive", "stateMutability": "payable"}]
    assert len([r for r in caplog.records if "Dropping ABI entry" in r.getMessage()]) == 4


def test_record_response_data_for_each_tier():
    verified = ContractRecord(
        address="0x" + "1" * 40,
        name="Token (Proxy)",
        abi=parse_abi_entries(ERC20_ABI),
        tier=Tier.VERIFIED,
        implementation="0x" + "2" * 40,
    )
    data = verified.to_response_data()
    assert data["isVerified"] is True
    assert "isRecovered" not in data
    assert data["implementation"] == "0x" + "2" * 40
    assert data["abi"] == ERC20_ABI

    recovered = ContractRecord(address="0x" + "1" * 40, name="x", abi=[], tier=Tier.RECOVERED)
    data = recovered.to_response_data()
    assert data["isVerified"] is False
    assert data["isRecovered"] is True
    assert "implementation" not in data


def test_resolution_result_states():
    exhausted = ResolutionResult.exhausted()
    assert exhausted.requires_manual_abi
    assert exhausted.tier is None

    record = ContractRecord(address="0x" + "1" * 40, name="x", abi=[], tier=Tier.RECOVERED)
    done = ResolutionResult(record=record)
    assert not done.requires_manual_abi
    assert done.tier is Tier.RECOVERED
