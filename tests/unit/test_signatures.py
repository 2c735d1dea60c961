import threading
import time

import pytest
import requests

from abi_resolver.models import dump_abi
from abi_resolver.signatures import SignatureResolver, parse_signature, placeholder_descriptor

from .._helpers import RoutingSession, fourbyte_entry, fourbyte_page, make_response

REGISTRY_URL = "https://www.4byte.directory/api/v1/signatures/"


def _resolver(handler, **kwargs):
    session = RoutingSession(get_handler=handler)
    return SignatureResolver(REGISTRY_URL, timeout=3, session=session, **kwargs), session


def test_resolve_one_builds_function_descriptor():
    resolver, session = _resolver(
        lambda url, params: make_response(
            fourbyte_page([fourbyte_entry(145, "transfer(address,uint256)", "0xa9059cbb")])
        )
    )

    descriptor = resolver.resolve_one("0xa9059cbb")

    assert dump_abi([descriptor]) == [
        {
            "type": "function",
            "name": "transfer",
            "inputs": [{"type": "address", "name": ""}, {"type": "uint256", "name": ""}],
            "stateMutability": "nonpayable",
            "selector": "0xa9059cbb",
        }
    ]
    assert session.get_calls[0]["params"] == {"hex_signature": "0xa9059cbb"}
    assert session.get_calls[0]["timeout"] == 3


def test_resolve_one_prefers_lowest_identifier():
    resolver, _ = _resolver(
        lambda url, params: make_response(
            fourbyte_page(
                [
                    fourbyte_entry(5, "collide_late(uint256)", "0x12345678"),
                    fourbyte_entry(2, "collide_early(address)", "0x12345678"),
                ]
            )
        )
    )

    descriptor = resolver.resolve_one("0x12345678")

    assert descriptor.name == "collide_early"
    assert [p.type for p in descriptor.inputs] == ["address"]


def test_resolve_one_zero_results_returns_placeholder():
    resolver, _ = _resolver(lambda url, params: make_response(fourbyte_page([])))

    descriptor = resolver.resolve_one("0xdeadbeef")

    assert descriptor.name == "unknown_deadbeef"
    assert descriptor.inputs == []
    assert descriptor.stateMutability == "nonpayable"
    assert descriptor.selector == "0xdeadbeef"


@pytest.mark.parametrize(
    "handler",
    [
        lambda url, params: make_response({"detail": "throttled"}, status_code=429),
        lambda url, params: make_response(None, status_code=500),
        lambda url, params: make_response(["not", "an", "object"]),
    ],
)
def test_resolve_one_bad_responses_return_placeholder(handler):
    resolver, _ = _resolver(handler)
    assert resolver.resolve_one("0xdeadbeef") == placeholder_descriptor("0xdeadbeef")


def test_resolve_one_network_error_returns_placeholder():
    def handler(url, params):
        raise requests.ConnectionError("connection refused")

    resolver, _ = _resolver(handler)
    assert resolver.resolve_one("0xDEADBEEF").name == "unknown_deadbeef"


def test_resolve_one_unparseable_signature_returns_placeholder():
    resolver, _ = _resolver(
        lambda url, params: make_response(fourbyte_page([fourbyte_entry(1, "not a signature", "0xdeadbeef")]))
    )
    assert resolver.resolve_one("0xdeadbeef").name == "unknown_deadbeef"


def test_lookup_follows_pagination_for_lowest_identifier():
    next_url = REGISTRY_URL + "?hex_signature=0x12345678&page=2"

    def handler(url, params):
        if url == next_url:
            return make_response(fourbyte_page([fourbyte_entry(3, "oldest(bytes)", "0x12345678")]))
        return make_response(fourbyte_page([fourbyte_entry(90, "newer()", "0x12345678")], next_url=next_url))

    resolver, session = _resolver(handler)

    assert resolver.resolve_one("0x12345678").name == "oldest"
    assert session.get_calls[1] == {"url": next_url, "params": None, "timeout": 3}


def test_lookup_stops_at_max_pages_and_keeps_first_page_on_later_failure():
    next_url = REGISTRY_URL + "?page=2"

    def handler(url, params):
        if url == next_url:
            raise requests.Timeout("slow page")
        return make_response(fourbyte_page([fourbyte_entry(7, "first()", "0x12345678")], next_url=next_url))

    resolver, _ = _resolver(handler)
    assert resolver.resolve_one("0x12345678").name == "first"

    capped, capped_session = _resolver(handler, max_pages=1)
    assert capped.resolve_one("0x12345678").name == "first"
    assert len(capped_session.get_calls) == 1


def test_resolve_all_partial_failures_return_one_descriptor_per_selector():
    selectors = [f"0x{i:08x}" for i in range(10)]
    failing = {selectors[1], selectors[4], selectors[8]}

    def handler(url, params):
        selector = params["hex_signature"]
        if selector in failing:
            raise requests.ConnectionError("boom")
        return make_response(fourbyte_page([fourbyte_entry(1, f"fn_{selector[2:]}(uint256)", selector)]))

    resolver, _ = _resolver(handler)

    descriptors = resolver.resolve_all(selectors)

    assert len(descriptors) == 10
    assert [d.selector for d in descriptors] == selectors
    placeholders = [d for d in descriptors if d.name.startswith("unknown_")]
    resolved = [d for d in descriptors if d.name.startswith("fn_")]
    assert len(placeholders) == 3
    assert len(resolved) == 7
    assert {d.selector for d in placeholders} == failing


def test_resolve_all_runs_lookups_concurrently():
    lock = threading.Lock()
    state = {"active": 0, "peak": 0}

    def handler(url, params):
        with lock:
            state["active"] += 1
            state["peak"] = max(state["peak"], state["active"])
        time.sleep(0.05)
        with lock:
            state["active"] -= 1
        return make_response(fourbyte_page([]))

    resolver, _ = _resolver(handler, max_workers=4)
    descriptors = resolver.resolve_all([f"0x{i:08x}" for i in range(8)])

    assert len(descriptors) == 8
    assert state["peak"] > 1


def test_resolve_all_empty_input():
    resolver, session = _resolver(None)
    assert resolver.resolve_all([]) == []
    assert session.get_calls == []


@pytest.mark.parametrize(
    "text, expected",
    [
        ("balanceOf(address)", ("balanceOf", ["address"])),
        ("totalSupply()", ("totalSupply", [])),
        ("swap(uint256, address[])", ("swap", ["uint256", "address[]"])),
        ("aggregate((address,bytes)[])", ("aggregate", ["(address", "bytes)[]"])),
        ("bad name(uint256)", None),
        ("missingParen(uint256", None),
        ("emptyArg(uint256,)", None),
    ],
)
def test_parse_signature(text, expected):
    assert parse_signature(text) == expected
