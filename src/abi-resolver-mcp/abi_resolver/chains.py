from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional
from urllib.parse import urlparse

# Hosts that serve human-facing explorer pages, never a JSON-RPC endpoint.
EXPLORER_HOSTNAMES = ("basescan.org", "etherscan.io")


@dataclass(frozen=True)
class ChainInfo:
    chainname: str
    chainid: str
    rpc_url: str
    blockscout_url: str


class ChainNetwork(str, Enum):
    MAINNET = "mainnet"
    TESTNET = "testnet"

    @property
    def info(self) -> ChainInfo:
        return CHAINS[self]

    @property
    def chain_id(self) -> str:
        return CHAINS[self].chainid

    @property
    def default_rpc_url(self) -> str:
        return CHAINS[self].rpc_url

    @property
    def blockscout_url(self) -> str:
        return CHAINS[self].blockscout_url


CHAINS: Dict[ChainNetwork, ChainInfo] = {
    ChainNetwork.MAINNET: ChainInfo(
        chainname="Base Mainnet",
        chainid="8453",
        rpc_url="https://mainnet.base.org",
        blockscout_url="https://base.blockscout.com/api",
    ),
    ChainNetwork.TESTNET: ChainInfo(
        chainname="Base Sepolia Testnet",
        chainid="84532",
        rpc_url="https://sepolia.base.org",
        blockscout_url="https://base-sepolia.blockscout.com/api",
    ),
}

DEFAULT_NETWORK = ChainNetwork.MAINNET


def parse_network(value: Optional[str]) -> Optional[ChainNetwork]:
    """Map a network label to a ChainNetwork, or None if unknown.

    Labels are matched exactly; only a missing label resolves to the default.
    """
    if value is None:
        return DEFAULT_NETWORK
    for network in ChainNetwork:
        if network.value == value:
            return network
    return None


def is_explorer_url(url: str) -> bool:
    """True when the URL points at a block explorer website instead of a node."""
    candidate = (url or "").strip().lower()
    if not candidate:
        return False
    host = urlparse(candidate).hostname or candidate
    return any(name in host for name in EXPLORER_HOSTNAMES)
