import logging
import os
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional

from .chains import ChainNetwork, is_explorer_url

logger = logging.getLogger(__name__)

DEFAULT_EXPLORER_URL = "https://api.etherscan.io/v2/api"
DEFAULT_SIGNATURE_URL = "https://www.4byte.directory/api/v1/signatures/"

# Environment variable carrying the RPC endpoint override for each network.
RPC_URL_ENV = {
    ChainNetwork.MAINNET: "BASE_RPC_URL",
    ChainNetwork.TESTNET: "BASE_SEPOLIA_RPC_URL",
}


def _default_rpc_urls() -> Mapping[ChainNetwork, str]:
    return MappingProxyType({network: network.default_rpc_url for network in ChainNetwork})


@dataclass(frozen=True)
class Config:
    api_key: Optional[str] = None
    explorer_url: str = DEFAULT_EXPLORER_URL
    signature_url: str = DEFAULT_SIGNATURE_URL
    rpc_urls: Mapping[ChainNetwork, str] = field(default_factory=_default_rpc_urls)
    request_timeout: float = 10
    signature_max_workers: int = 8
    signature_max_pages: int = 3
    blockscout_fallback: bool = True
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        # Sanitized once here so call sites never see an explorer URL.
        sanitized = {network: sanitize_rpc_url(network, self.rpc_urls.get(network)) for network in ChainNetwork}
        object.__setattr__(self, "rpc_urls", MappingProxyType(sanitized))

    def rpc_url(self, network: ChainNetwork) -> str:
        return self.rpc_urls.get(network) or network.default_rpc_url


def sanitize_rpc_url(network: ChainNetwork, url: Optional[str]) -> str:
    """Return a usable RPC endpoint for the network.

    Empty values and explorer website URLs fall back to the network default.
    """
    candidate = (url or "").strip()
    if not candidate:
        return network.default_rpc_url
    if is_explorer_url(candidate):
        logger.warning(
            "Configured RPC URL for %s points at a block explorer (%s); using %s instead",
            network.value,
            candidate,
            network.default_rpc_url,
        )
        return network.default_rpc_url
    return candidate


def _parse_bool(raw: str, name: str) -> bool:
    normalized = raw.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    raise ValueError(f"{name} must be a boolean (true/false), got '{raw}'.")


def _parse_positive(raw: str, name: str, cast):
    try:
        value = cast(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got '{raw}'.") from exc
    if value <= 0:
        raise ValueError(f"{name} must be positive, got '{raw}'.")
    return value


def load_config() -> Config:
    """Load configuration from environment variables."""
    api_key = os.getenv("ETHERSCAN_API_KEY") or os.getenv("BASESCAN_API_KEY")
    api_key = api_key.strip() if api_key else None

    explorer_url = os.getenv("ETHERSCAN_BASE_URL", DEFAULT_EXPLORER_URL).rstrip("/")
    signature_url = os.getenv("FOURBYTE_URL", DEFAULT_SIGNATURE_URL)
    timeout = _parse_positive(os.getenv("REQUEST_TIMEOUT", "10"), "REQUEST_TIMEOUT", float)
    max_workers = _parse_positive(os.getenv("SIGNATURE_MAX_WORKERS", "8"), "SIGNATURE_MAX_WORKERS", int)
    max_pages = _parse_positive(os.getenv("SIGNATURE_MAX_PAGES", "3"), "SIGNATURE_MAX_PAGES", int)
    blockscout_fallback = _parse_bool(os.getenv("BLOCKSCOUT_FALLBACK", "true"), "BLOCKSCOUT_FALLBACK")
    log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO"

    rpc_urls = {network: os.getenv(env_name, "") for network, env_name in RPC_URL_ENV.items()}

    return Config(
        api_key=api_key or None,
        explorer_url=explorer_url,
        signature_url=signature_url,
        rpc_urls=rpc_urls,
        request_timeout=timeout,
        signature_max_workers=max_workers,
        signature_max_pages=max_pages,
        blockscout_fallback=blockscout_fallback,
        log_level=log_level,
    )
