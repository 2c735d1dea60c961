import json
import logging
from typing import Any, Dict, List, Optional

import requests

from .chains import ChainNetwork
from .errors import AbiParseError, AbiResolverError, ResolutionError, UpstreamUnavailable, VerificationNotFound
from .models import ContractMetadata, ContractRecord, Tier, parse_abi_entries
from .proxy import ProxyResolver
from .validation import normalize_address

logger = logging.getLogger(__name__)

UNKNOWN_CONTRACT_NAME = "Unknown Contract"
BLOCKSCOUT_CONTRACT_NAME = "Unknown Contract (Blockscout)"
PROXY_NAME_SUFFIX = " (Proxy)"


class EtherscanClient:
    """Etherscan V2 client for verified ABIs and contract metadata.

    Each call is made once with a bounded timeout; failures are reported
    through the resolver error taxonomy instead of raw ``requests`` errors.
    """

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        timeout: float = 10,
        blockscout_fallback: bool = True,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.blockscout_fallback = blockscout_fallback
        self.session = session or requests.Session()
        if api_key:
            self.session.headers.update({"X-API-Key": api_key})
        self.proxy_resolver = ProxyResolver(self)

    def close(self) -> None:
        self.session.close()

    def get_abi(self, address: str, chain_id: str) -> Dict[str, Any]:
        params = {
            "module": "contract",
            "action": "getabi",
            "address": address,
            "chainid": chain_id,
        }
        return self._request(self.base_url, params)

    def get_contract_source(self, address: str, chain_id: str) -> Dict[str, Any]:
        params = {
            "module": "contract",
            "action": "getsourcecode",
            "address": address,
            "chainid": chain_id,
        }
        return self._request(self.base_url, params)

    def fetch_abi(self, address: str, chain_id: str) -> List[Any]:
        """Verified ABI entries for an address, in the order the explorer returned them."""
        payload = self.get_abi(address, chain_id)
        return self._parse_abi_payload(payload, address)

    def fetch_blockscout_abi(self, address: str, network: ChainNetwork) -> List[Any]:
        params = {
            "module": "contract",
            "action": "getabi",
            "address": address,
        }
        payload = self._request(network.blockscout_url, params, authenticated=False)
        return self._parse_abi_payload(payload, address)

    def fetch_metadata(self, address: str, chain_id: str) -> Optional[ContractMetadata]:
        """Contract name and proxy flags, or None when the lookup fails for any reason."""
        try:
            payload = self.get_contract_source(address, chain_id)
        except AbiResolverError as exc:
            logger.warning("Failed to fetch contract details/proxy for %s: %s", address, exc)
            return None

        status = str(payload.get("status", "")).strip()
        result = payload.get("result")
        if status != "1" or not isinstance(result, list) or not result or not isinstance(result[0], dict):
            logger.warning(
                "No contract metadata for %s: %s",
                address,
                payload.get("message") or "empty result",
            )
            return None

        entry = result[0]
        name = str(entry.get("ContractName") or "").strip() or UNKNOWN_CONTRACT_NAME
        proxy_flag = str(entry.get("Proxy", "")).strip().lower()
        implementation = normalize_address(entry.get("Implementation"))
        return ContractMetadata(
            name=name,
            is_proxy=proxy_flag in {"1", "true", "yes"},
            implementation=implementation,
        )

    def resolve_verified(self, address: str, network: ChainNetwork) -> ContractRecord:
        chain_id = network.chain_id
        try:
            abi = self.fetch_abi(address, chain_id)
        except ResolutionError as exc:
            if not self.blockscout_fallback:
                raise
            logger.info("Etherscan has no verified ABI for %s (%s); trying Blockscout", address, exc)
            try:
                abi = self.fetch_blockscout_abi(address, network)
            except ResolutionError as fallback_exc:
                logger.info("Blockscout fallback failed for %s: %s", address, fallback_exc)
                raise exc from fallback_exc
            return ContractRecord(address=address, name=BLOCKSCOUT_CONTRACT_NAME, abi=abi, tier=Tier.VERIFIED)

        record = ContractRecord(address=address, name=UNKNOWN_CONTRACT_NAME, abi=abi, tier=Tier.VERIFIED)
        metadata = self.fetch_metadata(address, chain_id)
        if metadata is None:
            return record

        record.name = metadata.name
        if metadata.is_proxy and metadata.implementation and metadata.implementation != address:
            logger.info("Proxy detected at %s, implementation at %s", address, metadata.implementation)
            implementation_abi = self.proxy_resolver.resolve_implementation(chain_id, metadata.implementation)
            if implementation_abi is not None:
                record.abi = implementation_abi
                record.name = f"{record.name}{PROXY_NAME_SUFFIX}"
                record.implementation = metadata.implementation
        return record

    def _parse_abi_payload(self, payload: Dict[str, Any], address: str) -> List[Any]:
        status = str(payload.get("status", "")).strip()
        result = payload.get("result")
        if status != "1" or not result:
            detail = result if isinstance(result, str) else ""
            raise VerificationNotFound(
                f"Contract {address} not verified: {detail or payload.get('message') or 'unknown error'}."
            )

        if isinstance(result, str):
            try:
                raw_abi = json.loads(result)
            except json.JSONDecodeError as exc:
                raise AbiParseError("Failed to parse verified ABI.") from exc
        else:
            raw_abi = result

        if not isinstance(raw_abi, list):
            raise AbiParseError(f"Verified ABI must be a JSON array, got {type(raw_abi).__name__}.")
        return parse_abi_entries(raw_abi)

    def _request(self, url: str, params: Dict[str, Any], authenticated: bool = True) -> Dict[str, Any]:
        merged = dict(params)
        if authenticated and self.api_key:
            merged["apikey"] = self.api_key

        try:
            response = self.session.get(url, params=merged, timeout=self.timeout)
            response.raise_for_status()
            payload = response.json()
        except requests.RequestException as exc:
            raise UpstreamUnavailable(f"Explorer request failed: {exc}") from exc
        except ValueError as exc:
            raise UpstreamUnavailable("Failed to parse response from explorer.") from exc

        if not isinstance(payload, dict):
            raise UpstreamUnavailable("Unexpected response from explorer (non-object).")
        return payload
