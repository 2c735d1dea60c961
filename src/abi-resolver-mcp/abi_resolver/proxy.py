"""Proxy implementation ABI substitution."""

import logging
from typing import Any, List, Optional

from .errors import ResolutionError

logger = logging.getLogger(__name__)


class ProxyResolver:
    def __init__(self, client: Any) -> None:
        self._client = client

    def resolve_implementation(self, chain_id: str, implementation_address: str) -> Optional[List[Any]]:
        """
        Fetch the verified ABI of a proxy's implementation contract.

        Returns None when the implementation has no usable verified ABI, in
        which case the caller keeps the proxy's own ABI.
        """
        try:
            abi = self._client.fetch_abi(implementation_address, chain_id)
        except ResolutionError as exc:
            logger.warning(
                "Implementation ABI fetch failed for %s on chain %s; keeping proxy ABI: %s",
                implementation_address,
                chain_id,
                exc,
            )
            return None
        logger.info("Using implementation ABI from %s (%d entries)", implementation_address, len(abi))
        return abi
