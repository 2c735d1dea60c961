"""
Tiered ABI resolution.

Tier 1 asks the explorer for a verified ABI (following proxies). Only when
that tier fails entirely is Tier 2 tried: bytecode is fetched over RPC,
scanned for PUSH4 selectors and resolved against the signature registry.
When both fail the result asks the caller for a manual ABI. Neither tier is
retried.
"""

import logging
from typing import Optional

from .bytecode import extract_selectors
from .chains import ChainNetwork
from .errors import ResolutionError
from .etherscan_client import EtherscanClient
from .models import ContractRecord, ResolutionResult, Tier
from .rpc_client import RpcClient
from .signatures import SignatureResolver

logger = logging.getLogger(__name__)

RECOVERED_CONTRACT_NAME = "Unverified Contract (Recovered)"


class ResolutionPipeline:
    def __init__(
        self,
        explorer: EtherscanClient,
        rpc: RpcClient,
        signatures: SignatureResolver,
    ) -> None:
        self.explorer = explorer
        self.rpc = rpc
        self.signatures = signatures

    def resolve(self, address: str, network: ChainNetwork) -> ResolutionResult:
        record = self._try_verified(address, network)
        if record is None:
            record = self._try_recovery(address)
        if record is None:
            logger.warning("Both tiers failed for %s on %s; manual ABI required", address, network.value)
            return ResolutionResult.exhausted()
        return ResolutionResult(record=record)

    def _try_verified(self, address: str, network: ChainNetwork) -> Optional[ContractRecord]:
        try:
            return self.explorer.resolve_verified(address, network)
        except ResolutionError as exc:
            logger.warning("Tier 1 (Verified) failed for %s: %s", address, exc)
            return None

    def _try_recovery(self, address: str) -> Optional[ContractRecord]:
        try:
            bytecode = self.rpc.get_code(address)
            selectors = extract_selectors(bytecode)
        except ResolutionError as exc:
            logger.warning("Tier 2 (Recovered) failed for %s: %s", address, exc)
            return None

        logger.info("Recovering ABI for %s from %d candidate selectors", address, len(selectors))
        abi = self.signatures.resolve_all(selectors)
        return ContractRecord(address=address, name=RECOVERED_CONTRACT_NAME, abi=abi, tier=Tier.RECOVERED)
