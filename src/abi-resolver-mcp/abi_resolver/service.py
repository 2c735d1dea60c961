import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

import requests

from .chains import ChainNetwork
from .config import Config
from .errors import ValidationError
from .etherscan_client import EtherscanClient
from .models import MANUAL_ABI_REQUIRED
from .pipeline import ResolutionPipeline
from .rpc_client import RpcClient
from .signatures import SignatureResolver
from .validation import validate_request

logger = logging.getLogger(__name__)

Response = Tuple[int, Dict[str, Any]]


class ContractService:
    """Turn a raw contract lookup request into a status code and JSON body."""

    def __init__(
        self,
        config: Config,
        session_factory: Callable[[], requests.Session] = requests.Session,
    ) -> None:
        self.config = config
        self.session_factory = session_factory

    def build_pipeline(self, network: ChainNetwork) -> ResolutionPipeline:
        cfg = self.config
        sessions: List[requests.Session] = []

        def new_session() -> requests.Session:
            session = self.session_factory()
            sessions.append(session)
            return session

        try:
            explorer = EtherscanClient(
                base_url=cfg.explorer_url,
                api_key=cfg.api_key,
                timeout=cfg.request_timeout,
                blockscout_fallback=cfg.blockscout_fallback,
                session=new_session(),
            )
            rpc = RpcClient(
                cfg.rpc_url(network),
                timeout=cfg.request_timeout,
                session=new_session(),
            )
            signatures = SignatureResolver(
                base_url=cfg.signature_url,
                timeout=cfg.request_timeout,
                max_workers=cfg.signature_max_workers,
                max_pages=cfg.signature_max_pages,
                session=new_session(),
            )
        except Exception:
            for session in sessions:
                session.close()
            raise
        return ResolutionPipeline(explorer, rpc, signatures)

    def get_contract(self, address: Any, network: Optional[str] = None) -> Response:
        try:
            normalized_address, resolved_network = validate_request(address, network)
        except ValidationError as exc:
            return 400, {"success": False, "error": "Invalid request", "details": exc.details}

        try:
            pipeline = self.build_pipeline(resolved_network)
            try:
                result = pipeline.resolve(normalized_address, resolved_network)
            finally:
                pipeline.explorer.close()
                pipeline.rpc.close()
                pipeline.signatures.close()
        except Exception as exc:  # pylint: disable=broad-except
            logger.exception("Error resolving contract %s", normalized_address)
            return 500, {"success": False, "error": str(exc) or "Failed to get contract"}

        if result.requires_manual_abi:
            return 404, {
                "success": False,
                "error": "Contract not verified and recovery failed",
                "code": MANUAL_ABI_REQUIRED,
            }
        return 200, {"success": True, "data": result.record.to_response_data()}
