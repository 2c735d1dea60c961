import logging
from typing import Any, Dict, List, Optional

import requests

from .errors import NoBytecodeError, UpstreamUnavailable

logger = logging.getLogger(__name__)

EMPTY_BYTECODE = "0x"


class RpcClient:
    """Minimal JSON-RPC 2.0 client for EVM nodes (HTTP POST)."""

    def __init__(
        self,
        rpc_url: str,
        timeout: float = 10,
        headers: Optional[Dict[str, str]] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        url = (rpc_url or "").strip()
        if not url:
            raise ValueError("rpc_url must be a non-empty string.")

        self.rpc_url = url
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"Content-Type": "application/json"})
        if headers:
            self.session.headers.update(dict(headers))
        self._next_id = 1

    def close(self) -> None:
        self.session.close()

    def call(self, method: str, params: Optional[List[Any]] = None) -> Any:
        if not isinstance(method, str) or not method.strip():
            raise ValueError("method must be a non-empty string.")
        if params is None:
            params = []
        if not isinstance(params, list):
            raise ValueError("params must be a list.")

        payload = {
            "jsonrpc": "2.0",
            "id": self._next_id,
            "method": method,
            "params": params,
        }
        self._next_id += 1

        try:
            response = self.session.post(
                self.rpc_url,
                json=payload,
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as exc:
            raise UpstreamUnavailable(f"RPC request to {self.rpc_url} failed: {exc}") from exc
        except ValueError as exc:
            raise UpstreamUnavailable("RPC returned a non-JSON response.") from exc

        if not isinstance(data, dict):
            raise UpstreamUnavailable("Unexpected JSON-RPC response (non-object).")

        error_obj = data.get("error")
        if isinstance(error_obj, dict):
            code = error_obj.get("code")
            message = error_obj.get("message")
            err_data = error_obj.get("data")
            parts: List[str] = []
            if code is not None:
                parts.append(f"code {code}")
            if message:
                parts.append(str(message))
            if err_data:
                parts.append(str(err_data))
            detail = ": ".join(parts) if parts else "unknown error"
            raise UpstreamUnavailable(f"RPC error: {detail}.")

        return data.get("result")

    def get_code(self, address: str, block_tag: str = "latest") -> str:
        """Deployed bytecode at ``address``; NoBytecodeError for plain accounts."""
        result = self.call("eth_getCode", [address, block_tag])
        if not isinstance(result, str) or not result or result.lower() == EMPTY_BYTECODE:
            raise NoBytecodeError(f"No bytecode found at address {address}.")
        logger.debug("Fetched %d bytes of code for %s", (len(result) - 2) // 2, address)
        return result
