"""
MCP server exposing tiered contract ABI resolution.
"""

import argparse
from typing import Optional

from mcp.server.fastmcp import FastMCP

from .config import load_config
from .logging_utils import configure_logging
from .service import ContractService

server = FastMCP(
    name="abi-resolver-mcp",
    instructions=(
        "Resolve a contract ABI from its address: verified explorer ABI first (proxy-aware), "
        "then heuristic recovery from bytecode selectors."
    ),
)

_service: Optional[ContractService] = None


def _get_service() -> ContractService:
    global _service
    if _service is None:
        cfg = load_config()
        _service = ContractService(cfg)
    return _service


@server.tool(
    name="get_contract",
    title="Get Contract ABI",
    description=(
        "Resolve a contract's ABI by address on mainnet or testnet. Returns success/data on hit; "
        "code REQUIRE_MANUAL_ABI when neither a verified nor a recovered ABI is available."
    ),
)
def get_contract(address: str, network: Optional[str] = None) -> dict:
    svc = _get_service()
    _, body = svc.get_contract(address, network)
    return body


def main() -> None:
    parser = argparse.ArgumentParser(description="Run the ABI resolver MCP server.")
    parser.add_argument(
        "--transport",
        choices=["stdio", "sse", "streamable-http"],
        default="stdio",
        help="Transport protocol for MCP.",
    )
    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Host for SSE/HTTP transports.",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port for SSE/HTTP transports.",
    )
    parser.add_argument(
        "--mount-path",
        default="/",
        help="Mount path for SSE transport (only when transport=sse).",
    )
    args = parser.parse_args()

    configure_logging(_get_service().config.log_level)

    # FastMCP uses host/port only for SSE/HTTP transports; stdio ignores them.
    server.settings.host = args.host
    server.settings.port = args.port

    if args.transport == "sse":
        server.run(transport="sse", mount_path=args.mount_path)
    else:
        server.run(transport=args.transport)


if __name__ == "__main__":
    main()
