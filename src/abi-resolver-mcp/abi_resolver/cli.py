import argparse
import json
import sys
from typing import Optional

from .config import load_config
from .logging_utils import configure_logging
from .service import ContractService


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Resolve a contract ABI from its address (verified source first, bytecode recovery second).",
        allow_abbrev=False,
    )
    parser.add_argument(
        "--log-level",
        required=False,
        help="Logging level (DEBUG, INFO, WARNING...). Defaults to LOG_LEVEL env or INFO.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    resolve_parser = subparsers.add_parser("resolve", help="Resolve a contract ABI")
    resolve_parser.add_argument(
        "--address",
        required=True,
        help="Contract address (0x-prefixed, 40 hex characters).",
    )
    resolve_parser.add_argument(
        "--network",
        required=False,
        help="mainnet or testnet. Defaults to mainnet.",
    )

    return parser


def main(argv: Optional[list[str]] = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config()
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)

    configure_logging(args.log_level or config.log_level)
    service = ContractService(config)

    if args.command == "resolve":
        status, body = service.get_contract(args.address, args.network)
        print(json.dumps(body, indent=2))
        if status != 200:
            sys.exit(1)


if __name__ == "__main__":
    main()
