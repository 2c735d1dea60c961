import re
from typing import Any, Dict, List, Optional, Tuple

from .chains import ChainNetwork, parse_network
from .errors import ValidationError

ADDRESS_PATTERN = re.compile(r"^0x[a-fA-F0-9]{40}$")


def normalize_address(address: Any) -> Optional[str]:
    """Lowercased 0x-prefixed address, or None when the input is not one."""
    if not isinstance(address, str):
        return None
    if not ADDRESS_PATTERN.fullmatch(address):
        return None
    return address.lower()


def validate_request(address: Any, network: Optional[str] = None) -> Tuple[str, ChainNetwork]:
    """Validate a contract lookup request before any network call is made.

    Returns the canonical lowercase address and the resolved network. Every
    invalid field is reported at once in ``ValidationError.details``.
    """
    details: List[Dict[str, Any]] = []

    normalized_address = normalize_address(address)
    if normalized_address is None:
        details.append({"field": "address", "message": "Invalid contract address format"})

    resolved_network = parse_network(network) if network is None or isinstance(network, str) else None
    if resolved_network is None:
        allowed = ", ".join(n.value for n in ChainNetwork)
        details.append({"field": "network", "message": f"Invalid network. Expected one of: {allowed}"})

    if details:
        raise ValidationError(details)
    return normalized_address, resolved_network
