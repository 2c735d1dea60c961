"""
PUSH4 selector scan over deployed bytecode.

This is a heuristic, not a disassembler: every 0x63 byte followed by four
bytes is taken as a selector candidate, including bytes that really belong to
another instruction's push data. Such false positives resolve to placeholder
functions downstream.
"""

import re
from typing import Dict, List

from .errors import EmptyRecoveryError

PUSH4_OPCODE = 0x63
SELECTOR_SIZE = 4

_HEX_RE = re.compile(r"^[0-9a-fA-F]*$")


def _to_bytes(bytecode: str) -> bytes:
    candidate = (bytecode or "").strip()
    if candidate[:2].lower() == "0x":
        candidate = candidate[2:]
    if len(candidate) % 2 or not _HEX_RE.match(candidate):
        return b""
    return bytes.fromhex(candidate)


def normalize_selector(selector: str) -> str:
    candidate = selector.strip().lower()
    if not candidate.startswith("0x"):
        candidate = f"0x{candidate}"
    return candidate


def extract_selectors(bytecode: str) -> List[str]:
    """Distinct PUSH4 immediates, in the order they first appear in the code."""
    code = _to_bytes(bytecode)
    selectors: Dict[str, None] = {}
    i = 0
    last_start = len(code) - SELECTOR_SIZE - 1
    while i <= last_start:
        if code[i] == PUSH4_OPCODE:
            selectors.setdefault("0x" + code[i + 1 : i + 1 + SELECTOR_SIZE].hex(), None)
            i += 1 + SELECTOR_SIZE
        else:
            i += 1

    if not selectors:
        raise EmptyRecoveryError("No selectors found in bytecode.")
    return list(selectors)
