import logging
import re
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, Iterable, List, Optional, Tuple

import requests
from pydantic import ValidationError as PydanticValidationError
from requests.adapters import HTTPAdapter

from .bytecode import normalize_selector
from .errors import SignatureLookupFailure
from .models import AbiParameter, FunctionDescriptor, SignatureCandidate

logger = logging.getLogger(__name__)

DEFAULT_MUTABILITY = "nonpayable"

_SIGNATURE_RE = re.compile(r"^([a-zA-Z0-9_]+)\((.*)\)$")


def parse_signature(text: str) -> Optional[Tuple[str, List[str]]]:
    """Split ``name(type,type)`` into its name and raw argument types.

    Types are kept verbatim, so tuple arguments such as ``(uint256,address)``
    are split on their inner commas as well.
    """
    match = _SIGNATURE_RE.match((text or "").strip())
    if not match:
        return None
    name, args = match.group(1), match.group(2)
    if not args:
        return name, []
    types = [arg.strip() for arg in args.split(",")]
    if any(not t for t in types):
        return None
    return name, types


def placeholder_descriptor(selector: str) -> FunctionDescriptor:
    return FunctionDescriptor(
        type="function",
        name=f"unknown_{selector[2:]}",
        inputs=[],
        stateMutability=DEFAULT_MUTABILITY,
        selector=selector,
    )


class SignatureResolver:
    """Resolve 4-byte selectors to function descriptors via 4byte.directory."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 10,
        max_workers: int = 8,
        max_pages: int = 3,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url
        self.timeout = timeout
        self.max_workers = max(1, int(max_workers))
        self.max_pages = max(1, int(max_pages))
        self.session = session or requests.Session()
        # One pooled connection per worker thread.
        adapter = HTTPAdapter(pool_maxsize=self.max_workers)
        self.session.mount("https://", adapter)
        self.session.mount("http://", adapter)

    def close(self) -> None:
        self.session.close()

    def lookup(self, selector: str) -> List[SignatureCandidate]:
        """All registry candidates for a selector, following pagination up to ``max_pages``."""
        candidates: List[SignatureCandidate] = []
        url: Optional[str] = self.base_url
        params: Optional[Dict[str, Any]] = {"hex_signature": selector}
        page = 0
        while url and page < self.max_pages:
            try:
                payload = self._get(url, params)
            except SignatureLookupFailure:
                if page == 0:
                    raise
                logger.debug("Stopping pagination for %s after page %d", selector, page)
                break
            candidates.extend(self._parse_candidates(payload.get("results")))
            url = payload.get("next") if isinstance(payload.get("next"), str) else None
            params = None
            page += 1
        return candidates

    def resolve_one(self, selector: str) -> FunctionDescriptor:
        selector = normalize_selector(selector)
        try:
            candidates = self.lookup(selector)
        except SignatureLookupFailure as exc:
            logger.debug("%s", exc)
            return placeholder_descriptor(selector)

        if not candidates:
            logger.debug("No registry signatures for %s", selector)
            return placeholder_descriptor(selector)

        # Lowest id is taken as the earliest submitted, most likely canonical signature.
        best = min(candidates, key=lambda c: c.id)
        parsed = parse_signature(best.text_signature)
        if parsed is None:
            logger.debug("Unparseable signature %r for %s", best.text_signature, selector)
            return placeholder_descriptor(selector)

        name, types = parsed
        return FunctionDescriptor(
            type="function",
            name=name,
            inputs=[AbiParameter(type=t, name="") for t in types],
            stateMutability=DEFAULT_MUTABILITY,
            selector=selector,
        )

    def resolve_all(self, selectors: Iterable[str]) -> List[FunctionDescriptor]:
        """Resolve every selector concurrently; one descriptor per selector, in input order."""
        ordered = list(selectors)
        if not ordered:
            return []
        workers = min(self.max_workers, len(ordered))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            descriptors = list(executor.map(self.resolve_one, ordered))
        resolved = sum(1 for d in descriptors if not d.name.startswith("unknown_"))
        logger.info("Resolved %d of %d selectors", resolved, len(descriptors))
        return descriptors

    def _get(self, url: str, params: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        selector = (params or {}).get("hex_signature", url)
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as exc:
            raise SignatureLookupFailure(selector, str(exc)) from exc
        if response.status_code != 200:
            raise SignatureLookupFailure(selector, f"HTTP {response.status_code}")
        try:
            payload = response.json()
        except ValueError as exc:
            raise SignatureLookupFailure(selector, "non-JSON response") from exc
        if not isinstance(payload, dict):
            raise SignatureLookupFailure(selector, "unexpected response shape")
        return payload

    def _parse_candidates(self, results: Any) -> List[SignatureCandidate]:
        if not isinstance(results, list):
            return []
        candidates = []
        for item in results:
            try:
                candidates.append(SignatureCandidate.model_validate(item))
            except PydanticValidationError:
                continue
        return candidates
