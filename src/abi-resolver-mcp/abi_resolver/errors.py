from typing import Any, Dict, List, Optional


class AbiResolverError(Exception):
    """Base class for every error raised by the resolver."""


class ValidationError(AbiResolverError):
    """Request rejected before any network call (bad address or network)."""

    def __init__(self, details: List[Dict[str, Any]]) -> None:
        self.details = details
        message = "; ".join(f"{d.get('field')}: {d.get('message')}" for d in details) or "Invalid request"
        super().__init__(message)


class ResolutionError(AbiResolverError):
    """A tier could not produce a result. Never surfaced individually to callers."""


class VerificationNotFound(ResolutionError):
    pass


class AbiParseError(ResolutionError):
    pass


class NoBytecodeError(ResolutionError):
    pass


class EmptyRecoveryError(ResolutionError):
    pass


class UpstreamUnavailable(ResolutionError):
    pass


class SignatureLookupFailure(AbiResolverError):
    """A single selector lookup failed; always absorbed into a placeholder."""

    def __init__(self, selector: str, reason: Optional[str] = None) -> None:
        self.selector = selector
        self.reason = reason
        super().__init__(f"Signature lookup for {selector} failed: {reason or 'unknown error'}.")
