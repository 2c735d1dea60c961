"""
Typed model of ABI entries and resolution results.

ABI JSON from explorers is loosely typed; each entry is validated into one of
the six entry kinds, keyed on its ``type`` field. Entries are dumped with
``exclude_unset`` so a verified ABI serializes back to the JSON it came from.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Discriminator, Field, Tag, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

logger = logging.getLogger(__name__)

StateMutability = Literal["pure", "view", "nonpayable", "payable"]


class AbiParameter(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: str
    name: Optional[str] = None
    internalType: Optional[str] = None
    indexed: Optional[bool] = None
    components: Optional[List["AbiParameter"]] = None


AbiParameter.model_rebuild()


class _AbiEntryBase(BaseModel):
    model_config = ConfigDict(extra="allow")


class FunctionEntry(_AbiEntryBase):
    # Solidity allows "type" to be omitted for functions.
    type: Literal["function"] = "function"
    name: str
    inputs: List[AbiParameter] = Field(default_factory=list)
    outputs: List[AbiParameter] = Field(default_factory=list)
    stateMutability: Optional[StateMutability] = None


class EventEntry(_AbiEntryBase):
    type: Literal["event"]
    name: str
    inputs: List[AbiParameter] = Field(default_factory=list)
    anonymous: Optional[bool] = None


class ConstructorEntry(_AbiEntryBase):
    type: Literal["constructor"]
    inputs: List[AbiParameter] = Field(default_factory=list)
    stateMutability: Optional[StateMutability] = None


class FallbackEntry(_AbiEntryBase):
    type: Literal["fallback"]
    stateMutability: Optional[StateMutability] = None


class ReceiveEntry(_AbiEntryBase):
    type: Literal["receive"]
    stateMutability: Optional[StateMutability] = None


class ErrorEntry(_AbiEntryBase):
    type: Literal["error"]
    name: str
    inputs: List[AbiParameter] = Field(default_factory=list)


def _entry_kind(value: Any) -> Optional[str]:
    if isinstance(value, dict):
        return value.get("type", "function")
    return getattr(value, "type", None)


AbiEntry = Annotated[
    Union[
        Annotated[FunctionEntry, Tag("function")],
        Annotated[EventEntry, Tag("event")],
        Annotated[ConstructorEntry, Tag("constructor")],
        Annotated[FallbackEntry, Tag("fallback")],
        Annotated[ReceiveEntry, Tag("receive")],
        Annotated[ErrorEntry, Tag("error")],
    ],
    Discriminator(_entry_kind),
]

_ENTRY_ADAPTER = TypeAdapter(AbiEntry)


class FunctionDescriptor(FunctionEntry):
    """A function entry recovered from bytecode, tagged with its selector."""

    selector: str


def parse_abi_entries(raw_entries: List[Any]) -> List[_AbiEntryBase]:
    """Validate raw ABI entries in order, dropping those that match no known kind."""
    entries: List[_AbiEntryBase] = []
    for index, raw in enumerate(raw_entries):
        if not isinstance(raw, dict):
            logger.warning("Dropping ABI entry #%d: expected an object, got %s", index, type(raw).__name__)
            continue
        try:
            entries.append(_ENTRY_ADAPTER.validate_python(raw))
        except PydanticValidationError as exc:
            logger.warning(
                "Dropping ABI entry #%d (type=%r): %d validation error(s)",
                index,
                raw.get("type"),
                exc.error_count(),
            )
    return entries


def dump_abi(entries: List[_AbiEntryBase]) -> List[Dict[str, Any]]:
    return [entry.model_dump(exclude_unset=True) for entry in entries]


class Tier(str, Enum):
    VERIFIED = "verified"
    RECOVERED = "recovered"


class SignatureCandidate(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    text_signature: str
    hex_signature: str = ""


@dataclass(frozen=True)
class ContractMetadata:
    name: str
    is_proxy: bool = False
    implementation: Optional[str] = None


@dataclass
class ContractRecord:
    address: str
    name: str
    abi: List[_AbiEntryBase]
    tier: Tier
    implementation: Optional[str] = None

    @property
    def is_verified(self) -> bool:
        return self.tier is Tier.VERIFIED

    def to_response_data(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "address": self.address,
            "name": self.name,
            "abi": dump_abi(self.abi),
            "isVerified": self.is_verified,
        }
        if self.tier is Tier.RECOVERED:
            data["isRecovered"] = True
        if self.implementation:
            data["implementation"] = self.implementation
        return data


MANUAL_ABI_REQUIRED = "REQUIRE_MANUAL_ABI"


@dataclass(frozen=True)
class ResolutionResult:
    """Either a record produced by one tier, or the manual-ABI-required outcome."""

    record: Optional[ContractRecord] = None

    @property
    def tier(self) -> Optional[Tier]:
        return self.record.tier if self.record else None

    @property
    def requires_manual_abi(self) -> bool:
        return self.record is None

    @classmethod
    def exhausted(cls) -> "ResolutionResult":
        return cls(record=None)
