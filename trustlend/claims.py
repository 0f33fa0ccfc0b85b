"""
TrustLend Claim and Epoch Data Model

Defines the records exchanged with the off-chain attestation service:
witnesses and epochs on the registry side, claims and proofs on the
submission side. The JSON field names are the wire format shared with
claim producers.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Sequence, Tuple

from .util import U8_MAX, U32_MAX, bytes_to_hex, check_uint, hex_to_bytes, to_address


IDENTIFIER_PATTERN = re.compile(r'^0x[0-9a-f]{64}$')


def normalize_identifier(value) -> str:
    """Normalize a 32-byte claim identifier to 0x-prefixed lowercase hex."""
    if isinstance(value, (bytes, bytearray)):
        if len(value) != 32:
            raise ValueError(f"Claim identifier must be 32 bytes, got {len(value)}")
        return bytes_to_hex(value)
    text = str(value).lower()
    if not text.startswith("0x"):
        text = "0x" + text
    if not IDENTIFIER_PATTERN.match(text):
        raise ValueError(f"Invalid claim identifier: {value!r}")
    return text


@dataclass(frozen=True)
class Witness:
    """An account allowed to co-sign claims, plus an informational host."""
    address: str
    host: str = ""

    def __post_init__(self):
        object.__setattr__(self, "address", to_address(self.address))

    def to_dict(self) -> Dict[str, Any]:
        return {"address": self.address, "host": self.host}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Witness':
        return cls(address=data["address"], host=data.get("host", ""))


@dataclass
class Epoch:
    """
    A time-bounded period with a fixed witness roster.

    Only end_time changes after creation, when the next epoch opens.
    """
    id: int
    start_time: int
    end_time: int
    witnesses: Tuple[Witness, ...]
    min_committee_size: int

    def __post_init__(self):
        check_uint(self.id, U32_MAX, "epoch id")
        check_uint(self.start_time, U32_MAX, "start_time")
        check_uint(self.end_time, U32_MAX, "end_time")
        check_uint(self.min_committee_size, U8_MAX, "min_committee_size")
        self.witnesses = tuple(self.witnesses)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "minCommitteeSize": self.min_committee_size,
            "witnesses": [w.to_dict() for w in self.witnesses],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Epoch':
        return cls(
            id=int(data["id"]),
            start_time=int(data["startTime"]),
            end_time=int(data["endTime"]),
            witnesses=tuple(Witness.from_dict(w) for w in data.get("witnesses", [])),
            min_committee_size=int(data["minCommitteeSize"]),
        )


@dataclass(frozen=True)
class CompleteClaimData:
    """The payload whose serialization witnesses sign."""
    identifier: str
    owner: str
    timestamp_s: int
    epoch: int

    def __post_init__(self):
        object.__setattr__(self, "identifier", normalize_identifier(self.identifier))
        object.__setattr__(self, "owner", to_address(self.owner))
        check_uint(self.timestamp_s, U32_MAX, "timestamp_s")
        check_uint(self.epoch, U32_MAX, "epoch")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "identifier": self.identifier,
            "owner": self.owner,
            "timestampS": self.timestamp_s,
            "epoch": self.epoch,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CompleteClaimData':
        return cls(
            identifier=data["identifier"],
            owner=data["owner"],
            timestamp_s=int(data["timestampS"]),
            epoch=int(data["epoch"]),
        )


@dataclass(frozen=True)
class ClaimInfo:
    """
    Human-readable claim metadata.

    context is a flat string of "key":"value" pairs read on demand by
    the ledger. Its hash must equal the signed claim identifier.
    """
    provider: str
    parameters: str
    context: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "provider": self.provider,
            "parameters": self.parameters,
            "context": self.context,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ClaimInfo':
        return cls(
            provider=data["provider"],
            parameters=data["parameters"],
            context=data.get("context", ""),
        )


@dataclass(frozen=True)
class SignedClaim:
    """A claim plus the witness signatures over its serialization."""
    claim: CompleteClaimData
    signatures: Tuple[bytes, ...] = field(default_factory=tuple)

    def __post_init__(self):
        object.__setattr__(self, "signatures", tuple(hex_to_bytes(s) for s in self.signatures))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "claim": self.claim.to_dict(),
            "signatures": [bytes_to_hex(s) for s in self.signatures],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SignedClaim':
        return cls(
            claim=CompleteClaimData.from_dict(data["claim"]),
            signatures=tuple(data.get("signatures", [])),
        )


@dataclass(frozen=True)
class Proof:
    """The unit submitted across the trust boundary."""
    claim_info: ClaimInfo
    signed_claim: SignedClaim

    @property
    def claim(self) -> CompleteClaimData:
        return self.signed_claim.claim

    def to_dict(self) -> Dict[str, Any]:
        return {
            "claimInfo": self.claim_info.to_dict(),
            "signedClaim": self.signed_claim.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Proof':
        return cls(
            claim_info=ClaimInfo.from_dict(data["claimInfo"]),
            signed_claim=SignedClaim.from_dict(data["signedClaim"]),
        )


def make_witnesses(addresses: Sequence[str], host: str = "") -> Tuple[Witness, ...]:
    """Build a roster from bare addresses."""
    return tuple(Witness(address=a, host=host) for a in addresses)
