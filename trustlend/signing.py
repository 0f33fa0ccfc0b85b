"""
TrustLend Witness Signing

ECDSA secp256k1 signing in the personal-message format that
codec.recover_signer expects. Used by witness tooling, the CLI and the
test suite; the ledger itself only ever recovers signatures.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence

from coincurve import PrivateKey

from .claims import ClaimInfo, CompleteClaimData, Proof, SignedClaim, Witness
from .codec import hash_claim_info, personal_message_digest, public_key_to_address, serialize_claim
from .hashing import keccak256
from .util import hex_to_bytes


@dataclass(frozen=True)
class WitnessKey:
    """secp256k1 key pair of a witness."""
    secret: bytes
    address: str
    host: str = ""

    @classmethod
    def from_secret(cls, secret: bytes, host: str = "") -> 'WitnessKey':
        key = PrivateKey(bytes(secret))
        return cls(secret=key.secret, address=public_key_to_address(key.public_key), host=host)

    @classmethod
    def from_seed(cls, seed: str, host: str = "") -> 'WitnessKey':
        """Derive a reproducible key from a text seed (fixtures, demos)."""
        return cls.from_secret(keccak256(seed), host=host)

    @classmethod
    def generate(cls, host: str = "") -> 'WitnessKey':
        key = PrivateKey()
        return cls.from_secret(key.secret, host=host)

    def to_witness(self) -> Witness:
        return Witness(address=self.address, host=self.host)

    def sign(self, content: bytes) -> bytes:
        """
        Sign content as a personal message.

        Returns:
            65-byte r||s||v signature with v in {27, 28}
        """
        digest = personal_message_digest(content)
        sig = PrivateKey(self.secret).sign_recoverable(digest, hasher=None)
        return sig[:64] + bytes([sig[64] + 27])

    def sign_claim(self, claim: CompleteClaimData) -> bytes:
        return self.sign(serialize_claim(claim))


class WitnessSigner:
    """
    Holds witness keys and assembles signed proofs.

    Stands in for the off-chain attestation service in tests and local
    tooling.
    """

    def __init__(self, keys: Optional[Iterable[WitnessKey]] = None):
        self._keys: Dict[str, WitnessKey] = {}
        for key in keys or []:
            self.add(key)

    def add(self, key: WitnessKey) -> WitnessKey:
        self._keys[key.address] = key
        return key

    def generate(self, count: int, host_template: str = "wss://witness-{}.example") -> List[WitnessKey]:
        return [self.add(WitnessKey.generate(host=host_template.format(i))) for i in range(count)]

    def key_for(self, address: str) -> WitnessKey:
        key = self._keys.get(address.lower())
        if key is None:
            raise ValueError(f"No key held for witness: {address}")
        return key

    @property
    def witnesses(self) -> List[Witness]:
        return [k.to_witness() for k in self._keys.values()]

    def sign_claim(self, claim: CompleteClaimData, signers: Sequence[str]) -> SignedClaim:
        """Sign claim with each listed witness address, in order."""
        return SignedClaim(
            claim=claim,
            signatures=tuple(self.key_for(a).sign_claim(claim) for a in signers),
        )

    def build_proof(
        self,
        claim_info: ClaimInfo,
        owner: str,
        timestamp_s: int,
        epoch: int,
        signers: Sequence[str],
    ) -> Proof:
        """Create claim data bound to claim_info and sign it with signers."""
        claim = CompleteClaimData(
            identifier=hash_claim_info(claim_info),
            owner=owner,
            timestamp_s=timestamp_s,
            epoch=epoch,
        )
        return Proof(claim_info=claim_info, signed_claim=self.sign_claim(claim, signers))


def sign_data(data: bytes, secret: bytes) -> bytes:
    """Sign data as a personal message with a raw secp256k1 secret."""
    return WitnessKey.from_secret(secret).sign(data)


def address_from_secret(secret) -> str:
    """Account identifier for a raw (or hex encoded) secret."""
    return WitnessKey.from_secret(hex_to_bytes(secret)).address
