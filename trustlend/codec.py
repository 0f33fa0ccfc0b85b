"""
TrustLend Claim Codec

Deterministic byte layouts for claims and claim metadata, and recovery of
signer accounts from witness signatures.

The serialized layouts below are a wire contract: off-chain witnesses must
reproduce them byte-for-byte or their signatures will not verify.
"""

from typing import List

from coincurve import PublicKey

from .claims import ClaimInfo, CompleteClaimData, SignedClaim
from .errors import InvalidSignature, NoSignatures
from .hashing import keccak256, keccak256_hex
from .util import bytes_to_hex


PERSONAL_MESSAGE_PREFIX = b"\x19Ethereum Signed Message:\n"
SIGNATURE_LENGTH = 65

# secp256k1 group order
SECP256K1_N = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141
SECP256K1_HALF_N = SECP256K1_N // 2


def serialize_claim(claim: CompleteClaimData) -> bytes:
    """
    Serialize claim data to the exact bytes witnesses sign.

    Layout (newline separated):
        <identifier as 0x hex>
        <owner as 0x hex>
        <timestampS decimal>
        <epoch decimal>
    """
    return "\n".join([
        claim.identifier,
        claim.owner,
        str(claim.timestamp_s),
        str(claim.epoch),
    ]).encode('utf-8')


def hash_claim_info(claim_info: ClaimInfo) -> str:
    """
    Compute the claim identifier for a piece of claim metadata.

    identifier = keccak256(provider + "\\n" + parameters + "\\n" + context)
    """
    payload = "\n".join([claim_info.provider, claim_info.parameters, claim_info.context])
    return keccak256_hex(payload)


def personal_message_digest(content: bytes) -> bytes:
    """Domain-separated digest: keccak256(prefix + len(content) + content)."""
    return keccak256(PERSONAL_MESSAGE_PREFIX + str(len(content)).encode('ascii') + content)


def public_key_to_address(public_key: PublicKey) -> str:
    """Account identifier: last 20 bytes of keccak256 of the raw public key."""
    raw = public_key.format(compressed=False)[1:]
    return bytes_to_hex(keccak256(raw)[-20:])


def _normalize_signature(signature: bytes) -> bytes:
    """Validate an r||s||v signature and return it with v as a recovery id."""
    if len(signature) != SIGNATURE_LENGTH:
        raise InvalidSignature(
            "signature must be 65 bytes",
            {"length": len(signature)}
        )

    v = signature[64]
    if v >= 27:
        v -= 27
    if v not in (0, 1):
        raise InvalidSignature("invalid recovery id", {"v": signature[64]})

    r = int.from_bytes(signature[0:32], "big")
    s = int.from_bytes(signature[32:64], "big")
    if not (0 < r < SECP256K1_N) or not (0 < s <= SECP256K1_HALF_N):
        raise InvalidSignature("signature values out of range")

    return signature[:64] + bytes([v])


def recover_signer(content: bytes, signature: bytes) -> str:
    """
    Recover the account that produced signature over content.

    The signature is an ECDSA secp256k1 recoverable signature over the
    personal-message digest of content.

    Raises:
        InvalidSignature: if no valid public key can be recovered
    """
    normalized = _normalize_signature(bytes(signature))
    digest = personal_message_digest(content)

    try:
        public_key = PublicKey.from_signature_and_message(normalized, digest, hasher=None)
    except Exception as e:
        raise InvalidSignature(f"signer recovery failed: {e}") from e

    return public_key_to_address(public_key)


def recover_all_signers(signed: SignedClaim) -> List[str]:
    """
    Recover one signer per signature over the serialized claim.

    The list keeps one entry per signature, in signature order; repeated
    signers are not collapsed.

    Raises:
        NoSignatures: if the claim carries no signatures
        InvalidSignature: if any signature fails recovery
    """
    if not signed.signatures:
        raise NoSignatures("signed claim carries no signatures")

    content = serialize_claim(signed.claim)
    return [recover_signer(content, sig) for sig in signed.signatures]
