"""
TrustLend Hashing

All digests are Keccak-256 (the pre-standard SHA-3 variant used by EVM
chains), so claim identifiers and committee seeds match what on-chain
verifiers and off-chain witnesses compute.
"""

from typing import Union

from Crypto.Hash import keccak


def keccak256(data: Union[bytes, str]) -> bytes:
    """
    Compute the raw 32-byte Keccak-256 digest.

    Strings are hashed as their UTF-8 bytes.
    """
    if isinstance(data, str):
        data = data.encode('utf-8')
    hasher = keccak.new(digest_bits=256)
    hasher.update(data)
    return hasher.digest()


def keccak256_hex(data: Union[bytes, str]) -> str:
    """Keccak-256 digest as 0x-prefixed lowercase hex."""
    return "0x" + keccak256(data).hex()
