"""
TrustLend Committee Selection

Deterministically picks the witnesses that must sign a claim.

The algorithm is sampling without replacement driven by a Keccak-256
seed:

    seed  = keccak256(hex(identifier) \\n epochId \\n minCommitteeSize \\n timestampS)
    for each pick:
        index    = uint32_be(seed[cursor:cursor+4]) % remaining
        selected = roster[index]
        roster[index] <-> roster[remaining - 1]; remaining -= 1
        cursor   = (cursor + 4) % len(seed)

The swap removal is part of the contract. Any other removal order changes
which witness later indices refer to, and so which signers historical
claims were expected to carry.
"""

from typing import List, Sequence

from .claims import Epoch, Witness, normalize_identifier
from .epochs import EpochRegistry
from .errors import InsufficientWitnesses
from .hashing import keccak256


WINDOW_BYTES = 4


def committee_seed(identifier: str, epoch_id: int, min_committee_size: int, timestamp_s: int) -> bytes:
    """Seed digest for one (epoch, claim, timestamp) tuple."""
    seed_input = "\n".join([
        normalize_identifier(identifier),
        str(epoch_id),
        str(min_committee_size),
        str(timestamp_s),
    ])
    return keccak256(seed_input)


def _read_window(seed: bytes, cursor: int) -> int:
    """Big-endian uint32 at cursor, wrapping around the end of seed."""
    value = 0
    for k in range(WINDOW_BYTES):
        value = (value << 8) | seed[(cursor + k) % len(seed)]
    return value


def selection_indices(seed: bytes, roster_size: int, picks: int) -> List[int]:
    """
    Index into the shrinking working roster chosen at each pick.

    Raises:
        InsufficientWitnesses: if picks exceeds roster_size
    """
    if picks > roster_size:
        raise InsufficientWitnesses(
            f"committee of {picks} requested from {roster_size} witnesses",
            {"required": picks, "available": roster_size}
        )

    indices = []
    cursor = 0
    remaining = roster_size
    for _ in range(picks):
        indices.append(_read_window(seed, cursor) % remaining)
        remaining -= 1
        cursor = (cursor + WINDOW_BYTES) % len(seed)
    return indices


def sample_without_replacement(roster: Sequence[Witness], indices: Sequence[int]) -> List[Witness]:
    """Apply an index sequence to a roster using swap removal."""
    working = list(roster)
    remaining = len(working)
    selected = []
    for index in indices:
        selected.append(working[index])
        last = remaining - 1
        working[index], working[last] = working[last], working[index]
        remaining = last
    return selected


def select_committee(epoch: Epoch, identifier: str, timestamp_s: int) -> List[Witness]:
    """
    Select epoch.min_committee_size witnesses for a claim, in pick order.

    Raises:
        InsufficientWitnesses: if the committee is larger than the roster
    """
    seed = committee_seed(identifier, epoch.id, epoch.min_committee_size, timestamp_s)
    indices = selection_indices(seed, len(epoch.witnesses), epoch.min_committee_size)
    return sample_without_replacement(epoch.witnesses, indices)


class CommitteeSelector:
    """Committee selection against the epochs held by a registry."""

    def __init__(self, registry: EpochRegistry):
        self.registry = registry

    def select(self, epoch_id: int, identifier: str, timestamp_s: int) -> List[Witness]:
        """
        Raises:
            EpochNotFound: if epoch_id is unknown
            InsufficientWitnesses: if the epoch roster is too small
        """
        epoch = self.registry.get(epoch_id)
        return select_committee(epoch, identifier, timestamp_s)
