"""
TrustLend Epoch Registry

Append-only history of witness epochs. Each epoch fixes a witness roster
and the committee size a claim made during it must be signed by.
"""

import logging
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, Tuple

from .claims import Epoch, Witness
from .errors import EpochNotFound, Unauthorized
from .util import SECONDS_PER_DAY, U8_MAX, check_uint, now_epoch, to_address


logger = logging.getLogger(__name__)

DEFAULT_EPOCH_DURATION = SECONDS_PER_DAY


class EpochRegistry:
    """
    Ordered, append-only epoch store.

    Epoch ids start at 1 and increase by one per append. The last appended
    epoch is the current one; get(0) returns it.
    """

    def __init__(
        self,
        owner: str,
        epoch_duration: Optional[int] = None,
        clock: Callable[[], int] = now_epoch,
    ):
        self.owner = to_address(owner)
        self.epoch_duration = epoch_duration or DEFAULT_EPOCH_DURATION
        self._clock = clock
        self._epochs: List[Epoch] = []

    def __len__(self) -> int:
        return len(self._epochs)

    def __iter__(self) -> Iterator[Epoch]:
        return iter(list(self._epochs))

    def append(
        self,
        caller: str,
        witnesses: Sequence[Witness],
        min_committee_size: int,
    ) -> Epoch:
        """
        Close the current epoch and open the next one.

        Raises:
            Unauthorized: if caller is not the registry owner
            ValueError: if min_committee_size does not fit in a u8
        """
        if to_address(caller) != self.owner:
            raise Unauthorized("only the registry owner can append epochs", {"caller": caller})
        check_uint(min_committee_size, U8_MAX, "min_committee_size")

        now = self._clock()
        if self._epochs:
            self._epochs[-1].end_time = now
            next_id = self._epochs[-1].id + 1
        else:
            next_id = 1

        epoch = Epoch(
            id=next_id,
            start_time=now,
            end_time=now + (self.epoch_duration or DEFAULT_EPOCH_DURATION),
            witnesses=tuple(witnesses),
            min_committee_size=min_committee_size,
        )
        self._epochs.append(epoch)

        logger.info(
            "epoch %d opened with %d witnesses, committee size %d",
            epoch.id, len(epoch.witnesses), epoch.min_committee_size
        )
        return epoch

    def get(self, epoch_id: int = 0) -> Epoch:
        """
        Fetch an epoch by id; 0 means the current epoch.

        Raises:
            EpochNotFound: if the registry is empty or the id was never appended
        """
        if not self._epochs:
            raise EpochNotFound("no epochs registered", {"epoch": epoch_id})
        if epoch_id == 0:
            return self._epochs[-1]
        if epoch_id < 0 or epoch_id > len(self._epochs):
            raise EpochNotFound(f"epoch {epoch_id} not found", {"epoch": epoch_id})
        return self._epochs[epoch_id - 1]

    def current(self) -> Epoch:
        return self.get(0)

    def snapshot(self) -> Tuple[int, Optional[int]]:
        """Roster length and the current epoch's end_time, enough to undo one append."""
        last = self._epochs[-1].end_time if self._epochs else None
        return len(self._epochs), last

    def restore(self, snapshot: Tuple[int, Optional[int]]) -> None:
        length, last_end = snapshot
        del self._epochs[length:]
        if self._epochs:
            self._epochs[-1].end_time = last_end

    def to_dict(self) -> Dict[str, Any]:
        return {
            "owner": self.owner,
            "epochDuration": self.epoch_duration,
            "epochs": [e.to_dict() for e in self._epochs],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], clock: Callable[[], int] = now_epoch) -> 'EpochRegistry':
        """Rebuild a registry from a snapshot, preserving ids and times."""
        registry = cls(
            owner=data["owner"],
            epoch_duration=data.get("epochDuration"),
            clock=clock,
        )
        for i, raw in enumerate(data.get("epochs", []), start=1):
            epoch = Epoch.from_dict(raw)
            if epoch.id != i:
                raise ValueError(f"Epoch ids must be sequential from 1: expected {i}, got {epoch.id}")
            registry._epochs.append(epoch)
        return registry
