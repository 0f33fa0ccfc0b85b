"""
TrustLend Ledger Events

Every state transition and user update produces an event for off-chain
indexing. Events are observational; nothing in the ledger reads them back.
"""

import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class EventType(str, Enum):
    LOAN_REQUESTED = "LoanRequested"
    LOAN_CANCELLED = "LoanCancelled"
    OFFER_PLACED = "OfferPlaced"
    LOAN_FUNDED = "LoanFunded"
    LOAN_REPAID = "LoanRepaid"
    LOAN_LIQUIDATED = "LoanLiquidated"
    LOAN_EXTENDED = "LoanExtended"
    CREDIT_SCORE_UPDATED = "CreditScoreUpdated"
    CREDENTIAL_ADDED = "CredentialAdded"
    CREDENTIAL_TYPE_SET = "CredentialTypeSet"
    EPOCH_ADDED = "EpochAdded"
    PAUSED = "Paused"
    UNPAUSED = "Unpaused"
    ADMIN_TRANSFERRED = "AdminTransferred"


@dataclass(frozen=True)
class LedgerEvent:
    """Immutable record of one ledger event."""
    sequence: int
    event_type: EventType
    timestamp: int
    args: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sequence": self.sequence,
            "event": self.event_type.value,
            "timestamp": self.timestamp,
            "args": dict(self.args),
        }


class EventLog(ABC):
    """Sink for ledger events."""

    @abstractmethod
    def append(self, event_type: EventType, timestamp: int, args: Dict[str, Any]) -> LedgerEvent:
        pass

    @abstractmethod
    def query(
        self,
        event_type: Optional[EventType] = None,
        loan_id: Optional[int] = None,
        account: Optional[str] = None,
        since: int = 0,
    ) -> List[LedgerEvent]:
        pass

    @abstractmethod
    def truncate(self, length: int) -> None:
        """Drop events past length; used when an operation is rolled back."""
        pass

    @abstractmethod
    def __len__(self) -> int:
        pass


class InMemoryEventLog(EventLog):
    """
    In-memory event log.

    WARNING: Not suitable for production.
    - Not persistent
    """

    def __init__(self):
        self._events: List[LedgerEvent] = []
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)

    def append(self, event_type: EventType, timestamp: int, args: Dict[str, Any]) -> LedgerEvent:
        with self._lock:
            event = LedgerEvent(
                sequence=len(self._events) + 1,
                event_type=event_type,
                timestamp=timestamp,
                args=dict(args),
            )
            self._events.append(event)
            return event

    def query(
        self,
        event_type: Optional[EventType] = None,
        loan_id: Optional[int] = None,
        account: Optional[str] = None,
        since: int = 0,
    ) -> List[LedgerEvent]:
        with self._lock:
            events = self._events[since:]

        if event_type:
            events = [e for e in events if e.event_type == event_type]
        if loan_id is not None:
            events = [e for e in events if e.args.get("loan_id") == loan_id]
        if account:
            account = account.lower()
            events = [e for e in events if account in _accounts_of(e)]

        return events

    def truncate(self, length: int) -> None:
        with self._lock:
            del self._events[length:]


def _accounts_of(event: LedgerEvent) -> List[str]:
    return [
        v for k, v in event.args.items()
        if k in ("borrower", "lender", "account", "admin", "liquidator")
        and isinstance(v, str)
    ]
