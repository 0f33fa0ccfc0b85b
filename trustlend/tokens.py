"""
TrustLend Token Ledger Port

The ledger moves principal and collateral through fungible-token ledgers
it does not own. This module defines the interface it relies on and an
in-memory reference implementation for tests and local runs.
"""

import copy
import threading
from abc import ABC, abstractmethod
from collections import defaultdict
from typing import Any, Callable, Dict, Optional, Tuple

from .util import to_address


class TokenLedger(ABC):
    """
    Abstract fungible-token ledger with allowance semantics.

    Transfers return True on success and False on refusal. Implementations
    that can capture and restore their balances override snapshot() and
    restore() so a failed ledger operation leaves no partial transfer
    behind.
    """

    address: str

    @abstractmethod
    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        """Move amount from sender's own balance."""
        pass

    @abstractmethod
    def transfer_from(self, operator: str, sender: str, recipient: str, amount: int) -> bool:
        """Move amount from sender using operator's allowance."""
        pass

    @abstractmethod
    def approve(self, owner: str, spender: str, amount: int) -> bool:
        pass

    @abstractmethod
    def balance_of(self, account: str) -> int:
        pass

    @abstractmethod
    def allowance(self, owner: str, spender: str) -> int:
        pass

    def snapshot(self) -> Any:
        """
        Opaque state used to undo a failed ledger operation.

        Ports returning None are rolled back by compensating transfers
        instead, which need the affected accounts' allowances.
        """
        return None

    def restore(self, snapshot: Any) -> None:
        pass


TransferHook = Callable[[str, str, int], None]


class InMemoryToken(TokenLedger):
    """
    In-memory ERC-20 style token.

    WARNING: Not suitable for production.
    - Not persistent
    - Balances exist only in this process

    on_transfer, when set, is called after every successful transfer with
    (sender, recipient, amount); tests use it to simulate tokens that call
    back into the ledger.
    """

    def __init__(self, address: str, symbol: str = "TKN", on_transfer: Optional[TransferHook] = None):
        self.address = to_address(address)
        self.symbol = symbol
        self.on_transfer = on_transfer
        self._balances: Dict[str, int] = defaultdict(int)
        self._allowances: Dict[Tuple[str, str], int] = defaultdict(int)
        self._lock = threading.RLock()

    def mint(self, account: str, amount: int) -> None:
        with self._lock:
            self._balances[to_address(account)] += amount

    def balance_of(self, account: str) -> int:
        with self._lock:
            return self._balances.get(to_address(account), 0)

    def allowance(self, owner: str, spender: str) -> int:
        with self._lock:
            return self._allowances.get((to_address(owner), to_address(spender)), 0)

    def approve(self, owner: str, spender: str, amount: int) -> bool:
        if amount < 0:
            return False
        with self._lock:
            self._allowances[(to_address(owner), to_address(spender))] = amount
        return True

    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        sender, recipient = to_address(sender), to_address(recipient)
        with self._lock:
            if not self._move(sender, recipient, amount):
                return False
        self._notify(sender, recipient, amount)
        return True

    def transfer_from(self, operator: str, sender: str, recipient: str, amount: int) -> bool:
        operator, sender, recipient = to_address(operator), to_address(sender), to_address(recipient)
        with self._lock:
            key = (sender, operator)
            if self._allowances.get(key, 0) < amount:
                return False
            if not self._move(sender, recipient, amount):
                return False
            self._allowances[key] -= amount
        self._notify(sender, recipient, amount)
        return True

    def snapshot(self) -> Any:
        with self._lock:
            return copy.deepcopy((dict(self._balances), dict(self._allowances)))

    def restore(self, snapshot: Any) -> None:
        balances, allowances = snapshot
        with self._lock:
            self._balances = defaultdict(int, balances)
            self._allowances = defaultdict(int, allowances)

    def _move(self, sender: str, recipient: str, amount: int) -> bool:
        if amount < 0 or self._balances.get(sender, 0) < amount:
            return False
        self._balances[sender] -= amount
        self._balances[recipient] += amount
        return True

    def _notify(self, sender: str, recipient: str, amount: int) -> None:
        if self.on_transfer is not None:
            self.on_transfer(sender, recipient, amount)
