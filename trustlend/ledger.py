"""
TrustLend Loan Ledger

The lending state machine and the per-user credit store.

Loan lifecycle:

    REQUESTED ──accept_offer──> ACTIVE ──repay_loan─────> REPAID
        │                         └─────liquidate_loan──> LIQUIDATED
        └──cancel_loan──> CANCELLED

Transitions are one-way and loans are never deleted. Collateral is
escrowed in the ledger's own token account from request time until a
terminal transition releases it to the borrower (cancel, repay) or to the
lender (liquidate).

Credit scores and credentials are only written from proofs that pass
ProofVerifier, and only ever to the caller's own record.

Execution model:
- operations are serialized by a per-ledger lock
- a nested call into the ledger from inside an operation (for example a
  token transfer hook) is rejected with ReentrancyRejected
- a failing operation restores ledger and token state as it was before
  the call; tokens without snapshots get their completed transfers
  reversed, newest first
- while paused, every mutating entry point except unpause is rejected
"""

import copy
import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from .claims import Epoch, Proof, Witness
from .config import LedgerSettings
from .context import parse_decimal
from .epochs import EpochRegistry
from .errors import (
    IncorrectAmount,
    InvalidCredentialType,
    InvalidProvider,
    LoanNotFound,
    LoanNotInExpectedState,
    MissingClaimField,
    NotYetDue,
    PausedRejection,
    ReentrancyRejected,
    TokenTransferFailed,
    TrustLendError,
    Unauthorized,
)
from .events import EventLog, EventType, InMemoryEventLog, LedgerEvent
from .extractors import FieldExtractor, MarkerFieldExtractor
from .logging_config import audit_log
from .tokens import TokenLedger
from .util import SECONDS_PER_YEAR, now_epoch, to_address
from .verifier import ProofVerifier, VerificationReport, ZkProofVerifier


logger = logging.getLogger(__name__)

BASIS_POINTS = 10000


class LoanStatus(str, Enum):
    REQUESTED = "Requested"
    ACTIVE = "Active"
    REPAID = "Repaid"
    LIQUIDATED = "Liquidated"
    CANCELLED = "Cancelled"


@dataclass
class Loan:
    """A loan record. interest_rate is in basis points, duration in seconds."""
    loan_id: int
    borrower: str
    amount: int
    interest_rate: int
    duration: int
    collateral_token: str
    collateral_amount: int
    status: LoanStatus = LoanStatus.REQUESTED
    lender: Optional[str] = None
    start_time: int = 0

    @property
    def due_time(self) -> int:
        return self.start_time + self.duration

    def to_dict(self) -> Dict[str, Any]:
        return {
            "loan_id": self.loan_id,
            "borrower": self.borrower,
            "lender": self.lender,
            "amount": self.amount,
            "interest_rate": self.interest_rate,
            "duration": self.duration,
            "collateral_token": self.collateral_token,
            "collateral_amount": self.collateral_amount,
            "status": self.status.value,
            "start_time": self.start_time,
        }


@dataclass(frozen=True)
class Offer:
    lender: str
    interest_rate: int

    def to_dict(self) -> Dict[str, Any]:
        return {"lender": self.lender, "interest_rate": self.interest_rate}


@dataclass
class User:
    credit_score: int = 0
    credentials: Dict[str, str] = field(default_factory=dict)
    is_verified: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "credit_score": self.credit_score,
            "credentials": dict(self.credentials),
            "is_verified": self.is_verified,
        }


@dataclass
class CredentialType:
    """An administrator-registered credential kind and its extraction strategy."""
    type_id: str
    label: str
    extractor: FieldExtractor

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type_id": self.type_id,
            "label": self.label,
            "extractor": self.extractor.describe(),
        }


def repayment_amount(amount: int, interest_rate: int, duration: int) -> int:
    """
    Principal plus simple interest, truncated toward zero.

    repayment = amount + amount * rate * duration // (365 days * 10000)
    """
    return amount + (amount * interest_rate * duration) // (SECONDS_PER_YEAR * BASIS_POINTS)


class LoanLedger:
    """
    Loan, offer and user store.

    Args:
        admin: Administrator account; also owns the epoch registry
        lending_token: Token principal and repayments are paid in
        collateral_tokens: Additional tokens accepted as collateral
            (the lending token is always accepted)
        registry: Epoch registry; created and owned by admin if omitted
        settings: Ledger tunables (defaults from environment)
        clock: Callable returning current time in integer seconds
        event_log: Event sink (in-memory by default)
        zk_verifier: Backend for ProofVerifier.verify_zk_proof
    """

    def __init__(
        self,
        admin: str,
        lending_token: TokenLedger,
        collateral_tokens: Iterable[TokenLedger] = (),
        registry: Optional[EpochRegistry] = None,
        settings: Optional[LedgerSettings] = None,
        clock: Callable[[], int] = now_epoch,
        event_log: Optional[EventLog] = None,
        zk_verifier: Optional[ZkProofVerifier] = None,
    ):
        self.settings = settings or LedgerSettings()
        self.admin = to_address(admin)
        self.address = to_address(self.settings.ledger_address)
        self._clock = clock

        self.registry = registry if registry is not None else EpochRegistry(
            owner=self.admin,
            epoch_duration=self.settings.epoch_duration,
            clock=clock,
        )
        self.verifier = ProofVerifier(
            self.registry,
            reject_duplicate_signers=self.settings.reject_duplicate_signers,
            zk_verifier=zk_verifier,
        )
        self.events = event_log if event_log is not None else InMemoryEventLog()

        self.lending_token = lending_token
        self._tokens: Dict[str, TokenLedger] = {lending_token.address: lending_token}
        for token in collateral_tokens:
            self._tokens[token.address] = token

        self._loans: Dict[int, Loan] = {}
        self._offers: Dict[int, List[Offer]] = {}
        self._users: Dict[str, User] = {}
        self._credential_types: Dict[str, CredentialType] = {}
        self._credit_score_extractor: FieldExtractor = MarkerFieldExtractor(
            self.settings.credit_score_marker
        )
        self._next_loan_id = 1
        self._paused = False

        self._lock = threading.Lock()
        self._active_thread: Optional[int] = None
        self._active_operation: Optional[str] = None
        self._journal: List[Tuple[TokenLedger, str, str, int]] = []

    # =========================================================================
    # Execution guard
    # =========================================================================

    @contextmanager
    def _operation(self, name: str, pausable: bool = True):
        me = threading.get_ident()
        if self._active_thread == me:
            audit_log.security_event(
                "reentrant_call",
                severity="high",
                operation=name,
                in_flight=self._active_operation,
            )
            raise ReentrancyRejected(
                f"{name} called while {self._active_operation} is in flight",
                {"operation": name, "in_flight": self._active_operation}
            )

        with self._lock:
            self._active_thread = me
            self._active_operation = name
            try:
                if pausable and self._paused:
                    raise PausedRejection(f"{name} rejected: ledger is paused")

                checkpoint = self._checkpoint()
                try:
                    yield
                except Exception as e:
                    self._rollback(checkpoint)
                    logger.debug("%s rolled back: %s", name, e)
                    raise
            finally:
                self._active_thread = None
                self._active_operation = None

    def _checkpoint(self) -> Dict[str, Any]:
        self._journal = []
        return {
            "loans": copy.deepcopy(self._loans),
            "offers": copy.deepcopy(self._offers),
            "users": copy.deepcopy(self._users),
            "credential_types": dict(self._credential_types),
            "next_loan_id": self._next_loan_id,
            "paused": self._paused,
            "admin": self.admin,
            "registry_owner": self.registry.owner,
            "registry": self.registry.snapshot(),
            "events": len(self.events),
            "token_map": dict(self._tokens),
            "tokens": {addr: t.snapshot() for addr, t in self._tokens.items()},
        }

    def _rollback(self, checkpoint: Dict[str, Any]) -> None:
        self._loans = checkpoint["loans"]
        self._offers = checkpoint["offers"]
        self._users = checkpoint["users"]
        self._credential_types = checkpoint["credential_types"]
        self._next_loan_id = checkpoint["next_loan_id"]
        self._paused = checkpoint["paused"]
        self.admin = checkpoint["admin"]
        self.registry.owner = checkpoint["registry_owner"]
        self.registry.restore(checkpoint["registry"])
        self.events.truncate(checkpoint["events"])
        self._tokens = checkpoint["token_map"]

        snapshots = checkpoint["tokens"]
        for addr, snap in snapshots.items():
            if snap is not None:
                self._tokens[addr].restore(snap)
        for token, sender, recipient, amount in reversed(self._journal):
            if snapshots.get(token.address) is None:
                self._compensate(token, sender, recipient, amount)
        self._journal = []

    def _compensate(self, token: TokenLedger, sender: str, recipient: str, amount: int) -> None:
        """Move amount back from recipient to sender."""
        try:
            if recipient == self.address:
                ok = token.transfer(self.address, sender, amount)
            else:
                ok = token.transfer_from(self.address, recipient, sender, amount)
        except Exception as e:
            logger.error("compensating transfer on %s raised: %s", token.address, e)
            ok = False
        if not ok:
            audit_log.security_event(
                "compensation_failed",
                severity="critical",
                token=token.address, sender=sender, recipient=recipient, amount=amount,
            )

    def _emit(self, event_type: EventType, **args) -> LedgerEvent:
        return self.events.append(event_type, self._clock(), args)

    def _require_admin(self, caller: str) -> str:
        caller = to_address(caller)
        if caller != self.admin:
            audit_log.security_event("unauthorized_admin_call", caller=caller)
            raise Unauthorized("caller is not the administrator", {"caller": caller})
        return caller

    # =========================================================================
    # Token movements
    # =========================================================================

    def _token(self, address: str) -> TokenLedger:
        token = self._tokens.get(to_address(address))
        if token is None:
            raise TokenTransferFailed(f"token {address} is not supported", {"token": address})
        return token

    def _pull(self, token: TokenLedger, sender: str, recipient: str, amount: int) -> None:
        """transfer_from with the ledger as operator."""
        try:
            ok = token.transfer_from(self.address, sender, recipient, amount)
        except TrustLendError:
            raise
        except Exception as e:
            raise TokenTransferFailed(f"transfer_from raised: {e}") from e
        if not ok:
            raise TokenTransferFailed(
                f"transfer of {amount} from {sender} to {recipient} refused",
                {"token": token.address, "from": sender, "to": recipient, "amount": amount}
            )
        self._journal.append((token, sender, recipient, amount))

    def _push(self, token: TokenLedger, recipient: str, amount: int) -> None:
        """transfer out of the ledger's own account."""
        try:
            ok = token.transfer(self.address, recipient, amount)
        except TrustLendError:
            raise
        except Exception as e:
            raise TokenTransferFailed(f"transfer raised: {e}") from e
        if not ok:
            raise TokenTransferFailed(
                f"release of {amount} to {recipient} refused",
                {"token": token.address, "to": recipient, "amount": amount}
            )
        self._journal.append((token, self.address, recipient, amount))

    # =========================================================================
    # Loan lifecycle
    # =========================================================================

    def _loan(self, loan_id: int) -> Loan:
        loan = self._loans.get(loan_id)
        if loan is None:
            raise LoanNotFound(f"loan {loan_id} not found", {"loan_id": loan_id})
        return loan

    @staticmethod
    def _expect_status(loan: Loan, status: LoanStatus) -> None:
        if loan.status != status:
            raise LoanNotInExpectedState(
                f"loan {loan.loan_id} is {loan.status.value}, expected {status.value}",
                {"loan_id": loan.loan_id, "status": loan.status.value, "expected": status.value}
            )

    def request_loan(
        self,
        caller: str,
        amount: int,
        interest_rate: int,
        duration: int,
        collateral_token: str,
        collateral_amount: int,
    ) -> int:
        """
        Open a loan request and escrow its collateral.

        The borrower must have approved the ledger address for
        collateral_amount on the collateral token.

        Returns:
            The new loan id

        Raises:
            IncorrectAmount: non-positive amount, duration or collateral, or negative rate
            TokenTransferFailed: unsupported token or escrow transfer refused
        """
        with self._operation("request_loan"):
            borrower = to_address(caller)
            if amount <= 0 or duration <= 0 or collateral_amount <= 0 or interest_rate < 0:
                raise IncorrectAmount(
                    "amount, duration and collateral must be positive",
                    {"amount": amount, "duration": duration,
                     "collateral_amount": collateral_amount, "interest_rate": interest_rate}
                )
            token = self._token(collateral_token)

            loan_id = self._next_loan_id
            self._next_loan_id += 1
            self._loans[loan_id] = Loan(
                loan_id=loan_id,
                borrower=borrower,
                amount=amount,
                interest_rate=interest_rate,
                duration=duration,
                collateral_token=token.address,
                collateral_amount=collateral_amount,
            )
            self._offers[loan_id] = []

            self._pull(token, borrower, self.address, collateral_amount)

            self._emit(
                EventType.LOAN_REQUESTED,
                loan_id=loan_id, borrower=borrower, amount=amount,
                interest_rate=interest_rate, duration=duration,
                collateral_token=token.address, collateral_amount=collateral_amount,
            )
            audit_log.loan_transition("LoanRequested", loan_id, borrower=borrower, amount=amount)
            return loan_id

    def cancel_loan(self, caller: str, loan_id: int) -> None:
        """Withdraw an unfunded request and return the collateral."""
        with self._operation("cancel_loan"):
            loan = self._loan(loan_id)
            if to_address(caller) != loan.borrower:
                raise Unauthorized("only the borrower can cancel", {"loan_id": loan_id})
            self._expect_status(loan, LoanStatus.REQUESTED)

            loan.status = LoanStatus.CANCELLED
            self._push(self._token(loan.collateral_token), loan.borrower, loan.collateral_amount)

            self._emit(EventType.LOAN_CANCELLED, loan_id=loan_id, borrower=loan.borrower)
            audit_log.loan_transition("LoanCancelled", loan_id)

    def place_offer(self, caller: str, loan_id: int, interest_rate: int) -> int:
        """
        Offer to fund a requested loan at interest_rate basis points.

        Returns:
            Index of the offer in the loan's offer list
        """
        with self._operation("place_offer"):
            lender = to_address(caller)
            loan = self._loan(loan_id)
            self._expect_status(loan, LoanStatus.REQUESTED)
            if interest_rate < 0:
                raise IncorrectAmount("interest rate must not be negative", {"interest_rate": interest_rate})

            offers = self._offers[loan_id]
            offers.append(Offer(lender=lender, interest_rate=interest_rate))
            index = len(offers) - 1

            self._emit(
                EventType.OFFER_PLACED,
                loan_id=loan_id, lender=lender, interest_rate=interest_rate, offer_index=index,
            )
            return index

    def accept_offer(self, caller: str, loan_id: int, offer_index: int) -> None:
        """
        Fund the loan from the chosen offer.

        The lender must have approved the ledger for the principal on the
        lending token.

        Raises:
            IncorrectAmount: offer_index out of range
        """
        with self._operation("accept_offer"):
            loan = self._loan(loan_id)
            if to_address(caller) != loan.borrower:
                raise Unauthorized("only the borrower can accept offers", {"loan_id": loan_id})
            self._expect_status(loan, LoanStatus.REQUESTED)

            offers = self._offers[loan_id]
            if not 0 <= offer_index < len(offers):
                raise IncorrectAmount(
                    f"offer index {offer_index} out of range",
                    {"loan_id": loan_id, "offer_index": offer_index, "offers": len(offers)}
                )
            offer = offers[offer_index]

            loan.lender = offer.lender
            loan.interest_rate = offer.interest_rate
            loan.status = LoanStatus.ACTIVE
            loan.start_time = self._clock()

            self._pull(self.lending_token, offer.lender, loan.borrower, loan.amount)

            self._emit(
                EventType.LOAN_FUNDED,
                loan_id=loan_id, borrower=loan.borrower, lender=offer.lender,
                amount=loan.amount, interest_rate=offer.interest_rate,
                offer_index=offer_index, start_time=loan.start_time,
            )
            audit_log.loan_transition("LoanFunded", loan_id, lender=offer.lender)

    def calculate_repayment_amount(self, loan_id: int) -> int:
        loan = self._loan(loan_id)
        return repayment_amount(loan.amount, loan.interest_rate, loan.duration)

    def repay_loan(self, caller: str, loan_id: int, amount: Optional[int] = None) -> int:
        """
        Repay principal plus interest and release the collateral.

        Args:
            amount: When given, must equal the repayment amount

        Returns:
            The amount paid to the lender

        Raises:
            IncorrectAmount: amount given and different from the amount due
        """
        with self._operation("repay_loan"):
            loan = self._loan(loan_id)
            if to_address(caller) != loan.borrower:
                raise Unauthorized("only the borrower can repay", {"loan_id": loan_id})
            self._expect_status(loan, LoanStatus.ACTIVE)

            due = repayment_amount(loan.amount, loan.interest_rate, loan.duration)
            if amount is not None and amount != due:
                raise IncorrectAmount(
                    f"repayment of {amount} does not match amount due {due}",
                    {"loan_id": loan_id, "offered": amount, "due": due}
                )

            loan.status = LoanStatus.REPAID
            self._pull(self.lending_token, loan.borrower, loan.lender, due)
            self._push(self._token(loan.collateral_token), loan.borrower, loan.collateral_amount)

            self._emit(
                EventType.LOAN_REPAID,
                loan_id=loan_id, borrower=loan.borrower, lender=loan.lender, repayment=due,
            )
            audit_log.loan_transition("LoanRepaid", loan_id, repayment=due)
            return due

    def liquidate_loan(self, caller: str, loan_id: int) -> None:
        """
        Hand the collateral of an overdue loan to its lender.

        Anyone may trigger liquidation once now > start_time + duration.

        Raises:
            NotYetDue: the loan term has not elapsed
        """
        with self._operation("liquidate_loan"):
            liquidator = to_address(caller)
            loan = self._loan(loan_id)
            self._expect_status(loan, LoanStatus.ACTIVE)

            now = self._clock()
            if now <= loan.due_time:
                raise NotYetDue(
                    f"loan {loan_id} is due at {loan.due_time}",
                    {"loan_id": loan_id, "due_time": loan.due_time, "now": now}
                )

            loan.status = LoanStatus.LIQUIDATED
            self._push(self._token(loan.collateral_token), loan.lender, loan.collateral_amount)

            self._emit(
                EventType.LOAN_LIQUIDATED,
                loan_id=loan_id, borrower=loan.borrower, lender=loan.lender,
                liquidator=liquidator, collateral_amount=loan.collateral_amount,
            )
            audit_log.loan_transition("LoanLiquidated", loan_id, liquidator=liquidator)

    def extend_loan_duration(self, caller: str, loan_id: int, new_duration: int) -> None:
        """
        Lengthen an active loan's term.

        Raises:
            IncorrectAmount: new_duration is not longer than the current one
        """
        with self._operation("extend_loan_duration"):
            loan = self._loan(loan_id)
            self._expect_status(loan, LoanStatus.ACTIVE)
            if to_address(caller) != loan.lender:
                raise Unauthorized("only the lender can extend", {"loan_id": loan_id})
            if new_duration <= loan.duration:
                raise IncorrectAmount(
                    "new duration must exceed the current duration",
                    {"loan_id": loan_id, "duration": loan.duration, "new_duration": new_duration}
                )

            previous = loan.duration
            loan.duration = new_duration

            self._emit(
                EventType.LOAN_EXTENDED,
                loan_id=loan_id, lender=loan.lender,
                previous_duration=previous, new_duration=new_duration,
            )

    # =========================================================================
    # Verified claims
    # =========================================================================

    def _user(self, account: str) -> User:
        user = self._users.get(account)
        if user is None:
            user = self._users[account] = User()
        return user

    def _accept_claim(self, account: str, proof: Proof, purpose: str) -> VerificationReport:
        identifier = proof.signed_claim.claim.identifier
        try:
            if self.settings.require_claim_owner and proof.claim.owner != account:
                raise Unauthorized(
                    "proof was issued to a different account",
                    {"owner": proof.claim.owner, "caller": account}
                )

            report = self.verifier.verify(proof)

            provider = proof.claim_info.provider
            if provider not in self.settings.allowed_providers:
                raise InvalidProvider(
                    f"provider {provider!r} is not allowed",
                    {"provider": provider, "allowed": list(self.settings.allowed_providers)}
                )
        except TrustLendError as e:
            audit_log.claim_rejected(account, identifier, e.code.value)
            raise

        audit_log.claim_verified(account, identifier, purpose)
        return report

    def update_credit_score(self, caller: str, proof: Proof) -> int:
        """
        Overwrite the caller's credit score from a verified claim.

        Returns:
            The new credit score

        Raises:
            InvalidProvider: claim provider is not allow-listed
            MissingClaimField: no credit score in the claim context
            (and any ProofVerifier.verify error)
        """
        with self._operation("update_credit_score"):
            account = to_address(caller)
            self._accept_claim(account, proof, "credit_score")

            raw = self._credit_score_extractor.extract(proof.claim_info)
            if not raw:
                raise MissingClaimField(
                    "credit score field missing or malformed",
                    {"extractor": self._credit_score_extractor.describe()}
                )
            score = parse_decimal(raw)

            user = self._user(account)
            previous = user.credit_score
            user.credit_score = score
            user.is_verified = True

            self._emit(
                EventType.CREDIT_SCORE_UPDATED,
                account=account, credit_score=score, previous=previous,
                identifier=proof.signed_claim.claim.identifier,
            )
            audit_log.user_update("CreditScoreUpdated", account, credit_score=score)
            return score

    def add_credential(self, caller: str, proof: Proof, credential_type_id: str) -> str:
        """
        Store a credential value for the caller from a verified claim.

        Returns:
            The stored credential value

        Raises:
            InvalidCredentialType: type not registered by the administrator
            InvalidProvider: claim provider is not allow-listed
            MissingClaimField: the type's field is absent from the claim
        """
        with self._operation("add_credential"):
            account = to_address(caller)
            ctype = self._credential_types.get(credential_type_id)
            if ctype is None:
                raise InvalidCredentialType(
                    f"credential type {credential_type_id!r} is not registered",
                    {"credential_type": credential_type_id}
                )

            self._accept_claim(account, proof, f"credential:{credential_type_id}")

            value = ctype.extractor.extract(proof.claim_info)
            if not value:
                raise MissingClaimField(
                    f"{ctype.label} field missing or malformed",
                    {"credential_type": credential_type_id, "extractor": ctype.extractor.describe()}
                )

            user = self._user(account)
            user.credentials[credential_type_id] = value
            user.is_verified = True

            self._emit(
                EventType.CREDENTIAL_ADDED,
                account=account, credential_type=credential_type_id, value=value,
                identifier=proof.signed_claim.claim.identifier,
            )
            audit_log.user_update("CredentialAdded", account, credential_type=credential_type_id)
            return value

    # =========================================================================
    # Administration
    # =========================================================================

    def append_epoch(self, caller: str, witnesses: Sequence[Witness], min_committee_size: int) -> Epoch:
        with self._operation("append_epoch"):
            admin = self._require_admin(caller)
            epoch = self.registry.append(admin, witnesses, min_committee_size)
            self._emit(
                EventType.EPOCH_ADDED,
                admin=admin, epoch=epoch.id, witnesses=len(epoch.witnesses),
                min_committee_size=epoch.min_committee_size,
            )
            audit_log.admin_action("append_epoch", admin, epoch=epoch.id)
            return epoch

    def set_credential_type(self, caller: str, type_id: str, label: str) -> CredentialType:
        """Register (or relabel) a credential type read from "label":"value" pairs."""
        return self.register_extractor(caller, type_id, MarkerFieldExtractor.for_label(label), label)

    def register_extractor(
        self,
        caller: str,
        type_id: str,
        extractor: FieldExtractor,
        label: Optional[str] = None,
    ) -> CredentialType:
        """Register a credential type with a custom extraction strategy."""
        with self._operation("register_extractor"):
            admin = self._require_admin(caller)
            if not type_id:
                raise InvalidCredentialType("credential type id must not be empty")

            ctype = CredentialType(type_id=type_id, label=label or type_id, extractor=extractor)
            self._credential_types[type_id] = ctype

            self._emit(
                EventType.CREDENTIAL_TYPE_SET,
                admin=admin, credential_type=type_id, label=ctype.label,
                extractor=extractor.describe(),
            )
            audit_log.admin_action("set_credential_type", admin, credential_type=type_id)
            return ctype

    def pause(self, caller: str) -> None:
        with self._operation("pause"):
            admin = self._require_admin(caller)
            self._paused = True
            self._emit(EventType.PAUSED, admin=admin)
            audit_log.admin_action("pause", admin)

    def unpause(self, caller: str) -> None:
        """Lift the pause gate. A no-op when the ledger is not paused."""
        with self._operation("unpause", pausable=False):
            admin = self._require_admin(caller)
            if not self._paused:
                return
            self._paused = False
            self._emit(EventType.UNPAUSED, admin=admin)
            audit_log.admin_action("unpause", admin)

    def transfer_admin(self, caller: str, new_admin: str) -> None:
        with self._operation("transfer_admin"):
            admin = self._require_admin(caller)
            new_admin = to_address(new_admin)
            self.admin = new_admin
            self.registry.owner = new_admin
            self._emit(EventType.ADMIN_TRANSFERRED, admin=admin, new_admin=new_admin)
            audit_log.admin_action("transfer_admin", admin, new_admin=new_admin)

    def add_collateral_token(self, caller: str, token: TokenLedger) -> None:
        with self._operation("add_collateral_token"):
            admin = self._require_admin(caller)
            self._tokens[token.address] = token
            audit_log.admin_action("add_collateral_token", admin, token=token.address)

    # =========================================================================
    # Queries
    # =========================================================================

    @property
    def paused(self) -> bool:
        return self._paused

    @property
    def loan_count(self) -> int:
        return self._next_loan_id - 1

    def get_loan(self, loan_id: int) -> Loan:
        return replace(self._loan(loan_id))

    def get_offers(self, loan_id: int) -> List[Offer]:
        self._loan(loan_id)
        return list(self._offers.get(loan_id, []))

    def get_user(self, account: str) -> User:
        user = self._users.get(to_address(account))
        if user is None:
            return User()
        return copy.deepcopy(user)

    def get_credit_score(self, account: str) -> int:
        return self.get_user(account).credit_score

    def get_credential(self, account: str, credential_type_id: str) -> str:
        """Stored credential value, or "" when none was recorded."""
        return self.get_user(account).credentials.get(credential_type_id, "")

    def get_credential_type(self, type_id: str) -> CredentialType:
        ctype = self._credential_types.get(type_id)
        if ctype is None:
            raise InvalidCredentialType(f"credential type {type_id!r} is not registered")
        return ctype

    def get_epoch(self, epoch_id: int = 0) -> Epoch:
        return self.registry.get(epoch_id)

    def get_token(self, address: str) -> TokenLedger:
        """
        Raises:
            TokenTransferFailed: if the token is not supported by this ledger
        """
        return self._token(address)

    def supported_tokens(self) -> List[str]:
        return list(self._tokens)
