"""
Shared builders for the TrustLend test suites.

Witness keys are derived from fixed seeds so every run signs with the
same accounts.
"""

from typing import List, Optional, Sequence, Type

from trustlend import (
    ClaimInfo,
    EventLog,
    InMemoryToken,
    LedgerSettings,
    LoanLedger,
    ManualClock,
    Proof,
    WitnessKey,
    WitnessSigner,
    hash_claim_info,
    select_committee,
)


ADMIN = "0x" + "ad" * 20
BORROWER = "0x" + "b0" * 20
LENDER = "0x" + "1e" * 20
OTHER_LENDER = "0x" + "2e" * 20
STRANGER = "0x" + "99" * 20
LEDGER_ADDRESS = "0x" + "7e" * 20
LENDING_TOKEN = "0x" + "a1" * 20
COLLATERAL_TOKEN = "0x" + "c0" * 20

START = 1_700_000_000
DAY = 86400
FUNDS = 1_000_000


def witness_keys(count: int, prefix: str = "witness") -> List[WitnessKey]:
    return [
        WitnessKey.from_seed(f"{prefix}-{i}", host=f"wss://{prefix}-{i}.test")
        for i in range(count)
    ]


def credit_claim(score: str = "742", provider: str = "http") -> ClaimInfo:
    return ClaimInfo(
        provider=provider,
        parameters='{"method":"GET","url":"https://bureau.test/score"}',
        context=f'{{"CreditScore":"{score}","source":"bureau"}}',
    )


def settings(**overrides) -> LedgerSettings:
    values = dict(
        ledger_address=LEDGER_ADDRESS,
        epoch_duration=DAY,
        allowed_providers=("http",),
        credit_score_marker='"CreditScore":"',
        reject_duplicate_signers=False,
        require_claim_owner=False,
    )
    values.update(overrides)
    return LedgerSettings(**values)


class LedgerHarness:
    """
    A funded ledger with one open epoch.

    Borrower holds collateral and lending tokens (to pay interest), lender
    holds lending tokens; both have approved the ledger for everything.
    """

    def __init__(
        self,
        witnesses: int = 5,
        committee_size: int = 2,
        ledger_settings: Optional[LedgerSettings] = None,
        token_cls: Type[InMemoryToken] = InMemoryToken,
        event_log: Optional[EventLog] = None,
    ):
        self.clock = ManualClock(START)
        self.lending = token_cls(LENDING_TOKEN, symbol="LEND")
        self.collateral = token_cls(COLLATERAL_TOKEN, symbol="COLL")
        self.ledger = LoanLedger(
            admin=ADMIN,
            lending_token=self.lending,
            collateral_tokens=[self.collateral],
            settings=ledger_settings or settings(),
            clock=self.clock,
            event_log=event_log,
        )

        self.signer = WitnessSigner(witness_keys(witnesses))
        self.epoch = self.ledger.append_epoch(ADMIN, self.signer.witnesses, committee_size)

        for account in (BORROWER, LENDER, OTHER_LENDER):
            self.lending.mint(account, FUNDS)
            self.lending.approve(account, LEDGER_ADDRESS, FUNDS)
        self.collateral.mint(BORROWER, FUNDS)
        self.collateral.approve(BORROWER, LEDGER_ADDRESS, FUNDS)

    def committee(self, claim_info: ClaimInfo, timestamp_s: int, epoch_id: int = 0) -> List[str]:
        epoch = self.ledger.get_epoch(epoch_id)
        return [w.address for w in select_committee(epoch, hash_claim_info(claim_info), timestamp_s)]

    def outsiders(self, claim_info: ClaimInfo, timestamp_s: int) -> List[str]:
        chosen = set(self.committee(claim_info, timestamp_s))
        return [w.address for w in self.signer.witnesses if w.address not in chosen]

    def proof(
        self,
        owner: str,
        claim_info: ClaimInfo,
        timestamp_s: Optional[int] = None,
        signers: Optional[Sequence[str]] = None,
    ) -> Proof:
        ts = self.clock() if timestamp_s is None else timestamp_s
        if signers is None:
            signers = self.committee(claim_info, ts)
        return self.signer.build_proof(claim_info, owner, ts, self.epoch.id, signers)

    def open_loan(self, amount: int = 10000, rate: int = 500, duration: int = 30 * DAY,
                  collateral: int = 1000) -> int:
        return self.ledger.request_loan(
            BORROWER, amount, rate, duration, COLLATERAL_TOKEN, collateral
        )

    def funded_loan(self, amount: int = 10000, offer_rate: int = 400, duration: int = 30 * DAY,
                    collateral: int = 1000) -> int:
        loan_id = self.open_loan(amount=amount, duration=duration, collateral=collateral)
        index = self.ledger.place_offer(LENDER, loan_id, offer_rate)
        self.ledger.accept_offer(BORROWER, loan_id, index)
        return loan_id
