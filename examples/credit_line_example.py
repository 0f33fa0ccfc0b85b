#!/usr/bin/env python3
"""
TrustLend Example - Complete End-to-End Flow

A borrower proves a credit score through a witness committee, requests a
collateralized loan, gets funded by a lender and repays it.

Run with: python examples/credit_line_example.py
"""

import json

from trustlend import (
    ClaimInfo,
    InMemoryToken,
    LedgerSettings,
    LoanLedger,
    ManualClock,
    Proof,
    TrustLendError,
    WitnessKey,
    WitnessSigner,
    hash_claim_info,
    select_committee,
)
from trustlend.logging_config import configure_logging


ADMIN = "0x" + "ad" * 20
BORROWER = "0x" + "b0" * 20
LENDER = "0x" + "1e" * 20
DAY = 86400


def simulate_attestation(signer: WitnessSigner, epoch, owner: str, score: int, ts: int):
    """
    Simulate the off-chain attestation service.

    In production, witnesses would each fetch the bureau response over TLS
    and sign independently.
    """
    info = ClaimInfo(
        provider="http",
        parameters=json.dumps({"method": "GET", "url": "https://bureau.example/score"}),
        context=json.dumps({"CreditScore": str(score), "bureau": "example"}, separators=(",", ":")),
    )
    committee = select_committee(epoch, hash_claim_info(info), ts)
    print(f"  Committee: {[w.host for w in committee]}")
    return signer.build_proof(info, owner, ts, epoch.id, [w.address for w in committee])


def main():
    configure_logging(level="WARNING", json_format=False)
    clock = ManualClock()

    print("=" * 60)
    print("TrustLend End-to-End Example")
    print("=" * 60)

    usd = InMemoryToken("0x" + "a1" * 20, symbol="USD")
    eth = InMemoryToken("0x" + "c0" * 20, symbol="ETH")
    ledger = LoanLedger(ADMIN, usd, [eth], settings=LedgerSettings(), clock=clock)

    usd.mint(LENDER, 50_000)
    usd.mint(BORROWER, 1_000)
    eth.mint(BORROWER, 5_000)
    usd.approve(LENDER, ledger.address, 50_000)
    usd.approve(BORROWER, ledger.address, 50_000)
    eth.approve(BORROWER, ledger.address, 5_000)

    # Step 1: Open an epoch with five witnesses
    print("\n[1] Opening epoch")
    signer = WitnessSigner(
        [WitnessKey.from_seed(f"demo-{i}", host=f"wss://witness-{i}.example") for i in range(5)]
    )
    epoch = ledger.append_epoch(ADMIN, signer.witnesses, min_committee_size=3)
    print(f"  Epoch {epoch.id}: {len(epoch.witnesses)} witnesses, committee of {epoch.min_committee_size}")

    # Step 2: Prove a credit score
    print("\n[2] Proving credit score")
    proof = simulate_attestation(signer, epoch, BORROWER, 742, clock())
    score = ledger.update_credit_score(BORROWER, proof)
    print(f"  ✓ Credit score recorded: {score}")

    # Step 3: Forged claim is rejected
    print("\n[3] Submitting a forged claim")
    forged = ClaimInfo(proof.claim_info.provider, proof.claim_info.parameters,
                       proof.claim_info.context.replace("742", "850"))
    try:
        ledger.update_credit_score(BORROWER, Proof(forged, proof.signed_claim))
    except TrustLendError as e:
        print(f"  ✗ Rejected: {e.code.value}")

    # Step 4: Loan lifecycle
    print("\n[4] Loan lifecycle")
    loan_id = ledger.request_loan(BORROWER, 10_000, 500, 30 * DAY, eth.address, 1_000)
    ledger.place_offer(LENDER, loan_id, 400)
    ledger.accept_offer(BORROWER, loan_id, 0)
    print(f"  Loan {loan_id} funded, repayment due: {ledger.calculate_repayment_amount(loan_id)}")

    clock.advance(20 * DAY)
    paid = ledger.repay_loan(BORROWER, loan_id)
    print(f"  ✓ Repaid {paid}; status {ledger.get_loan(loan_id).status.value}")
    print(f"  Lender USD balance: {usd.balance_of(LENDER)}")
    print(f"  Borrower ETH balance: {eth.balance_of(BORROWER)}")

    print("\n[5] Events")
    for event in ledger.events.query():
        print(f"  #{event.sequence} {event.event_type.value}")

    print("\n" + "=" * 60)
    print("Example complete.")
    print("=" * 60)


if __name__ == "__main__":
    main()
