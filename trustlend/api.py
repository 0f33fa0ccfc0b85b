"""
TrustLend HTTP service.

Exposes the ledger's admin, operation and query surface. The acting
account of a mutating call is taken from the X-Account header; protocol
errors map to HTTP status codes with the error code as detail.

Run with:
    uvicorn trustlend.api:app
"""

import logging
from typing import Optional

from fastapi import FastAPI, Header, HTTPException, Request
from fastapi.responses import JSONResponse

from . import __version__
from .committee import CommitteeSelector
from .config import (
    ADMIN_ADDRESS,
    COLLATERAL_TOKEN_ADDRESSES,
    LENDING_TOKEN_ADDRESS,
    LOG_JSON,
    LOG_LEVEL,
    LedgerSettings,
    is_production,
)
from .errors import ErrorCode, TrustLendError
from .events import EventType
from .ledger import LoanLedger
from .logging_config import configure_logging, get_request_id, set_request_id
from .schemas import (
    AcceptOfferRequest,
    AppendEpochRequest,
    ApproveRequest,
    CommitteeRequest,
    CredentialRequest,
    CredentialTypeRequest,
    CreditScoreRequest,
    ExtendRequest,
    LoanRequest,
    MintRequest,
    OfferRequest,
    ProofModel,
    RepayRequest,
    TransferAdminRequest,
)
from .tokens import InMemoryToken
from .util import to_address


logger = logging.getLogger(__name__)

STATUS_BY_CODE = {
    ErrorCode.LOAN_NOT_FOUND: 404,
    ErrorCode.EPOCH_NOT_FOUND: 404,
    ErrorCode.UNAUTHORIZED: 403,
    ErrorCode.PAUSED: 403,
    ErrorCode.LOAN_NOT_IN_EXPECTED_STATE: 409,
    ErrorCode.NOT_YET_DUE: 409,
    ErrorCode.REENTRANCY: 409,
    ErrorCode.NO_SIGNATURES: 422,
    ErrorCode.INVALID_SIGNATURE: 422,
    ErrorCode.CLAIM_INFO_MISMATCH: 422,
    ErrorCode.INSUFFICIENT_WITNESSES: 422,
    ErrorCode.SIGNATURE_COUNT_MISMATCH: 422,
    ErrorCode.UNAUTHORIZED_SIGNER: 422,
    ErrorCode.INVALID_PROVIDER: 422,
    ErrorCode.INVALID_CREDENTIAL_TYPE: 422,
    ErrorCode.MISSING_CLAIM_FIELD: 422,
}


def status_for(error: TrustLendError) -> int:
    return STATUS_BY_CODE.get(error.code, 400)


def default_ledger() -> LoanLedger:
    """Standalone ledger over in-memory tokens, configured from the environment."""
    return LoanLedger(
        admin=ADMIN_ADDRESS,
        lending_token=InMemoryToken(LENDING_TOKEN_ADDRESS, symbol="LEND"),
        collateral_tokens=[InMemoryToken(a, symbol="COLL") for a in COLLATERAL_TOKEN_ADDRESSES],
        settings=LedgerSettings.from_env(),
    )


def create_app(ledger: Optional[LoanLedger] = None) -> FastAPI:
    ledger = ledger or default_ledger()
    selector = CommitteeSelector(ledger.registry)

    app = FastAPI(title="TrustLend", version=__version__)
    app.state.ledger = ledger

    @app.middleware("http")
    async def _request_id(request: Request, call_next):
        set_request_id(request.headers.get("X-Request-ID"))
        response = await call_next(request)
        response.headers["X-Request-ID"] = get_request_id()
        return response

    @app.exception_handler(TrustLendError)
    async def _protocol_error(request: Request, exc: TrustLendError):
        return JSONResponse(
            status_code=status_for(exc),
            content={"detail": exc.code.value, "message": exc.message},
        )

    @app.exception_handler(ValueError)
    async def _invalid_input(request: Request, exc: ValueError):
        return JSONResponse(status_code=400, content={"detail": "InvalidInput", "message": str(exc)})

    @app.on_event("startup")
    def _startup():
        configure_logging(level=LOG_LEVEL, json_format=LOG_JSON)
        logger.info("TrustLend service started (admin=%s, ledger=%s)", ledger.admin, ledger.address)

    def _token(address: str):
        try:
            return ledger.get_token(address)
        except TrustLendError:
            raise HTTPException(404, "TOKEN_NOT_FOUND")

    # ------------------------------------------------------------------
    # Health and queries
    # ------------------------------------------------------------------

    @app.get("/health")
    def health():
        return {
            "status": "ok",
            "version": __version__,
            "paused": ledger.paused,
            "epochs": len(ledger.registry),
            "loans": ledger.loan_count,
        }

    @app.get("/epochs/{epoch_id}")
    def get_epoch(epoch_id: int):
        return ledger.get_epoch(epoch_id).to_dict()

    @app.post("/committee")
    def committee(req: CommitteeRequest):
        selected = selector.select(req.epoch, req.identifier, req.timestamp_s)
        return {"committee": [w.to_dict() for w in selected]}

    @app.get("/loans/{loan_id}")
    def get_loan(loan_id: int):
        return ledger.get_loan(loan_id).to_dict()

    @app.get("/loans/{loan_id}/offers")
    def get_offers(loan_id: int):
        return {"offers": [o.to_dict() for o in ledger.get_offers(loan_id)]}

    @app.get("/loans/{loan_id}/repayment")
    def get_repayment(loan_id: int):
        return {"loan_id": loan_id, "repayment": ledger.calculate_repayment_amount(loan_id)}

    @app.get("/users/{account}")
    def get_user(account: str):
        user = ledger.get_user(account)
        return {"account": to_address(account), **user.to_dict()}

    @app.get("/events")
    def events(
        event_type: Optional[str] = None,
        loan_id: Optional[int] = None,
        account: Optional[str] = None,
        since: int = 0,
    ):
        kind = EventType(event_type) if event_type else None
        found = ledger.events.query(event_type=kind, loan_id=loan_id, account=account, since=since)
        return {"events": [e.to_dict() for e in found]}

    @app.post("/proofs/verify")
    def verify_proof(req: ProofModel):
        return ledger.verifier.verify(req.to_proof()).to_dict()

    # ------------------------------------------------------------------
    # Administration
    # ------------------------------------------------------------------

    @app.post("/admin/epochs")
    def append_epoch(req: AppendEpochRequest, x_account: str = Header(...)):
        epoch = ledger.append_epoch(
            x_account,
            [w.to_witness() for w in req.witnesses],
            req.min_committee_size,
        )
        return epoch.to_dict()

    @app.post("/admin/credential-types")
    def set_credential_type(req: CredentialTypeRequest, x_account: str = Header(...)):
        return ledger.set_credential_type(x_account, req.type_id, req.label).to_dict()

    @app.post("/admin/pause")
    def pause(x_account: str = Header(...)):
        ledger.pause(x_account)
        return {"paused": ledger.paused}

    @app.post("/admin/unpause")
    def unpause(x_account: str = Header(...)):
        ledger.unpause(x_account)
        return {"paused": ledger.paused}

    @app.post("/admin/transfer")
    def transfer_admin(req: TransferAdminRequest, x_account: str = Header(...)):
        ledger.transfer_admin(x_account, req.new_admin)
        return {"admin": ledger.admin}

    # ------------------------------------------------------------------
    # Loan lifecycle
    # ------------------------------------------------------------------

    @app.post("/loans")
    def request_loan(req: LoanRequest, x_account: str = Header(...)):
        loan_id = ledger.request_loan(
            x_account,
            amount=req.amount,
            interest_rate=req.interest_rate,
            duration=req.duration,
            collateral_token=req.collateral_token,
            collateral_amount=req.collateral_amount,
        )
        return ledger.get_loan(loan_id).to_dict()

    @app.post("/loans/{loan_id}/cancel")
    def cancel_loan(loan_id: int, x_account: str = Header(...)):
        ledger.cancel_loan(x_account, loan_id)
        return ledger.get_loan(loan_id).to_dict()

    @app.post("/loans/{loan_id}/offers")
    def place_offer(loan_id: int, req: OfferRequest, x_account: str = Header(...)):
        index = ledger.place_offer(x_account, loan_id, req.interest_rate)
        return {"loan_id": loan_id, "offer_index": index}

    @app.post("/loans/{loan_id}/accept")
    def accept_offer(loan_id: int, req: AcceptOfferRequest, x_account: str = Header(...)):
        ledger.accept_offer(x_account, loan_id, req.offer_index)
        return ledger.get_loan(loan_id).to_dict()

    @app.post("/loans/{loan_id}/repay")
    def repay_loan(loan_id: int, req: Optional[RepayRequest] = None, x_account: str = Header(...)):
        paid = ledger.repay_loan(x_account, loan_id, req.amount if req else None)
        return {"loan": ledger.get_loan(loan_id).to_dict(), "repayment": paid}

    @app.post("/loans/{loan_id}/liquidate")
    def liquidate_loan(loan_id: int, x_account: str = Header(...)):
        ledger.liquidate_loan(x_account, loan_id)
        return ledger.get_loan(loan_id).to_dict()

    @app.post("/loans/{loan_id}/extend")
    def extend_loan(loan_id: int, req: ExtendRequest, x_account: str = Header(...)):
        ledger.extend_loan_duration(x_account, loan_id, req.new_duration)
        return ledger.get_loan(loan_id).to_dict()

    # ------------------------------------------------------------------
    # Verified claims
    # ------------------------------------------------------------------

    @app.post("/users/me/credit-score")
    def update_credit_score(req: CreditScoreRequest, x_account: str = Header(...)):
        score = ledger.update_credit_score(x_account, req.proof.to_proof())
        return {"account": to_address(x_account), "credit_score": score}

    @app.post("/users/me/credentials")
    def add_credential(req: CredentialRequest, x_account: str = Header(...)):
        value = ledger.add_credential(x_account, req.proof.to_proof(), req.credential_type)
        return {"account": to_address(x_account), "credential_type": req.credential_type, "value": value}

    # ------------------------------------------------------------------
    # Tokens
    # ------------------------------------------------------------------

    @app.get("/tokens")
    def tokens():
        return {"lending_token": ledger.lending_token.address, "tokens": ledger.supported_tokens()}

    @app.get("/tokens/{token}/balances/{account}")
    def balance(token: str, account: str):
        return {"token": to_address(token), "account": to_address(account),
                "balance": _token(token).balance_of(account)}

    @app.post("/tokens/{token}/approve")
    def approve(token: str, req: ApproveRequest, x_account: str = Header(...)):
        if not _token(token).approve(x_account, req.spender, req.amount):
            raise HTTPException(400, "APPROVE_REFUSED")
        return {"owner": to_address(x_account), "spender": to_address(req.spender), "amount": req.amount}

    @app.post("/tokens/{token}/mint")
    def mint(token: str, req: MintRequest):
        t = _token(token)
        if is_production() or not isinstance(t, InMemoryToken):
            raise HTTPException(404, "NOT_FOUND")
        t.mint(req.account, req.amount)
        return {"account": to_address(req.account), "balance": t.balance_of(req.account)}

    return app


app = create_app()
