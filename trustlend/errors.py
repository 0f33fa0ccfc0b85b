"""
TrustLend Error Taxonomy

Every failure aborts the triggering operation as a whole. There are no
retryable errors: the caller decides whether to resubmit.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    """Stable reason codes surfaced to callers."""
    NO_SIGNATURES = "NoSignatures"
    INVALID_SIGNATURE = "InvalidSignature"
    CLAIM_INFO_MISMATCH = "ClaimInfoMismatch"
    INSUFFICIENT_WITNESSES = "InsufficientWitnesses"
    SIGNATURE_COUNT_MISMATCH = "SignatureCountMismatch"
    UNAUTHORIZED_SIGNER = "UnauthorizedSigner"
    EPOCH_NOT_FOUND = "EpochNotFound"
    INVALID_PROVIDER = "InvalidProvider"
    INVALID_CREDENTIAL_TYPE = "InvalidCredentialType"
    MISSING_CLAIM_FIELD = "MissingClaimField"
    LOAN_NOT_FOUND = "LoanNotFound"
    LOAN_NOT_IN_EXPECTED_STATE = "LoanNotInExpectedState"
    UNAUTHORIZED = "Unauthorized"
    INCORRECT_AMOUNT = "IncorrectAmount"
    NOT_YET_DUE = "NotYetDue"
    PAUSED = "PausedRejection"
    TOKEN_TRANSFER_FAILED = "TokenTransferFailed"
    REENTRANCY = "ReentrancyRejected"


class TrustLendError(Exception):
    """
    Base class for all protocol failures.

    Only subclasses are raised; each one fixes its ErrorCode.
    """

    code: ErrorCode

    def __init__(self, message: str = "", details: Optional[Dict[str, Any]] = None):
        if type(self) is TrustLendError:
            raise TypeError("TrustLendError is abstract; raise one of its subclasses")
        self.message = message or self.code.value
        self.details = details or {}
        super().__init__(f"{self.code.value}: {self.message}")

    def to_dict(self) -> Dict[str, Any]:
        d = {"code": self.code.value, "message": self.message}
        if self.details:
            d["details"] = self.details
        return d


# Claim verification

class NoSignatures(TrustLendError):
    code = ErrorCode.NO_SIGNATURES


class InvalidSignature(TrustLendError):
    code = ErrorCode.INVALID_SIGNATURE


class ClaimInfoMismatch(TrustLendError):
    code = ErrorCode.CLAIM_INFO_MISMATCH


class InsufficientWitnesses(TrustLendError):
    code = ErrorCode.INSUFFICIENT_WITNESSES


class SignatureCountMismatch(TrustLendError):
    code = ErrorCode.SIGNATURE_COUNT_MISMATCH


class UnauthorizedSigner(TrustLendError):
    code = ErrorCode.UNAUTHORIZED_SIGNER


class EpochNotFound(TrustLendError):
    code = ErrorCode.EPOCH_NOT_FOUND


# Credential gating

class InvalidProvider(TrustLendError):
    code = ErrorCode.INVALID_PROVIDER


class InvalidCredentialType(TrustLendError):
    code = ErrorCode.INVALID_CREDENTIAL_TYPE


class MissingClaimField(TrustLendError):
    code = ErrorCode.MISSING_CLAIM_FIELD


# Loan lifecycle

class LoanNotFound(TrustLendError):
    code = ErrorCode.LOAN_NOT_FOUND


class LoanNotInExpectedState(TrustLendError):
    code = ErrorCode.LOAN_NOT_IN_EXPECTED_STATE


class Unauthorized(TrustLendError):
    code = ErrorCode.UNAUTHORIZED


class IncorrectAmount(TrustLendError):
    code = ErrorCode.INCORRECT_AMOUNT


class NotYetDue(TrustLendError):
    code = ErrorCode.NOT_YET_DUE


class PausedRejection(TrustLendError):
    code = ErrorCode.PAUSED


class TokenTransferFailed(TrustLendError):
    code = ErrorCode.TOKEN_TRANSFER_FAILED


class ReentrancyRejected(TrustLendError):
    code = ErrorCode.REENTRANCY

