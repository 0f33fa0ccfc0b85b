"""
TrustLend Reference Implementation

Version: 0.4.0
License: Apache 2.0

Attestation-gated lending.

Off-chain witnesses jointly sign claims about a user (for example a credit
score read from a third-party source). A claim is accepted only if it is
signed by exactly the witness committee that is deterministically selected
for the epoch, claim and timestamp it names. Accepted claims update the
user's credit score and credentials; loans run through a one-way
request/offer/fund/repay state machine with escrowed collateral.

Usage:
    from trustlend import (
        ClaimInfo,
        hash_claim_info,
        InMemoryToken,
        LoanLedger,
        WitnessSigner,
        select_committee,
    )

    ledger = LoanLedger(admin=admin, lending_token=InMemoryToken(usd_address))

    # Open an epoch
    signer = WitnessSigner()
    signer.generate(5)
    epoch = ledger.append_epoch(admin, signer.witnesses, min_committee_size=2)

    # Witnesses sign a claim for the committee chosen for it
    info = ClaimInfo(provider="http", parameters="{...}", context='{"CreditScore":"720"}')
    identifier = hash_claim_info(info)
    committee = select_committee(epoch, identifier, timestamp_s)
    proof = signer.build_proof(info, user, timestamp_s, epoch.id,
                               [w.address for w in committee])

    # The user submits it
    ledger.update_credit_score(user, proof)
"""

__version__ = "0.4.0"
__license__ = "Apache-2.0"

# Data model
from .claims import (
    ClaimInfo,
    CompleteClaimData,
    Epoch,
    Proof,
    SignedClaim,
    Witness,
    make_witnesses,
    normalize_identifier,
)

# Hashing and codec
from .hashing import keccak256, keccak256_hex
from .codec import (
    hash_claim_info,
    personal_message_digest,
    recover_all_signers,
    recover_signer,
    serialize_claim,
)
from .context import extract_field, parse_decimal

# Epochs and committees
from .epochs import EpochRegistry
from .committee import (
    CommitteeSelector,
    committee_seed,
    select_committee,
    selection_indices,
)

# Verification
from .verifier import (
    ProofVerifier,
    UnimplementedZkVerifier,
    VerificationReport,
    ZkProofVerifier,
)
from .signing import WitnessKey, WitnessSigner, address_from_secret, sign_data

# Ledger
from .tokens import InMemoryToken, TokenLedger
from .extractors import FieldExtractor, MarkerFieldExtractor, ParametersFieldExtractor
from .events import EventLog, EventType, InMemoryEventLog, LedgerEvent
from .ledger import (
    CredentialType,
    Loan,
    LoanLedger,
    LoanStatus,
    Offer,
    User,
    repayment_amount,
)
from .config import LedgerSettings

# Errors
from .errors import (
    ErrorCode,
    TrustLendError,
    NoSignatures,
    InvalidSignature,
    ClaimInfoMismatch,
    InsufficientWitnesses,
    SignatureCountMismatch,
    UnauthorizedSigner,
    EpochNotFound,
    InvalidProvider,
    InvalidCredentialType,
    MissingClaimField,
    LoanNotFound,
    LoanNotInExpectedState,
    Unauthorized,
    IncorrectAmount,
    NotYetDue,
    PausedRejection,
    TokenTransferFailed,
    ReentrancyRejected,
)

from .util import ManualClock


__all__ = [
    # Version
    "__version__",

    # Data model
    "ClaimInfo",
    "CompleteClaimData",
    "Epoch",
    "Proof",
    "SignedClaim",
    "Witness",
    "make_witnesses",
    "normalize_identifier",

    # Hashing and codec
    "keccak256",
    "keccak256_hex",
    "hash_claim_info",
    "personal_message_digest",
    "recover_all_signers",
    "recover_signer",
    "serialize_claim",
    "extract_field",
    "parse_decimal",

    # Epochs and committees
    "EpochRegistry",
    "CommitteeSelector",
    "committee_seed",
    "select_committee",
    "selection_indices",

    # Verification
    "ProofVerifier",
    "UnimplementedZkVerifier",
    "VerificationReport",
    "ZkProofVerifier",
    "WitnessKey",
    "WitnessSigner",
    "address_from_secret",
    "sign_data",

    # Ledger
    "InMemoryToken",
    "TokenLedger",
    "FieldExtractor",
    "MarkerFieldExtractor",
    "ParametersFieldExtractor",
    "EventLog",
    "EventType",
    "InMemoryEventLog",
    "LedgerEvent",
    "CredentialType",
    "Loan",
    "LoanLedger",
    "LoanStatus",
    "Offer",
    "User",
    "repayment_amount",
    "LedgerSettings",
    "ManualClock",

    # Errors
    "ErrorCode",
    "TrustLendError",
    "NoSignatures",
    "InvalidSignature",
    "ClaimInfoMismatch",
    "InsufficientWitnesses",
    "SignatureCountMismatch",
    "UnauthorizedSigner",
    "EpochNotFound",
    "InvalidProvider",
    "InvalidCredentialType",
    "MissingClaimField",
    "LoanNotFound",
    "LoanNotInExpectedState",
    "Unauthorized",
    "IncorrectAmount",
    "NotYetDue",
    "PausedRejection",
    "TokenTransferFailed",
    "ReentrancyRejected",
]
