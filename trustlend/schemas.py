from pydantic import BaseModel, Field
from typing import List, Optional

from .claims import Proof, Witness


# Proof wire format (camelCase, shared with claim producers)

class ClaimInfoModel(BaseModel):
    provider: str
    parameters: str
    context: str = ""

class ClaimDataModel(BaseModel):
    identifier: str
    owner: str
    timestampS: int = Field(ge=0)
    epoch: int = Field(ge=0)

class SignedClaimModel(BaseModel):
    claim: ClaimDataModel
    signatures: List[str] = Field(default_factory=list)

class ProofModel(BaseModel):
    claimInfo: ClaimInfoModel
    signedClaim: SignedClaimModel

    def to_proof(self) -> Proof:
        return Proof.from_dict(self.model_dump())


# Admin

class WitnessModel(BaseModel):
    address: str
    host: str = ""

    def to_witness(self) -> Witness:
        return Witness(address=self.address, host=self.host)

class AppendEpochRequest(BaseModel):
    witnesses: List[WitnessModel]
    min_committee_size: int = Field(ge=0, le=255)

class CredentialTypeRequest(BaseModel):
    type_id: str = Field(min_length=1)
    label: str = Field(min_length=1)

class TransferAdminRequest(BaseModel):
    new_admin: str


# Loans

class LoanRequest(BaseModel):
    amount: int
    interest_rate: int
    duration: int
    collateral_token: str
    collateral_amount: int

class OfferRequest(BaseModel):
    interest_rate: int

class AcceptOfferRequest(BaseModel):
    offer_index: int

class RepayRequest(BaseModel):
    amount: Optional[int] = None

class ExtendRequest(BaseModel):
    new_duration: int


# Claims

class CreditScoreRequest(BaseModel):
    proof: ProofModel

class CredentialRequest(BaseModel):
    proof: ProofModel
    credential_type: str

class CommitteeRequest(BaseModel):
    identifier: str
    epoch: int = Field(default=0, ge=0)
    timestamp_s: int = Field(ge=0)


# Tokens

class ApproveRequest(BaseModel):
    spender: str
    amount: int = Field(ge=0)

class MintRequest(BaseModel):
    account: str
    amount: int = Field(gt=0)
