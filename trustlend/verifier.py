"""
TrustLend Proof Verification

Accepts or rejects a signed claim. A proof is valid only when:

1. it carries at least one signature
2. hash(claimInfo) equals the signed claim identifier
3. the recovered signers are exactly the committee selected for the
   claim's epoch, identifier and timestamp

Verification raises on failure; there is no boolean result to ignore.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .claims import Proof, Witness
from .codec import hash_claim_info, recover_all_signers
from .committee import CommitteeSelector
from .epochs import EpochRegistry
from .errors import (
    ClaimInfoMismatch,
    NoSignatures,
    SignatureCountMismatch,
    TrustLendError,
    UnauthorizedSigner,
)


logger = logging.getLogger(__name__)


@dataclass
class VerificationReport:
    """What a successful verification established."""
    identifier: str
    epoch: int
    expected: List[Witness]
    signers: List[str]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "identifier": self.identifier,
            "epoch": self.epoch,
            "expected": [w.to_dict() for w in self.expected],
            "signers": list(self.signers),
        }


class ZkProofVerifier(ABC):
    """Call point for zero-knowledge proof checks on claim payloads."""

    @abstractmethod
    def verify(self, proof_blob: bytes) -> bool:
        pass


class UnimplementedZkVerifier(ZkProofVerifier):
    """
    Placeholder ZK verifier.

    No proof system is wired in; integrations supply their own
    ZkProofVerifier.
    """

    def verify(self, proof_blob: bytes) -> bool:
        raise NotImplementedError("Zero-knowledge proof verification is not implemented")


class ProofVerifier:
    """
    Verifies proofs against an epoch registry.

    Args:
        registry: Epoch history used for committee selection
        reject_duplicate_signers: Reject proofs in which one witness signs
            more than once. Off by default, which accepts them as long as
            the signature count and set containment checks pass.
        zk_verifier: Backend for verify_zk_proof
    """

    def __init__(
        self,
        registry: EpochRegistry,
        reject_duplicate_signers: bool = False,
        zk_verifier: Optional[ZkProofVerifier] = None,
    ):
        self.registry = registry
        self.selector = CommitteeSelector(registry)
        self.reject_duplicate_signers = reject_duplicate_signers
        self.zk_verifier = zk_verifier or UnimplementedZkVerifier()

    def verify(self, proof: Proof) -> VerificationReport:
        """
        Verify a proof.

        Raises:
            NoSignatures: no signatures attached
            ClaimInfoMismatch: claim info does not hash to the identifier
            EpochNotFound: claim epoch is unknown
            InsufficientWitnesses: epoch roster smaller than its committee size
            InvalidSignature: a signature cannot be recovered
            SignatureCountMismatch: signer count differs from committee size
            UnauthorizedSigner: a signer is not in the selected committee
        """
        try:
            report = self._verify(proof)
        except TrustLendError as e:
            logger.warning(
                "proof rejected: %s (identifier=%s)",
                e.code.value, proof.signed_claim.claim.identifier
            )
            raise

        logger.info(
            "proof verified for %s in epoch %d by %d witnesses",
            report.identifier, report.epoch, len(report.signers)
        )
        return report

    def _verify(self, proof: Proof) -> VerificationReport:
        signed = proof.signed_claim
        claim = signed.claim

        # Step 1: signatures present
        if not signed.signatures:
            raise NoSignatures("proof carries no signatures")

        # Step 2: claim info bound to identifier
        computed = hash_claim_info(proof.claim_info)
        if computed != claim.identifier:
            raise ClaimInfoMismatch(
                "claim info hash does not match claim identifier",
                {"computed": computed, "declared": claim.identifier}
            )

        # Step 3: expected committee
        epoch = self.registry.get(claim.epoch)
        expected = self.selector.select(claim.epoch, claim.identifier, claim.timestamp_s)

        # Step 4: actual signers
        signers = recover_all_signers(signed)

        # Step 5: cardinality
        if len(signers) != len(expected):
            raise SignatureCountMismatch(
                f"{len(signers)} signatures for a committee of {len(expected)}",
                {"signatures": len(signers), "committee": len(expected)}
            )

        # Step 6: containment
        expected_addresses = {w.address for w in expected}
        for signer in signers:
            if signer not in expected_addresses:
                raise UnauthorizedSigner(
                    f"{signer} is not in the selected committee",
                    {"signer": signer, "committee": sorted(expected_addresses)}
                )

        if self.reject_duplicate_signers and len(set(signers)) != len(signers):
            raise UnauthorizedSigner("a witness signed more than once", {"signers": signers})

        return VerificationReport(
            identifier=claim.identifier,
            epoch=epoch.id,
            expected=expected,
            signers=signers,
        )

    def verify_zk_proof(self, proof_blob: bytes) -> bool:
        """Delegate to the configured ZK backend."""
        return self.zk_verifier.verify(proof_blob)
