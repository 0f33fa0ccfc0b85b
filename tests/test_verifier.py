"""
Proof verification tests.

Critical invariant tested:
    A PROOF IS ACCEPTED ONLY WHEN SIGNED BY EXACTLY THE SELECTED COMMITTEE
    OVER CLAIM DATA BOUND TO ITS CLAIM INFO
"""

import unittest
from dataclasses import replace

from trustlend import (
    ClaimInfo,
    ClaimInfoMismatch,
    EpochNotFound,
    EpochRegistry,
    InsufficientWitnesses,
    InvalidSignature,
    ManualClock,
    NoSignatures,
    Proof,
    ProofVerifier,
    SignatureCountMismatch,
    SignedClaim,
    UnauthorizedSigner,
    WitnessSigner,
    ZkProofVerifier,
    hash_claim_info,
    select_committee,
)

from support import ADMIN, BORROWER, START, credit_claim, witness_keys


class _AcceptingZk(ZkProofVerifier):
    def __init__(self):
        self.seen = []

    def verify(self, proof_blob: bytes) -> bool:
        self.seen.append(proof_blob)
        return True


class TestProofVerifier(unittest.TestCase):

    def setUp(self):
        self.clock = ManualClock(START)
        self.registry = EpochRegistry(owner=ADMIN, clock=self.clock)
        self.signer = WitnessSigner(witness_keys(6))
        self.epoch = self.registry.append(ADMIN, self.signer.witnesses, 3)
        self.verifier = ProofVerifier(self.registry)
        self.info = credit_claim("742")

    def _committee(self, info=None, ts=START):
        info = info or self.info
        return [w.address for w in select_committee(self.epoch, hash_claim_info(info), ts)]

    def _proof(self, signers=None, info=None, ts=START, epoch=1):
        info = info or self.info
        signers = self._committee(info, ts) if signers is None else signers
        return self.signer.build_proof(info, BORROWER, ts, epoch, signers)

    def test_exact_committee_accepted(self):
        report = self.verifier.verify(self._proof())

        self.assertEqual(report.identifier, hash_claim_info(self.info))
        self.assertEqual(report.epoch, 1)
        self.assertEqual(report.signers, self._committee())
        self.assertEqual([w.address for w in report.expected], self._committee())

    def test_signature_order_irrelevant(self):
        signers = list(reversed(self._committee()))
        self.assertEqual(self.verifier.verify(self._proof(signers)).signers, signers)

    def test_no_signatures(self):
        proof = self._proof()
        bare = Proof(proof.claim_info, SignedClaim(proof.claim))
        with self.assertRaises(NoSignatures):
            self.verifier.verify(bare)

    def test_claim_info_mismatch(self):
        proof = self._proof()
        forged = Proof(replace(self.info, context='{"CreditScore":"850"}'), proof.signed_claim)
        with self.assertRaises(ClaimInfoMismatch):
            self.verifier.verify(forged)

    def test_outsider_signer(self):
        committee = self._committee()
        outsider = next(w.address for w in self.signer.witnesses if w.address not in committee)
        with self.assertRaises(UnauthorizedSigner):
            self.verifier.verify(self._proof(committee[:-1] + [outsider]))

    def test_non_witness_signer(self):
        stranger = WitnessSigner(witness_keys(1, prefix="stranger"))
        proof = self._proof()
        claim = proof.claim
        signatures = proof.signed_claim.signatures[:-1] + (
            stranger.key_for(stranger.witnesses[0].address).sign_claim(claim),
        )
        with self.assertRaises(UnauthorizedSigner):
            self.verifier.verify(Proof(proof.claim_info, SignedClaim(claim, signatures)))

    def test_one_signature_missing(self):
        with self.assertRaises(SignatureCountMismatch):
            self.verifier.verify(self._proof(self._committee()[:-1]))

    def test_extra_signature(self):
        committee = self._committee()
        with self.assertRaises(SignatureCountMismatch):
            self.verifier.verify(self._proof(committee + committee[:1]))

    def test_unknown_epoch(self):
        with self.assertRaises(EpochNotFound):
            self.verifier.verify(self._proof(epoch=2))

    def test_committee_bigger_than_roster(self):
        self.registry.append(ADMIN, self.signer.witnesses[:2], 3)
        proof = self.signer.build_proof(self.info, BORROWER, START, 2, self._committee())
        with self.assertRaises(InsufficientWitnesses):
            self.verifier.verify(proof)

    def test_garbage_signature(self):
        proof = self._proof()
        signatures = (bytes(64) + b"\x1b",) + proof.signed_claim.signatures[1:]
        with self.assertRaises(InvalidSignature):
            self.verifier.verify(Proof(proof.claim_info, SignedClaim(proof.claim, signatures)))

    def test_signed_for_other_timestamp(self):
        proof = self._proof()
        moved = replace(proof.claim, timestamp_s=START + 1)
        with self.assertRaises((UnauthorizedSigner, SignatureCountMismatch)):
            self.verifier.verify(Proof(proof.claim_info, SignedClaim(moved, proof.signed_claim.signatures)))

    def test_wire_round_trip_verifies(self):
        proof = Proof.from_dict(self._proof().to_dict())
        self.verifier.verify(proof)

    def test_claim_info_from_other_provider_still_bound(self):
        info = ClaimInfo(provider="zk", parameters="p", context='{"CreditScore":"700"}')
        self.verifier.verify(self._proof(info=info))


class TestDuplicateSigners(unittest.TestCase):
    """One witness signing twice in place of another committee member."""

    def setUp(self):
        self.registry = EpochRegistry(owner=ADMIN, clock=ManualClock(START))
        self.signer = WitnessSigner(witness_keys(5))
        self.epoch = self.registry.append(ADMIN, self.signer.witnesses, 2)
        self.info = credit_claim("700")
        committee = select_committee(self.epoch, hash_claim_info(self.info), START)
        first = committee[0].address
        self.proof = self.signer.build_proof(self.info, BORROWER, START, 1, [first, first])

    def test_accepted_by_default(self):
        report = ProofVerifier(self.registry).verify(self.proof)
        self.assertEqual(len(set(report.signers)), 1)

    def test_rejected_when_strict(self):
        with self.assertRaises(UnauthorizedSigner):
            ProofVerifier(self.registry, reject_duplicate_signers=True).verify(self.proof)


class TestZkHook(unittest.TestCase):

    def setUp(self):
        self.registry = EpochRegistry(owner=ADMIN, clock=ManualClock(START))

    def test_default_is_unimplemented(self):
        with self.assertRaises(NotImplementedError):
            ProofVerifier(self.registry).verify_zk_proof(b"proof")

    def test_custom_backend(self):
        backend = _AcceptingZk()
        self.assertTrue(ProofVerifier(self.registry, zk_verifier=backend).verify_zk_proof(b"proof"))
        self.assertEqual(backend.seen, [b"proof"])


if __name__ == "__main__":
    unittest.main()
