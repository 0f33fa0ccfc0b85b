"""
Claim codec and signature recovery tests.

Critical invariant tested:
    A SIGNATURE RECOVERS TO THE ACCOUNT THAT PRODUCED IT, OVER THE EXACT
    SERIALIZED CLAIM BYTES
"""

import unittest

from trustlend import (
    ClaimInfo,
    CompleteClaimData,
    InvalidSignature,
    NoSignatures,
    Proof,
    SignedClaim,
    WitnessKey,
    address_from_secret,
    hash_claim_info,
    keccak256,
    keccak256_hex,
    personal_message_digest,
    recover_all_signers,
    recover_signer,
    serialize_claim,
    sign_data,
)
from trustlend.codec import SECP256K1_N


IDENTIFIER = "0x" + "AB" * 32
OWNER = "0x" + "CD" * 20


def _claim(epoch: int = 3) -> CompleteClaimData:
    return CompleteClaimData(identifier=IDENTIFIER, owner=OWNER, timestamp_s=1700000000, epoch=epoch)


class TestHashing(unittest.TestCase):
    """Keccak-256 vectors."""

    def test_empty_input(self):
        self.assertEqual(
            keccak256(b"").hex(),
            "c5d2460186f7233c927e7db2dcc703c0e500b653ca82273b7bfad8045d85a470"
        )

    def test_text_is_utf8(self):
        self.assertEqual(
            keccak256_hex("abc"),
            "0x4e03657aea45a94fc7d47ba826c8d667c0d1e6e33a64a036ec44f58fa12d6c45"
        )
        self.assertEqual(keccak256("abc"), keccak256(b"abc"))


class TestSerialization(unittest.TestCase):
    """Wire layout of the signed claim bytes."""

    def test_serialize_claim_layout(self):
        expected = ("0x" + "ab" * 32 + "\n" + "0x" + "cd" * 20 + "\n1700000000\n3").encode()
        self.assertEqual(serialize_claim(_claim()), expected)

    def test_identifier_and_owner_lowercased(self):
        claim = _claim()
        self.assertEqual(claim.identifier, "0x" + "ab" * 32)
        self.assertEqual(claim.owner, "0x" + "cd" * 20)

    def test_hash_claim_info(self):
        info = ClaimInfo(provider="http", parameters='{"url":"x"}', context='{"a":"b"}')
        self.assertEqual(
            hash_claim_info(info),
            keccak256_hex('http\n{"url":"x"}\n{"a":"b"}')
        )

    def test_hash_claim_info_sensitive_to_context(self):
        a = ClaimInfo(provider="http", parameters="p", context='{"CreditScore":"700"}')
        b = ClaimInfo(provider="http", parameters="p", context='{"CreditScore":"800"}')
        self.assertNotEqual(hash_claim_info(a), hash_claim_info(b))

    def test_invalid_identifier_rejected(self):
        with self.assertRaises(ValueError):
            CompleteClaimData(identifier="0x1234", owner=OWNER, timestamp_s=0, epoch=1)

    def test_timestamp_must_fit_u32(self):
        with self.assertRaises(ValueError):
            CompleteClaimData(identifier=IDENTIFIER, owner=OWNER, timestamp_s=2 ** 32, epoch=1)

    def test_proof_wire_format(self):
        key = WitnessKey.from_seed("wire")
        info = ClaimInfo(provider="http", parameters="p", context="c")
        claim = CompleteClaimData(hash_claim_info(info), OWNER, 1700000000, 1)
        proof = Proof(info, SignedClaim(claim, (key.sign_claim(claim),)))

        data = proof.to_dict()
        self.assertEqual(set(data), {"claimInfo", "signedClaim"})
        self.assertEqual(data["signedClaim"]["claim"]["timestampS"], 1700000000)
        self.assertTrue(data["signedClaim"]["signatures"][0].startswith("0x"))
        self.assertEqual(len(data["signedClaim"]["signatures"][0]), 2 + 130)
        self.assertEqual(Proof.from_dict(data), proof)


class TestSignerRecovery(unittest.TestCase):
    """ECDSA personal-message recovery."""

    def setUp(self):
        self.key = WitnessKey.from_seed("witness-a")
        self.content = serialize_claim(_claim())

    def test_known_address_for_secret_one(self):
        secret = (1).to_bytes(32, "big")
        self.assertEqual(
            WitnessKey.from_secret(secret).address,
            "0x7e5f4552091a69125d5dfcb7b8c2659029395bdf"
        )
        self.assertEqual(address_from_secret("0x" + secret.hex()), WitnessKey.from_secret(secret).address)

    def test_personal_message_digest(self):
        self.assertEqual(
            personal_message_digest(b"hello"),
            keccak256(b"\x19Ethereum Signed Message:\n5hello")
        )

    def test_round_trip(self):
        signature = self.key.sign(self.content)
        self.assertEqual(len(signature), 65)
        self.assertIn(signature[64], (27, 28))
        self.assertEqual(recover_signer(self.content, signature), self.key.address)

    def test_sign_data_matches_key(self):
        signature = sign_data(self.content, self.key.secret)
        self.assertEqual(recover_signer(self.content, signature), self.key.address)

    def test_raw_recovery_id_accepted(self):
        signature = self.key.sign(self.content)
        raw = signature[:64] + bytes([signature[64] - 27])
        self.assertEqual(recover_signer(self.content, raw), self.key.address)

    def test_other_content_recovers_other_account(self):
        signature = self.key.sign(self.content)
        self.assertNotEqual(recover_signer(self.content + b"!", signature), self.key.address)

    def test_wrong_length_rejected(self):
        signature = self.key.sign(self.content)
        with self.assertRaises(InvalidSignature):
            recover_signer(self.content, signature[:64])

    def test_bad_recovery_id_rejected(self):
        signature = self.key.sign(self.content)
        with self.assertRaises(InvalidSignature):
            recover_signer(self.content, signature[:64] + bytes([29]))

    def test_high_s_rejected(self):
        signature = self.key.sign(self.content)
        s = int.from_bytes(signature[32:64], "big")
        flipped_v = 27 + (1 - (signature[64] - 27))
        malleable = signature[:32] + (SECP256K1_N - s).to_bytes(32, "big") + bytes([flipped_v])
        with self.assertRaises(InvalidSignature):
            recover_signer(self.content, malleable)

    def test_zero_r_rejected(self):
        signature = self.key.sign(self.content)
        with self.assertRaises(InvalidSignature):
            recover_signer(self.content, bytes(32) + signature[32:])


class TestRecoverAllSigners(unittest.TestCase):
    """One recovered account per signature."""

    def test_no_signatures(self):
        with self.assertRaises(NoSignatures):
            recover_all_signers(SignedClaim(claim=_claim()))

    def test_order_and_duplicates_kept(self):
        a = WitnessKey.from_seed("a")
        b = WitnessKey.from_seed("b")
        claim = _claim()
        signed = SignedClaim(claim, (a.sign_claim(claim), b.sign_claim(claim), a.sign_claim(claim)))
        self.assertEqual(recover_all_signers(signed), [a.address, b.address, a.address])


if __name__ == "__main__":
    unittest.main()
