#!/usr/bin/env python3
"""
TrustLend Command Line Interface

Offline tooling for claim producers and witnesses.

Usage:
    trustlend hash-claim --file <claim_info.json>
    trustlend serialize-claim --file <claim.json>
    trustlend committee --registry <registry.json> --identifier <0x..> --timestamp <s> [--epoch <n>]
    trustlend verify --proof <proof.json> --registry <registry.json> [--strict]
    trustlend sign --file <claim.json> (--secret <hex> | --seed <text>)
    trustlend keygen [--seed <text>]
"""

import argparse
import json
import sys


def load_json(path: str) -> dict:
    """Load JSON from file."""
    with open(path, 'r') as f:
        return json.load(f)


def save_json(data: dict, path: str):
    """Save JSON to file."""
    with open(path, 'w') as f:
        json.dump(data, f, indent=2)


def _claim_data(data: dict):
    from trustlend import CompleteClaimData

    # Accept a bare claim, a signed claim or a whole proof
    if "signedClaim" in data:
        data = data["signedClaim"]
    if "claim" in data:
        data = data["claim"]
    return CompleteClaimData.from_dict(data)


def _witness_key(args):
    from trustlend import WitnessKey
    from trustlend.util import hex_to_bytes

    if args.secret:
        return WitnessKey.from_secret(hex_to_bytes(args.secret))
    return WitnessKey.from_seed(args.seed)


def cmd_hash_claim(args):
    """Compute the identifier of a claim info document."""
    from trustlend import ClaimInfo, hash_claim_info

    data = load_json(args.file)
    if "claimInfo" in data:
        data = data["claimInfo"]
    print(hash_claim_info(ClaimInfo.from_dict(data)))
    return 0


def cmd_serialize_claim(args):
    """Print the exact bytes witnesses sign for a claim."""
    from trustlend import serialize_claim

    content = serialize_claim(_claim_data(load_json(args.file)))
    if args.hex:
        print("0x" + content.hex())
    else:
        sys.stdout.write(content.decode('utf-8') + "\n")
    return 0


def cmd_committee(args):
    """Select the committee for a claim from a registry snapshot."""
    from trustlend import CommitteeSelector, EpochRegistry, TrustLendError

    registry = EpochRegistry.from_dict(load_json(args.registry))
    try:
        committee = CommitteeSelector(registry).select(args.epoch, args.identifier, args.timestamp)
    except TrustLendError as e:
        print(f"✗ {e.code.value}: {e.message}", file=sys.stderr)
        return 1

    print(json.dumps([w.to_dict() for w in committee], indent=2))
    return 0


def cmd_verify(args):
    """Verify a proof against a registry snapshot."""
    from trustlend import EpochRegistry, Proof, ProofVerifier, TrustLendError

    registry = EpochRegistry.from_dict(load_json(args.registry))
    proof = Proof.from_dict(load_json(args.proof))
    verifier = ProofVerifier(registry, reject_duplicate_signers=args.strict)

    try:
        report = verifier.verify(proof)
    except TrustLendError as e:
        print(f"✗ INVALID: {e.code.value}")
        if e.details:
            print(json.dumps(e.details, indent=2))
        return 1

    print("✓ VALID")
    print(json.dumps(report.to_dict(), indent=2))
    return 0


def cmd_sign(args):
    """Sign a claim as a witness."""
    from trustlend import SignedClaim
    from trustlend.util import bytes_to_hex

    data = load_json(args.file)
    claim = _claim_data(data)
    key = _witness_key(args)
    signature = key.sign_claim(claim)

    if args.output:
        signed_data = data.get("signedClaim", data)
        previous = tuple(signed_data.get("signatures", [])) if "claim" in signed_data else ()
        signed = SignedClaim(claim=claim, signatures=previous + (signature,))
        if "claimInfo" in data:
            out = {"claimInfo": data["claimInfo"], "signedClaim": signed.to_dict()}
        else:
            out = signed.to_dict()
        save_json(out, args.output)
        print(f"Signed claim saved to: {args.output}", file=sys.stderr)
    else:
        print(bytes_to_hex(signature))

    print(f"Signer: {key.address}", file=sys.stderr)
    return 0


def cmd_keygen(args):
    """Generate a witness key pair."""
    from trustlend import WitnessKey
    from trustlend.util import bytes_to_hex

    key = WitnessKey.from_seed(args.seed) if args.seed else WitnessKey.generate()
    print(json.dumps({"address": key.address, "secret": bytes_to_hex(key.secret)}, indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="trustlend",
        description="TrustLend claim tooling",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  trustlend hash-claim -f claim_info.json
  trustlend committee -r registry.json -i 0x.. -t 1700000000
  trustlend verify -p proof.json -r registry.json
  trustlend sign -f proof.json --seed witness-0 -o proof.json
        """
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # hash-claim
    hash_parser = subparsers.add_parser("hash-claim", help="Compute claim identifier")
    hash_parser.add_argument("-f", "--file", required=True, help="ClaimInfo (or proof) JSON file")

    # serialize-claim
    ser_parser = subparsers.add_parser("serialize-claim", help="Print signed claim bytes")
    ser_parser.add_argument("-f", "--file", required=True, help="Claim, signed claim or proof JSON file")
    ser_parser.add_argument("--hex", action="store_true", help="Print as hex")

    # committee
    com_parser = subparsers.add_parser("committee", help="Select witness committee")
    com_parser.add_argument("-r", "--registry", required=True, help="Registry snapshot JSON file")
    com_parser.add_argument("-i", "--identifier", required=True, help="Claim identifier (0x hex)")
    com_parser.add_argument("-t", "--timestamp", required=True, type=int, help="Claim timestamp (seconds)")
    com_parser.add_argument("-e", "--epoch", type=int, default=0, help="Epoch id (0 = current)")

    # verify
    verify_parser = subparsers.add_parser("verify", help="Verify a proof")
    verify_parser.add_argument("-p", "--proof", required=True, help="Proof JSON file")
    verify_parser.add_argument("-r", "--registry", required=True, help="Registry snapshot JSON file")
    verify_parser.add_argument("--strict", action="store_true", help="Reject repeated signers")

    # sign
    sign_parser = subparsers.add_parser("sign", help="Sign a claim as a witness")
    sign_parser.add_argument("-f", "--file", required=True, help="Claim, signed claim or proof JSON file")
    key_group = sign_parser.add_mutually_exclusive_group(required=True)
    key_group.add_argument("-k", "--secret", help="Witness secret key (hex)")
    key_group.add_argument("-s", "--seed", help="Derive the witness key from a text seed")
    sign_parser.add_argument("-o", "--output", help="Write the signed claim (appending the signature)")

    # keygen
    keygen_parser = subparsers.add_parser("keygen", help="Generate a witness key")
    keygen_parser.add_argument("-s", "--seed", help="Derive from a text seed")

    return parser


COMMANDS = {
    "hash-claim": cmd_hash_claim,
    "serialize-claim": cmd_serialize_claim,
    "committee": cmd_committee,
    "verify": cmd_verify,
    "sign": cmd_sign,
    "keygen": cmd_keygen,
}


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    command = COMMANDS.get(args.command)
    if command is None:
        parser.print_help()
        return 2
    return command(args)


if __name__ == "__main__":
    sys.exit(main())
