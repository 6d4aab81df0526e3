#!/usr/bin/env python3
"""
CLI tool to verify Pseudoku proofs from command line
Accepts either a full proof export or a bare (public inputs, proof hex) pair.
"""

import argparse

from pseudoku.core import decode_export, load_prover, to_artifact
from pseudoku.core.codec import artifact_from_parts
from pseudoku.core.errors import FormatError
from pseudoku.cli.common import fail, log, read_json, read_text, succeed


def verify_proof_cli(argv=None):
    """Verify a proof against the prover backend"""
    parser = argparse.ArgumentParser(description='Verify a Pseudoku zero-knowledge proof')
    parser.add_argument('--prover', required=True, help='Prover factory as module:attribute')
    parser.add_argument('--proof', help='Proof export: JSON, file path or - for stdin')
    parser.add_argument('--public-inputs', help='Public inputs as a JSON array of strings')
    parser.add_argument('--proof-hex', help='Proof bytes as hex')
    parser.add_argument('--verbose', '-v', action='store_true', help='Enable verbose output')

    args = parser.parse_args(argv)

    try:
        challenge_id = None
        if args.proof:
            export = decode_export(read_text(args.proof))
            artifact = to_artifact(export)
            challenge_id = export.challenge_id
        elif args.public_inputs and args.proof_hex:
            artifact = artifact_from_parts(read_json(args.public_inputs), "".join(args.proof_hex.split()))
        else:
            raise FormatError("Please enter both public inputs and proof hex")

        prover = load_prover(args.prover)
        verified = bool(prover.verify_proof(artifact))

        log(args.verbose, f"Verification: {'PASSED' if verified else 'FAILED'}")

        succeed({
            'success': True,
            'verified': verified,
            'challengeId': challenge_id,
            'publicInputs': list(artifact.public_inputs),
        })

    except Exception as e:
        fail(e, verified=False)


if __name__ == '__main__':
    verify_proof_cli()
