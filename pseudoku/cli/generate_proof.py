#!/usr/bin/env python3
"""
CLI tool to check a Sudoku solution and generate its zero-knowledge proof
from the command line.

Without --prover only the solution check runs. With a prover reference
("package.module:factory") the tool proves, verifies locally and exports.
"""

import argparse
from pathlib import Path

from pseudoku.core import CHALLENGE_PUZZLES, ProofSession, dumps_export, load_prover
from pseudoku.core.field import challenge_label
from pseudoku.cli.common import fail, log, read_json, succeed


def generate_proof_cli(argv=None):
    """Check a solution, then prove and export it if a prover is given"""
    parser = argparse.ArgumentParser(description='Generate a Pseudoku zero-knowledge proof')
    parser.add_argument('--grid', required=True, help='Solution grid: JSON, file path or - for stdin')
    parser.add_argument('--challenge', default='default', choices=sorted(CHALLENGE_PUZZLES),
                        help='Challenge puzzle the solution extends')
    parser.add_argument('--prover', help='Prover factory as module:attribute')
    parser.add_argument('--output', help='Write the proof export JSON to this file')
    parser.add_argument('--verbose', '-v', action='store_true', help='Enable verbose output')

    args = parser.parse_args(argv)

    try:
        grid = read_json(args.grid)
        prover = load_prover(args.prover) if args.prover else None

        session = ProofSession(prover, challenge=CHALLENGE_PUZZLES[args.challenge])
        log(args.verbose, challenge_label(session.field_element))

        session.load_candidate(grid)
        verdict = session.check_solution()
        if not verdict:
            violation = verdict.violation
            fail(ValueError(verdict.message), valid=False, violation={
                'kind': violation.kind,
                'index': violation.index,
                'cell': list(violation.cell) if violation.cell else None,
            })

        log(args.verbose, "Solution is correct!")
        if prover is None:
            succeed({
                'success': True,
                'valid': True,
                'challengeId': session.field_element,
            })

        log(args.verbose, "Generating proof... This may take a moment.")
        session.generate_proof()
        export = session.export()
        log(args.verbose, f"Proof generated and verified: {session.fingerprint}")

        if args.output:
            Path(args.output).write_text(dumps_export(export), encoding='utf-8')
            log(args.verbose, f"Proof export written to {args.output}")

        succeed({
            'success': True,
            'valid': True,
            'verified': True,
            'fingerprint': session.fingerprint,
            'export': export.to_dict(),
        })

    except Exception as e:
        fail(e)


if __name__ == '__main__':
    generate_proof_cli()
