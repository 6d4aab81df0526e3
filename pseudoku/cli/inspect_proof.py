"""
Inspect Pseudoku proof exports
Show what's actually inside an exported proof
"""

import argparse
import json
from typing import Any, Dict

from pseudoku.core import ProofExport, decode_export, to_artifact
from pseudoku.core.display import format_time, proof_fingerprint
from pseudoku.core.field import to_hex
from pseudoku.cli.common import fail, read_text


def summarize_export(export: ProofExport) -> Dict[str, Any]:
    artifact = to_artifact(export)
    return {
        'challengeId': export.challenge_id,
        'challengeIdHex': to_hex(export.challenge_id),
        'fingerprint': proof_fingerprint(artifact.proof),
        'proofBytes': len(artifact.proof),
        'publicInputs': len(artifact.public_inputs),
        'timeInMs': export.time_in_ms,
        'solvedIn': format_time(export.time_in_ms),
        'timestamp': export.timestamp,
    }


def print_report(summary: Dict[str, Any], export: ProofExport):
    print("=" * 80)
    print("PSEUDOKU PROOF INSPECTION - What's Actually Inside?")
    print("=" * 80)
    print()

    print("1. CHALLENGE ID (per-session field element, public input)")
    print("   " + summary['challengeIdHex'])
    print()

    print("2. PROOF (opaque UltraHonk bytes)")
    print(f"   Size: {summary['proofBytes']} bytes")
    print(f"   Fingerprint: {summary['fingerprint']}")
    print()

    print("3. PUBLIC INPUTS (what the verifier checks against)")
    print(f"   Count: {summary['publicInputs']}")
    for value in export.public_inputs[:3]:
        print(f"     - {value[:60]}")
    if summary['publicInputs'] > 3:
        print("     - ...")
    print()

    print("4. METADATA (not consumed by the verifier)")
    print(f"   Solved in: {summary['solvedIn']}")
    print(f"   Timestamp: {summary['timestamp']}")
    print()


def inspect_proof_cli(argv=None):
    parser = argparse.ArgumentParser(description='Inspect a Pseudoku proof export')
    parser.add_argument('proof', help='Proof export: JSON, file path or - for stdin')
    parser.add_argument('--json', action='store_true', help='Print a JSON summary instead of a report')

    args = parser.parse_args(argv)

    try:
        export = decode_export(read_text(args.proof))
    except Exception as e:
        fail(e)

    summary = summarize_export(export)
    if args.json:
        print(json.dumps(dict(summary, success=True)))
    else:
        print_report(summary, export)


if __name__ == '__main__':
    inspect_proof_cli()
