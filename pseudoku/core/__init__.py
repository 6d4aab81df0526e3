#!/usr/bin/env python3
"""
PSEUDOKU CORE MODULE
====================
Zero-knowledge Sudoku proofs

This module provides the unified interface to the proof workflow around an
external Noir/UltraHonk backend:

- Grid integrity checks with a deterministic first-violation order
- Uniform BN254 field elements via rejection sampling
- Canonical proof export encoding (hex + JSON)
- Solve -> prove -> verify -> export session state machine
"""

from .errors import (
    PseudokuError,
    ValidationError,
    SamplingError,
    ProverError,
    FormatError,
    TransitionError,
    CsrfError,
    OAuthError,
    PublishError,
)
from .grid import (
    CHALLENGE_PUZZLES,
    DEFAULT_CHALLENGE,
    Conflict,
    Verdict,
    Violation,
    is_complete,
    is_consistent,
    validate_solution,
    get_conflicts,
    matches_challenge,
    fixed_mask,
)
from .field import FIELD_MODULUS, FieldSampler, parse_field_element
from .codec import (
    ProofArtifact,
    ProofExport,
    to_hex,
    from_hex,
    encode_export,
    decode_export,
    to_artifact,
    dumps_export,
)
from .prover import Prover, build_circuit_inputs, load_prover
from .lifecycle import Phase, ProofSession

__all__ = [
    # Errors
    "PseudokuError",
    "ValidationError",
    "SamplingError",
    "ProverError",
    "FormatError",
    "TransitionError",
    "CsrfError",
    "OAuthError",
    "PublishError",

    # Grid checks
    "CHALLENGE_PUZZLES",
    "DEFAULT_CHALLENGE",
    "Conflict",
    "Verdict",
    "Violation",
    "is_complete",
    "is_consistent",
    "validate_solution",
    "get_conflicts",
    "matches_challenge",
    "fixed_mask",

    # Field elements
    "FIELD_MODULUS",
    "FieldSampler",
    "parse_field_element",

    # Proof encoding
    "ProofArtifact",
    "ProofExport",
    "to_hex",
    "from_hex",
    "encode_export",
    "decode_export",
    "to_artifact",
    "dumps_export",

    # Proving
    "Prover",
    "build_circuit_inputs",
    "load_prover",
    "Phase",
    "ProofSession",
]

# System metadata
CORE_VERSION = "1.0.0"
PRIME_FIELD = "BN254_SCALAR"
PROOF_SYSTEM = "UltraHonk (Noir)"
EXPORT_FILENAME = "pseudoku_proof.json"
