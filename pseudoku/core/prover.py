"""
Interface to the external proving backend (Noir circuit + UltraHonk).

The backend is opaque: it executes the circuit to get a witness, turns the
witness into a proof and verifies proofs. Anything exposing these three
methods can be plugged into ProofSession or the CLI tools.
"""

import importlib
import logging
from typing import Any, Dict, List, Protocol, Sequence

from .codec import ProofArtifact
from .errors import ProverError
from .grid import clone_grid

logger = logging.getLogger(__name__)


class Prover(Protocol):
    def execute(self, inputs: Dict[str, Any]) -> Any:
        ...

    def generate_proof(self, witness: Any) -> ProofArtifact:
        ...

    def verify_proof(self, artifact: ProofArtifact) -> bool:
        ...


def build_circuit_inputs(field_element: str, candidate: Sequence[Sequence[int]],
                         challenge: Sequence[Sequence[int]]) -> Dict[str, List[Any]]:
    """Circuit inputs binding both grids to the session's field element"""
    return {
        "solution": [field_element, clone_grid(candidate)],
        "challenge": [field_element, clone_grid(challenge)],
    }


def load_prover(reference: str) -> Prover:
    """
    Instantiate a prover from a "package.module:factory" reference.

    The attribute is called with no arguments; classes and factory
    functions both work.
    """
    module_name, _, attr = reference.partition(":")
    if not module_name or not attr:
        raise ProverError(f"Prover reference must look like 'module:factory', got {reference!r}")
    try:
        module = importlib.import_module(module_name)
        factory = getattr(module, attr)
    except (ImportError, AttributeError) as e:
        raise ProverError(f"Cannot load prover {reference!r}: {e}") from e
    logger.info("Loaded prover backend %s", reference)
    return factory()
