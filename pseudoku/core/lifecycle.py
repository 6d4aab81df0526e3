"""
PROOF LIFECYCLE
===============

One ProofSession per game. The presentation layer dispatches user actions
into it and observes `phase`; the session owns the candidate grid, the
per-session field element, the elapsed time and the proof artifact.

    EDITING --check_solution--> SOLVED --generate_proof--> PROVING
       ^                          |                           |
       |<------- cell edit -------+         verified          v
       |<--- prover error / verification failed ---------  PROVED --export--> EXPORTED
       |                                                                      |
       +<------------------------------ reset (from any phase) ---------------+

External verification (verify_external / verify_export) runs beside this
machine and never changes the phase.

Elapsed time is an accumulated duration read from an injectable clock, not
a ticking callback: it freezes when the solution checks out and that frozen
value is the exported `timeInMs`.
"""

import json
import logging
import time
from enum import Enum
from typing import Any, Callable, List, Optional, Sequence, Union

from .codec import (
    ProofArtifact,
    ProofExport,
    artifact_from_parts,
    decode_export,
    dumps_export,
    encode_export,
    to_artifact,
)
from .display import proof_fingerprint
from .errors import FormatError, ProverError, TransitionError, ValidationError
from .field import FieldSampler
from .grid import (
    DEFAULT_CHALLENGE,
    GRID_SIZE,
    MISMATCH,
    Conflict,
    Grid,
    Verdict,
    Violation,
    as_array,
    clone_grid,
    fixed_mask,
    get_conflicts,
    get_empty_cells,
    matches_challenge,
    validate_solution,
)
from .prover import Prover, build_circuit_inputs

logger = logging.getLogger(__name__)

Listener = Callable[["Phase", "Phase"], None]


class Phase(Enum):
    EDITING = "editing"
    SOLVED = "solved"
    PROVING = "proving"
    PROVED = "proved"
    EXPORTED = "exported"


def monotonic_ms() -> int:
    return int(time.monotonic() * 1000)


class ProofSession:
    """
    Solve -> prove -> verify -> export state machine for one challenge.

    Args:
        prover: proving backend (see pseudoku.core.prover.Prover)
        challenge: the immutable puzzle; defaults to the daily challenge
        sampler: field element source, drawn at start and on every reset
        clock: monotonic clock in milliseconds
    """

    def __init__(self, prover: Prover, challenge: Optional[Sequence[Sequence[int]]] = None,
                 sampler: Optional[FieldSampler] = None, clock: Optional[Callable[[], int]] = None):
        self.prover = prover
        self.challenge: Grid = clone_grid(challenge if challenge is not None else DEFAULT_CHALLENGE)
        self.fixed = fixed_mask(self.challenge)
        self.sampler = sampler or FieldSampler()
        self._clock = clock or monotonic_ms
        self._listeners: List[Listener] = []
        self.phase = Phase.EDITING
        self._new_round()

    def _new_round(self):
        self.field_element = self.sampler.sample()
        self.candidate: Grid = clone_grid(self.challenge)
        self.artifact: Optional[ProofArtifact] = None
        self.proof_time: Optional[int] = None
        self.publish_url: Optional[str] = None
        self._accumulated_ms = 0
        self._running_since: Optional[int] = self._clock()

    # ── observers ────────────────────────────────────────────────────────
    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call `listener(old, new)` on every phase change; returns an unsubscribe hook"""
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def _transition(self, new: Phase):
        old = self.phase
        if old is new:
            return
        self.phase = new
        logger.debug("Phase %s -> %s", old.value, new.value)
        for listener in list(self._listeners):
            listener(old, new)

    def _guard_idle(self):
        if self.phase is Phase.PROVING:
            raise TransitionError("A proof is being generated; wait for it to finish")

    # ── timer ────────────────────────────────────────────────────────────
    @property
    def elapsed_ms(self) -> int:
        if self._running_since is None:
            return self._accumulated_ms
        return self._accumulated_ms + max(0, self._clock() - self._running_since)

    @property
    def timer_running(self) -> bool:
        return self._running_since is not None

    def _freeze_timer(self):
        self._accumulated_ms = self.elapsed_ms
        self._running_since = None

    def _resume_timer(self):
        if self._running_since is None:
            self._running_since = self._clock()

    # ── editing ──────────────────────────────────────────────────────────
    def set_cell(self, row: int, col: int, value: int):
        """Write a digit (0 clears); fixed clues are read-only"""
        self._guard_idle()
        if not (0 <= row < GRID_SIZE and 0 <= col < GRID_SIZE):
            raise ValidationError(f"Cell ({row}, {col}) is outside the grid")
        if self.fixed[row][col]:
            raise ValidationError(f"Cell at row {row + 1}, column {col + 1} is fixed")
        if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= GRID_SIZE:
            raise ValidationError("Only numbers 1-9 are allowed")
        if self.candidate[row][col] == value:
            return
        self.candidate[row][col] = value
        self._back_to_editing()

    def load_candidate(self, grid: Sequence[Sequence[int]]):
        """Replace the whole candidate grid (used by batch tools)"""
        self._guard_idle()
        self.candidate = clone_grid(as_array(grid))
        self._back_to_editing()

    def _back_to_editing(self):
        if self.phase is not Phase.EDITING:
            # The proof no longer describes the grid being edited
            self.artifact = None
            self.proof_time = None
        self._resume_timer()
        self._transition(Phase.EDITING)

    def conflicts_at(self, row: int, col: int) -> List[Conflict]:
        """Live highlighting for one editable cell"""
        if not (0 <= row < GRID_SIZE and 0 <= col < GRID_SIZE):
            raise ValidationError(f"Cell ({row}, {col}) is outside the grid")
        if self.fixed[row][col]:
            return []
        return get_conflicts(self.candidate, row, col, self.candidate[row][col])

    def hint(self) -> str:
        if not get_empty_cells(self.candidate):
            return "No empty cells to fill!"
        return "Hint: Try using the process of elimination for empty cells."

    # ── solving ──────────────────────────────────────────────────────────
    def check_solution(self) -> Verdict:
        """Validate the candidate; on success freeze the timer and enter SOLVED"""
        self._guard_idle()
        verdict = validate_solution(self.candidate)
        if verdict and not matches_challenge(self.candidate, self.challenge):
            verdict = Verdict(False, self._first_mismatch())
        if not verdict:
            logger.debug("Solution rejected: %s", verdict.message)
            return verdict
        if self.phase is Phase.EDITING:
            self._freeze_timer()
            self.proof_time = self._accumulated_ms
            self._transition(Phase.SOLVED)
        return verdict

    def _first_mismatch(self) -> Optional[Violation]:
        for r in range(GRID_SIZE):
            for c in range(GRID_SIZE):
                clue = self.challenge[r][c]
                if clue and self.candidate[r][c] != clue:
                    return Violation(MISMATCH, r, f"Cell at row {r + 1}, column {c + 1} "
                                                  f"must keep the given value {clue}", cell=(r, c))
        return None

    @property
    def can_generate_proof(self) -> bool:
        return self.phase is Phase.SOLVED

    # ── proving ──────────────────────────────────────────────────────────
    def generate_proof(self) -> ProofArtifact:
        """
        Execute the circuit, prove and verify locally, in that order.

        Local verification gates what the user is about to publish, so it
        runs even though the backend already checks its own output.
        Failures return the session to EDITING and raise ProverError.
        """
        self._guard_idle()
        if self.phase is not Phase.SOLVED:
            raise TransitionError("Check the solution before generating a proof")

        self._transition(Phase.PROVING)
        inputs = build_circuit_inputs(self.field_element, self.candidate, self.challenge)
        try:
            logger.info("Executing circuit...")
            witness = self.prover.execute(inputs)
            logger.info("Generating proof...")
            artifact = self.prover.generate_proof(witness)
            logger.info("Verifying proof...")
            verified = self.prover.verify_proof(artifact)
        except Exception as e:
            logger.warning("Proof generation failed: %s", e)
            self._transition(Phase.EDITING)
            raise ProverError(f"Error generating proof: {e}") from e

        if not verified:
            self._transition(Phase.EDITING)
            raise ProverError("Proof verification failed. Please try again.")

        self.artifact = artifact
        self._transition(Phase.PROVED)
        logger.info("Proof generated and verified (%d bytes)", len(artifact.proof))
        return artifact

    @property
    def fingerprint(self) -> Optional[str]:
        return proof_fingerprint(self.artifact.proof) if self.artifact else None

    # ── export / publish ─────────────────────────────────────────────────
    def export(self, timestamp: Optional[str] = None) -> ProofExport:
        """Encode the proof for sharing; repeatable once PROVED"""
        self._guard_idle()
        if self.artifact is None or self.phase not in (Phase.PROVED, Phase.EXPORTED):
            raise TransitionError("No proof to export. Generate a proof first.")
        export = encode_export(self.artifact, self.field_element, self.proof_time or 0, timestamp)
        self._transition(Phase.EXPORTED)
        return export

    def export_json(self) -> str:
        return dumps_export(self.export())

    def record_publish(self, url: str):
        if self.artifact is None:
            raise TransitionError("No proof has been published")
        self.publish_url = url

    def publish(self, client: Any, description: Optional[str] = None):
        """Export and upload through a gist client; remembers the URL"""
        reference = client.create_gist(self.export(), description)
        self.record_publish(reference.url)
        return reference

    # ── external verification ────────────────────────────────────────────
    def verify_external(self, public_inputs: Union[str, Sequence[str]], proof_hex: str) -> bool:
        """Verify a pasted (publicInputs, proof hex) pair without touching the session"""
        self._guard_idle()
        if public_inputs in (None, "") or not proof_hex or not proof_hex.strip():
            raise FormatError("Please enter both public inputs and proof hex")
        if isinstance(public_inputs, str):
            try:
                public_inputs = json.loads(public_inputs)
            except ValueError as e:
                raise FormatError("Invalid public inputs format. Expected JSON array of strings.") from e
        artifact = artifact_from_parts(public_inputs, "".join(proof_hex.split()))
        return self._verify(artifact)

    def verify_export(self, payload: Union[str, bytes, dict]) -> bool:
        self._guard_idle()
        return self._verify(to_artifact(decode_export(payload)))

    def _verify(self, artifact: ProofArtifact) -> bool:
        try:
            return bool(self.prover.verify_proof(artifact))
        except Exception as e:
            raise ProverError(f"Error verifying proof: {e}") from e

    # ── reset ────────────────────────────────────────────────────────────
    def reset(self):
        """Fresh field element, fresh candidate, timer from zero; drops the proof"""
        self._guard_idle()
        self._new_round()
        self._transition(Phase.EDITING)
        logger.info("Game reset")
