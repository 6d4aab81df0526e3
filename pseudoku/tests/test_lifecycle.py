#!/usr/bin/env python3
"""
PROOF SESSION LIFECYCLE TESTS
=============================
1. Editing rules and solution checks
2. Timer freezing with an injected clock
3. Proof generation ordering and failure recovery
4. Export, publish and external verification
5. Reset and phase listeners
"""

import json
import unittest

from pseudoku.core.codec import decode_export
from pseudoku.core.display import proof_fingerprint
from pseudoku.core.errors import FormatError, ProverError, TransitionError, ValidationError
from pseudoku.core.field import FieldSampler
from pseudoku.core.grid import EMPTY, MISMATCH, ROW, Conflict
from pseudoku.core.lifecycle import Phase, ProofSession

from pseudoku_fixtures import (
    CHALLENGE,
    PROOF_BYTES,
    SOLUTION,
    CountingBytes,
    FakeClock,
    FakeProver,
    solution,
)


def make_session(prover=None, clock=None):
    prover = prover or FakeProver()
    clock = clock or FakeClock()
    session = ProofSession(prover, CHALLENGE, sampler=FieldSampler(CountingBytes()), clock=clock)
    return session, prover, clock


def fill(session):
    for r in range(9):
        for c in range(9):
            if CHALLENGE[r][c] == 0:
                session.set_cell(r, c, SOLUTION[r][c])


class TestEditing(unittest.TestCase):
    """Test cell edits and solution checks"""

    def test_initial_state(self):
        session, _, _ = make_session()
        self.assertIs(session.phase, Phase.EDITING)
        self.assertEqual(session.field_element, "1")
        self.assertEqual(session.candidate, CHALLENGE)
        self.assertTrue(session.timer_running)
        self.assertIsNone(session.artifact)

    def test_candidate_is_a_copy(self):
        session, _, _ = make_session()
        session.set_cell(0, 2, 4)
        self.assertEqual(CHALLENGE[0][2], 0)

    def test_fixed_cells_are_read_only(self):
        session, _, _ = make_session()
        with self.assertRaises(ValidationError):
            session.set_cell(0, 0, 1)
        self.assertEqual(session.candidate[0][0], 5)

    def test_only_digits_allowed(self):
        session, _, _ = make_session()
        for value in (10, -1, True, "5"):
            with self.subTest(value=value):
                with self.assertRaises(ValidationError):
                    session.set_cell(0, 2, value)
        with self.assertRaises(ValidationError):
            session.set_cell(9, 0, 1)

    def test_conflict_highlighting(self):
        session, _, _ = make_session()
        session.set_cell(0, 2, 5)
        self.assertEqual(session.conflicts_at(0, 2), [Conflict(ROW, 0)])
        self.assertEqual(session.conflicts_at(0, 0), [])

    def test_conflicts_outside_grid(self):
        session, _, _ = make_session()
        for row, col in ((9, 0), (0, 9), (-1, 2), (2, -1)):
            with self.subTest(row=row, col=col):
                with self.assertRaises(ValidationError):
                    session.conflicts_at(row, col)

    def test_incomplete_solution_rejected(self):
        session, _, _ = make_session()
        verdict = session.check_solution()
        self.assertFalse(verdict)
        self.assertEqual(verdict.violation.kind, EMPTY)
        self.assertEqual(verdict.message, "Cell at row 1, column 3 is empty")
        self.assertIs(session.phase, Phase.EDITING)
        self.assertTrue(session.timer_running)

    def test_valid_grid_that_drops_a_clue_is_rejected(self):
        # relabelling 1 <-> 2 keeps the grid a valid sudoku
        relabelled = [[{1: 2, 2: 1}.get(v, v) for v in row] for row in SOLUTION]
        session, _, _ = make_session()
        session.load_candidate(relabelled)
        verdict = session.check_solution()
        self.assertFalse(verdict)
        self.assertEqual(verdict.violation.kind, MISMATCH)
        self.assertEqual(verdict.violation.cell, (1, 3))
        self.assertIs(session.phase, Phase.EDITING)

    def test_hint(self):
        session, _, _ = make_session()
        self.assertTrue(session.hint().startswith("Hint:"))
        fill(session)
        self.assertEqual(session.hint(), "No empty cells to fill!")


class TestTimer(unittest.TestCase):

    def test_timer_freezes_on_solve(self):
        session, _, clock = make_session()
        clock.advance(83_456)
        fill(session)
        self.assertTrue(session.check_solution())
        self.assertIs(session.phase, Phase.SOLVED)
        self.assertFalse(session.timer_running)
        self.assertEqual(session.proof_time, 83_456)
        clock.advance(10_000)
        self.assertEqual(session.elapsed_ms, 83_456)

    def test_edit_after_solve_resumes_timer(self):
        session, _, clock = make_session()
        clock.advance(5_000)
        fill(session)
        session.check_solution()
        clock.advance(60_000)
        session.set_cell(0, 2, 0)
        self.assertIs(session.phase, Phase.EDITING)
        self.assertIsNone(session.proof_time)
        clock.advance(1_000)
        self.assertEqual(session.elapsed_ms, 6_000)

    def test_recheck_when_solved_keeps_proof_time(self):
        session, _, clock = make_session()
        clock.advance(2_000)
        fill(session)
        session.check_solution()
        clock.advance(2_000)
        session.check_solution()
        self.assertEqual(session.proof_time, 2_000)


class TestProving(unittest.TestCase):

    def test_not_solved_is_rejected_without_calling_prover(self):
        session, prover, _ = make_session()
        with self.assertRaises(TransitionError):
            session.generate_proof()
        self.assertEqual(prover.calls, [])
        self.assertFalse(session.can_generate_proof)

    def test_full_flow(self):
        session, prover, _ = make_session()
        fill(session)
        session.check_solution()
        self.assertTrue(session.can_generate_proof)
        artifact = session.generate_proof()
        self.assertEqual(prover.calls, ["execute", "generate_proof", "verify_proof"])
        self.assertEqual(prover.inputs, {
            "solution": [session.field_element, SOLUTION],
            "challenge": [session.field_element, CHALLENGE],
        })
        self.assertIs(session.phase, Phase.PROVED)
        self.assertEqual(artifact.proof, PROOF_BYTES)
        self.assertEqual(session.fingerprint, proof_fingerprint(PROOF_BYTES))
        self.assertEqual(session.fingerprint, "0x000102...1d1e1f")

    def test_prover_exception_returns_to_editing(self):
        for step in ("execute", "generate_proof", "verify_proof"):
            with self.subTest(step=step):
                session, prover, _ = make_session(FakeProver(fail_on=step))
                fill(session)
                session.check_solution()
                with self.assertRaises(ProverError) as ctx:
                    session.generate_proof()
                self.assertTrue(str(ctx.exception).startswith("Error generating proof:"))
                self.assertIs(session.phase, Phase.EDITING)
                self.assertIsNone(session.artifact)

    def test_rejected_proof_returns_to_editing(self):
        prover = FakeProver()
        prover.verifies = False
        session, _, _ = make_session(prover)
        fill(session)
        session.check_solution()
        with self.assertRaises(ProverError) as ctx:
            session.generate_proof()
        self.assertEqual(str(ctx.exception), "Proof verification failed. Please try again.")
        self.assertIs(session.phase, Phase.EDITING)
        self.assertIsNone(session.artifact)

    def test_no_edits_while_proving(self):
        seen = {}
        prover = FakeProver()
        session, _, _ = make_session(prover)

        def try_edit():
            seen["phase"] = session.phase
            try:
                session.set_cell(0, 2, 0)
            except TransitionError as e:
                seen["error"] = e

        prover.on_execute = try_edit
        fill(session)
        session.check_solution()
        session.generate_proof()
        self.assertIs(seen["phase"], Phase.PROVING)
        self.assertIsInstance(seen["error"], TransitionError)
        self.assertEqual(session.candidate, SOLUTION)

    def test_edit_after_proof_drops_artifact(self):
        session, _, _ = make_session()
        fill(session)
        session.check_solution()
        session.generate_proof()
        session.set_cell(8, 6, 0)
        self.assertIs(session.phase, Phase.EDITING)
        self.assertIsNone(session.artifact)
        self.assertIsNone(session.fingerprint)


class TestExport(unittest.TestCase):

    def proved_session(self):
        session, prover, clock = make_session()
        clock.advance(83_456)
        fill(session)
        session.check_solution()
        session.generate_proof()
        return session, prover

    def test_export_before_proof(self):
        session, _, _ = make_session()
        with self.assertRaises(TransitionError) as ctx:
            session.export()
        self.assertEqual(str(ctx.exception), "No proof to export. Generate a proof first.")

    def test_export_contents(self):
        session, _ = self.proved_session()
        export = session.export(timestamp="2025-01-01T12:00:00.000Z")
        self.assertIs(session.phase, Phase.EXPORTED)
        self.assertEqual(export.challenge_id, session.field_element)
        self.assertEqual(export.proof, PROOF_BYTES.hex())
        self.assertEqual(export.public_inputs, (session.field_element,))
        self.assertEqual(export.time_in_ms, 83_456)
        # exporting again is allowed
        self.assertEqual(session.export(timestamp=export.timestamp), export)

    def test_export_json_decodes(self):
        session, _ = self.proved_session()
        export = decode_export(session.export_json())
        self.assertEqual(export.challenge_id, session.field_element)

    def test_publish_records_url(self):
        session, _ = self.proved_session()

        class Client:
            def create_gist(self, export, description=None):
                self.export = export
                return type("Ref", (), {"url": "https://gist.github.com/alice/abc123"})()

        client = Client()
        session.publish(client)
        self.assertEqual(session.publish_url, "https://gist.github.com/alice/abc123")
        self.assertEqual(client.export.challenge_id, session.field_element)

    def test_record_publish_needs_proof(self):
        session, _, _ = make_session()
        with self.assertRaises(TransitionError):
            session.record_publish("https://gist.github.com/alice/abc123")


class TestExternalVerification(unittest.TestCase):

    def test_pasted_pair_verifies_without_state_change(self):
        session, prover, _ = make_session()
        ok = session.verify_external('["1", "2"]', "0x" + PROOF_BYTES.hex())
        self.assertTrue(ok)
        self.assertIs(session.phase, Phase.EDITING)
        self.assertIsNone(session.artifact)
        self.assertEqual(prover.verified[-1].public_inputs, ("1", "2"))

    def test_whitespace_in_hex_is_ignored(self):
        session, _, _ = make_session()
        hex_text = PROOF_BYTES.hex()
        spaced = hex_text[:20] + "\n  " + hex_text[20:]
        self.assertTrue(session.verify_external(["1"], spaced))

    def test_wrong_proof_is_false(self):
        session, _, _ = make_session()
        self.assertFalse(session.verify_external(["1"], "abcd"))

    def test_malformed_input_never_reaches_prover(self):
        session, prover, _ = make_session()
        for public_inputs, proof_hex in (("", "abcd"), (["1"], ""), (["1"], "abc"),
                                         ("not json", "abcd"), ('[1, 2]', "abcd")):
            with self.subTest(public_inputs=public_inputs, proof_hex=proof_hex):
                with self.assertRaises(FormatError):
                    session.verify_external(public_inputs, proof_hex)
        self.assertEqual(prover.calls, [])

    def test_prover_crash_is_prover_error(self):
        session, _, _ = make_session(FakeProver(fail_on="verify_proof"))
        with self.assertRaises(ProverError):
            session.verify_external(["1"], "abcd")

    def test_verify_export_document(self):
        session, _, _ = make_session()
        document = json.dumps({
            "challengeId": "7",
            "proof": PROOF_BYTES.hex(),
            "publicInputs": ["7"],
            "timeInMs": 1000,
            "timestamp": "2025-01-01T12:00:00.000Z",
        })
        self.assertTrue(session.verify_export(document))
        self.assertIs(session.phase, Phase.EDITING)

    def test_export_with_bad_proof_hex(self):
        session, prover, _ = make_session()
        document = {
            "challengeId": "7",
            "proof": "abc\n",
            "publicInputs": ["7"],
            "timeInMs": 1000,
            "timestamp": "2025-01-01T12:00:00.000Z",
        }
        with self.assertRaises(FormatError):
            session.verify_export(document)
        self.assertEqual(prover.calls, [])


class TestResetAndListeners(unittest.TestCase):

    def test_reset_starts_a_new_round(self):
        session, _, clock = make_session()
        clock.advance(5_000)
        fill(session)
        session.check_solution()
        session.generate_proof()
        first = session.field_element
        session.reset()
        self.assertIs(session.phase, Phase.EDITING)
        self.assertNotEqual(session.field_element, first)
        self.assertEqual(session.candidate, CHALLENGE)
        self.assertIsNone(session.artifact)
        self.assertIsNone(session.proof_time)
        self.assertIsNone(session.publish_url)
        self.assertEqual(session.elapsed_ms, 0)
        self.assertTrue(session.timer_running)

    def test_listeners_see_every_transition(self):
        session, _, _ = make_session()
        seen = []
        unsubscribe = session.subscribe(lambda old, new: seen.append((old, new)))
        fill(session)
        session.check_solution()
        session.generate_proof()
        session.export()
        unsubscribe()
        session.reset()
        self.assertEqual(seen, [
            (Phase.EDITING, Phase.SOLVED),
            (Phase.SOLVED, Phase.PROVING),
            (Phase.PROVING, Phase.PROVED),
            (Phase.PROVED, Phase.EXPORTED),
        ])

    def test_load_candidate(self):
        session, _, _ = make_session()
        session.load_candidate(solution())
        self.assertTrue(session.check_solution())


if __name__ == '__main__':
    unittest.main(verbosity=2)
