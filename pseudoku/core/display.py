"""Presentation helpers: timers, proof fingerprints and share text."""

import re
from typing import Any, Dict, Optional

from .codec import ProofExport

PROOF_DISPLAY_BYTES = 32
GIST_DESCRIPTION_PREFIX = "Pseudoku Zero-Knowledge Proof - Solved in"
SHARE_URL = "https://pseudoku.qedk.xyz"

_GITHUB_TOKEN = re.compile(r"^(ghp_[a-zA-Z0-9]{36}|github_pat_[a-zA-Z0-9]{22}_[a-zA-Z0-9]{59})$")


def proof_fingerprint(proof: bytes) -> str:
    """
    Short label for a proof: first and last 6 hex digits of its first 32 bytes.

    UI affordance only, not a commitment.
    """
    digits = bytes(proof[:PROOF_DISPLAY_BYTES]).hex()
    return f"0x{digits[:6]}...{digits[-6:]}"


def format_time(milliseconds: int) -> str:
    total_seconds = milliseconds // 1000
    minutes, seconds = divmod(total_seconds, 60)
    if minutes > 0:
        return f"{minutes}m {seconds}s"
    return f"{seconds}s"


def format_clock(milliseconds: int) -> str:
    """MM:SS timer display"""
    minutes = milliseconds // 60000
    seconds = (milliseconds % 60000) // 1000
    return f"{minutes:02d}:{seconds:02d}"


def gist_description(time_in_ms: int) -> str:
    return f"{GIST_DESCRIPTION_PREFIX} {time_in_ms // 1000}s"


def share_message(time_in_ms: int, gist_url: Optional[str] = None) -> str:
    message = f"I solved today's Pseudoku in {format_time(time_in_ms)}! "
    message += f"\n\nVerify my proof on GitHub: {gist_url or '<your gist URL>'}"
    message += f"\n\nSolve a pseudoku at {SHARE_URL}"
    return message


def estimate_proof_time(filled_cells: int) -> Dict[str, int]:
    """Rough proving time bounds in seconds"""
    base_time = 5
    complexity = (81 - filled_cells) * 0.1
    return {"min": int(base_time + complexity), "max": int(base_time + complexity * 3)}


def sanitize_for_public(export: ProofExport) -> Dict[str, Any]:
    # Only the proof and its timing leave the device
    return {"proof": export.proof, "timeInMs": export.time_in_ms, "timestamp": export.timestamp}


def is_valid_github_token(token: str) -> bool:
    return bool(_GITHUB_TOKEN.fullmatch(token or ""))
