"""
Proof artifact encoding.

The export is the unit pasted into a gist and read back for external
verification, so its JSON layout is stable: fields may be added, never
renamed or removed.

    {
      "challengeId": "<decimal field element>",
      "proof": "<lowercase hex, no 0x>",
      "publicInputs": ["<decimal>", ...],
      "timeInMs": 123456,
      "timestamp": "2025-01-01T12:00:00.000Z"
    }
"""

import json
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple, Union

from .errors import FormatError
from .field import parse_field_element

_HEX = re.compile(r"[0-9a-fA-F]*")

EXPORT_FIELDS = ("challengeId", "proof", "publicInputs", "timeInMs", "timestamp")


@dataclass(frozen=True)
class ProofArtifact:
    """Opaque proof bytes plus the public inputs they were produced against"""
    proof: bytes
    public_inputs: Tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self):
        object.__setattr__(self, "proof", bytes(self.proof))
        object.__setattr__(self, "public_inputs", tuple(self.public_inputs))


@dataclass(frozen=True)
class ProofExport:
    challenge_id: str
    proof: str
    public_inputs: Tuple[str, ...]
    time_in_ms: int
    timestamp: str

    def __post_init__(self):
        object.__setattr__(self, "public_inputs", tuple(self.public_inputs))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "challengeId": self.challenge_id,
            "proof": self.proof,
            "publicInputs": list(self.public_inputs),
            "timeInMs": self.time_in_ms,
            "timestamp": self.timestamp,
        }

    def to_json(self) -> str:
        return dumps_export(self)


def to_hex(data: bytes) -> str:
    return bytes(data).hex()


def from_hex(text: str) -> bytes:
    """Decode hex, accepting one optional 0x prefix and either case"""
    if not isinstance(text, str):
        raise FormatError("Proof hex must be a string")
    digits = text[2:] if text[:2] in ("0x", "0X") else text
    if not _HEX.fullmatch(digits) or len(digits) % 2:
        raise FormatError("Invalid proof hex format")
    return bytes.fromhex(digits)


def utc_timestamp(now: Optional[datetime] = None) -> str:
    """ISO-8601 with millisecond precision and a Z suffix"""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _check_timestamp(value: str) -> None:
    text = value[:-1] + "+00:00" if value.endswith("Z") else value
    try:
        datetime.fromisoformat(text)
    except ValueError as e:
        raise FormatError(f"timestamp is not ISO-8601: {value!r}") from e


def encode_export(artifact: ProofArtifact, challenge_id: str, elapsed_ms: int,
                  timestamp: Optional[str] = None) -> ProofExport:
    if isinstance(elapsed_ms, bool) or not isinstance(elapsed_ms, int) or elapsed_ms < 0:
        raise FormatError("timeInMs must be a non-negative integer")
    parse_field_element(challenge_id)
    return ProofExport(
        challenge_id=challenge_id,
        proof=to_hex(artifact.proof),
        public_inputs=tuple(artifact.public_inputs),
        time_in_ms=elapsed_ms,
        timestamp=timestamp or utc_timestamp(),
    )


def decode_public_inputs(value: Any) -> Tuple[str, ...]:
    if not isinstance(value, (list, tuple)):
        raise FormatError("publicInputs must be an array of strings")
    if not all(isinstance(item, str) for item in value):
        raise FormatError("publicInputs must be an array of strings")
    return tuple(value)


def decode_export(payload: Union[str, bytes, Mapping[str, Any]]) -> ProofExport:
    """Parse and validate a proof export; extra fields are ignored"""
    if isinstance(payload, (str, bytes)):
        try:
            payload = json.loads(payload)
        except ValueError as e:
            raise FormatError(f"Proof export is not valid JSON: {e}") from e
    if not isinstance(payload, Mapping):
        raise FormatError("Proof export must be a JSON object")

    missing = [name for name in EXPORT_FIELDS if name not in payload]
    if missing:
        raise FormatError(f"Proof export is missing fields: {', '.join(missing)}")

    challenge_id = payload["challengeId"]
    proof = payload["proof"]
    time_in_ms = payload["timeInMs"]
    timestamp = payload["timestamp"]

    if not isinstance(challenge_id, str):
        raise FormatError("challengeId must be a string")
    parse_field_element(challenge_id)
    proof_bytes = from_hex(proof)
    public_inputs = decode_public_inputs(payload["publicInputs"])
    if isinstance(time_in_ms, bool) or not isinstance(time_in_ms, int) or time_in_ms < 0:
        raise FormatError("timeInMs must be a non-negative integer")
    if not isinstance(timestamp, str):
        raise FormatError("timestamp must be a string")
    _check_timestamp(timestamp)

    return ProofExport(
        challenge_id=challenge_id,
        proof=to_hex(proof_bytes),
        public_inputs=public_inputs,
        time_in_ms=time_in_ms,
        timestamp=timestamp,
    )


def to_artifact(export: ProofExport) -> ProofArtifact:
    """Drop the metadata and hex-decode the proof"""
    return ProofArtifact(proof=from_hex(export.proof), public_inputs=export.public_inputs)


def dumps_export(export: ProofExport) -> str:
    return json.dumps(export.to_dict(), indent=2)


def artifact_from_parts(public_inputs: Sequence[str], proof_hex: str) -> ProofArtifact:
    """Rebuild an artifact from a pasted (publicInputs, proof hex) pair"""
    return ProofArtifact(proof=from_hex(proof_hex), public_inputs=decode_public_inputs(public_inputs))
