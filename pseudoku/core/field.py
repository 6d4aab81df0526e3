"""
BN254 SCALAR FIELD ELEMENTS
===========================

The circuit binds every proof to a per-session nonce: a uniformly random
element of the BN254 scalar field, passed to the prover as a public input.

FIELD
-----
p = 21888242871839275222246405745257275088548364400416034343698204186575808495617
(~254 bits, the scalar field of the curve used by the UltraHonk backend)

SAMPLING
--------
Rejection sampling over secure random bytes:

1. Draw 32 bytes from the OS CSPRNG
2. Clear the top 2 bits of the most significant byte -> uniform over [0, 2^254)
3. Read big-endian; reject and redraw while the candidate is >= p

Expected draws: 2^254 / p ~= 1.06. Reducing a 256-bit value mod p would
skew the distribution and is never done here.
"""

import logging
import re
import secrets
from typing import Callable, Optional

from .errors import FormatError, SamplingError

logger = logging.getLogger(__name__)

# BN254 scalar field modulus (system-wide, not configurable)
FIELD_MODULUS = 21888242871839275222246405745257275088548364400416034343698204186575808495617

FIELD_ELEMENT_BYTES = 32
HEX_WIDTH = FIELD_ELEMENT_BYTES * 2
TOP_BITS_MASK = 0x3F
MAX_DRAWS = 256

_DECIMAL = re.compile(r"0|[1-9][0-9]*")


class FieldSampler:
    """
    Uniform sampler over [0, FIELD_MODULUS).

    `randbytes` defaults to `secrets.token_bytes`; tests inject a
    deterministic source. A source that fails is fatal: there is no
    insecure fallback.
    """

    def __init__(self, randbytes: Optional[Callable[[int], bytes]] = None):
        self.modulus = FIELD_MODULUS
        self._randbytes = randbytes or secrets.token_bytes

    def _draw(self) -> bytes:
        try:
            buf = self._randbytes(FIELD_ELEMENT_BYTES)
        except (OSError, NotImplementedError) as e:
            raise SamplingError(f"Secure random source unavailable: {e}") from e
        if len(buf) != FIELD_ELEMENT_BYTES:
            raise SamplingError(
                f"Random source returned {len(buf)} bytes, expected {FIELD_ELEMENT_BYTES}")
        return buf

    def sample_int(self) -> int:
        for attempt in range(1, MAX_DRAWS + 1):
            buf = bytearray(self._draw())
            buf[0] &= TOP_BITS_MASK
            candidate = int.from_bytes(bytes(buf), "big")
            if candidate < self.modulus:
                if attempt > 1:
                    logger.debug("Field element accepted after %d draws", attempt)
                return candidate
        raise SamplingError(f"No field element below the modulus after {MAX_DRAWS} draws")

    def sample(self) -> str:
        """Draw a field element as a base-10 string (the prover's encoding)"""
        return str(self.sample_int())


def parse_field_element(text: str) -> int:
    """Parse a canonical decimal field element, rejecting anything >= p"""
    if not isinstance(text, str) or not _DECIMAL.fullmatch(text):
        raise FormatError(f"Field element must be a canonical decimal string, got {text!r}")
    value = int(text)
    if value >= FIELD_MODULUS:
        raise FormatError("Field element is not below the field modulus")
    return value


def is_field_element(text: str) -> bool:
    try:
        parse_field_element(text)
    except FormatError:
        return False
    return True


def to_hex(field_element: str) -> str:
    """Fixed-width hex form used when copying the challenge ID"""
    return "0x" + format(parse_field_element(field_element), "0{}x".format(HEX_WIDTH))


def short_display(field_element: str) -> str:
    return f"{field_element[:10]}...{field_element[-8:]}"


def challenge_label(field_element: str) -> str:
    digits = to_hex(field_element)[2:]
    return f"Challenge ID: 0x{digits[:6]}...{digits[-6:]}"
