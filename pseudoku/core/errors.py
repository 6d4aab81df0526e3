"""
Error hierarchy shared by every Pseudoku component.

Every failure raised by the package derives from PseudokuError so callers
(presentation layer, CLI tools, the exchange backend) can catch one type
and fall back to a recoverable state.
"""


class PseudokuError(Exception):
    """Base class for all Pseudoku errors."""
    pass


class ValidationError(PseudokuError):
    """Raised when a grid is malformed or a cell edit is not allowed."""
    pass


class SamplingError(PseudokuError):
    """Raised when the secure random source cannot produce a field element."""
    pass


class ProverError(PseudokuError):
    """Raised when the external prover throws or a proof fails verification."""
    pass


class FormatError(PseudokuError):
    """Raised on malformed hex, field elements or proof export JSON."""
    pass


class TransitionError(PseudokuError):
    """Raised when a lifecycle operation is invoked from the wrong phase."""
    pass


class CsrfError(PseudokuError):
    """Raised when the OAuth callback state does not match the stored one."""
    pass


class OAuthError(PseudokuError):
    """Raised when the token exchange fails or OAuth is not configured."""
    pass


class PublishError(PseudokuError):
    """Raised when the paste service rejects a proof upload."""

    def __init__(self, message: str, status_code: int = 0):
        super().__init__(message)
        self.status_code = status_code
