"""Error types raised while issuing test identities.

Every failure surfaces as an ``IssuanceError`` whose ``kind`` tells the caller
what went wrong, so callers can branch on a single exception type.
"""

from enum import StrEnum


class ErrorKind(StrEnum):
    """All failure kinds an issuance operation can report."""

    ALGORITHM_UNAVAILABLE = "algorithm_unavailable"
    CERTIFICATE_ISSUANCE_FAILED = "certificate_issuance_failed"
    ENCODING_FAILED = "encoding_failed"
    IO_FAILURE = "io_failure"
    STORE_WRITE_FAILED = "store_write_failed"
    INVALID_STATE = "invalid_state"


class IssuanceError(Exception):
    """Base error for all issuance failures."""

    kind: ErrorKind

    def __init__(self, message: str, kind: ErrorKind | None = None) -> None:
        if kind is not None:
            self.kind = kind
        super().__init__(message)


class AlgorithmUnavailableError(IssuanceError):
    """Raised when the cryptographic backend cannot generate RSA keys."""

    kind = ErrorKind.ALGORITHM_UNAVAILABLE


class CertificateIssuanceFailedError(IssuanceError):
    """Raised when signing or the post-signing self-check fails."""

    kind = ErrorKind.CERTIFICATE_ISSUANCE_FAILED


class EncodingFailedError(IssuanceError):
    """Raised when DER/PEM encoding or decoding fails."""

    kind = ErrorKind.ENCODING_FAILED


class IoFailureError(IssuanceError):
    """Raised when an artifact cannot be read from or written to disk."""

    kind = ErrorKind.IO_FAILURE


class StoreWriteFailedError(IssuanceError):
    """Raised when a credential store cannot be built or persisted."""

    kind = ErrorKind.STORE_WRITE_FAILED


class InvalidStateError(IssuanceError):
    """Raised when an operation is called out of order."""

    kind = ErrorKind.INVALID_STATE
