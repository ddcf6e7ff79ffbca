from __future__ import annotations

"""Exception taxonomy shared by extractor / merger / orchestrator.

Each exception carries an UPPER_SNAKE ``error_type`` code that ends up in
``MergeResult.error_type`` and in the JSON Lines error log.
"""

__all__ = [
    "MatcherError",
    "DecodeError",
    "ExtractionError",
    "EmptyArchiveError",
    "EmptyInputError",
    "UNKNOWN_ERROR_TYPE",
]

UNKNOWN_ERROR_TYPE = "UNKNOWN"


class MatcherError(Exception):
    """Base exception for matching errors."""

    error_type = UNKNOWN_ERROR_TYPE


class DecodeError(MatcherError):
    """Raised when bytes cannot be decoded as a table or archive."""

    error_type = "DECODE_ERROR"

    def __init__(self, source: str, detail: str) -> None:
        super().__init__(f"Failed to read {source}: {detail}")
        self.source = source
        self.detail = detail


class ExtractionError(MatcherError):
    """Raised when the billing archive yields no usable data."""

    error_type = "EMPTY_ARCHIVE"


class EmptyArchiveError(ExtractionError):
    """No eligible / parseable member in the billing archive."""

    def __init__(self, message: str = "No valid data found in billing ZIP file") -> None:
        super().__init__(message)


class EmptyInputError(MatcherError):
    """MI table has no data rows."""

    error_type = "EMPTY_INPUT"

    def __init__(self, message: str = "MI file appears to be empty or has no data rows") -> None:
        super().__init__(message)
