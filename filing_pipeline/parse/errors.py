"""
Exceptions raised by the filing parsing pipeline.

Only structural failures are errors. Missing metadata fields, metrics or
important sections are reported as partial results instead.
"""

from typing import Optional


class FilingPipelineError(Exception):
    """Base class for all pipeline errors."""


class UnsupportedFilingTypeError(FilingPipelineError):
    """Raised when a parser is requested for an unregistered filing type."""

    def __init__(self, filing_type: str):
        self.filing_type = filing_type
        super().__init__(f"Unsupported filing type: {filing_type}")


class FormatDetectionError(FilingPipelineError):
    """
    Raised when the filing type cannot be determined from content.

    This means "cannot determine type", not "malformed document". Callers
    may retry with an explicit filing type.
    """

    def __init__(self, message: str = "Unable to determine SEC filing type from content"):
        super().__init__(message)


class ParseError(FilingPipelineError):
    """Raised when a structural parser cannot build any section tree."""

    def __init__(
        self,
        message: str,
        byte_length: Optional[int] = None,
        detected_format: Optional[str] = None,
    ):
        self.byte_length = byte_length
        self.detected_format = detected_format
        super().__init__(
            f"{message} (byte_length={byte_length}, detected_format={detected_format})"
        )


class ChunkingConfigError(FilingPipelineError, ValueError):
    """Raised for invalid chunker parameters, before any processing."""


class OperationCancelled(FilingPipelineError):
    """Raised when a caller-supplied cancellation event is set mid-operation."""
