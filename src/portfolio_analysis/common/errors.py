from __future__ import annotations


class PortfolioAnalysisError(RuntimeError):
    """Base class for library-level portfolio analysis errors."""

    code = "ANALYSIS_ERROR"

    def __init__(self, message: str, *, user_message: str | None = None) -> None:
        super().__init__(message)
        self.user_message = user_message or message


class PortfolioValidationError(PortfolioAnalysisError):
    """Raised when caller input is invalid (allocations, lengths, names)."""

    code = "VALIDATION_ERROR"


class AssetNotFoundError(PortfolioValidationError):
    """Raised when an asset name is not present in the registry."""

    code = "ASSET_NOT_FOUND"

    def __init__(self, name: str, *, context: str = "") -> None:
        message = f"asset not found in map: {name!r}"
        if context:
            message = f"{context}, {message}"
        super().__init__(message)
        self.name = name


class AssetDataError(PortfolioAnalysisError):
    """Raised when an asset table cannot be parsed or fails validation."""

    code = "DATA_ERROR"


class PipelineExecutionError(PortfolioAnalysisError):
    """Raised when a parallel evaluation fails; the first worker error is the cause."""

    code = "EXECUTION_ERROR"


class PreconditionError(PortfolioAnalysisError, AssertionError):
    """Raised when an internal precondition is violated.

    These indicate a bug in the caller (empty series where one is required,
    windows longer than the data, non-positive harmonic mean inputs...).
    """

    code = "PRECONDITION_FAILED"


def require(condition: bool, message: str) -> None:
    """Raise ``PreconditionError`` with *message* unless *condition* holds."""
    if not condition:
        raise PreconditionError(message)
