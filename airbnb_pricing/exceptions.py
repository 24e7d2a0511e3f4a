"""
Workflow Exceptions
===================

Error kinds raised by the regression workflow. Every error carries the name of
the stage that failed so a caller can tell where a run was aborted.

Classes:
    - PipelineError: Base class for all workflow errors
    - DataLoadError: Input file unreadable or malformed
    - InvalidArgumentError: Malformed split weights, seed or settings
    - SchemaError: Referenced column has the wrong type
    - MissingColumnError: Referenced column is absent
    - NonNumericColumnError: Feature column is not numeric
"""

from typing import Optional


class PipelineError(Exception):
    """Base class for errors raised by a workflow stage."""

    def __init__(self, message: str, stage: Optional[str] = None):
        self.stage = stage
        if stage:
            message = f"[{stage}] {message}"
        super().__init__(message)


class DataLoadError(PipelineError, IOError):
    """Raised when the input file cannot be read."""


class InvalidArgumentError(PipelineError, ValueError):
    """Raised for malformed split weights, seeds or settings."""


class SchemaError(PipelineError, ValueError):
    """Raised when a column is absent or has the wrong type."""

    def __init__(self, message: str, stage: Optional[str] = None, column: Optional[str] = None):
        self.column = column
        super().__init__(message, stage=stage)


class MissingColumnError(SchemaError):
    """Raised when a referenced column does not exist in the dataset."""


class NonNumericColumnError(SchemaError, TypeError):
    """Raised when a feature column is not numeric and cannot be assembled."""
