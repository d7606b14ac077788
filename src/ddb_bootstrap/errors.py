"""Error kinds raised by the copy pipeline."""
from __future__ import annotations

from enum import Enum
from typing import Optional

from ddb_bootstrap.constants import (
    EXIT_CONFIGURATION,
    EXIT_EXECUTION_FAULT,
    EXIT_FAILURE,
    EXIT_SECTION_OUT_OF_RANGE,
)

__all__ = ["ErrorKind", "BootstrapError"]


class ErrorKind(Enum):
    """Tag describing why a copy job could not proceed."""

    CONFIGURATION = "configuration"
    MISSING_CAPACITY = "missing_capacity"
    SECTION_OUT_OF_RANGE = "section_out_of_range"
    EXECUTION = "execution"
    INTERRUPTED = "interrupted"

    @property
    def recoverable(self) -> bool:
        """Only missing capacity is handled locally (fallback segment count)."""
        return self is ErrorKind.MISSING_CAPACITY


_DEFAULT_EXIT_CODES = {
    ErrorKind.CONFIGURATION: EXIT_CONFIGURATION,
    ErrorKind.MISSING_CAPACITY: EXIT_FAILURE,
    ErrorKind.SECTION_OUT_OF_RANGE: EXIT_SECTION_OUT_OF_RANGE,
    ErrorKind.EXECUTION: EXIT_EXECUTION_FAULT,
    ErrorKind.INTERRUPTED: EXIT_FAILURE,
}


class BootstrapError(Exception):
    """
    Failure raised anywhere in the copy pipeline.

    Callers branch on ``kind`` instead of on exception subclasses. The exit
    code defaults to the one registered for the kind; configuration errors
    that must be told apart by calling scripts (missing cross-account
    profiles) pass an explicit ``exit_code``.
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        *,
        exit_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.exit_code = exit_code if exit_code is not None else _DEFAULT_EXIT_CODES[kind]

    def __repr__(self) -> str:
        return f"BootstrapError({self.kind.name}, {self.message!r}, exit_code={self.exit_code})"
