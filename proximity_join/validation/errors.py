"""Validation error definitions."""

from dataclasses import dataclass


@dataclass
class ValidationError:
    """Represents a validation error with descriptive message."""

    message: str
    field: str | None = None


class ConfigurationError(Exception):
    """A join configuration failed validation; the run never starts.

    All problems are collected in ``errors``; the message is the first one,
    which is what gets reported to the user.
    """

    def __init__(self, errors: list[ValidationError]):
        self.errors = list(errors)
        message = self.errors[0].message if self.errors else "Invalid join configuration"
        super().__init__(message)


class JoinInProgressError(RuntimeError):
    """A run or preview was started while another run is still running."""
