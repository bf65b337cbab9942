from __future__ import annotations

from typing import Any


class RPSError(Exception):
    """Base exception for all rock-paper-scissors errors."""
    pass


class MalformedInputError(RPSError):
    """Raised when a console value cannot be parsed for its field."""

    def __init__(self, field: str, raw_value: Any, reason: str):
        self.field = field
        self.raw_value = raw_value
        self.reason = reason
        super().__init__(f"Invalid {field} {raw_value!r}: {reason}")


class RetryLimitExceededError(MalformedInputError):
    """Raised when a bounded retry policy runs out of attempts."""

    def __init__(self, field: str, raw_value: Any, attempts: int):
        self.attempts = attempts
        super().__init__(field, raw_value, f"gave up after {attempts} attempts")


class RevealMismatchError(RPSError):
    """Raised when a (choice, salt) reveal does not hash to the stored commitment."""

    def __init__(self, player: str):
        self.player = player
        super().__init__(f"Reveal from '{player}' does not match the commitment")


class InvalidStateError(RPSError):
    """Raised when an operation is invoked out of protocol order."""
    pass
