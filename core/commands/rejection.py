"""
Promotion Registry - Rejection Model
======================================
Structured reasons for denied commands.

Domain errors raised by an engine derive from CommandRejectedError.
The command bus turns them into a RejectionReason on the outcome,
so callers receive a machine-readable code and a message.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RejectionReason:
    """
    Structured reason for command rejection.

    Fields:
        code:        Machine-readable rejection code (e.g. 'NOT_OWNER').
        message:     Human-readable explanation.
        policy_name: Name of the check that caused rejection.
    """

    code: str
    message: str
    policy_name: str

    def __post_init__(self):
        if not self.code or not isinstance(self.code, str):
            raise ValueError("code must be a non-empty string.")

        if not self.message or not isinstance(self.message, str):
            raise ValueError("message must be a non-empty string.")

        if not self.policy_name or not isinstance(self.policy_name, str):
            raise ValueError("policy_name must be a non-empty string.")

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "message": self.message,
            "policy_name": self.policy_name,
        }


class CommandRejectedError(Exception):
    """
    Base for caller/input errors that reject a command.

    Subclasses set `code`. These are never transient: the bus
    reports them and does not retry.
    """

    code = "POLICY_VIOLATION"

    def to_reason(self) -> RejectionReason:
        return RejectionReason(
            code=self.code,
            message=str(self) or self.code,
            policy_name=type(self).__name__,
        )
