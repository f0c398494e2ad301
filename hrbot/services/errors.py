"""Domain exception classes for verification and channel access.

Provides a small taxonomy so handlers can decide between re-prompting,
generic failure replies and logging.
"""

from enum import Enum


class HRBotError(Exception):
    """Base exception for bot domain errors."""

    pass


class ValidationError(HRBotError):
    """User input failed a format or range check (always recoverable)."""

    def __init__(self, message_key: str):
        super().__init__(message_key)
        self.message_key = message_key
        """Localizer key of the re-prompt shown to the user."""


class InvalidTransitionError(HRBotError):
    """Dialogue action is not allowed from the current step."""

    pass


class NotFoundError(HRBotError):
    """No matching personnel record or session."""

    pass


class ChannelNotConfiguredError(NotFoundError):
    """No channel bound to the department and no default channel configured."""

    pass


class AccessDeniedError(HRBotError):
    """Record is blacklisted or terminated."""

    pass


class ConflictError(HRBotError):
    """Telegram account and personnel record are linked elsewhere."""

    pass


class ExternalServiceError(HRBotError):
    """Messaging platform or store call failed."""

    pass


class FailureReason(str, Enum):
    """Classified reason of a messaging platform failure."""

    NOT_FOUND = "not_found"
    NOT_IN_CHAT = "not_in_chat"
    PRIVATE_CHAT_RESTRICTION = "private_chat_restriction"
    OWNER_RESTRICTION = "owner_restriction"
    OTHER = "other"


class PlatformError(ExternalServiceError):
    """Messaging platform call failed with a classified reason."""

    def __init__(self, reason: FailureReason, description: str):
        super().__init__(description)
        self.reason = reason
        self.description = description

    def __repr__(self) -> str:
        return f"<PlatformError(reason={self.reason.value}, description={self.description!r})>"


__all__ = [
    "HRBotError",
    "ValidationError",
    "InvalidTransitionError",
    "NotFoundError",
    "ChannelNotConfiguredError",
    "AccessDeniedError",
    "ConflictError",
    "ExternalServiceError",
    "FailureReason",
    "PlatformError",
]
