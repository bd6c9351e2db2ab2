"""Exception hierarchy shared by the sync core and its clients."""

from __future__ import annotations

from typing import Optional


class ThreadBridgeError(Exception):
    """Base class for all ThreadBridge errors."""


class CredentialError(ThreadBridgeError):
    """Installation token could not be generated (unreadable key, rejected exchange)."""


class PreconditionError(ThreadBridgeError):
    """An operation was invoked on a thread missing a required field."""


class TrackerAPIError(ThreadBridgeError):
    """GitHub answered a REST or GraphQL call with an error."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    @property
    def is_auth_failure(self) -> bool:
        return self.status_code == 401 or "bad credentials" in self.message.lower()

    def __str__(self) -> str:
        if self.status_code is None:
            return self.message
        return f"{self.status_code}: {self.message}"


class ChatAPIError(ThreadBridgeError):
    """Discord rejected a chat-platform call."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    def __str__(self) -> str:
        if self.status_code is None:
            return self.message
        return f"{self.status_code}: {self.message}"


def is_auth_failure(exc: BaseException) -> bool:
    """True when ``exc`` means the tracker rejected our credential."""
    return isinstance(exc, TrackerAPIError) and exc.is_auth_failure
