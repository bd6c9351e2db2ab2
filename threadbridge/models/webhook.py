"""GitHub webhook payloads"""

from __future__ import annotations

import enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class IssueAction(str, enum.Enum):
    """Webhook ``action`` values that are mirrored into Discord."""

    OPENED = "opened"
    CREATED = "created"
    CLOSED = "closed"
    REOPENED = "reopened"
    LOCKED = "locked"
    UNLOCKED = "unlocked"
    DELETED = "deleted"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["IssueAction"]:
        """Map an action string to an enum member, None for actions we don't mirror."""
        try:
            return cls(value)
        except ValueError:
            return None


class _Payload(BaseModel):
    model_config = ConfigDict(extra="ignore")


class UserPayload(_Payload):
    login: str
    avatar_url: Optional[str] = None
    html_url: Optional[str] = None


class LabelPayload(_Payload):
    name: str


class IssuePayload(_Payload):
    node_id: Optional[str] = None
    number: Optional[int] = None
    title: str = ""
    body: Optional[str] = None
    state: Optional[str] = None
    locked: bool = False
    html_url: Optional[str] = None
    user: Optional[UserPayload] = None
    labels: List[LabelPayload] = []


class CommentPayload(_Payload):
    id: Optional[int] = None
    node_id: Optional[str] = None
    body: Optional[str] = None
    html_url: Optional[str] = None
    user: Optional[UserPayload] = None


class WebhookEvent(_Payload):
    """Decoded ``issues`` / ``issue_comment`` delivery."""

    action: str
    issue: Optional[IssuePayload] = None
    comment: Optional[CommentPayload] = None

    @property
    def kind(self) -> Optional[IssueAction]:
        return IssueAction.parse(self.action)
