"""Thread correlation model"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class CommentLink:
    """A Discord message mirrored as (or from) a GitHub issue comment."""

    message_id: str
    git_id: int


@dataclass(frozen=True)
class Tag:
    """Discord forum tag, matched against GitHub labels by name."""

    id: str
    name: str


@dataclass
class Thread:
    """A Discord forum thread correlated with at most one GitHub issue."""

    id: str
    title: str = ""
    body: str = ""
    number: Optional[int] = None
    node_id: Optional[str] = None
    guild_id: Optional[str] = None
    locked: bool = False
    archived: bool = False
    applied_tags: List[str] = field(default_factory=list)
    comments: List[CommentLink] = field(default_factory=list)
    # Set while the create-issue call is awaiting GitHub.
    creating_issue: bool = False

    def find_comment(self, message_id: str) -> Optional[CommentLink]:
        return next((c for c in self.comments if c.message_id == message_id), None)

    def __repr__(self):
        return f"<Thread(id={self.id}, number={self.number})>"
