"""Data models"""

from threadbridge.models.chat import (
    ChatAttachment,
    ChatAuthor,
    ChatMessage,
    ChatThread,
    NewChatComment,
    NewChatThread,
)
from threadbridge.models.thread import CommentLink, Tag, Thread
from threadbridge.models.webhook import (
    CommentPayload,
    IssueAction,
    IssuePayload,
    LabelPayload,
    UserPayload,
    WebhookEvent,
)

__all__ = [
    "ChatAttachment",
    "ChatAuthor",
    "ChatMessage",
    "ChatThread",
    "NewChatComment",
    "NewChatThread",
    "CommentLink",
    "Tag",
    "Thread",
    "CommentPayload",
    "IssueAction",
    "IssuePayload",
    "LabelPayload",
    "UserPayload",
    "WebhookEvent",
]
