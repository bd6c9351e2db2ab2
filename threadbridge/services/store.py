"""In-memory correlation store (Discord threads ⇄ GitHub issues)"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional

from threadbridge.models.thread import CommentLink, Tag, Thread
from threadbridge.services import body_codec

logger = logging.getLogger(__name__)


class CorrelationStore:
    """Registry of threads, their comment correlations and the tag catalog.

    Nothing here touches the network. The store is rebuilt from GitHub bodies
    on startup (see ``load``), so it does not outlive the process.
    """

    def __init__(self):
        self._threads: Dict[str, Thread] = {}
        self._tags: List[Tag] = []

    # Threads

    @property
    def threads(self) -> List[Thread]:
        return list(self._threads.values())

    def get(self, thread_id: str) -> Optional[Thread]:
        return self._threads.get(str(thread_id))

    def find_by_number(self, number: int) -> Optional[Thread]:
        return next((t for t in self._threads.values() if t.number == number), None)

    def find_by_node_id(self, node_id: str) -> Optional[Thread]:
        if not node_id:
            return None
        return next((t for t in self._threads.values() if t.node_id == node_id), None)

    def upsert(self, thread: Thread) -> Thread:
        """Insert or replace the thread keyed by its Discord id."""
        self._threads[thread.id] = thread
        return thread

    def remove(self, thread_id: str) -> Optional[Thread]:
        return self._threads.pop(str(thread_id), None)

    # Comments

    def add_comment(self, thread: Thread, link: CommentLink) -> bool:
        """Append a correlation; False if the message is already correlated."""
        if thread.find_comment(link.message_id) is not None:
            logger.debug(f"Message {link.message_id} already correlated in thread {thread.id}")
            return False
        thread.comments.append(link)
        return True

    def remove_comment(self, thread: Thread, message_id: str) -> Optional[CommentLink]:
        link = thread.find_comment(message_id)
        if link is not None:
            thread.comments.remove(link)
        return link

    # Tags

    @property
    def tags(self) -> List[Tag]:
        return list(self._tags)

    def replace_tags(self, tags: Iterable[Tag]) -> None:
        self._tags = list(tags)

    def tag_names(self, tag_ids: Iterable[str]) -> List[str]:
        """Tag ids -> label names; unknown ids are dropped."""
        names = {tag.id: tag.name for tag in self._tags}
        return [names[tag_id] for tag_id in tag_ids if tag_id in names]

    def tag_ids(self, label_names: Iterable[str]) -> List[str]:
        """Label names -> tag ids; unmatched labels are dropped."""
        ids = {tag.name: tag.id for tag in self._tags}
        return [ids[name] for name in label_names if name in ids]

    # Bulk load

    def load(self, issues: Iterable[Dict[str, Any]], comments: Iterable[Dict[str, Any]]) -> Dict[str, int]:
        """Rebuild correlations from GitHub issue and comment bodies.

        Issues without an identity footer were not created from Discord and are
        skipped. A forum thread shares its id with its starter message, so the
        footer's message id is the thread id.
        """
        stats = {"threads": 0, "comments": 0, "skipped_issues": 0, "skipped_comments": 0}

        for issue in issues:
            ref = body_codec.decode(issue.get("body"))
            if ref is None:
                stats["skipped_issues"] += 1
                continue
            labels = [label.get("name", "") for label in issue.get("labels") or []]
            self.upsert(
                Thread(
                    id=ref.message_id,
                    guild_id=ref.guild_id,
                    title=issue.get("title") or "",
                    body=issue.get("body") or "",
                    number=issue.get("number"),
                    node_id=issue.get("node_id"),
                    locked=bool(issue.get("locked")),
                    archived=issue.get("state") == "closed",
                    applied_tags=self.tag_ids(labels),
                )
            )
            stats["threads"] += 1

        for comment in comments:
            ref = body_codec.decode(comment.get("body"))
            thread = self.get(ref.channel_id) if ref else None
            if ref is None or thread is None or comment.get("id") is None:
                stats["skipped_comments"] += 1
                continue
            if self.add_comment(thread, CommentLink(message_id=ref.message_id, git_id=comment["id"])):
                stats["comments"] += 1

        return stats
