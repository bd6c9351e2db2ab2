"""Discord → GitHub synchronization service"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, Dict, Iterable, List, Optional

from threadbridge.errors import PreconditionError, ThreadBridgeError
from threadbridge.models.chat import ChatMessage, ChatThread
from threadbridge.models.thread import CommentLink, Thread
from threadbridge.services import activity, body_codec
from threadbridge.services.activity import Action, Triggerer
from threadbridge.services.retry import RetryEnvelope
from threadbridge.services.store import CorrelationStore

logger = logging.getLogger(__name__)

DEFAULT_PROVENANCE_LABELS = ("triage", "discord")
_FALLBACK_TITLE_LENGTH = 80


class SyncService:
    """Mirrors Discord forum activity onto GitHub issues.

    Entry points (``handle_*``) are called by the Discord gateway with plain
    data. Every GitHub call goes through the retry envelope; failures are
    logged and reported as ``False`` so one lost mirror never blocks the next
    event.
    """

    def __init__(
        self,
        store: CorrelationStore,
        envelope: RetryEnvelope,
        *,
        provenance_labels: Iterable[str] = DEFAULT_PROVENANCE_LABELS,
    ):
        self.store = store
        self.envelope = envelope
        self.provenance_labels = list(provenance_labels)

    @staticmethod
    def _issue_body(message: ChatMessage) -> str:
        author = message.author
        try:
            return body_codec.encode(
                author.display_name,
                author.id,
                author.avatar,
                message.guild_id,
                message.channel_id,
                message.id,
                message.content,
                message.attachments,
            )
        except ValueError as e:
            raise PreconditionError(str(e)) from e

    def _labels_for(self, thread: Thread) -> List[str]:
        labels: List[str] = []
        for name in self.store.tag_names(thread.applied_tags) + self.provenance_labels:
            if name not in labels:
                labels.append(name)
        return labels

    @staticmethod
    def _fallback_title(message: ChatMessage) -> str:
        first_line = (message.content or "").strip().splitlines()[:1]
        if first_line and first_line[0]:
            return first_line[0][:_FALLBACK_TITLE_LENGTH]
        return f"Discord thread {message.channel_id}"

    async def _run(self, failure: str, thread: Thread, step: Callable[[], Awaitable[None]]) -> bool:
        """Run one mirror step, logging instead of raising."""
        try:
            await step()
        except PreconditionError as e:
            activity.error(Triggerer.DISCORD, str(e), thread)
            return False
        except ThreadBridgeError as e:
            activity.error(Triggerer.DISCORD, f"{failure}: {e}", thread)
            return False
        return True

    # ------------------------------------------------------------------
    # Startup
    # ------------------------------------------------------------------

    async def load_threads(self) -> Optional[Dict[str, int]]:
        """Rebuild the correlation store from GitHub issue and comment bodies."""
        try:
            issues = await self.envelope.call(lambda c: c.rest.list_issues(), name="list issues")
            comments = await self.envelope.call(lambda c: c.rest.list_comments(), name="list comments")
        except ThreadBridgeError as e:
            logger.error(f"Failed to load issues from GitHub: {e}")
            return None

        stats = self.store.load(issues, comments)
        logger.info(f"Loaded threads from GitHub: {stats}")
        return stats

    # ------------------------------------------------------------------
    # Discord events
    # ------------------------------------------------------------------

    def handle_thread_create(self, chat_thread: ChatThread) -> Thread:
        """Register a new forum thread; it gets an issue with its first message."""
        existing = self.store.get(chat_thread.id)
        if existing is not None:
            # Threads opened by the webhook side are already registered.
            return existing
        return self.store.upsert(
            Thread(
                id=chat_thread.id,
                guild_id=chat_thread.guild_id,
                title=chat_thread.title,
                applied_tags=list(chat_thread.applied_tags),
                archived=chat_thread.archived,
                locked=chat_thread.locked,
            )
        )

    async def handle_message(self, message: ChatMessage, chat_thread: Optional[ChatThread] = None) -> bool:
        """First message of a thread opens the issue; later ones become comments."""
        if message.author.bot:
            # Includes our own mirrors of GitHub comments.
            return False

        thread = self.store.get(message.channel_id)
        if thread is None:
            thread = self.handle_thread_create(
                chat_thread
                or ChatThread(
                    id=message.channel_id,
                    guild_id=message.guild_id,
                    title=self._fallback_title(message),
                )
            )
        if thread.guild_id is None:
            thread.guild_id = message.guild_id

        if thread.find_comment(message.id) is not None:
            return False
        if message.id == thread.id and thread.number is not None:
            # Redelivered starter message; it is the issue body already.
            return False
        if thread.number is None:
            return await self.create_issue(thread, message)
        return await self.create_comment(thread, message)

    async def handle_thread_update(
        self,
        thread_id: str,
        *,
        archived: Optional[bool] = None,
        locked: Optional[bool] = None,
    ) -> None:
        """Mirror archive/lock toggles; unchanged state is an echo and is skipped."""
        thread = self.store.get(thread_id)
        if thread is None:
            logger.debug(f"Ignoring update for unknown thread {thread_id}")
            return

        if archived is not None and archived != thread.archived:
            if archived:
                await self.close_issue(thread)
            else:
                await self.open_issue(thread)

        if locked is not None and locked != thread.locked:
            if locked:
                await self.lock_issue(thread)
            else:
                await self.unlock_issue(thread)

    async def handle_thread_delete(self, thread_id: str) -> bool:
        thread = self.store.get(thread_id)
        if thread is None:
            return False
        # The Discord thread is gone either way. Forgetting it first also keeps
        # the webhook echo of the issue deletion from reaching Discord.
        self.store.remove(thread.id)
        return await self.delete_issue(thread)

    async def handle_message_delete(self, thread_id: str, message_id: str) -> bool:
        thread = self.store.get(thread_id)
        if thread is None:
            return False
        link = thread.find_comment(message_id)
        if link is None:
            return False
        ok = await self.delete_comment(thread, link.git_id)
        if ok:
            self.store.remove_comment(thread, message_id)
        return ok

    # ------------------------------------------------------------------
    # GitHub mutations
    # ------------------------------------------------------------------

    async def create_issue(self, thread: Thread, message: ChatMessage) -> bool:
        async def send_create_issue():
            if thread.number is not None:
                raise PreconditionError("Thread already has an issue number")
            if thread.creating_issue:
                raise PreconditionError("Issue creation already in progress")

            labels = self._labels_for(thread)
            body = self._issue_body(message)
            thread.creating_issue = True
            try:
                issue = await self.envelope.call(
                    lambda c: c.rest.create_issue(thread.title, body, labels),
                    name="create issue",
                )
            finally:
                thread.creating_issue = False

            thread.number = issue["number"]
            thread.node_id = issue.get("node_id")
            thread.body = issue.get("body") or body
            activity.info(Triggerer.DISCORD, Action.CREATED, thread)

        return await self._run("Failed to create issue", thread, send_create_issue)

    async def create_comment(self, thread: Thread, message: ChatMessage) -> bool:
        async def send_create_comment():
            issue_number = self._require_number(thread)
            body = self._issue_body(message)
            comment = await self.envelope.call(
                lambda c: c.rest.create_comment(issue_number, body),
                name="create comment",
            )
            self.store.add_comment(thread, CommentLink(message_id=message.id, git_id=comment["id"]))
            activity.info(Triggerer.DISCORD, Action.COMMENTED, thread)

        return await self._run("Failed to create comment", thread, send_create_comment)

    async def _set_state(self, thread: Thread, state: str) -> None:
        issue_number = self._require_number(thread)
        # Expected state is recorded before the call so the webhook echo
        # arriving meanwhile is recognised; restored if GitHub refuses.
        previous = thread.archived
        thread.archived = state == "closed"
        try:
            await self.envelope.call(
                lambda c: c.rest.update_issue(issue_number, state=state),
                name=f"update issue state={state}",
            )
        except ThreadBridgeError:
            thread.archived = previous
            raise

    async def _set_locked(self, thread: Thread, locked: bool) -> None:
        issue_number = self._require_number(thread)
        previous = thread.locked
        thread.locked = locked
        try:
            if locked:
                await self.envelope.call(lambda c: c.rest.lock_issue(issue_number), name="lock issue")
            else:
                await self.envelope.call(lambda c: c.rest.unlock_issue(issue_number), name="unlock issue")
        except ThreadBridgeError:
            thread.locked = previous
            raise

    async def close_issue(self, thread: Thread) -> bool:
        async def send_close():
            await self._set_state(thread, "closed")
            activity.info(Triggerer.DISCORD, Action.CLOSED, thread)

        return await self._run("Failed to close issue", thread, send_close)

    async def open_issue(self, thread: Thread) -> bool:
        async def send_open():
            await self._set_state(thread, "open")
            activity.info(Triggerer.DISCORD, Action.REOPENED, thread)

        return await self._run("Failed to open issue", thread, send_open)

    async def lock_issue(self, thread: Thread) -> bool:
        async def send_lock():
            await self._set_locked(thread, True)
            activity.info(Triggerer.DISCORD, Action.LOCKED, thread)

        return await self._run("Failed to lock issue", thread, send_lock)

    async def unlock_issue(self, thread: Thread) -> bool:
        async def send_unlock():
            await self._set_locked(thread, False)
            activity.info(Triggerer.DISCORD, Action.UNLOCKED, thread)

        return await self._run("Failed to unlock issue", thread, send_unlock)

    async def delete_issue(self, thread: Thread) -> bool:
        async def send_delete():
            node_id = thread.node_id
            if not node_id:
                raise PreconditionError("Thread does not have a node ID")
            await self.envelope.call(lambda c: c.graphql.delete_issue(node_id), name="delete issue")
            activity.info(Triggerer.DISCORD, Action.DELETED, thread)

        return await self._run("Error deleting issue", thread, send_delete)

    async def delete_comment(self, thread: Thread, comment_id: int) -> bool:
        async def send_delete_comment():
            await self.envelope.call(
                lambda c: c.rest.delete_comment(comment_id), name="delete comment"
            )
            activity.info(Triggerer.DISCORD, Action.DELETED_COMMENT, thread)

        return await self._run("Failed to delete comment", thread, send_delete_comment)

    @staticmethod
    def _require_number(thread: Thread) -> int:
        if thread.number is None:
            raise PreconditionError("Thread does not have an issue number")
        return thread.number
