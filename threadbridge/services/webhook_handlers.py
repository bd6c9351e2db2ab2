"""GitHub webhook → Discord handlers"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, Optional, assert_never

from threadbridge.errors import ThreadBridgeError
from threadbridge.models.chat import NewChatComment, NewChatThread
from threadbridge.models.thread import CommentLink, Thread
from threadbridge.models.webhook import IssueAction, WebhookEvent
from threadbridge.services import activity, body_codec
from threadbridge.services.activity import Action, Triggerer
from threadbridge.services.chat import ChatPlatform
from threadbridge.services.store import CorrelationStore

logger = logging.getLogger(__name__)


class WebhookHandlers:
    """Mirrors GitHub issue events into the Discord forum."""

    def __init__(self, store: CorrelationStore, chat: ChatPlatform):
        self.store = store
        self.chat = chat

    async def dispatch(self, event: WebhookEvent) -> None:
        kind = event.kind
        if kind is None:
            logger.debug(f"Ignoring GitHub action '{event.action}'")
            return

        logger.info(f"GitHub webhook: {kind.value}")
        match kind:
            case IssueAction.OPENED:
                await self.handle_opened(event)
            case IssueAction.CREATED:
                await self.handle_created(event)
            case IssueAction.CLOSED:
                await self.handle_closed(event)
            case IssueAction.REOPENED:
                await self.handle_reopened(event)
            case IssueAction.LOCKED:
                await self.handle_locked(event)
            case IssueAction.UNLOCKED:
                await self.handle_unlocked(event)
            case IssueAction.DELETED:
                await self.handle_deleted(event)
            case _:
                assert_never(kind)

    async def _run(self, failure: str, thread: Optional[Thread], step: Callable[[], Awaitable[None]]) -> bool:
        try:
            await step()
        except ThreadBridgeError as e:
            activity.error(Triggerer.GITHUB, f"{failure}: {e}", thread)
            return False
        return True

    def _resolve(self, event: WebhookEvent, action: str) -> Optional[Thread]:
        node_id = event.issue.node_id if event.issue else None
        if not node_id:
            logger.error(f"Failed to get node_id for {action} issue")
            return None
        thread = self.store.find_by_node_id(node_id)
        if thread is None:
            logger.warning(f"No Discord thread linked to issue {node_id} ({action})")
        return thread

    async def handle_opened(self, event: WebhookEvent) -> None:
        issue = event.issue
        if issue is None:
            return
        if self.store.find_by_node_id(issue.node_id) is not None:
            return
        if body_codec.is_echo(issue.body):
            # Created from Discord; the webhook beat the create response.
            return
        if not issue.node_id or issue.number is None:
            logger.error("Opened issue is missing node_id or number")
            return

        applied_tags = self.store.tag_ids(label.name for label in issue.labels)
        new_thread = NewChatThread(
            login=issue.user.login if issue.user else "unknown",
            title=issue.title,
            body=issue.body or "",
            number=issue.number,
            node_id=issue.node_id,
            applied_tags=applied_tags,
            html_url=issue.html_url,
        )

        async def create_thread():
            thread_id = await self.chat.create_thread(new_thread)
            thread = self.store.upsert(
                Thread(
                    id=thread_id,
                    title=issue.title,
                    body=issue.body or "",
                    number=issue.number,
                    node_id=issue.node_id,
                    locked=issue.locked,
                    applied_tags=applied_tags,
                )
            )
            activity.info(Triggerer.GITHUB, Action.CREATED, thread)

        await self._run("Failed to create thread", None, create_thread)

    async def handle_created(self, event: WebhookEvent) -> None:
        comment = event.comment
        if comment is None:
            logger.error("Comment is undefined in the request body.")
            return
        if not comment.user or not comment.id or not comment.body:
            logger.error("Missing user, id, or body in the comment object.")
            return
        if body_codec.is_echo(comment.body):
            # Mirrored from Discord in the first place.
            return

        thread = self._resolve(event, "commented")
        if thread is None:
            return
        if any(link.git_id == comment.id for link in thread.comments):
            return

        new_comment = NewChatComment(
            git_id=comment.id,
            body=comment.body,
            login=comment.user.login,
            avatar_url=comment.user.avatar_url,
            html_url=comment.html_url,
        )

        async def create_comment():
            message_id = await self.chat.create_comment(thread.id, new_comment)
            self.store.add_comment(thread, CommentLink(message_id=message_id, git_id=comment.id))
            activity.info(Triggerer.GITHUB, Action.COMMENTED, thread)

        await self._run("Failed to create comment", thread, create_comment)

    # State handlers record the expected state before the Discord call, so
    # the gateway's echo of that change (which may arrive while the call is
    # in flight) matches and is not mirrored back. Failures restore it.

    async def _set_archived(self, thread: Thread, archived: bool) -> None:
        previous = thread.archived
        thread.archived = archived

        async def apply():
            if archived:
                await self.chat.archive_thread(thread.id)
            else:
                await self.chat.unarchive_thread(thread.id)
            activity.info(Triggerer.GITHUB, Action.CLOSED if archived else Action.REOPENED, thread)

        failure = "Failed to archive thread" if archived else "Failed to unarchive thread"
        if not await self._run(failure, thread, apply):
            thread.archived = previous

    async def _set_locked(self, thread: Thread, locked: bool) -> None:
        previous = thread.locked
        thread.locked = locked

        async def apply():
            if locked:
                await self.chat.lock_thread(thread.id)
            else:
                await self.chat.unlock_thread(thread.id)
            activity.info(Triggerer.GITHUB, Action.LOCKED if locked else Action.UNLOCKED, thread)

        failure = "Failed to lock thread" if locked else "Failed to unlock thread"
        if not await self._run(failure, thread, apply):
            thread.locked = previous

    async def handle_closed(self, event: WebhookEvent) -> None:
        thread = self._resolve(event, "closed")
        if thread is None or thread.archived:
            return
        await self._set_archived(thread, True)

    async def handle_reopened(self, event: WebhookEvent) -> None:
        thread = self._resolve(event, "reopened")
        if thread is None or not thread.archived:
            return
        await self._set_archived(thread, False)

    async def handle_locked(self, event: WebhookEvent) -> None:
        thread = self._resolve(event, "locked")
        if thread is None or thread.locked:
            return
        await self._set_locked(thread, True)

    async def handle_unlocked(self, event: WebhookEvent) -> None:
        thread = self._resolve(event, "unlocked")
        if thread is None or not thread.locked:
            return
        await self._set_locked(thread, False)

    async def handle_deleted(self, event: WebhookEvent) -> None:
        if event.comment is not None:
            # issue_comment.deleted: Discord messages are not removed.
            logger.debug(f"Ignoring deletion of comment {event.comment.id}")
            return
        thread = self._resolve(event, "deleted")
        if thread is None:
            return
        # Forgotten first: the gateway's THREAD_DELETE then finds nothing to mirror.
        self.store.remove(thread.id)

        async def delete():
            await self.chat.delete_thread(thread.id)
            activity.info(Triggerer.GITHUB, Action.DELETED, thread)

        if not await self._run("Failed to delete thread", thread, delete):
            self.store.upsert(thread)
