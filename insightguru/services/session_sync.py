"""Load a session transcript from the server and hydrate it from the local cache.

State machine::

    IDLE -> LOADING -> HYDRATED
                    -> FAILED

``load()`` is the explicit trigger and must be called whenever the tracked
session id or the client id changes. A load that has been overtaken by a
newer one (or by ``dispose()``) drops its result instead of applying it.
"""

import logging
from enum import Enum

from insightguru.errors import AppError
from insightguru.models.chat import ClientContext, Message, TranscriptEntry, format_timestamp
from insightguru.services.api_client import InsightApiClient
from insightguru.services.cache_store import CacheStore
from insightguru.services.message_list import MessageListModel, apply_containment
from insightguru.services.notices import NoticeBoard

logger = logging.getLogger(__name__)


class SyncState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    HYDRATED = "hydrated"
    FAILED = "failed"


class SessionSynchronizer:
    def __init__(
        self,
        api: InsightApiClient,
        cache: CacheStore,
        messages: MessageListModel,
        notices: NoticeBoard,
        context: ClientContext,
    ):
        self.api = api
        self.cache = cache
        self.messages = messages
        self.notices = notices
        self.context = context
        self.state = SyncState.IDLE
        self.session_name = ""
        self._suppressed_for: str | None = None
        self._generation = 0

    def suppress_next(self, session_id: str) -> None:
        """Skip the network fetch of the next load, if it is for ``session_id``.

        Posted by the adopter before it changes the tracked session id, so the
        answer already on screen is not replaced by a transcript the server
        may not have finished writing.
        """
        self._suppressed_for = session_id

    @property
    def suppression_pending(self) -> bool:
        return self._suppressed_for is not None

    def dispose(self) -> None:
        """Invalidate any in-flight load."""
        self._generation += 1
        self._suppressed_for = None

    async def load(self, session_id: str | None) -> SyncState:
        self._generation += 1
        generation = self._generation

        if not session_id or not self.context.client_id or not self.context.dataset_id:
            self.state = SyncState.IDLE
            return self.state

        self.state = SyncState.LOADING
        suppressed, self._suppressed_for = self._suppressed_for, None
        if suppressed is not None:
            if suppressed == session_id:
                logger.debug("Skipping transcript fetch for freshly adopted session %s", session_id)
                self.state = SyncState.HYDRATED
                return self.state
            logger.debug("Dropping stale suppression for %s while loading %s", suppressed, session_id)

        try:
            response = await self.api.load_session(self.context, session_id)
            hydrated = [await self._hydrate(session_id, entry) for entry in response.messages]
        except AppError as e:
            if generation != self._generation:
                return self.state
            logger.warning("Failed to load session %s: %s", session_id, e.message)
            self.notices.report(e, title="Could not load conversation")
            self.state = SyncState.FAILED
            return self.state

        if generation != self._generation:
            logger.debug("Discarding stale transcript for %s", session_id)
            return self.state

        if response.session and response.session.name:
            self.session_name = response.session.name
        self.messages.replace(apply_containment(hydrated))
        self.state = SyncState.HYDRATED
        return self.state

    async def _hydrate(self, session_id: str, entry: TranscriptEntry) -> Message:
        cached = await self.cache.get(session_id, entry.content, entry.query)
        return Message(
            sender=entry.sender,
            timestamp=format_timestamp(entry.timestamp),
            content=entry.content,
            query=entry.query,
            rows=cached.rows if cached else None,
            columns=cached.columns if cached else None,
            chart_spec=cached.chart if cached else None,
        )
