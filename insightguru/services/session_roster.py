import logging

from insightguru.errors import AppError
from insightguru.models.chat import ClientContext, SessionSummary
from insightguru.services.api_client import InsightApiClient
from insightguru.services.events import SESSIONS_UPDATED, EventBus

logger = logging.getLogger(__name__)


class SessionRoster:
    """Sessions of the current (client, dataset) pair, as the sidebar lists them."""

    def __init__(self, api: InsightApiClient, events: EventBus, context: ClientContext):
        self.api = api
        self.events = events
        self.context = context
        self.sessions: list[SessionSummary] = []
        self.loading = False
        self.error: str | None = None
        self._unsubscribe = events.subscribe(SESSIONS_UPDATED, self.refresh)

    async def refresh(self) -> list[SessionSummary]:
        if not self.context.client_id or not self.context.dataset_id:
            self.sessions = []
            return self.sessions

        self.loading = True
        self.error = None
        try:
            self.sessions = await self.api.list_sessions(self.context)
        except AppError as e:
            logger.warning("Failed to list sessions: %s", e.message)
            self.error = e.message or "Failed to load sessions"
            self.sessions = []
        finally:
            self.loading = False
        return self.sessions

    async def create(self) -> str | None:
        """Pre-create an empty session before the first question."""
        if not self.context.client_id or not self.context.dataset_id:
            return None
        try:
            session_id = await self.api.create_session(self.context)
        except AppError as e:
            logger.warning("Failed to create session: %s", e.message)
            self.error = e.message or "Failed to create session"
            return None
        await self.refresh()
        self.events.publish(SESSIONS_UPDATED)
        return session_id

    def close(self) -> None:
        self._unsubscribe()
