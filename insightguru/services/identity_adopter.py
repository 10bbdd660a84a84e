import logging

from insightguru.services.events import SESSIONS_UPDATED, EventBus
from insightguru.services.session_ref import SessionReference
from insightguru.services.session_sync import SessionSynchronizer

logger = logging.getLogger(__name__)


class SessionIdentityAdopter:
    """Owns the tracked session id and adopts ids minted by the server.

    The first answer of a conversation may arrive before any session exists;
    the server then returns the id it created. Adoption tells the synchronizer
    to skip the next fetch for that id *before* the tracked id changes, so the
    load triggered by the change keeps the answer already on screen.
    """

    def __init__(
        self,
        synchronizer: SessionSynchronizer,
        reference: SessionReference,
        events: EventBus,
        session_id: str = "",
    ):
        self.synchronizer = synchronizer
        self.reference = reference
        self.events = events
        self.session_id = session_id

    async def adopt(self, session_id: str | None) -> bool:
        if not session_id or session_id == self.session_id:
            return False

        self.synchronizer.suppress_next(session_id)
        previous, self.session_id = self.session_id, session_id
        await self.reference.publish(session_id)
        self.events.publish(SESSIONS_UPDATED)
        logger.info("Adopted server session %s (was %r)", session_id, previous)
        return True

    async def track(self, session_id: str) -> bool:
        """Follow a user-driven change (navigation, shared link). No suppression."""
        if session_id == self.session_id:
            return False
        self.session_id = session_id
        if session_id:
            await self.reference.publish(session_id)
        else:
            await self.reference.clear()
        return True
