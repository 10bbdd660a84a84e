import logging

import httpx
from sqlalchemy.exc import SQLAlchemyError

from insightguru.db.sqlite import get_storage_session
from insightguru.errors import StorageError
from insightguru.repositories import storage_repo

logger = logging.getLogger(__name__)

SESSION_REF_KEY = "session_ref"
SID_PARAM = "sid"


class SessionReference:
    """Shareable link to the active conversation, carried as ?sid=...

    Updating it never triggers a load by itself; it only makes the session
    reachable again after a restart or from a shared link.
    """

    def __init__(self, base_url: str):
        self.url = httpx.URL(base_url)

    @property
    def sid(self) -> str:
        return self.url.params.get(SID_PARAM, "")

    async def publish(self, session_id: str) -> None:
        self.url = self.url.copy_set_param(SID_PARAM, session_id)
        await self._persist(str(self.url))

    async def clear(self) -> None:
        self.url = self.url.copy_remove_param(SID_PARAM)
        try:
            async with get_storage_session() as session:
                await storage_repo.remove_item(session, SESSION_REF_KEY)
        except (SQLAlchemyError, StorageError):
            logger.warning("Could not clear stored session link", exc_info=True)

    async def restore(self) -> str:
        """Adopt the last persisted link, returning its sid (or "")."""
        try:
            async with get_storage_session() as session:
                stored = await storage_repo.get_item(session, SESSION_REF_KEY)
        except (SQLAlchemyError, StorageError):
            logger.warning("Could not read stored session link", exc_info=True)
            return ""
        if stored:
            self.url = httpx.URL(stored)
        return self.sid

    @classmethod
    def parse_sid(cls, link: str) -> str:
        try:
            return httpx.URL(link).params.get(SID_PARAM, "")
        except httpx.InvalidURL:
            return ""

    async def _persist(self, value: str) -> None:
        try:
            async with get_storage_session() as session:
                await storage_repo.set_item(session, SESSION_REF_KEY, value)
        except (SQLAlchemyError, StorageError):
            logger.warning("Could not persist session link", exc_info=True)
