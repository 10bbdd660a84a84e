"""Best-effort local cache for the parts of an answer the server transcript drops.

Rows, columns and the chart spec are stored under a key derived from the
session id and the message text/query, so a reloaded session can be hydrated
with rich results. Nothing in here raises: a failed write is forgotten and a
failed read is a miss.
"""

import json
import logging

from sqlalchemy.exc import SQLAlchemyError

from insightguru.config import Settings, settings as default_settings
from insightguru.db.sqlite import get_storage_session
from insightguru.errors import StorageError
from insightguru.models.chat import CachePayload
from insightguru.repositories import storage_repo

logger = logging.getLogger(__name__)

_STORAGE_ERRORS = (SQLAlchemyError, StorageError, OSError)


def string_hash(text: str) -> str:
    """32-bit djb2 (xor variant) over UTF-16 code units, as lowercase hex."""
    h = 5381
    encoded = text.encode("utf-16-le", "surrogatepass")
    for i in range(0, len(encoded), 2):
        unit = encoded[i] | (encoded[i + 1] << 8)
        h = ((h * 33) ^ unit) & 0xFFFFFFFF
    return format(h, "x")


class CacheStore:
    def __init__(self, dataset_id: str = "", config: Settings | None = None):
        self.config = config or default_settings
        self.dataset_id = dataset_id

    def key(self, session_id: str, content: str, query: str | None = None) -> str:
        text = f"{content}|{query or ''}"
        if self.config.scope_cache_by_dataset and self.dataset_id:
            text = f"{self.dataset_id}|{text}"
        return f"{self.config.cache_key_prefix}{session_id}_{string_hash(text)}"

    async def put(
        self,
        session_id: str | None,
        content: str | None,
        query: str | None,
        payload: CachePayload,
    ) -> None:
        if not session_id or not content:
            return
        key = self.key(session_id, content, query)
        try:
            async with get_storage_session() as session:
                await storage_repo.set_item(session, key, payload.model_dump_json())
        except (*_STORAGE_ERRORS, ValueError):
            logger.warning("Could not cache answer payload under %s", key, exc_info=True)

    async def get(self, session_id: str | None, content: str | None, query: str | None) -> CachePayload | None:
        if not session_id or not content:
            return None
        key = self.key(session_id, content, query)
        try:
            async with get_storage_session() as session:
                raw = await storage_repo.get_item(session, key)
        except _STORAGE_ERRORS:
            logger.debug("Cache read failed for %s", key, exc_info=True)
            return None
        if not raw:
            return None
        try:
            data = json.loads(raw)
            if not isinstance(data, dict):
                return None
            return CachePayload.model_validate(data)
        except ValueError:
            logger.debug("Ignoring malformed cache entry %s", key)
            return None
