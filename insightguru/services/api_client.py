import json
import logging
from typing import Any
from urllib.parse import quote

import httpx
from pydantic import ValidationError as PydanticValidationError

from insightguru.config import Settings, settings as default_settings
from insightguru.errors import ResponseError, TransportError, UnknownResponseError
from insightguru.models.chat import ClientContext, SessionSummary
from insightguru.schemas.chat import (
    AskRequest,
    HistoryTurn,
    SessionCreateRequest,
    SessionCreateResponse,
    SessionListResponse,
    SessionLoadResponse,
)

logger = logging.getLogger(__name__)


class InsightApiClient:
    """Calls to the analytics backend. Every failure surfaces as an AppError."""

    def __init__(self, config: Settings | None = None):
        self.config = config or default_settings

    @property
    def base_url(self) -> str:
        return self.config.api_base_url.rstrip("/")

    async def ask_question(
        self,
        context: ClientContext,
        question: str,
        session_id: str | None = None,
        history: list[HistoryTurn] | None = None,
        schema_hint: str = "",
    ) -> dict[str, Any]:
        """POST a question. Returns the raw answer payload for the normalizer."""
        body = AskRequest(
            client_id=context.client_id,
            session_id=session_id or None,
            dataset_id=context.dataset_id,
            question=question,
            history=history or [],
            schema_sheet=schema_hint or "",
        )
        url = f"{self.base_url}/v1/qa/answer"
        headers = {"X-Client-Id": context.client_id}
        payload = body.model_dump(mode="json", exclude_none=True)

        response = await self._send("POST", url, json=payload, headers=headers)
        return self._decode(response)

    async def load_session(self, context: ClientContext, session_id: str) -> SessionLoadResponse:
        url = f"{self.base_url}/v1/chats/{quote(session_id, safe='')}"
        params = {"client_id": context.client_id, "dataset_id": context.dataset_id}
        data = self._decode(await self._send("GET", url, params=params))
        return self._parse(SessionLoadResponse, data)

    async def create_session(self, context: ClientContext) -> str:
        body = SessionCreateRequest(client_id=context.client_id, dataset_id=context.dataset_id)
        url = f"{self.base_url}/v1/chats/session"
        data = self._decode(await self._send("POST", url, json=body.model_dump(mode="json")))
        created = self._parse(SessionCreateResponse, data)
        if not created.session.session_id:
            raise UnknownResponseError("No session_id returned")
        return created.session.session_id

    async def list_sessions(self, context: ClientContext) -> list[SessionSummary]:
        url = f"{self.base_url}/v1/chats/sessions"
        params = {"client_id": context.client_id, "dataset_id": context.dataset_id}
        data = self._decode(await self._send("GET", url, params=params))
        return self._parse(SessionListResponse, data).sessions

    async def _send(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            async with httpx.AsyncClient(timeout=self.config.request_timeout) as client:
                if method == "GET":
                    return await client.get(url, **kwargs)
                return await client.post(url, **kwargs)
        except httpx.TimeoutException:
            raise TransportError("Network error: request timed out", detail=url)
        except httpx.TransportError as e:
            raise TransportError(f"Network error: {e}", detail=url)

    def _decode(self, response: httpx.Response) -> dict[str, Any]:
        """Parse the body, then raise for non-success statuses."""
        content_type = response.headers.get("content-type", "")
        data: Any = None
        if "application/json" in content_type:
            try:
                data = response.json()
            except ValueError:
                data = None
        else:
            text = response.text
            try:
                data = json.loads(text)
            except ValueError:
                if not response.is_success:
                    data = {"error": text.strip() or "Unknown server response"}

        if not response.is_success:
            if not isinstance(data, dict):
                data = {}
            message = data.get("error") or data.get("message") or f"Request failed (status {response.status_code})"
            logger.warning("Request failed with status %d: %s", response.status_code, message)
            raise ResponseError(str(message), status_code=response.status_code)

        if not isinstance(data, dict):
            raise UnknownResponseError(status_code=response.status_code, detail=response.text[:500])
        return data

    @staticmethod
    def _parse(model, data: dict[str, Any]):
        try:
            return model.model_validate(data)
        except PydanticValidationError as e:
            logger.warning("Malformed %s: %s", model.__name__, e.errors()[:3])
            raise UnknownResponseError(detail=str(e)[:500])
