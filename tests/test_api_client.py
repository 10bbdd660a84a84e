from unittest.mock import AsyncMock, patch

import httpx
import pytest

from insightguru.errors import ResponseError, TransportError, UnknownResponseError
from insightguru.schemas.chat import HistoryTurn
from insightguru.services.api_client import InsightApiClient
from tests.conftest import make_response


@pytest.mark.asyncio
async def test_ask_sends_wire_fields(context, test_settings):
    """The QA call carries identity, history and schema hint in wire names."""
    response = make_response(200, {"summary": "ok", "session_id": "S1"})
    api = InsightApiClient(test_settings)

    with patch("httpx.AsyncClient.post", AsyncMock(return_value=response)) as mock_post:
        raw = await api.ask_question(
            context,
            "total sales?",
            history=[HistoryTurn(role="user", content="hi")],
            schema_hint="Sheet1",
        )

    assert raw == {"summary": "ok", "session_id": "S1"}
    url = mock_post.call_args.args[0]
    sent = mock_post.call_args.kwargs["json"]
    assert url == "http://fake/v1/qa/answer"
    assert mock_post.call_args.kwargs["headers"] == {"X-Client-Id": "client-1"}
    assert sent["client_id"] == "client-1"
    assert sent["dataset_id"] == "ds-1"
    assert sent["question"] == "total sales?"
    assert sent["history"] == [{"role": "user", "content": "hi"}]
    assert sent["schema_sheet"] == "Sheet1"
    assert "session_id" not in sent


@pytest.mark.asyncio
async def test_ask_includes_session_when_known(context, test_settings):
    api = InsightApiClient(test_settings)
    with patch("httpx.AsyncClient.post", AsyncMock(return_value=make_response(200, {}))) as mock_post:
        await api.ask_question(context, "q", session_id="S9")
    assert mock_post.call_args.kwargs["json"]["session_id"] == "S9"


@pytest.mark.asyncio
async def test_transport_failure(context, test_settings):
    api = InsightApiClient(test_settings)
    with patch("httpx.AsyncClient.post", AsyncMock(side_effect=httpx.ConnectError("refused"))):
        with pytest.raises(TransportError) as exc_info:
            await api.ask_question(context, "q")
    assert exc_info.value.message.startswith("Network error")


@pytest.mark.asyncio
async def test_timeout_is_transport_failure(context, test_settings):
    api = InsightApiClient(test_settings)
    with patch("httpx.AsyncClient.get", AsyncMock(side_effect=httpx.ReadTimeout("slow"))):
        with pytest.raises(TransportError):
            await api.load_session(context, "S1")


@pytest.mark.asyncio
async def test_error_field_taken_verbatim(context, test_settings):
    api = InsightApiClient(test_settings)
    response = make_response(400, {"error": "Dataset not found", "message": "ignored"})
    with patch("httpx.AsyncClient.post", AsyncMock(return_value=response)):
        with pytest.raises(ResponseError) as exc_info:
            await api.ask_question(context, "q")
    assert exc_info.value.message == "Dataset not found"
    assert exc_info.value.status_code == 400


@pytest.mark.asyncio
async def test_message_field_then_status_fallback(context, test_settings):
    api = InsightApiClient(test_settings)
    with patch("httpx.AsyncClient.post", AsyncMock(return_value=make_response(422, {"message": "Bad question"}))):
        with pytest.raises(ResponseError, match="Bad question"):
            await api.ask_question(context, "q")
    with patch("httpx.AsyncClient.post", AsyncMock(return_value=make_response(503, {}))):
        with pytest.raises(ResponseError, match=r"Request failed \(status 503\)"):
            await api.ask_question(context, "q")


@pytest.mark.asyncio
async def test_plain_text_error_body(context, test_settings):
    api = InsightApiClient(test_settings)
    with patch("httpx.AsyncClient.post", AsyncMock(return_value=make_response(502, text="Bad gateway"))):
        with pytest.raises(ResponseError, match="Bad gateway"):
            await api.ask_question(context, "q")


@pytest.mark.asyncio
async def test_json_in_text_body_is_parsed(context, test_settings):
    api = InsightApiClient(test_settings)
    response = make_response(200, text='{"summary": "from text"}')
    with patch("httpx.AsyncClient.post", AsyncMock(return_value=response)):
        raw = await api.ask_question(context, "q")
    assert raw["summary"] == "from text"


@pytest.mark.asyncio
async def test_unparsable_success_body(context, test_settings):
    api = InsightApiClient(test_settings)
    with patch("httpx.AsyncClient.post", AsyncMock(return_value=make_response(200, text="<html>oops</html>"))):
        with pytest.raises(UnknownResponseError, match="Unknown server response"):
            await api.ask_question(context, "q")


@pytest.mark.asyncio
async def test_load_session_parses_transcript(context, test_settings):
    body = {
        "session": {"name": "Q2 review"},
        "messages": [
            {"role": "user", "content": "q", "ts": "2024-05-01T10:00:00Z"},
            {"role": "assistant", "content": "a", "sql": "SELECT 1"},
        ],
    }
    api = InsightApiClient(test_settings)
    with patch("httpx.AsyncClient.get", AsyncMock(return_value=make_response(200, body))) as mock_get:
        loaded = await api.load_session(context, "S/1")

    assert mock_get.call_args.args[0] == "http://fake/v1/chats/S%2F1"
    assert mock_get.call_args.kwargs["params"] == {"client_id": "client-1", "dataset_id": "ds-1"}
    assert loaded.session.name == "Q2 review"
    assert loaded.messages[0].timestamp == "2024-05-01T10:00:00Z"
    assert loaded.messages[1].query == "SELECT 1"


@pytest.mark.asyncio
async def test_load_session_malformed_body(context, test_settings):
    api = InsightApiClient(test_settings)
    body = {"messages": [{"content": "no role"}]}
    with patch("httpx.AsyncClient.get", AsyncMock(return_value=make_response(200, body))):
        with pytest.raises(UnknownResponseError):
            await api.load_session(context, "S1")


@pytest.mark.asyncio
async def test_create_and_list_sessions(context, test_settings):
    api = InsightApiClient(test_settings)
    created = make_response(200, {"session": {"session_id": "S5"}})
    listed = make_response(200, {"sessions": [
        {"session_id": "S5", "name": "", "created_at": "2024-05-01", "updated_at": "2024-05-01", "message_count": 0},
    ]})

    with patch("httpx.AsyncClient.post", AsyncMock(return_value=created)) as mock_post:
        assert await api.create_session(context) == "S5"
    assert mock_post.call_args.kwargs["json"] == {"client_id": "client-1", "dataset_id": "ds-1"}

    with patch("httpx.AsyncClient.get", AsyncMock(return_value=listed)):
        sessions = await api.list_sessions(context)
    assert [s.session_id for s in sessions] == ["S5"]


@pytest.mark.asyncio
async def test_create_session_without_id(context, test_settings):
    api = InsightApiClient(test_settings)
    with patch("httpx.AsyncClient.post", AsyncMock(return_value=make_response(200, {"session": {}}))):
        with pytest.raises(UnknownResponseError, match="No session_id returned"):
            await api.create_session(context)
