from typing import Any

import httpx
import pytest
import pytest_asyncio

from insightguru.config import Settings
from insightguru.db.sqlite import close_storage, init_storage
from insightguru.models.chat import ClientContext


def make_response(status: int = 200, json: Any = None, text: str | None = None) -> httpx.Response:
    """Build a fake httpx.Response like the backend would send."""
    request = httpx.Request("GET", "http://fake")
    if text is not None:
        return httpx.Response(status, text=text, request=request)
    return httpx.Response(status, json=json if json is not None else {}, request=request)


@pytest.fixture
def test_settings(tmp_path):
    return Settings(
        api_base_url="http://fake",
        storage_path=str(tmp_path / "storage.db"),
        app_url="http://app.local/chat",
        _env_file=None,
    )


@pytest.fixture
def context():
    return ClientContext(client_id="client-1", dataset_id="ds-1", dataset_name="sales.csv")


@pytest_asyncio.fixture
async def storage(test_settings):
    """A fresh SQLite-backed local storage per test."""
    await init_storage(test_settings.storage_dsn)
    yield
    await close_storage()
