import uuid
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, Field, field_validator


def new_id() -> str:
    return uuid.uuid4().hex


def format_timestamp(ts: str | None = None) -> str:
    """Display form of a point in time. Render-only, never used for ordering."""
    if ts:
        try:
            return datetime.fromisoformat(ts).astimezone().strftime("%x, %X")
        except (TypeError, ValueError):
            pass
    now = datetime.now()
    return f"{now:%A} {now.hour % 12 or 12}:{now:%M %p}"


class Sender(str, Enum):
    USER = "user"
    BOT = "bot"


class CachePayload(BaseModel):
    """Heavy parts of an answer kept in local storage."""
    rows: list[Any] | None = None
    columns: list[Any] | None = None
    chart: dict[str, Any] | None = None


class NormalizedAnswer(BaseModel):
    query: str | None = None
    rows: list[Any] = Field(default_factory=list)
    columns: list[Any] = Field(default_factory=list)
    chart_spec: dict[str, Any] | None = None
    content: str

    def cache_payload(self) -> CachePayload:
        return CachePayload(rows=self.rows, columns=self.columns, chart=self.chart_spec)


class Message(BaseModel):
    id: str = Field(default_factory=new_id)
    sender: Sender
    timestamp: str = Field(default_factory=format_timestamp)
    content: str
    query: str | None = None  # generated SQL, bot only
    rows: list[Any] | None = None
    columns: list[Any] | None = None
    chart_spec: dict[str, Any] | None = None  # plotly-style {data, layout}
    collapsed: bool = False

    @property
    def is_bot(self) -> bool:
        return self.sender == Sender.BOT

    @property
    def display_columns(self) -> list[Any]:
        """Explicit columns, else the keys of the first row."""
        if self.columns:
            return list(self.columns)
        if self.rows and isinstance(self.rows[0], dict):
            return list(self.rows[0].keys())
        return []

    @property
    def has_query(self) -> bool:
        return isinstance(self.query, str) and bool(self.query.strip())

    @property
    def has_rows(self) -> bool:
        return bool(self.rows)

    @property
    def has_chart(self) -> bool:
        data = (self.chart_spec or {}).get("data")
        return isinstance(data, list) and len(data) > 0

    @property
    def has_details(self) -> bool:
        return self.has_query or self.has_rows or self.has_chart

    @property
    def show_preview(self) -> bool:
        # A single row or a single column reads fine in the summary text
        return self.has_rows and len(self.rows) > 1 and len(self.display_columns) > 1

    @property
    def show_chart(self) -> bool:
        if not self.has_chart:
            return False
        single_cell = len(self.rows or []) == 1 and len(self.display_columns) == 1
        return not single_cell


class TranscriptEntry(BaseModel):
    """One turn of the server's transcript: text and query only."""
    role: str
    content: str = ""
    timestamp: str | None = Field(default=None, validation_alias=AliasChoices("ts", "timestamp"))
    query: str | None = Field(default=None, validation_alias=AliasChoices("sql", "query"))

    @field_validator("content", mode="before")
    @classmethod
    def _null_content(cls, v: Any) -> Any:
        return "" if v is None else v

    @property
    def sender(self) -> Sender:
        return Sender.USER if self.role == "user" else Sender.BOT


class SessionSummary(BaseModel):
    session_id: str
    name: str = ""
    created_at: str | None = None
    updated_at: str | None = None
    message_count: int = 0


class ClientContext(BaseModel):
    """Identity values loaded once from local storage and passed explicitly."""
    client_id: str
    dataset_id: str = ""
    dataset_name: str = ""
