from typing import Any

from pydantic import BaseModel, Field, field_validator

from insightguru.models.chat import SessionSummary, TranscriptEntry


class HistoryTurn(BaseModel):
    role: str  # "user" or "assistant"
    content: str


class AskRequest(BaseModel):
    client_id: str
    session_id: str | None = None  # None = let the server mint one
    dataset_id: str
    question: str = Field(min_length=1)
    history: list[HistoryTurn] = Field(default_factory=list)
    schema_sheet: str = ""


class SessionRef(BaseModel):
    name: str | None = None


class SessionLoadResponse(BaseModel):
    session: SessionRef | None = None
    messages: list[TranscriptEntry] = Field(default_factory=list)

    @field_validator("messages", mode="before")
    @classmethod
    def _null_messages(cls, v: Any) -> Any:
        return [] if v is None else v


class CreatedSession(BaseModel):
    session_id: str | None = None


class SessionCreateRequest(BaseModel):
    client_id: str
    dataset_id: str


class SessionCreateResponse(BaseModel):
    session: CreatedSession = Field(default_factory=CreatedSession)


class SessionListResponse(BaseModel):
    sessions: list[SessionSummary] = Field(default_factory=list)
