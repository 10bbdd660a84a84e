import logging
from typing import Literal

from pydantic import BaseModel, Field

from insightguru.errors import describe
from insightguru.models.chat import new_id

logger = logging.getLogger(__name__)


class Notice(BaseModel):
    id: str = Field(default_factory=new_id)
    title: str
    description: str = ""
    variant: Literal["default", "destructive"] = "default"


class NoticeBoard:
    """Transient, dismissable notices shown to the user."""

    def __init__(self):
        self._notices: list[Notice] = []

    @property
    def active(self) -> list[Notice]:
        return list(self._notices)

    def post(self, title: str, description: str = "", variant: str = "default") -> Notice:
        notice = Notice(title=title, description=description, variant=variant)
        self._notices.append(notice)
        return notice

    def report(self, error: Exception, title: str = "Error") -> Notice:
        logger.info("Reporting error to user: %s", error)
        return self.post(title, describe(error), variant="destructive")

    def dismiss(self, notice_id: str) -> None:
        self._notices = [n for n in self._notices if n.id != notice_id]

    def clear(self) -> None:
        self._notices.clear()
