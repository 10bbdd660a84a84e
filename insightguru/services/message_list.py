from collections.abc import Iterable, Iterator

from insightguru.models.chat import Message, NormalizedAnswer, Sender, format_timestamp
from insightguru.schemas.chat import HistoryTurn


def apply_containment(messages: list[Message]) -> list[Message]:
    """Leave only the most recent bot message expanded."""
    last_bot = next((m for m in reversed(messages) if m.is_bot), None)
    for m in messages:
        if m.is_bot:
            m.collapsed = m is not last_bot
    return messages


class MessageListModel:
    """Ordered conversation. Insertion order only, no dedup, no re-sorting."""

    def __init__(self, messages: Iterable[Message] = ()):
        self._messages: list[Message] = list(messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(self._messages)

    def __len__(self) -> int:
        return len(self._messages)

    def __getitem__(self, index: int) -> Message:
        return self._messages[index]

    @property
    def messages(self) -> list[Message]:
        return list(self._messages)

    def append_user(self, text: str) -> Message:
        message = Message(sender=Sender.USER, content=text, collapsed=False)
        self._messages.append(message)
        return message

    def append_bot(self, answer: NormalizedAnswer) -> Message:
        for m in self._messages:
            if m.is_bot:
                m.collapsed = True
        message = Message(
            sender=Sender.BOT,
            timestamp=format_timestamp(),
            content=answer.content,
            query=answer.query,
            rows=answer.rows,
            columns=answer.columns,
            chart_spec=answer.chart_spec,
            collapsed=False,
        )
        self._messages.append(message)
        return message

    def toggle(self, message_id: str) -> Message | None:
        for m in self._messages:
            if m.id == message_id:
                m.collapsed = not m.collapsed
                return m
        return None

    def replace(self, messages: Iterable[Message]) -> None:
        self._messages = list(messages)

    def history(self, limit: int = 10) -> list[HistoryTurn]:
        """Last turns in the shape the QA endpoint expects."""
        recent = self._messages[-limit:] if limit > 0 else []
        return [
            HistoryTurn(role="user" if m.sender == Sender.USER else "assistant", content=m.content)
            for m in recent
        ]
