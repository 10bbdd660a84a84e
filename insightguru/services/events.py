import asyncio
import inspect
import logging
from collections import defaultdict
from collections.abc import Callable

logger = logging.getLogger(__name__)

SESSIONS_UPDATED = "sessions-updated"


class EventBus:
    """Fire-and-forget notifications between otherwise independent components.

    Listeners cannot answer; coroutine listeners are scheduled on the running
    loop and their failures are only logged.
    """

    def __init__(self):
        self._listeners: dict[str, list[Callable]] = defaultdict(list)
        self._tasks: set[asyncio.Task] = set()

    def subscribe(self, topic: str, listener: Callable) -> Callable[[], None]:
        self._listeners[topic].append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners[topic]:
                self._listeners[topic].remove(listener)

        return unsubscribe

    def publish(self, topic: str) -> None:
        for listener in list(self._listeners[topic]):
            try:
                result = listener()
            except Exception:
                logger.warning("Listener for %s failed", topic, exc_info=True)
                continue
            if inspect.isawaitable(result):
                task = asyncio.ensure_future(result)
                self._tasks.add(task)
                task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.warning("Async listener failed: %s", task.exception())

    async def drain(self) -> None:
        """Wait for scheduled listeners; used on shutdown."""
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
