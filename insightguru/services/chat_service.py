import logging

from insightguru.config import Settings, settings as default_settings
from insightguru.errors import AppError
from insightguru.models.chat import ClientContext, Message
from insightguru.services import identity
from insightguru.services.api_client import InsightApiClient
from insightguru.services.cache_store import CacheStore
from insightguru.services.events import EventBus
from insightguru.services.identity_adopter import SessionIdentityAdopter
from insightguru.services.input_guard import sanitize_schema_hint, validate_question
from insightguru.services.message_list import MessageListModel
from insightguru.services.normalizer import answer_session, normalize
from insightguru.services.notices import NoticeBoard
from insightguru.services.session_ref import SessionReference
from insightguru.services.session_roster import SessionRoster
from insightguru.services.session_sync import SessionSynchronizer, SyncState

logger = logging.getLogger(__name__)


class ChatController:
    """One conversation view: composer, message list and session plumbing.

    At most one question is in flight; a second ``submit`` while one is
    pending is rejected, not queued.
    """

    def __init__(
        self,
        context: ClientContext,
        config: Settings | None = None,
        api: InsightApiClient | None = None,
        events: EventBus | None = None,
        session_id: str = "",
    ):
        self.config = config or default_settings
        self.context = context
        self.api = api or InsightApiClient(self.config)
        self.events = events or EventBus()
        self.notices = NoticeBoard()
        self.messages = MessageListModel()
        self.cache = CacheStore(context.dataset_id, self.config)
        self.reference = SessionReference(self.config.app_url)
        self.synchronizer = SessionSynchronizer(self.api, self.cache, self.messages, self.notices, context)
        self.adopter = SessionIdentityAdopter(self.synchronizer, self.reference, self.events, session_id)
        self.roster = SessionRoster(self.api, self.events, context)
        self.session_name = ""
        self.draft = ""
        self.schema_hint = ""
        self.in_flight = False

    @property
    def session_id(self) -> str:
        return self.adopter.session_id

    @property
    def state(self) -> SyncState:
        return self.synchronizer.state

    @property
    def share_link(self) -> str:
        return str(self.reference.url)

    async def start(self) -> None:
        """Initial load for the session the view was opened with."""
        if self.session_id:
            await self.reference.publish(self.session_id)
        await self._reload()
        await self.roster.refresh()

    def seed(self, question: str = "", schema_hint: str = "") -> None:
        """Pre-fill the composer, e.g. from a suggested insight."""
        if question:
            self.draft = question
        if schema_hint:
            self.schema_hint = sanitize_schema_hint(schema_hint)

    async def submit(self, text: str | None = None) -> Message | None:
        """Ask a question. Returns the bot message, or None if nothing was answered."""
        text = self.draft if text is None else text
        if self.in_flight:
            logger.debug("Rejected submit while a question is in flight")
            return None
        try:
            question = validate_question(text, self.config.max_question_length)
        except AppError as e:
            if text.strip():
                self.notices.report(e, title="Question not sent")
            return None

        if not self.context.dataset_id:
            self.notices.post("No dataset found", "Please upload a dataset first.", variant="destructive")
            return None

        # History is what the user saw before this question
        history = self.messages.history(self.config.history_window)
        self.messages.append_user(question)
        self.draft = ""
        # Held until the answer is on screen, reload included
        self.in_flight = True
        try:
            try:
                raw = await self.api.ask_question(
                    self.context,
                    question,
                    session_id=self.session_id or None,
                    history=history,
                    schema_hint=self.schema_hint,
                )
            except AppError as e:
                logger.warning("Question failed: %s", e.message)
                self.notices.report(e)
                return None

            minted_id, session_name = answer_session(raw)
            adopted = await self.adopter.adopt(minted_id)
            if session_name:
                self.session_name = session_name

            answer = normalize(raw)
            await self.cache.put(self.session_id, answer.content, answer.query, answer.cache_payload())
            message = self.messages.append_bot(answer)

            if adopted:
                await self._reload()
            return message
        finally:
            self.in_flight = False

    async def open_session(self, session_id: str) -> SyncState:
        """Navigate to another conversation (sidebar click or shared link)."""
        if await self.adopter.track(session_id):
            self.session_name = ""
            if not session_id:
                self.messages.replace([])
            await self._reload()
        return self.state

    async def start_new_session(self) -> str | None:
        session_id = await self.roster.create()
        if session_id:
            await self.open_session(session_id)
        elif self.roster.error:
            self.notices.post("Could not start a new chat", self.roster.error, variant="destructive")
        return session_id

    async def change_client(self, client_id: str) -> SyncState:
        if client_id == self.context.client_id:
            return self.state
        self._set_context(self.context.model_copy(update={"client_id": client_id}))
        await self._reload()
        return self.state

    async def switch_dataset(self, dataset_id: str, dataset_name: str = "") -> None:
        """Make another uploaded dataset active; sessions are per dataset."""
        self._set_context(await identity.set_dataset(self.context, dataset_id, dataset_name))
        self.cache = CacheStore(self.context.dataset_id, self.config)
        self.synchronizer.cache = self.cache
        self.synchronizer.dispose()
        await self.adopter.track("")
        self.messages.replace([])
        self.session_name = ""
        await self.roster.refresh()

    def toggle(self, message_id: str) -> Message | None:
        return self.messages.toggle(message_id)

    async def close(self) -> None:
        self.synchronizer.dispose()
        self.roster.close()
        await self.events.drain()

    async def _reload(self) -> None:
        self.synchronizer.session_name = ""
        await self.synchronizer.load(self.session_id)
        if self.synchronizer.session_name:
            self.session_name = self.synchronizer.session_name

    def _set_context(self, context: ClientContext) -> None:
        self.context = context
        self.synchronizer.context = context
        self.roster.context = context
