# weatherbot/core/use_cases.py
from weatherbot.core.domain import (
    ConversationState,
    Idle,
    InboundMessage,
    event_from_message,
)
from weatherbot.core.engine import ConversationEngine
from weatherbot.core.errors import ServiceError
from weatherbot.core.ports import ConversationStore, MessageSender
from weatherbot.core.texts import get_text
from weatherbot.infra.logging_config import get_logger, LogContext
from weatherbot.infra.metrics import AppMetrics

logger = get_logger(__name__)


class WeatherBotService:
    """
    Application service / use-case layer.
    Workflow: load state -> event -> engine -> persist state.

    The transport guarantees one event at a time per conversation; this
    class adds no locking of its own.
    """

    def __init__(
        self,
        *,
        engine: ConversationEngine,
        store: ConversationStore,
        sender: MessageSender,
    ) -> None:
        self.engine = engine
        self.store = store
        self.sender = sender

    async def _load_state(self, conversation_id: str) -> ConversationState:
        state = await self.store.get(conversation_id)
        if state is None:
            state = Idle()
            await self.store.upsert(conversation_id, state)
        return state

    async def process_inbound_message(self, message: InboundMessage) -> dict:
        """
        Process a normalized InboundMessage from the chat platform.

        Returns ``{"replies": [...], "state": <next state name>, "event": <event type>}``.

        A failed lookup rolls the conversation back to Idle and tells the
        user; a failed delivery propagates and leaves the stored state as
        it was before the event.
        """
        chat_id = message.chat_id
        state = await self._load_state(chat_id)
        event = event_from_message(message)
        event_name = type(event).__name__

        log_ctx = LogContext(logger, chat_id=chat_id, state=state.name)
        log_ctx.debug(f"Handling {event_name}")

        try:
            next_state, replies = await self.engine.handle(chat_id, state, event)
        except ServiceError as exc:
            log_ctx.error(f"Weather lookup failed, resetting conversation: {exc}")
            AppMetrics.conversation_rolled_back(state.name)
            await self.store.upsert(chat_id, Idle())
            reply = get_text("err_service_unavailable")
            await self.sender.send(chat_id, reply)
            return {"replies": [reply], "state": Idle.name, "event": event_name}

        await self.store.upsert(chat_id, next_state)
        AppMetrics.event_handled(state.name, event_name)

        if next_state.name != state.name:
            log_ctx.info(f"Transition {state.name} -> {next_state.name}")

        return {"replies": replies, "state": next_state.name, "event": event_name}

    async def reset(self, conversation_id: str) -> None:
        """Forget a conversation entirely (next contact starts at Idle)."""
        await self.store.delete(conversation_id)
