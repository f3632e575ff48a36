# weatherbot/infra/conversation_store.py
from __future__ import annotations

from typing import Optional

from weatherbot.core.domain import ConversationState
from weatherbot.infra.logging_config import get_logger, mask_chat_id

logger = get_logger(__name__)


class InMemoryConversationStore:
    """
    Process-local map of conversation id → ConversationState.

    Lost on restart. Each key is only touched by the handler of the
    conversation's current event, so no locking is needed.
    """

    def __init__(self):
        self._states: dict[str, ConversationState] = {}

    async def get(self, conversation_id: str) -> Optional[ConversationState]:
        return self._states.get(conversation_id)

    async def upsert(self, conversation_id: str, state: ConversationState) -> None:
        if conversation_id not in self._states:
            logger.debug("Conversation %s created", mask_chat_id(conversation_id))
        self._states[conversation_id] = state

    async def delete(self, conversation_id: str) -> None:
        self._states.pop(conversation_id, None)

    def __len__(self) -> int:
        return len(self._states)
