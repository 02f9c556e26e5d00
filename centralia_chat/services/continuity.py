"""Resume the most recent session when the assistant is first opened."""

from __future__ import annotations

from centralia.utils.logger import get_logger
from centralia_chat.domain.repositories.session_repository import SessionFilters, SessionRepository
from centralia_chat.services.conversation_engine import ConversationEngine

logger = get_logger(__name__)


class SessionContinuityManager:
    """Best-effort restore of the latest non-empty session.

    Runs at most once per instance. The restore is skipped when the user has
    already started or loaded a conversation while the lookup was running.
    """

    def __init__(self, engine: ConversationEngine, repository: SessionRepository):
        self._engine = engine
        self._repo = repository
        self._activated = False

    @property
    def activated(self) -> bool:
        return self._activated

    async def activate(self) -> bool:
        if self._activated:
            return False
        self._activated = True
        generation = self._engine.generation

        try:
            recent = await self._repo.list_all(SessionFilters(limit=1))
            if not recent:
                return False
            session = recent[0]
            messages = await self._repo.get_messages(session.session_id)
        except Exception as e:  # noqa: BLE001
            logger.warning(f"Could not restore the latest session: {type(e).__name__}: {e}")
            return False

        if not messages:
            logger.debug(f"Latest session {session.session_id} is empty; starting fresh")
            return False

        restored = self._engine.resume(session, messages, generation)
        if restored:
            logger.info(f"Restored session {session.session_id} ({len(messages)} message(s))")
        else:
            logger.debug("Conversation changed while restoring; keeping the current one")
        return restored
