from centralia_chat.domain.repositories.session_repository import SessionFilters, SessionRepository

__all__ = ["SessionFilters", "SessionRepository"]
