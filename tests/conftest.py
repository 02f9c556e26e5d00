import pytest

from centralia_chat.services.session_store import SessionStore


@pytest.fixture
def store() -> SessionStore:
    return SessionStore()
