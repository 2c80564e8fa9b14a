"""Locally persisted session identity."""

from common.constants import SESSION_KEY
from common.logging_config import get_logger
from lifecycle.id_generator import generate_session_id
from lifecycle.local_storage import LocalStorage

logger = get_logger(__name__)


class SessionManager:
    """
    Owns the client's session ID.

    The ID is created on first use and lives as long as the local storage
    does. It keys the rate limit window and is compared against a record's
    userId before deletion; it is not an authentication credential.
    """

    def __init__(self, storage: LocalStorage):
        self.storage = storage

    def get_user_session_id(self) -> str:
        session_id = self.storage.get_item(SESSION_KEY)
        if session_id:
            return session_id

        session_id = generate_session_id()
        self.storage.set_item(SESSION_KEY, session_id)
        logger.info("Created new local session")
        return session_id
