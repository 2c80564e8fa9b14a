"""Short public file IDs and opaque session IDs."""

import secrets
from typing import Callable

from common.constants import FILE_ID_ALPHABET, FILE_ID_LENGTH, MAX_ID_ATTEMPTS, SESSION_ID_BYTES
from common.exceptions import DuplicateIdError
from common.logging_config import get_logger

logger = get_logger(__name__)


def generate_file_id() -> str:
    """
    Generate a 4-character share ID from lowercase letters and digits.

    IDs are not checked for uniqueness here; use allocate_file_id() when a
    store is available.

    Returns:
        File ID string, e.g. "k3x9"
    """
    return "".join(secrets.choice(FILE_ID_ALPHABET) for _ in range(FILE_ID_LENGTH))


def generate_session_id() -> str:
    """
    Generate an opaque session token.

    Returns:
        16-character lowercase hex string
    """
    return secrets.token_hex(SESSION_ID_BYTES)


def allocate_file_id(exists: Callable[[str], bool], max_attempts: int = MAX_ID_ATTEMPTS) -> str:
    """
    Draw file IDs until one is not already taken.

    Args:
        exists: Predicate returning True when an ID is held by a live record
        max_attempts: Number of IDs to try before giving up

    Returns:
        A file ID for which exists() returned False

    Raises:
        DuplicateIdError: If every attempt collided
    """
    for attempt in range(1, max_attempts + 1):
        file_id = generate_file_id()
        if not exists(file_id):
            return file_id
        logger.warning(f"File ID collision on {file_id} (attempt {attempt}/{max_attempts})")

    raise DuplicateIdError(f"Could not allocate a free file ID after {max_attempts} attempts")
