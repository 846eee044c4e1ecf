"""Autocomplete session tokens.

The provider bills a sequence of autocomplete requests that share a session
token, followed by one place-details request, as a single session.
"""

import time
import uuid
from typing import Callable, Optional

from ..cache.store import CacheStore
from ...constants import AUTOCOMPLETE_MAX_SESSIONS, AUTOCOMPLETE_SESSION_TTL_SECONDS


class AutocompleteSessions:
    """
    Maps caller session ids to provider session tokens.

    Tokens live in a bounded ``CacheStore``: a session abandoned before its
    place-details request expires after ``ttl_seconds``, and past
    ``max_sessions`` the least recently used session is dropped.
    """

    def __init__(
        self,
        max_sessions: int = AUTOCOMPLETE_MAX_SESSIONS,
        ttl_seconds: float = AUTOCOMPLETE_SESSION_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self._tokens = CacheStore(
            max_size=max_sessions, default_ttl_seconds=ttl_seconds, clock=clock
        )

    @property
    def max_sessions(self) -> int:
        return self._tokens.max_size

    def create(self, session_id: str) -> str:
        """Start a new session for ``session_id``, replacing any existing one."""
        token = str(uuid.uuid4())
        self._tokens.set(session_id, token)
        return token

    def get(self, session_id: str) -> Optional[str]:
        return self._tokens.get(session_id)

    def get_or_create(self, session_id: str) -> str:
        return self._tokens.get(session_id) or self.create(session_id)

    def clear(self, session_id: str) -> None:
        """End the session once the user picked a prediction."""
        self._tokens.delete(session_id)

    def __len__(self) -> int:
        return len(self._tokens)
