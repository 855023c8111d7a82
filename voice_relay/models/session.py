"""
Session state for relayed voice conversations.

Each accepted client websocket gets exactly one relay session. The SessionManager
tracks the sessions that are currently live so the health endpoint can report
them; sessions never share state with each other.
"""

from enum import Enum
from typing import Any, Dict, Optional


class SessionState(str, Enum):
    """Lifecycle of one relay session."""

    CONNECTING = "connecting"
    READY = "ready"
    CLOSING = "closing"
    CLOSED = "closed"


class SessionManager:
    """
    Registry of live relay sessions keyed by session id.

    Sessions are added when a client connects and removed when the session ends.
    """

    def __init__(self):
        self.active_sessions: Dict[str, Any] = {}

    def add_session(self, session_id: str, session: Any) -> None:
        self.active_sessions[session_id] = session

    def get_session(self, session_id: str) -> Optional[Any]:
        """
        Get a live session by its id.

        Returns:
            The session object, or None if the session does not exist
        """
        return self.active_sessions.get(session_id)

    def remove_session(self, session_id: str) -> None:
        if session_id in self.active_sessions:
            del self.active_sessions[session_id]

    def get_all_sessions(self) -> Dict[str, Any]:
        return self.active_sessions

    def __len__(self) -> int:
        return len(self.active_sessions)
