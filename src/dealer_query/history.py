"""
Conversation Store
==================

In-memory history of question/answer turns, keyed by session.
"""

import threading
from collections import deque

from dealer_query.models import ConversationTurn


class ConversationStore:
    """Keeps the most recent turns of each session; older turns are dropped."""

    def __init__(self, max_turns: int = 10) -> None:
        self.max_turns = max_turns
        self._sessions: dict[str, deque[ConversationTurn]] = {}
        self._lock = threading.Lock()

    def history(self, session_id: str) -> list[ConversationTurn]:
        """Turns for a session, oldest first. Unknown sessions have none."""
        with self._lock:
            return list(self._sessions.get(session_id, ()))

    def append(self, session_id: str, question: str, answer: str) -> None:
        with self._lock:
            turns = self._sessions.setdefault(session_id, deque(maxlen=self.max_turns))
            turns.append(ConversationTurn(question=question, answer=answer))

    def clear(self, session_id: str) -> bool:
        """Forget a session. Returns whether it existed."""
        with self._lock:
            return self._sessions.pop(session_id, None) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
