"""Consultant conversations with explicit per-session requirement state."""
from __future__ import annotations

import logging
import threading
import uuid
from collections import OrderedDict
from typing import Sequence

from src.consultant.services.narrative import (
    WELCOME_MESSAGE,
    format_chat_response,
    format_insufficient_match,
    generate_follow_up_question,
)
from src.consultant.services.recommendation_scorer import generate_recommendations
from src.consultant.services.requirement_extractor import (
    extract_requirements,
    has_enough_information,
    merge_requirements,
    missing_information,
)
from src.shared.constants import MAX_ALTERNATIVES, MAX_SESSIONS
from src.shared.errors import SessionNotFoundError
from src.shared.models.catalog import DatabaseRecord
from src.shared.models.consultant import (
    ChatMessage,
    ChatReply,
    RecommendationResult,
    SessionState,
    UserRequirements,
)

logger = logging.getLogger("consultant.conversation")


class ConsultantSession:
    """One conversation: accumulated requirements, transcript and last result."""

    def __init__(self, session_id: str | None = None, max_alternatives: int = MAX_ALTERNATIVES) -> None:
        self.id = session_id or str(uuid.uuid4())
        self.max_alternatives = max_alternatives
        self.requirements = UserRequirements()
        self.messages: list[ChatMessage] = []
        self.recommendations: RecommendationResult | None = None
        self._turns = 0
        self.reset()

    def reset(self) -> None:
        """Forget everything and start over with the welcome message."""
        self.requirements = UserRequirements()
        self.recommendations = None
        self._turns = 0
        self.messages = [ChatMessage(role="assistant", content=WELCOME_MESSAGE)]

    def process_message(self, text: str, catalog: Sequence[DatabaseRecord]) -> ChatReply:
        """Handle one user turn.

        Requirements found in *text* are merged into the session.  While any
        topic is missing the reply is a follow-up question; recommendations
        are attached as soon as project type and load are known.
        """
        self.messages.append(ChatMessage(role="user", content=text))
        self.requirements = merge_requirements(self.requirements, extract_requirements(text))

        result: RecommendationResult | None = None
        if has_enough_information(self.requirements):
            result = generate_recommendations(self.requirements, catalog, self.max_alternatives)
            self.recommendations = result

        missing = missing_information(self.requirements)
        if missing:
            content = generate_follow_up_question(self.requirements, missing, variant=self._turns)
        elif result is not None and result.has_match:
            content = format_chat_response(result)
        else:
            content = format_insufficient_match(self.requirements)

        self._turns += 1
        reply = ChatMessage(role="assistant", content=content)
        self.messages.append(reply)
        logger.debug(
            "Processed turn %d (missing: %s)", self._turns, ", ".join(missing) or "none",
            extra={"session_id": self.id},
        )
        return ChatReply(message=reply, requirements=self.requirements, recommendations=result)

    def state(self) -> SessionState:
        return SessionState(
            id=self.id,
            requirements=self.requirements,
            messages=list(self.messages),
            recommendations=self.recommendations,
        )


class SessionRegistry:
    """In-memory sessions keyed by id.

    At most *max_sessions* are kept; creating one more evicts the session
    used least recently.
    """

    def __init__(
        self,
        max_alternatives: int = MAX_ALTERNATIVES,
        max_sessions: int = MAX_SESSIONS,
    ) -> None:
        self._sessions: OrderedDict[str, ConsultantSession] = OrderedDict()
        self._lock = threading.Lock()
        self._max_alternatives = max_alternatives
        self._max_sessions = max_sessions

    def create(self) -> ConsultantSession:
        session = ConsultantSession(max_alternatives=self._max_alternatives)
        evicted: list[str] = []
        with self._lock:
            self._sessions[session.id] = session
            while len(self._sessions) > self._max_sessions:
                evicted.append(self._sessions.popitem(last=False)[0])
        for session_id in evicted:
            logger.info("Session evicted", extra={"session_id": session_id})
        logger.info("Session created", extra={"session_id": session.id})
        return session

    def get(self, session_id: str) -> ConsultantSession:
        """Return the session.

        Raises:
            SessionNotFoundError: If no session has this id.
        """
        with self._lock:
            session = self._sessions.get(session_id)
            if session is not None:
                self._sessions.move_to_end(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def delete(self, session_id: str) -> None:
        with self._lock:
            removed = self._sessions.pop(session_id, None)
        if removed is None:
            raise SessionNotFoundError(session_id)
        logger.info("Session deleted", extra={"session_id": session_id})

    def __len__(self) -> int:
        return len(self._sessions)
