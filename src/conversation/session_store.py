"""
In-memory session context store with TTL eviction.

Holds one SessionData per session key. All mutations for a session are
expected to happen while the caller holds that session's lock (see
``lock``); different sessions never share state. A background task
sweeps idle sessions, skipping any session whose lock is currently held.
"""

import asyncio
import logging
import time
from typing import Iterable, Optional

from src.config import SessionConfig, settings
from src.conversation.state_machine import DialogueTrigger
from src.schemas.analysis_schema import Intent
from src.schemas.conversation_schema import Speaker
from src.schemas.session_schema import (
    PendingIntent,
    PendingKind,
    SessionData,
    SessionMessage,
)

logger = logging.getLogger(__name__)


class SessionStore:
    """Owns session lifecycle: lazy creation, pending intent, counters, eviction."""

    def __init__(self, config: Optional[SessionConfig] = None) -> None:
        self._config = config or settings.sessions
        self._sessions: dict[str, SessionData] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._sweeper: Optional[asyncio.Task] = None

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    def get(self, session_id: str) -> SessionData:
        """Return the session, creating it on first use."""
        session = self._sessions.get(session_id)
        if session is None:
            session = SessionData(session_id=session_id, max_history=self._config.max_history)
            self._sessions[session_id] = session
            logger.debug("Created session %s", session_id)
        session.touch()
        return session

    def peek(self, session_id: str) -> Optional[SessionData]:
        """Return the session if it exists, without creating or touching it."""
        return self._sessions.get(session_id)

    def lock(self, session_id: str) -> asyncio.Lock:
        """Per-session lock serialising message handling for one session."""
        lock = self._locks.get(session_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[session_id] = lock
        return lock

    def delete(self, session_id: str) -> bool:
        self._locks.pop(session_id, None)
        return self._sessions.pop(session_id, None) is not None

    def cleanup_expired(self, now: Optional[float] = None) -> int:
        """
        Evict sessions idle for longer than the TTL.

        Sessions whose lock is held are skipped; eviction is best-effort
        and never races an in-flight message.

        Returns:
            Number of sessions evicted.
        """
        now = time.time() if now is None else now
        cutoff = now - self._config.ttl_minutes * 60
        expired = [
            sid for sid, session in self._sessions.items()
            if session.last_activity < cutoff and not self._is_locked(sid)
        ]
        for sid in expired:
            self.delete(sid)
        if expired:
            logger.info("Evicted %d idle session(s)", len(expired))
        return len(expired)

    def start(self) -> None:
        """Start the periodic sweep on the running event loop."""
        if self._sweeper is None or self._sweeper.done():
            self._sweeper = asyncio.get_running_loop().create_task(self._sweep_loop())

    async def stop(self) -> None:
        """Cancel the periodic sweep and wait for it to finish."""
        if self._sweeper is None:
            return
        self._sweeper.cancel()
        try:
            await self._sweeper
        except asyncio.CancelledError:
            pass
        self._sweeper = None

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self._config.sweep_interval_sec)
            self.cleanup_expired()

    def _is_locked(self, session_id: str) -> bool:
        lock = self._locks.get(session_id)
        return lock is not None and lock.locked()

    # ------------------------------------------------------------------ #
    # Pending intent
    # ------------------------------------------------------------------ #

    def set_pending(
        self,
        session_id: str,
        intent: Intent,
        kind: PendingKind,
        order_id: Optional[str] = None,
        candidate_ids: Iterable[str] = (),
    ) -> PendingIntent:
        """Record the question the session is now waiting on, replacing any other."""
        session = self.get(session_id)
        if session.pending_intent is not None:
            session.dialogue.transition(DialogueTrigger.PENDING_CLEARED)

        pending = PendingIntent(
            intent=intent,
            kind=kind,
            order_id=order_id,
            candidate_ids=tuple(candidate_ids),
        )
        session.pending_intent = pending
        trigger = (
            DialogueTrigger.CONFIRMATION_REQUESTED
            if kind == PendingKind.CONFIRMATION
            else DialogueTrigger.SELECTION_REQUESTED
        )
        session.dialogue.transition(trigger)
        return pending

    def consume_pending(self, session_id: str) -> Optional[PendingIntent]:
        """Return and clear the pending intent. Expired ones are dropped."""
        session = self.get(session_id)
        pending = session.pending_intent
        if pending is None:
            return None

        session.pending_intent = None
        session.dialogue.transition(DialogueTrigger.PENDING_CONSUMED)

        age = time.time() - pending.created_at
        if age > self._config.pending_ttl_sec:
            logger.info(
                "Dropped stale pending %s for %s (%.0fs old)",
                pending.intent.value, session_id, age,
            )
            return None
        return pending

    def clear_pending(self, session_id: str) -> None:
        session = self.get(session_id)
        if session.pending_intent is not None:
            session.pending_intent = None
            session.dialogue.transition(DialogueTrigger.PENDING_CLEARED)

    # ------------------------------------------------------------------ #
    # Outcomes and history
    # ------------------------------------------------------------------ #

    def record_outcome(self, session_id: str, success: bool) -> int:
        """Reset the failure counter on success, increment it on failure."""
        session = self.get(session_id)
        if success:
            session.failed_attempts = 0
        else:
            session.failed_attempts += 1
            logger.debug(
                "Session %s failed attempts: %d", session_id, session.failed_attempts,
            )
        return session.failed_attempts

    def mark_escalated(self, session_id: str, reason: str) -> None:
        """Hand the session to a human. Sticky for the rest of the session."""
        session = self.get(session_id)
        session.pending_intent = None
        if not session.dialogue.is_terminal():
            session.dialogue.transition(DialogueTrigger.ESCALATED)
        if not session.escalated:
            session.escalated = True
            session.escalation_reason = reason
            logger.info("Session %s escalated (reason: %s)", session_id, reason)

    def add_message(self, session_id: str, text: str, speaker: Speaker) -> None:
        self.get(session_id).messages.append(SessionMessage(text=text, speaker=speaker))
