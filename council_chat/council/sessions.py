"""In-flight deliberation tracking: one run per conversation at a time."""

import asyncio
import logging
from collections import OrderedDict
from typing import Any, Dict, Optional

from ..errors import DeliberationInProgressError
from .state import initial_state, reduce_event

logger = logging.getLogger(__name__)

MAX_RETAINED_STATES = 256


class DeliberationSession:
    """Owns one conversation's state for the duration of a run."""

    def __init__(self, conversation_id: str, question: str = "", attachments: Optional[list] = None):
        self.conversation_id = conversation_id
        self.task: Optional[asyncio.Task] = None
        self._state = {**initial_state(question, attachments), "is_processing": True}

    def apply(self, event: str, data: Dict[str, Any]):
        self._state = reduce_event(self._state, event, data)

    def snapshot(self) -> Dict[str, Any]:
        return self._state


class SessionRegistry:
    """Active runs plus the final state of the most recently finished ones."""

    def __init__(self, max_retained: int = MAX_RETAINED_STATES):
        self._active: Dict[str, DeliberationSession] = {}
        self._last_state: "OrderedDict[str, Dict[str, Any]]" = OrderedDict()
        self.max_retained = max_retained

    def is_active(self, conversation_id: str) -> bool:
        return conversation_id in self._active

    def begin(self, conversation_id: str, question: str = "", attachments: Optional[list] = None) -> DeliberationSession:
        """Register a new run, or raise if one is already running for the conversation."""
        if conversation_id in self._active:
            raise DeliberationInProgressError(conversation_id)
        session = DeliberationSession(conversation_id, question, attachments)
        self._active[conversation_id] = session
        logger.info("Deliberation started for conversation %s", conversation_id)
        return session

    def finish(self, session: DeliberationSession):
        """Retire a run and keep its final state. Repeated calls are no-ops."""
        if self._active.get(session.conversation_id) is not session:
            return
        del self._active[session.conversation_id]
        self._last_state[session.conversation_id] = session.snapshot()
        self._last_state.move_to_end(session.conversation_id)
        while len(self._last_state) > self.max_retained:
            self._last_state.popitem(last=False)

    def cancel(self, conversation_id: str) -> bool:
        """Cancel the in-flight run for a conversation. False if none is running."""
        session = self._active.get(conversation_id)
        if session is None or session.task is None or session.task.done():
            return False
        session.apply("cancelled", {})
        session.task.cancel()
        logger.info("Deliberation cancelled for conversation %s", conversation_id)
        return True

    def snapshot(self, conversation_id: str) -> Optional[Dict[str, Any]]:
        session = self._active.get(conversation_id)
        if session is not None:
            return session.snapshot()
        return self._last_state.get(conversation_id)

    def forget(self, conversation_id: str):
        self._last_state.pop(conversation_id, None)
