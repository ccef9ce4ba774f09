"""Server-sent events transport for deliberation progress."""

import asyncio
import json
import logging
from typing import Any, AsyncGenerator, Optional

logger = logging.getLogger(__name__)

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def format_sse(event: str, data: Any) -> str:
    """Frame one named event: `event: <name>\\ndata: <json>\\n\\n`."""
    return f"event: {event}\ndata: {json.dumps(data)}\n\n"


class EventTransport:
    """Ordered push channel between one deliberation run and one HTTP response.

    `send` never raises: writes after the transport is closed, or after the
    client went away, are dropped.
    """

    def __init__(self):
        self._queue: "asyncio.Queue[Optional[str]]" = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def send(self, event: str, data: Any) -> bool:
        if self._closed:
            logger.debug("Transport closed, dropping %s event", event)
            return False
        try:
            frame = format_sse(event, data)
        except (TypeError, ValueError) as e:
            logger.warning("Could not encode %s event: %s", event, e)
            return False
        self._queue.put_nowait(frame)
        return True

    def close(self):
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(None)

    async def stream(self) -> AsyncGenerator[str, None]:
        """Yield frames in emission order until the transport is closed."""
        try:
            while True:
                frame = await self._queue.get()
                if frame is None:
                    break
                yield frame
        finally:
            # Consumer is gone (finished or disconnected); drop later writes.
            self._closed = True
