"""
Live metrics channel.

Each websocket connection owns one MetricsStream. A "start" message begins
pushing a random chart frame every interval, "stop" or a disconnect ends it.
The data is placeholder chart data and is not read from the election store.
"""
import asyncio
import json
import logging
import random
from typing import Optional

from app.config import (
    METRICS_DATASET_LABEL,
    METRICS_INTERVAL_SECONDS,
    METRICS_LABELS,
    METRICS_MAX_VALUE,
    METRICS_MIN_VALUE,
)

logger = logging.getLogger(__name__)


def build_frame(rng: random.Random = random) -> dict:
    return {
        "type": "data",
        "payload": {
            "labels": list(METRICS_LABELS),
            "datasets": [{
                "label": METRICS_DATASET_LABEL,
                "data": [rng.randint(METRICS_MIN_VALUE, METRICS_MAX_VALUE) for _ in METRICS_LABELS],
            }],
        },
    }


class MetricsStream:
    """Idle/Streaming state machine for a single connection."""

    def __init__(self, send, interval: Optional[float] = None, rng: Optional[random.Random] = None):
        self._send = send
        self.interval = METRICS_INTERVAL_SECONDS if interval is None else interval
        self.rng = rng or random.Random()
        self._task = None

    @property
    def streaming(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self):
        # Restart rather than stack a second timer
        self.stop()
        self._task = asyncio.create_task(self._run())

    def stop(self):
        if self._task is not None:
            self._task.cancel()
            self._task = None

    async def _run(self):
        while True:
            await asyncio.sleep(self.interval)
            try:
                await self._send(build_frame(self.rng))
            except Exception as e:
                logger.info("Stopping metrics stream, send failed: %s", e)
                return

    def handle(self, message: str):
        """Apply one client message ({"type": "start"} or {"type": "stop"})."""
        try:
            parsed = json.loads(message)
        except (TypeError, ValueError):
            logger.warning("Ignoring malformed metrics message: %r", message)
            return
        kind = parsed.get("type") if isinstance(parsed, dict) else None
        if kind == "start":
            logger.info("Metrics stream started")
            self.start()
        elif kind == "stop":
            logger.info("Metrics stream stopped")
            self.stop()
        else:
            logger.warning("Ignoring unknown metrics message type: %r", kind)
