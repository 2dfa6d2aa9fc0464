import logging

from fastapi import APIRouter, WebSocket

from app.live_metrics import MetricsStream

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Live Metrics"])


@router.websocket("/")
@router.websocket("/ws")
async def metrics_socket(websocket: WebSocket):
    await websocket.accept()
    logger.info("Client connected")
    stream = MetricsStream(websocket.send_json)
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            text = message.get("text")
            if text is None:
                logger.warning("Ignoring binary metrics frame")
                continue
            stream.handle(text)
    finally:
        stream.stop()
    logger.info("Client disconnected")
