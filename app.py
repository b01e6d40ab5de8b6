from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from routers.health import health_router
from routers.rooms import rooms_router
from backend import memory_backend
from connections import connection_hub
from dispatcher import EventDispatcher
from constants import CORS_ORIGINS, ENVIRONMENT, LOG_LEVEL, LOG_FILE
import uuid
from logging_config import get_logger, setup_logging

# Setup logging
setup_logging(log_level=LOG_LEVEL, log_file=LOG_FILE)
logger = get_logger(__name__)

app = FastAPI(title="EphemeralMeet signaling server")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

app.include_router(health_router)
app.include_router(rooms_router)

# All room and participant state lives in memory_backend and is only touched
# through the dispatcher's protocols, one event at a time on this event loop.
dispatcher = EventDispatcher(memory_backend, connection_hub)

logger.info(f"FastAPI application initialized (environment: {ENVIRONMENT}, CORS origins: {CORS_ORIGINS})")


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """Signaling socket.

    Each frame is a JSON object ``{"type": <event>, "data": {...}}``. A client
    joins a room with ``join-room``; closing the socket is the same as
    ``leave-room``.
    """
    await websocket.accept()
    connection_id = str(uuid.uuid4())
    connection_hub.register(connection_id, websocket)
    logger.info(f"Connection {connection_id} opened")

    message_count = 0
    try:
        while True:
            data = await websocket.receive_text()
            message_count += 1
            logger.debug(f"Received message #{message_count} from connection {connection_id}")
            dispatcher.dispatch_raw(connection_id, data)
    except WebSocketDisconnect:
        logger.info(f"WebSocket disconnected normally for connection {connection_id}")
    except Exception as e:
        logger.error(f"Error receiving message from connection {connection_id}: {e}", exc_info=True)
    finally:
        dispatcher.disconnect(connection_id)
        await connection_hub.unregister(connection_id)
        logger.info(f"Connection {connection_id} closed after {message_count} messages")
