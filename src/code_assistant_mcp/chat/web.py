import os
from logging import Logger
from pathlib import Path

import uvicorn
from fastapi import APIRouter, FastAPI, WebSocket, WebSocketDisconnect
from fastapi.staticfiles import StaticFiles
from fastmcp.utilities.logging import get_logger

from code_assistant_mcp.chat.dispatcher import ToolDispatcher
from code_assistant_mcp.chat.envelopes import ServerEnvelope
from code_assistant_mcp.chat.intent import IntentResolver
from code_assistant_mcp.chat.session import ChatSession

DEFAULT_PORT = 3001
DEFAULT_HOST = "127.0.0.1"

HEALTH_MESSAGE = "Code Assistant backend is running"

logger: Logger = get_logger(name=__name__)


def get_port() -> int:
    """The web chat port from PORT or WEB_PORT."""

    for env_var in ("PORT", "WEB_PORT"):
        if value := os.getenv(env_var):
            return int(value)

    return DEFAULT_PORT


def create_router(resolver: IntentResolver, dispatcher: ToolDispatcher) -> APIRouter:
    router = APIRouter()

    @router.get("/api/health")
    async def health() -> dict[str, str]:
        return {"status": "ok", "message": HEALTH_MESSAGE}

    async def chat(websocket: WebSocket) -> None:
        await websocket.accept()

        async def send(envelope: ServerEnvelope) -> None:
            await websocket.send_json(envelope.to_wire())

        session = ChatSession(resolver=resolver, dispatcher=dispatcher, send=send, logger=logger)

        logger.info("Client connected")

        try:
            await session.start()

            while True:
                message = await websocket.receive()

                if message["type"] == "websocket.disconnect":
                    break

                text: str | None = message.get("text")
                await session.handle_raw(text if text is not None else message.get("bytes") or b"")
        except WebSocketDisconnect as e:
            logger.info(f"Client disconnected with code {e.code}")
            return

        logger.info("Client disconnected")

    router.add_api_websocket_route("/ws", chat)
    router.add_api_websocket_route("/", chat)

    return router


def create_app(resolver: IntentResolver, dispatcher: ToolDispatcher, static_dir: Path | None = None) -> FastAPI:
    app = FastAPI(title="Code Assistant", version="0.1.0")

    app.include_router(create_router(resolver=resolver, dispatcher=dispatcher))

    # Mounted last so the API and websocket routes take precedence.
    if static_dir is not None:
        app.mount("/", StaticFiles(directory=static_dir, html=True), name="static")

    return app


def run_web(app: FastAPI, host: str = DEFAULT_HOST, port: int | None = None) -> None:
    port = port or get_port()

    logger.info(f"Web chat listening on http://{host}:{port} (websocket: ws://{host}:{port}/ws)")

    uvicorn.run(app, host=host, port=port)
