"""
Task Manager web backend.

Serves the browser client and keeps the UI state of every open tab behind a
WebSocket: the tab renders whatever view the server pushes and sends user
intent back.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from uuid import uuid4

from dotenv import load_dotenv
from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles

from taskmanager.core.log_sanitizer import sanitize_for_logging
from taskmanager.core.metrics_logger import log_metric
from taskmanager.core.otel_config import setup_opentelemetry
from taskmanager.core.security_headers_middleware import SecurityHeadersMiddleware
from taskmanager.domain.errors import ConfigurationError, DomainError, ValidationError
from taskmanager.infrastructure.app_factory import app_factory
from taskmanager.infrastructure.transport.websocket_connection_adapter import WebSocketConnectionAdapter
from taskmanager.routes.config_routes import router as config_router
from taskmanager.routes.health_routes import router as health_router
from taskmanager.version import VERSION

# Load environment variables from the project root
load_dotenv(dotenv_path=Path(__file__).resolve().parents[1] / ".env")

# Setup OpenTelemetry logging
otel_config = setup_opentelemetry("taskmanager", VERSION)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info("Starting Task Manager backend")

    config = app_factory.get_config_manager()
    status = config.validate_config()
    if not status.get("backend"):
        logger.warning("No task backend is configured; tabs will receive a configuration error")
    elif config.app_settings.use_mock_backend:
        logger.warning("USE_MOCK_BACKEND is enabled; tasks are kept in memory only")

    otel_config.instrument_httpx()

    yield

    logger.info("Shutting down Task Manager backend")


app = FastAPI(
    title="Task Manager",
    description="Authenticated task list backed by Supabase",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(SecurityHeadersMiddleware)
otel_config.instrument_fastapi(app)

app.include_router(config_router)
app.include_router(health_router)

# Serve the browser client
static_dir = Path(__file__).resolve().parent / "static"
if static_dir.exists():
    @app.get("/")
    async def read_root():
        return FileResponse(str(static_dir / "index.html"))

    app.mount("/static", StaticFiles(directory=static_dir), name="static")


async def _send_error(connection: WebSocketConnectionAdapter, message: str, error_type: str) -> None:
    await connection.send_json({
        "type": "error",
        "message": message,
        "error_type": error_type,
    })


# WebSocket endpoint for the task UI
@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """
    UI channel for one browser tab.

    Server -> client messages:
    - {"type": "view", "view": "sign_in" | "tasks", ...state}
    - {"type": "toast", "level", "message", "position", "duration_ms"}
    - {"type": "error", "message", "error_type"}

    Client -> server messages:
    - sign_in / sign_up {email, password}, sign_out
    - add_task {title}, toggle_task {id}, delete_task {id}, refresh

    Authentication happens inside the channel (sign_in); the connection itself
    is anonymous until then, and every backend call carries the tab's own
    access token.
    """
    await websocket.accept()
    tab_id = uuid4()
    connection_adapter = WebSocketConnectionAdapter(websocket)

    try:
        shell = app_factory.create_shell(connection_adapter)
    except ConfigurationError as e:
        logger.error(f"Cannot serve tab {tab_id}: {e.message}")
        await _send_error(connection_adapter, e.message, "configuration")
        await connection_adapter.close()
        return

    logger.info(f"WebSocket connection established for tab {tab_id}")
    pending = set()

    async def handle_message(data: dict) -> None:
        message_type = data.get("type")
        try:
            await shell.handle_message(data)
        except ValidationError as e:
            logger.warning(f"Validation error in message handler: {e}")
            await _send_error(connection_adapter, e.message, "validation")
        except DomainError as e:
            logger.error(f"Domain error handling {sanitize_for_logging(message_type)}: {e}", exc_info=True)
            log_metric("error", shell.session.user_email if shell.session else None, error_type="domain")
            await _send_error(connection_adapter, e.message, "domain")
        except Exception as e:
            logger.error(f"Unexpected error handling {sanitize_for_logging(message_type)}: {e}", exc_info=True)
            log_metric("error", shell.session.user_email if shell.session else None, error_type="unexpected")
            await _send_error(
                connection_adapter,
                "An unexpected error occurred. Please try again.",
                "unexpected",
            )

    try:
        await shell.attach()
        while True:
            try:
                data = await websocket.receive_json()
            except (ValueError, KeyError):
                # Binary frames carry no text payload
                await _send_error(connection_adapter, "Messages must be JSON objects", "validation")
                continue
            if not isinstance(data, dict):
                await _send_error(connection_adapter, "Messages must be JSON objects", "validation")
                continue

            logger.debug("WS RECEIVED message_type=[%s]", sanitize_for_logging(data.get("type")))

            # Several operations may be in flight at once
            task = asyncio.create_task(handle_message(data))
            pending.add(task)
            task.add_done_callback(pending.discard)

    except WebSocketDisconnect:
        logger.info(f"WebSocket connection closed for tab {tab_id}")
    finally:
        connection_adapter.mark_closed()
        shell.detach()


if __name__ == "__main__":
    import os

    import uvicorn

    # Use environment variable for host binding, default to localhost for security
    host = os.getenv("TASKMANAGER_HOST", "127.0.0.1")
    port = int(os.getenv("PORT", 8000))

    uvicorn.run(app, host=host, port=port)
