"""FastAPI title service for Picklist.

Exposes the two operations the picking client needs:
- GET  /api/titles        (every title with its pick status)
- POST /api/updateStatus  (set status for one barcode)
"""

from __future__ import annotations

import asyncio
import logging
import os
import socket
from contextlib import asynccontextmanager
from typing import Literal, Optional

from fastapi import FastAPI, HTTPException, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from sqlalchemy.exc import SQLAlchemyError
from starlette.middleware.base import BaseHTTPMiddleware

from .logging_config import get_logger

logger = get_logger(__name__)

from .config import PicklistConfig
from .database import session_scope
from .repository import Repository, to_wire


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log the first client that connects, so operators can see the client reached us."""

    async def dispatch(self, request, call_next):
        if not getattr(request.app.state, "logged_first_request", False):
            request_logger = logging.getLogger("picklist.request")
            user_agent = request.headers.get("user-agent", "")
            client_name = user_agent.split("/")[0] if user_agent else "unknown"
            client_ip = request.client.host if request.client else "unknown"
            message = 'client_connected="%s" ip="%s" url="%s %s" ua="%s"' % (
                client_name,
                client_ip,
                request.method,
                str(request.url),
                user_agent,
            )
            request_logger.info(message)
            request.app.state.logged_first_request = True
        return await call_next(request)


def _get_lan_ip() -> Optional[str]:
    """Return this machine's LAN IP (for the client URL when binding to 0.0.0.0)."""
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as s:
            s.connect(("8.8.8.8", 80))
            return s.getsockname()[0]
    except OSError:
        return None


@asynccontextmanager
async def _lifespan(app: FastAPI):
    async def _print_startup_messages():
        await asyncio.sleep(0.1)
        logger.info("Started server process [" + str(os.getpid()) + "]")
        logger.info("Application startup complete. (Press CTRL+C to quit)")
        api_url = getattr(app.state, "api_url_public", None)
        if api_url:
            logger.info("Title service available at: " + api_url)

    asyncio.create_task(_print_startup_messages())
    yield


app = FastAPI(title="Picklist titles", lifespan=_lifespan)
app.add_middleware(RequestLoggingMiddleware)


@app.exception_handler(SQLAlchemyError)
async def _database_error(request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error(f"Database error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


@app.get("/favicon.ico", include_in_schema=False)
def favicon() -> Response:
    return Response(status_code=204)


class StatusUpdate(BaseModel):
    barcode: str = Field(min_length=1)
    status: Literal[0, 1]


@app.get("/api/titles")
def list_titles() -> list[dict]:
    """Every title as stored. Ordering is the client's concern."""
    with session_scope() as session:
        titles = Repository(session).get_all_titles()
        return [to_wire(t) for t in titles]


@app.post("/api/updateStatus")
def update_status(body: StatusUpdate) -> dict:
    """Set status for the title whose barcode matches."""
    with session_scope() as session:
        repo = Repository(session)
        if not repo.set_status(body.barcode, body.status):
            logger.warning(f"Status update for unknown barcode {body.barcode}")
            raise HTTPException(status_code=404, detail="Title not found")
        repo.commit()

    logger.debug(f"Status of {body.barcode} set to {body.status}")
    return {"message": "Status updated"}


class _AccessFilter(logging.Filter):
    """Filter out access log lines for successful requests to reduce console noise.
    Keep errors (4xx, 5xx) visible for debugging.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        msg = record.getMessage()
        return not any(
            pattern in msg
            for pattern in (' 200 OK', '" 200', ' 204 No Content', '" 204')
        )


class _UvicornStartupFilter(logging.Filter):
    """Suppress uvicorn startup messages; we print our own in lifespan."""

    _SUPPRESSED = (
        "Started server process",
        "Waiting for application startup",
        "Application startup complete",
        "running on",
    )

    def filter(self, record: logging.LogRecord) -> bool:
        msg = record.getMessage()
        raw = str(getattr(record, "msg", ""))
        return not any(s in msg or s in raw for s in self._SUPPRESSED)


def run_server(
    config: PicklistConfig,
    host: Optional[str],
    port: Optional[int],
) -> None:
    """Run the FastAPI app with Uvicorn."""
    import uvicorn

    effective_host = host or config.server_host
    effective_port = port or config.server_port

    # Show the network IP when binding to 0.0.0.0 so scanners know where to connect
    if effective_host == "0.0.0.0":
        lan_ip = _get_lan_ip()
        public_host = lan_ip if lan_ip else "0.0.0.0"
    else:
        public_host = effective_host
    app.state.api_url_public = f"http://{public_host}:{effective_port}"

    startup_filter = _UvicornStartupFilter()
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access", "uvicorn.lifespan"):
        logging.getLogger(name).addFilter(startup_filter)
    logging.getLogger("uvicorn.access").addFilter(_AccessFilter())

    uvicorn.run(
        app,
        host=effective_host,
        port=effective_port,
        log_level="info",
        log_config=None,
    )
