"""
Logging setup and HTTP access logging.

Console output always; with a log directory configured, every record also
goes to ``combined.log`` and ERROR records to ``error.log``, one JSON object
per line.
"""

from __future__ import annotations

import json
import logging
import time
from datetime import datetime, timezone
from pathlib import Path

from fastapi import Request

access_logger = logging.getLogger("app.http")

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
SERVICE_NAME = "tricycle-api"


class JsonFormatter(logging.Formatter):
    """``{"timestamp", "level", "logger", "message", "service"[, "stack"]}``"""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
            "service": SERVICE_NAME,
        }
        if record.exc_info:
            entry["stack"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def file_handlers(log_dir: str | Path) -> list[logging.Handler]:
    """``error.log`` (ERROR and above) and ``combined.log`` under *log_dir*."""
    path = Path(log_dir)
    path.mkdir(parents=True, exist_ok=True)

    error_handler = logging.FileHandler(path / "error.log", encoding="utf-8")
    error_handler.setLevel(logging.ERROR)
    combined_handler = logging.FileHandler(path / "combined.log", encoding="utf-8")

    for handler in (error_handler, combined_handler):
        handler.setFormatter(JsonFormatter())
    return [error_handler, combined_handler]


def configure_logging(level: str = "INFO", log_dir: str | Path | None = None) -> None:
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_dir:
        handlers.extend(file_handlers(log_dir))
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=handlers,
    )


def client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def request_context(request: Request) -> str:
    """``METHOD path | User: <id> | IP: <ip>`` suffix for handler log lines."""
    user = getattr(request.state, "user", None)
    user_id = user.id if user is not None else "Anonymous"
    return f"{request.method} {request.url.path} | User: {user_id} | IP: {client_ip(request)}"


async def log_requests(request: Request, call_next):
    """HTTP middleware — one access line per response, ERROR for 4xx/5xx."""
    start = time.perf_counter()
    response = await call_next(request)
    duration_ms = (time.perf_counter() - start) * 1000
    level = logging.ERROR if response.status_code >= 400 else logging.INFO
    access_logger.log(
        level,
        "%s %s - %d - %.0fms | IP: %s | User-Agent: %s",
        request.method,
        request.url.path,
        response.status_code,
        duration_ms,
        client_ip(request),
        request.headers.get("user-agent", "-"),
    )
    return response
