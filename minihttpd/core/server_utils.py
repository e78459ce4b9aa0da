"""
Utility functions for server configuration and operation.

This module provides core functionality for:
- Logging setup with structured JSON output
- Event loop selection with uvloop
- Server kwargs generation for different platforms
- Last-resort error handling for client connections

The utilities in this module focus on keeping one connection's failure
from reaching the accept loop or any other connection.
"""

import sys
import socket
import asyncio
import logging
from typing import Any, Awaitable, Dict, Optional

from pythonjsonlogger.json import JsonFormatter

PLAIN_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"
JSON_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

default_logger = logging.getLogger("minihttpd")


class ServerConfigError(Exception):
    """Custom exception for server configuration errors"""

    pass


def configure_logging(level=logging.INFO, log_file=None, json_logs=True):
    """Configure logging for the server.

    Handlers are attached once; calling this again only updates the level.

    Args:
        level: Logging level (default: INFO)
        log_file: Optional path to log file
        json_logs: Emit one JSON object per record instead of plain text

    Returns:
        Configured logger instance
    """
    logger = default_logger
    logger.setLevel(level)
    if logger.handlers:
        return logger

    if json_logs:
        formatter = JsonFormatter(JSON_FORMAT)
    else:
        formatter = logging.Formatter(PLAIN_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def uvloop_supported() -> bool:
    return sys.platform != "win32"


def run_event_loop(main: Awaitable[Any], use_uvloop: bool = True) -> Any:
    """Run ``main`` to completion, on uvloop where the platform allows it.

    Raises:
        ServerConfigError: If uvloop was requested but fails to start
    """
    if use_uvloop and uvloop_supported():
        import uvloop

        default_logger.info("Using uvloop event loop")
        try:
            return uvloop.run(main)
        except RuntimeError as e:
            default_logger.error(f"Failed to setup uvloop: {e}")
            raise ServerConfigError("Failed to initialize event loop") from e

    return asyncio.run(main)


def get_server_kwargs(backlog: int = 2048) -> Dict[str, Any]:
    """Get platform-specific asyncio.start_server keyword arguments.

    Returns:
        Dict with address reuse and backlog settings. SO_REUSEPORT is left
        off so that a second server cannot silently share the port.
    """
    kwargs: Dict[str, Any] = {
        "reuse_address": sys.platform != "win32",
        "backlog": backlog,
        "start_serving": True,
    }
    return kwargs


def configure_client_socket(sock: Optional[socket.socket]) -> None:
    """Disable Nagle on an accepted connection; failures are not fatal."""
    if sock is None:
        return
    try:
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
    except OSError as e:
        default_logger.debug(f"Failed to set TCP_NODELAY: {e}")


async def handle_client_error(
    writer: asyncio.StreamWriter,
    error: Exception,
    logger: Optional[logging.Logger] = None,
) -> None:
    """Handle unexpected client connection errors gracefully.

    Args:
        writer: StreamWriter for the client connection
        error: Exception that occurred
        logger: Optional logger instance, uses the default logger if None

    The error is logged with its traceback and the client gets a bare 500
    status line if the socket is still writable. If closing fails the
    transport is aborted.
    """
    if logger is None:
        logger = default_logger

    logger.error(f"Error handling client request: {error}", exc_info=error)

    try:
        if not writer.is_closing():
            writer.write(b"HTTP/1.1 500 Internal Server Error\r\n\r\n")
            await writer.drain()
            writer.close()
        await writer.wait_closed()
    except (ConnectionError, OSError) as e:
        logger.debug(f"Error while closing connection: {e}")
        transport = getattr(writer, "transport", None)
        if transport is not None:
            transport.abort()
