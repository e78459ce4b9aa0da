"""
Core server implementation providing asynchronous connection handling.

This module implements the connection dispatcher with features including:
- Asynchronous I/O using asyncio (uvloop when available)
- A bounded number of concurrent connections with 503 backpressure
- One request per connection, then close
- Per-connection fault isolation
- Graceful shutdown handling
"""

import asyncio
import logging
import signal
import sys
from pathlib import Path
from typing import Optional, Set, Union

from .http_parser import BUFFER_SIZE, MAX_BODY_SIZE, MAX_HEADER_SIZE, READ_TIMEOUT
from .request_handler import REQUEST_TIMEOUT, WRITE_TIMEOUT, RequestHandler
from .response import empty_response
from .server_utils import (
    configure_client_socket,
    default_logger,
    get_server_kwargs,
    handle_client_error,
)
from .storage import FileStore
from ..features import metrics

logger = logging.getLogger("minihttpd.server")


class HTTPServer:
    """Asynchronous single-request-per-connection HTTP/1.1 server.

    Attributes:
        host: Host address to bind to
        port: Port number to listen on; the bound port after ``start()``
        max_connections: Maximum number of connections handled at once
        admission_timeout: Seconds a connection may wait for a free slot
            before it is answered with 503
    """

    def __init__(
        self,
        directory: Optional[Union[str, Path]] = None,
        host: str = "127.0.0.1",
        port: int = 4221,
        max_connections: int = 256,
        *,
        admission_timeout: float = 5.0,
        read_timeout: float = READ_TIMEOUT,
        request_timeout: float = REQUEST_TIMEOUT,
        write_timeout: float = WRITE_TIMEOUT,
        chunk_size: int = BUFFER_SIZE,
        header_limit: int = MAX_HEADER_SIZE,
        body_limit: int = MAX_BODY_SIZE,
        backlog: int = 2048,
    ):
        """Initialize the server.

        Args:
            directory: Storage root for /files/; file routes answer 404 if None
            host: Host address to bind to
            port: Port number to listen on, 0 for an ephemeral port
            max_connections: Maximum number of simultaneous connections
            admission_timeout: Seconds to wait for a slot before answering 503
            read_timeout: Seconds to wait for each read from a client
            request_timeout: Seconds allowed to receive a whole request
            write_timeout: Seconds to wait for a response to drain
            chunk_size: Bytes requested per read call
            header_limit: Maximum header block size in bytes
            body_limit: Maximum request body size in bytes
            backlog: Listen backlog
        """
        if max_connections < 1:
            raise ValueError("max_connections must be at least 1")
        if port < 0 or port > 65535:
            raise ValueError("Port number must be between 0 and 65535")

        self.host = host
        self.port = port
        self.max_connections = max_connections
        self.admission_timeout = admission_timeout
        self.write_timeout = write_timeout
        self.backlog = backlog
        self.store = FileStore(directory)
        self.handler = RequestHandler(
            self.store,
            read_timeout=read_timeout,
            request_timeout=request_timeout,
            write_timeout=write_timeout,
            chunk_size=chunk_size,
            header_limit=header_limit,
            body_limit=body_limit,
        )

        self._server: Optional[asyncio.AbstractServer] = None
        self._shutdown_event: Optional[asyncio.Event] = None
        self._active_connections: Set[asyncio.Task] = set()
        self._request_semaphore: Optional[asyncio.Semaphore] = None

    async def start(self) -> None:
        """Bind the listening socket and begin accepting connections.

        Raises:
            OSError: If server fails to bind to specified host/port
        """
        self._shutdown_event = asyncio.Event()
        self._request_semaphore = asyncio.Semaphore(self.max_connections)
        self._server = await asyncio.start_server(
            self.handle_client,
            self.host,
            self.port,
            **get_server_kwargs(self.backlog),
        )
        if self._server.sockets:
            self.port = self._server.sockets[0].getsockname()[1]
        logger.info(
            "Server started on http://%s:%s (storage root: %s)",
            self.host,
            self.port,
            self.store.root,
        )

    async def serve_forever(self) -> None:
        """Start if needed and run until ``shutdown()`` is called."""
        if self._server is None:
            await self.start()
        self._install_signal_handlers()
        await self._shutdown_event.wait()

    def _install_signal_handlers(self) -> None:
        if sys.platform == "win32":
            return
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            try:
                loop.add_signal_handler(sig, lambda: asyncio.ensure_future(self.shutdown()))
            except (NotImplementedError, RuntimeError):
                # not on the main thread
                pass

    async def shutdown(self, timeout: float = 30.0) -> None:
        """Initiate graceful server shutdown.

        Stops accepting new connections and waits for existing connections
        to complete before shutting down the server.

        Args:
            timeout: Maximum time in seconds to wait for connections to close
        """
        default_logger.info("Initiating graceful shutdown...")

        if self._server is not None:
            self._server.close()
            await self._server.wait_closed()

        if self._active_connections:
            logger.info("Waiting for %d active connections to complete...", len(self._active_connections))
            done, pending = await asyncio.wait(
                list(self._active_connections),
                timeout=timeout,
                return_when=asyncio.ALL_COMPLETED,
            )
            if pending:
                logger.warning("Force closing %d connections that didn't complete in time", len(pending))
                for task in pending:
                    task.cancel()
                await asyncio.wait(pending, timeout=5.0)

        if self._shutdown_event is not None:
            self._shutdown_event.set()
        default_logger.info("Server shutdown complete")

    async def handle_client(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
    ) -> None:
        """Handle one accepted connection from Accepted to Closed.

        Args:
            reader: StreamReader for receiving client data
            writer: StreamWriter for sending responses

        Every failure is confined to this connection: protocol and storage
        errors were already answered by the handler, anything else gets a
        bare 500, and a vanished client just has its socket closed.
        """
        task = asyncio.current_task()
        if task is not None:
            self._active_connections.add(task)

        try:
            if self._shutdown_event is not None and self._shutdown_event.is_set():
                return

            configure_client_socket(writer.get_extra_info("socket"))

            if not await self._acquire_slot():
                metrics.CONN_REJECTED.inc()
                logger.warning("All %d worker slots busy, rejecting connection", self.max_connections)
                await self._reject(writer)
                return

            try:
                await self.handler.handle_request(reader, writer)
            except (ConnectionError, asyncio.TimeoutError) as e:
                logger.info("Client went away: %s", e)
            except Exception as e:
                metrics.record_error("internal")
                await handle_client_error(writer, e, logger)
            finally:
                self._request_semaphore.release()
        finally:
            if task is not None:
                self._active_connections.discard(task)
            await self._close(writer)

    async def _acquire_slot(self) -> bool:
        try:
            await asyncio.wait_for(self._request_semaphore.acquire(), timeout=self.admission_timeout)
        except asyncio.TimeoutError:
            return False
        return True

    async def _reject(self, writer: asyncio.StreamWriter) -> None:
        try:
            writer.write(empty_response(503).to_bytes())
            await asyncio.wait_for(writer.drain(), timeout=self.write_timeout)
        except (ConnectionError, asyncio.TimeoutError) as e:
            logger.debug("Could not send 503: %s", e)

    async def _close(self, writer: asyncio.StreamWriter) -> None:
        try:
            writer.close()
            await writer.wait_closed()
        except (ConnectionError, OSError) as e:
            logger.debug("Error closing connection: %s", e)
