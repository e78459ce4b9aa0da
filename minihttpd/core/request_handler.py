"""
Request handler implementation for processing HTTP requests.

This module provides the per-connection request pipeline including:
- Reading and parsing exactly one request
- Routing to the root, user-agent, echo and file behaviours
- Mapping typed errors to bare status-line responses
- Access logging and request metrics
"""

import asyncio
import logging
import uuid
from typing import Awaitable, Callable, Dict, Optional

from .http_parser import (
    BUFFER_SIZE,
    MAX_BODY_SIZE,
    MAX_HEADER_SIZE,
    READ_TIMEOUT,
    HTTPParserError,
    MalformedRequestError,
    RequestTimeoutError,
    Request,
    read_request,
)
from .response import Response, accepts_gzip, empty_response, file_response, text_response
from .router import MalformedPathError, Route, RouteMatch, match_route
from .storage import FileStore, PathOutsideRootError, StorageError
from ..features import metrics
from ..features.security import validate_request

logger = logging.getLogger("minihttpd.handler")
access_logger = logging.getLogger("minihttpd.access")

WRITE_TIMEOUT = 10.0
REQUEST_TIMEOUT = 30.0  # seconds to receive the whole request

# Errors that are answered with their own status code
HANDLED_ERRORS = (HTTPParserError, MalformedPathError, StorageError, PathOutsideRootError)

Behaviour = Callable[[Request, RouteMatch], Awaitable[Response]]


class RequestHandler:
    """Handles the single request carried by a connection.

    Attributes:
        store: File store backing the /files/ routes
        read_timeout: Seconds to wait for each read
        request_timeout: Seconds allowed to receive the whole request
        write_timeout: Seconds to wait for the response to drain
    """

    def __init__(
        self,
        store: FileStore,
        *,
        read_timeout: float = READ_TIMEOUT,
        request_timeout: float = REQUEST_TIMEOUT,
        write_timeout: float = WRITE_TIMEOUT,
        chunk_size: int = BUFFER_SIZE,
        header_limit: int = MAX_HEADER_SIZE,
        body_limit: int = MAX_BODY_SIZE,
    ):
        self.store = store
        self.read_timeout = read_timeout
        self.request_timeout = request_timeout
        self.write_timeout = write_timeout
        self.chunk_size = chunk_size
        self.header_limit = header_limit
        self.body_limit = body_limit
        self._behaviours: Dict[Route, Behaviour] = {
            Route.ROOT: self._handle_root,
            Route.USER_AGENT: self._handle_user_agent,
            Route.ECHO: self._handle_echo,
            Route.FILES: self._handle_files,
            Route.NOT_FOUND: self._handle_not_found,
        }

    async def handle_request(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
    ) -> Optional[Response]:
        """Read, route and answer one request.

        Returns:
            The response written, or None if the client sent nothing

        Raises:
            ConnectionError: If the client went away while we were writing
            asyncio.TimeoutError: If the response did not drain in time
        """
        loop = asyncio.get_running_loop()
        start_time = loop.time()
        request_id = str(uuid.uuid4())
        request: Optional[Request] = None
        route_label = "unrouted"

        metrics.REQ_IN_FLIGHT.inc()
        try:
            try:
                request = await self._receive(reader)
                if request is None:
                    return None

                match = match_route(request.path)
                route_label = match.route.value
                error = validate_request(request, match)
                if error:
                    raise MalformedRequestError(error)

                response = await self.dispatch(request, match)
            except HANDLED_ERRORS as e:
                response = self._error_response(e, request_id)

            await self._send(writer, response)
        finally:
            metrics.REQ_IN_FLIGHT.dec()

        duration = loop.time() - start_time
        metrics.record_request(route_label, response.status_code, duration)
        self._log_access(writer, request, response, duration, request_id)
        return response

    async def _receive(self, reader: asyncio.StreamReader) -> Optional[Request]:
        """Read the request under both the per-read and the overall deadline."""
        try:
            return await asyncio.wait_for(
                read_request(
                    reader,
                    read_timeout=self.read_timeout,
                    chunk_size=self.chunk_size,
                    header_limit=self.header_limit,
                    body_limit=self.body_limit,
                ),
                timeout=self.request_timeout,
            )
        except asyncio.TimeoutError:
            raise RequestTimeoutError(f"Request not received within {self.request_timeout}s")

    async def dispatch(self, request: Request, match: RouteMatch) -> Response:
        """Run the behaviour for a matched route."""
        return await self._behaviours[match.route](request, match)

    async def _handle_root(self, request: Request, match: RouteMatch) -> Response:
        return empty_response(200)

    async def _handle_user_agent(self, request: Request, match: RouteMatch) -> Response:
        return text_response(
            request.header("User-Agent", ""),
            accepts_gzip(request.header("Accept-Encoding")),
        )

    async def _handle_echo(self, request: Request, match: RouteMatch) -> Response:
        return text_response(match.remainder, accepts_gzip(request.header("Accept-Encoding")))

    async def _handle_files(self, request: Request, match: RouteMatch) -> Response:
        if request.method == "GET":
            data = await self.store.read_async(match.remainder)
            return file_response(data)
        if request.method == "POST":
            await self.store.write_async(match.remainder, request.body)
            return empty_response(201)
        return empty_response(404)

    async def _handle_not_found(self, request: Request, match: RouteMatch) -> Response:
        return empty_response(404)

    def _error_response(self, error: Exception, request_id: str) -> Response:
        """Map a handled error to its status; no diagnostic body is sent."""
        status = getattr(error, "status_code", 500)
        metrics.record_error(type(error).__name__)
        if status >= 500:
            logger.error(
                "Request %s failed: %s", request_id, error, exc_info=error.__cause__ or error
            )
        else:
            logger.warning("Request %s rejected with %d: %s", request_id, status, error)
        return empty_response(status)

    async def _send(self, writer: asyncio.StreamWriter, response: Response) -> None:
        writer.write(response.to_bytes())
        await asyncio.wait_for(writer.drain(), timeout=self.write_timeout)

    def _log_access(
        self,
        writer: asyncio.StreamWriter,
        request: Optional[Request],
        response: Response,
        duration: float,
        request_id: str,
    ) -> None:
        peer = writer.get_extra_info("peername")
        payload = {
            "method": request.method if request else "-",
            "path": request.path if request else "-",
            "status": response.status_code,
            "length": len(response.body),
            "duration_s": round(duration, 6),
            "client": f"{peer[0]}:{peer[1]}" if peer else "unknown",
            "request_id": request_id,
        }
        access_logger.info("request", extra=payload)
