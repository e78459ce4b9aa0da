"""
Server configuration.

Settings come from command line flags, falling back to ``MINIHTTPD_*``
environment variables and then to the defaults below.
"""

import argparse
import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence

from .core.server_utils import ServerConfigError

ENV_PREFIX = "MINIHTTPD_"


@dataclass(frozen=True)
class ServerConfig:
    """Process-wide settings, fixed at startup."""

    directory: Optional[str] = None
    host: str = "127.0.0.1"
    port: int = 4221
    max_connections: int = 256
    admission_timeout: float = 5.0
    read_timeout: float = 10.0
    request_timeout: float = 30.0
    write_timeout: float = 10.0
    body_limit: int = 10 * 1024 * 1024
    metrics_port: Optional[int] = None
    log_level: str = "INFO"
    log_file: Optional[str] = None
    json_logs: bool = True
    use_uvloop: bool = True

    def __post_init__(self):
        if not 0 <= self.port <= 65535:
            raise ServerConfigError(f"Port number must be between 0 and 65535, got {self.port}")
        if self.metrics_port is not None and not 0 < self.metrics_port <= 65535:
            raise ServerConfigError(f"Invalid metrics port {self.metrics_port}")
        if self.max_connections < 1:
            raise ServerConfigError("max_connections must be at least 1")
        for name in ("admission_timeout", "read_timeout", "request_timeout", "write_timeout"):
            if getattr(self, name) <= 0:
                raise ServerConfigError(f"{name} must be positive")
        if self.body_limit < 0:
            raise ServerConfigError("body_limit cannot be negative")
        if self.directory is not None and not os.path.isdir(self.directory):
            raise ServerConfigError(f"Storage directory does not exist: {self.directory}")
        if not isinstance(logging.getLevelName(self.log_level.upper()), int):
            raise ServerConfigError(f"Unknown log level {self.log_level!r}")


def _env(environ: Mapping[str, str], name: str, default=None):
    return environ.get(ENV_PREFIX + name, default)


def _env_flag(environ: Mapping[str, str], name: str, default: bool) -> bool:
    value = _env(environ, name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def build_arg_parser(environ: Optional[Mapping[str, str]] = None) -> argparse.ArgumentParser:
    """Build the command line parser; defaults are read from ``environ``."""
    if environ is None:
        environ = os.environ
    defaults = ServerConfig()

    parser = argparse.ArgumentParser(
        prog="minihttpd",
        description="Minimal HTTP/1.1 server with echo, user-agent and file routes",
    )
    parser.add_argument(
        "--directory",
        default=_env(environ, "DIRECTORY"),
        help="Storage root for /files/ requests",
    )
    parser.add_argument("--host", default=_env(environ, "HOST", defaults.host), help="Address to bind")
    parser.add_argument(
        "--port", type=int, default=_env(environ, "PORT", defaults.port), help="Port to listen on"
    )
    parser.add_argument(
        "--max-connections",
        type=int,
        default=_env(environ, "MAX_CONNECTIONS", defaults.max_connections),
        help="Connections handled at once before new ones wait",
    )
    parser.add_argument(
        "--admission-timeout",
        type=float,
        default=_env(environ, "ADMISSION_TIMEOUT", defaults.admission_timeout),
        help="Seconds a waiting connection is held before it gets 503",
    )
    parser.add_argument(
        "--read-timeout",
        type=float,
        default=_env(environ, "READ_TIMEOUT", defaults.read_timeout),
        help="Seconds to wait for each read from a client",
    )
    parser.add_argument(
        "--request-timeout",
        type=float,
        default=_env(environ, "REQUEST_TIMEOUT", defaults.request_timeout),
        help="Seconds allowed to receive a whole request",
    )
    parser.add_argument(
        "--write-timeout",
        type=float,
        default=_env(environ, "WRITE_TIMEOUT", defaults.write_timeout),
        help="Seconds to wait for a response to be sent",
    )
    parser.add_argument(
        "--body-limit",
        type=int,
        default=_env(environ, "BODY_LIMIT", defaults.body_limit),
        help="Largest accepted request body in bytes",
    )
    parser.add_argument(
        "--metrics-port",
        type=int,
        default=_env(environ, "METRICS_PORT"),
        help="Serve Prometheus metrics on this port",
    )
    parser.add_argument(
        "--log-level",
        default=_env(environ, "LOG_LEVEL", defaults.log_level),
        help="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )
    parser.add_argument("--log-file", default=_env(environ, "LOG_FILE"), help="Also log to this file")
    parser.add_argument(
        "--json-logs",
        dest="json_logs",
        action="store_true",
        default=_env_flag(environ, "JSON_LOGS", defaults.json_logs),
        help="Emit JSON log records (default)",
    )
    parser.add_argument(
        "--plain-logs",
        dest="json_logs",
        action="store_false",
        help="Emit plain text log records",
    )
    parser.add_argument(
        "--no-uvloop",
        dest="use_uvloop",
        action="store_false",
        default=not _env_flag(environ, "NO_UVLOOP", False),
        help="Use the default asyncio event loop",
    )
    return parser


def load_config(
    argv: Optional[Sequence[str]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> ServerConfig:
    """Parse ``argv`` into a validated ServerConfig.

    Raises:
        ServerConfigError: If a value is out of range
        SystemExit: If argparse rejects the command line
    """
    args = build_arg_parser(environ).parse_args(argv)
    return ServerConfig(
        directory=args.directory,
        host=args.host,
        port=args.port,
        max_connections=args.max_connections,
        admission_timeout=args.admission_timeout,
        read_timeout=args.read_timeout,
        request_timeout=args.request_timeout,
        write_timeout=args.write_timeout,
        body_limit=args.body_limit,
        metrics_port=args.metrics_port,
        log_level=args.log_level.upper(),
        log_file=args.log_file,
        json_logs=args.json_logs,
        use_uvloop=args.use_uvloop,
    )
