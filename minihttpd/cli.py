#!/usr/bin/env python3
"""
Command line entry point for minihttpd.
"""

import logging
import sys
from typing import Optional, Sequence

from .config import ServerConfig, load_config
from .core.server_core import HTTPServer
from .core.server_utils import ServerConfigError, configure_logging, run_event_loop
from .features.metrics import start_metrics_server

logger = logging.getLogger("minihttpd.cli")


def build_server(config: ServerConfig) -> HTTPServer:
    return HTTPServer(
        config.directory,
        host=config.host,
        port=config.port,
        max_connections=config.max_connections,
        admission_timeout=config.admission_timeout,
        read_timeout=config.read_timeout,
        request_timeout=config.request_timeout,
        write_timeout=config.write_timeout,
        body_limit=config.body_limit,
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Parse arguments, start the server and block until it shuts down."""
    try:
        config = load_config(argv)
    except ServerConfigError as e:
        configure_logging(json_logs=False)
        logger.error("Invalid configuration: %s", e)
        return 2

    configure_logging(config.log_level, config.log_file, config.json_logs)

    if config.metrics_port is not None:
        start_metrics_server(config.metrics_port, config.host)
        logger.info("Metrics available on http://%s:%s/metrics", config.host, config.metrics_port)

    server = build_server(config)
    try:
        run_event_loop(server.serve_forever(), use_uvloop=config.use_uvloop)
    except ServerConfigError as e:
        logger.error("Server failed to start: %s", e)
        return 2
    except OSError as e:
        logger.error("Could not listen on %s:%s: %s", config.host, config.port, e)
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted")
    return 0


if __name__ == "__main__":
    sys.exit(main())
