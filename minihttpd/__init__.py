from .core import (
    HTTPServer, RequestHandler, HTTPParser, Request, Response, FileStore
)
from .config import ServerConfig

__version__ = '1.0.0'

__all__ = [
    # Core components
    'HTTPServer',
    'RequestHandler',
    'HTTPParser',
    'Request',
    'Response',
    'FileStore',

    # Configuration
    'ServerConfig',
]
