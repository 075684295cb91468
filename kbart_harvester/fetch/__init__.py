"""
Network Layer.

This package owns the HTTP connection pool and the peekable byte stream used to
inspect the start of a response before it is written to disk.
"""

from .connection import create_connection_pool
from .stream import PeekableStream

__all__ = ["PeekableStream", "create_connection_pool"]
