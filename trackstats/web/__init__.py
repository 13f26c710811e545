"""
trackstats Web Layer.

Components:
- WebServer: FastAPI application with the read-only REST API
"""

from trackstats.web.server import WebServer

__all__ = [
    "WebServer",
]
