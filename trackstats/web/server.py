"""
Web Server Module for trackstats.

This module provides the WebServer class that creates and manages the
FastAPI application and registers the read-only REST API over the dataset.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from trackstats import __version__
from trackstats.web.routes.api import register_api_routes

if TYPE_CHECKING:
    from trackstats.core.dataset import SpotifyDataset

logger = logging.getLogger(__name__)


class WebServer:
    """
    FastAPI-based web server for trackstats.

    Exposes the exploration summary, the query catalogue and the
    execution-plan probe as JSON.
    """

    def __init__(
        self,
        dataset: SpotifyDataset,
        cors_origins: tuple[str, ...] | list[str] = ("*",),
    ) -> None:
        """
        Initialize the WebServer.

        Args:
            dataset: Initialized dataset facade to serve
            cors_origins: Origins allowed by the CORS middleware
        """
        self.dataset = dataset

        self.app = FastAPI(
            title="trackstats",
            description="Spotify track metrics and the SQL practice query catalogue",
            version=__version__,
        )

        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=list(cors_origins),
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

        self._register_routes()

    def _register_routes(self) -> None:
        """Register all routes with the FastAPI app."""

        @self.app.get("/health")
        async def health_check() -> dict[str, str]:
            """Health check endpoint."""
            return {"status": "ok", "server": "trackstats"}

        register_api_routes(self.app, dataset=self.dataset)

    def _build_server(self, host: str, port: int) -> uvicorn.Server:
        config = uvicorn.Config(
            self.app,
            host=host,
            port=port,
            log_level="warning",
            access_log=False,
        )
        return uvicorn.Server(config)

    async def serve(self, host: str = "127.0.0.1", port: int = 9100) -> None:
        """
        Run the web server until it is asked to exit.

        Args:
            host: Host address to bind to
            port: Port to listen on
        """
        server = self._build_server(host, port)
        logger.info("Web server listening on http://%s:%d", host, port)
        await server.serve()
        logger.info("Web server stopped")
