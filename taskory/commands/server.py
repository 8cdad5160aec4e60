"""
Server command - Run the web server.
"""
import os
import logging

import uvicorn

from taskory.__main__ import Command

logger = logging.getLogger(__name__)


class ServerCommand(Command):
    """Run the Taskory web server."""

    @classmethod
    def add_arguments(cls, parser):
        parser.add_argument(
            "--host",
            default="0.0.0.0",
            help="Host to bind to (default: 0.0.0.0)"
        )
        parser.add_argument(
            "--port",
            type=int,
            default=int(os.getenv("TASKORY_PORT", "8000")),
            help="Port to bind to (default: 8000 or TASKORY_PORT env var)"
        )
        parser.add_argument(
            "--log-level",
            default=os.getenv("LOG_LEVEL", "INFO").lower(),
            choices=["debug", "info", "warning", "error", "critical"],
            help="Log level (default: INFO or LOG_LEVEL env var)"
        )

    def init(self):
        super().init()
        from taskory.app import create_app
        self.app = create_app()
        logger.info(f"Server initialized on {self.args.host}:{self.args.port}")

    def run(self) -> int:
        config = uvicorn.Config(
            self.app,
            host=self.args.host,
            port=self.args.port,
            log_level=self.args.log_level,
            access_log=True,
            timeout_keep_alive=30,
            timeout_graceful_shutdown=30,
        )
        server = uvicorn.Server(config)
        try:
            logger.info(f"Starting server on {self.args.host}:{self.args.port}")
            server.run()
            return 0
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt, shutting down...")
            return 130

    def cleanup(self):
        super().cleanup()
        logger.info("Server stopped")
