#!/usr/bin/env python3
"""TubeRelay - YouTube search and audio proxy with a favorites library."""

import argparse
import asyncio
import logging
import signal
import os

import httpx
import uvicorn

from config import load_config, Config
from data.library_store import LibraryStore
from web.app import app as fastapi_app, configure_state, install_middleware
from youtube.extractor import configure_timeout

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("tuberelay")


class TubeRelay:
    """Main orchestrator - owns the store and HTTP client, runs uvicorn."""

    def __init__(self, config: Config):
        self.config = config
        self.library_store = None
        self.http_client = None
        self.server = None
        self.running = False

    async def setup(self) -> None:
        """Initialize all components."""
        db_path = self.config.database.path
        os.makedirs(os.path.dirname(db_path) or ".", exist_ok=True)
        self.library_store = LibraryStore(db_path=db_path)
        logger.info("Database initialized at %s", db_path)

        yt_cfg = self.config.youtube
        self.http_client = httpx.AsyncClient(
            timeout=yt_cfg.http_timeout,
            follow_redirects=True,
            limits=httpx.Limits(max_connections=100, max_keepalive_connections=20),
        )
        configure_timeout(yt_cfg.ydl_timeout)

        configure_state(
            fastapi_app.state,
            config=self.config,
            library_store=self.library_store,
            http_client=self.http_client,
        )
        install_middleware(fastapi_app, self.config.web.cors_origins)
        logger.info("Web app initialized")

    async def run(self) -> None:
        """Start everything."""
        self.running = True
        await self.setup()

        config = uvicorn.Config(
            fastapi_app,
            host=self.config.web.host,
            port=self.config.web.port,
            log_level="info",
        )
        self.server = uvicorn.Server(config)

        folders = len(self.library_store.list_folders())
        favorites = len(self.library_store.list_favorites())
        logger.info(
            f"TubeRelay started on port {self.config.web.port} - "
            f"{folders} folders, {favorites} favorites"
        )

        try:
            await self.server.serve()
        except asyncio.CancelledError:
            logger.info("Server cancelled")
        finally:
            await self.stop()

    async def stop(self) -> None:
        """Stop all components."""
        if not self.running:
            return
        self.running = False
        if self.server:
            self.server.should_exit = True
        if self.http_client:
            await self.http_client.aclose()
        if self.library_store:
            self.library_store.close()
        logger.info("TubeRelay stopped")


async def main() -> None:
    parser = argparse.ArgumentParser(description="TubeRelay")
    parser.add_argument("-c", "--config", help="Path to config file", default=None)
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")
    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    config = load_config(args.config)
    relay = TubeRelay(config)

    loop = asyncio.get_running_loop()

    def signal_handler():
        if relay.server:
            relay.server.should_exit = True

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, signal_handler)
        except NotImplementedError:
            signal.signal(sig, lambda s, f: signal_handler())

    try:
        await relay.run()
    except KeyboardInterrupt:
        await relay.stop()


def cli() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    cli()
