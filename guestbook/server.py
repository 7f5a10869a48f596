import asyncio
import logging
import os

from hypercorn.asyncio import serve as hypercorn_serve
from hypercorn.config import Config as HypercornConfig

from .app import app  # FastAPI app, Redis clients are opened on startup
from .config import LISTEN_PORT, LOG_FORMAT, Settings


if __name__ == "__main__":
    # Container entry point: python -m guestbook.server
    settings = Settings.from_env()
    logging.basicConfig(format=LOG_FORMAT, level=getattr(logging, settings.log_level))
    port = int(os.getenv("PORT", str(LISTEN_PORT)))
    config = HypercornConfig()
    config.bind = [f"0.0.0.0:{port}"]
    asyncio.run(hypercorn_serve(app, config))
