"""
main.py — Single entry point.

Runs the Nutri-X analysis API (aiohttp) until SIGINT/SIGTERM.

Architecture:
  asyncio event loop
    └── aiohttp web server
         ├── POST /api/analyze   (one photo)
         ├── POST /api/barcode   (product metadata)
         └── POST /api/compare   (two photos)
"""
import asyncio
import logging
import os
import signal
import sys
from pathlib import Path

import config

# Log file lives in DATA_DIR so a single volume mount captures it.
_data_dir = Path(os.getenv("DATA_DIR", config.DATA_DIR))
_data_dir.mkdir(parents=True, exist_ok=True)

logging.basicConfig(
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    level=logging.INFO,
    handlers=[
        logging.StreamHandler(sys.stdout),
        logging.FileHandler(str(_data_dir / "nutrix.log"), encoding="utf-8"),
    ],
)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)
logging.getLogger("aiohttp.access").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


async def run() -> None:
    from server import start_server

    if not config.GEMINI_API_KEY:
        logger.warning("GEMINI_API_KEY is not set — analysis requests will fail until it is.")

    runner = await start_server()

    stop_event = asyncio.Event()

    def _stop(*_):
        logger.info("Shutdown signal received.")
        stop_event.set()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _stop)
        except (NotImplementedError, RuntimeError):
            # Windows doesn't support add_signal_handler for all signals
            pass

    logger.info("✅ Server is running. Press Ctrl+C to stop.")

    try:
        await stop_event.wait()
    finally:
        logger.info("Shutting down…")
        await runner.cleanup()

    logger.info("Goodbye.")


def main() -> None:
    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
