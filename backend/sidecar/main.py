"""Standalone process entry point: run the sidecar until SIGINT/SIGTERM."""

import asyncio
import logging
import signal
import sys

import structlog

from shared.logging import setup_logging
from sidecar.context import SidecarContext
from sidecar.errors import SidecarError
from sidecar.settings import SidecarSettings

logger = structlog.get_logger()


async def run(settings: SidecarSettings, stop_event: asyncio.Event | None = None) -> None:
    """Start the sidecar and keep it running until ``stop_event`` is set."""
    stop_event = stop_event or asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop_event.set)

    context = SidecarContext(settings)
    await context.start()
    try:
        await stop_event.wait()
    finally:
        logger.info("shutting down sidecar")
        await context.stop()


def main() -> None:  # pragma: no cover
    settings = SidecarSettings()
    setup_logging(log_dir=settings.log_dir, level=logging.DEBUG if settings.debug else None)
    try:
        asyncio.run(run(settings))
    except SidecarError:
        # Already reported as a framed critical block by the context.
        sys.exit(1)


if __name__ == "__main__":  # pragma: no cover
    main()
