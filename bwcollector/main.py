"""
Collector entry point.

Run as:

    python -m bwcollector

or, without any SNMP devices:

    SNMP_MOCK=1 python -m bwcollector
"""
from __future__ import annotations

import asyncio
import logging
import signal
from typing import Any

from bwcollector.core.config import Settings, settings
from bwcollector.core.inventory import load_inventory
from bwcollector.services.orchestrator import PollOrchestrator
from bwcollector.services.scheduler import get_scheduler_service
from bwcollector.services.sinks import build_sink

logger = logging.getLogger(__name__)


def configure_logging(cfg: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, cfg.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    # APScheduler logs every job execution at INFO
    logging.getLogger("apscheduler").setLevel(logging.WARNING)


def build_engine(cfg: Settings) -> Any:
    """Real pysnmp engine, or the mock one when SNMP_MOCK is set."""
    if cfg.snmp_mock:
        from bwcollector.snmp.mock_engine import MockSnmpEngine

        logger.info("Using MOCK SNMP engine (no real devices)")
        return MockSnmpEngine()

    from bwcollector.snmp.engine import AsyncSnmpEngine

    return AsyncSnmpEngine()


async def run(cfg: Settings = settings) -> None:
    """Load inventory, schedule the polling cycle and run until signalled."""
    logger.info("Starting %s...", cfg.app_name)

    inventory = load_inventory(cfg.devices_file, default_port=cfg.snmp_port)
    orchestrator = PollOrchestrator(build_engine(cfg), build_sink(cfg), settings=cfg)
    orchestrator.update_devices(inventory.devices)

    scheduler = get_scheduler_service()
    orchestrator.start(scheduler)
    scheduler.start()

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except NotImplementedError:
            # Windows event loops have no signal handler support
            pass

    try:
        await stop.wait()
    finally:
        logger.info("Shutting down...")
        scheduler.shutdown()


def main() -> None:
    configure_logging(settings)
    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
