"""
main_asyncio.py - Lifecycle server entry point
----------------------------------------------

Responsible for:
- loading configuration (config/lifecycle.yaml + environment)
- creating the lifecycle server with startup tasks and a cleanup hook
- marking the service ready once startup work is done
- serving probes until SIGINT/SIGTERM, then exiting with the shutdown result

Run with:  python src/main_asyncio.py
"""

import sys

# Set UTF-8 encoding for output BEFORE any imports (fixes Unicode symbol rendering)
if hasattr(sys.stdout, 'reconfigure') and sys.stdout.encoding != 'UTF-8':
    sys.stdout.reconfigure(encoding='utf-8')  # type: ignore
if hasattr(sys.stderr, 'reconfigure') and sys.stderr.encoding != 'UTF-8':
    sys.stderr.reconfigure(encoding='utf-8')  # type: ignore

import asyncio

from lifecycle import create_lifecycle_server, StartupFailedError
from managers import ConfigManager
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.SYSTEM)


async def warm_up() -> None:
    """Stand-in for real startup work (connections, caches, migrations)."""
    await asyncio.sleep(0.5)
    log.info("Warm-up finished")


async def close_resources() -> None:
    """Stand-in for real cleanup (flush buffers, close pools)."""
    log.info("Closing resources...")
    await asyncio.sleep(0.1)


async def heartbeat(lifecycle) -> None:
    """Example in-flight work: every tick holds a beacon until it finishes."""
    tracker = lifecycle.get_beacon_tracker()
    tick = 0
    while not lifecycle.is_shutting_down():
        tick += 1
        async with tracker.beacon({"job": "heartbeat", "tick": tick}):
            await asyncio.sleep(1.0)


async def main() -> int:
    """Main async entry point."""
    config = ConfigManager().load()
    config.startup_tasks = [warm_up()]
    config.shutdown_callback = close_resources

    lifecycle = create_lifecycle_server(config)
    log.info("Starting lifecycle server...")

    runner = asyncio.create_task(lifecycle.run(), name="LifecycleRun")

    try:
        await lifecycle.set_ready(True)
    except StartupFailedError as e:
        log.error(f"Startup failed: {e}")
        lifecycle.trigger_shutdown("STARTUP_FAILURE")
        await runner
        return 1

    log.info("Service is ready")
    worker = asyncio.create_task(heartbeat(lifecycle), name="Heartbeat")

    exit_code = await runner
    await worker
    return exit_code


if __name__ == "__main__":
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        log.warn("Interrupted before signal handlers were installed")
        sys.exit(130)
