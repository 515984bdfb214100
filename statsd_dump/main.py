import asyncio
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
import logging
import signal
import sys
import time
from typing import Any

from statsd_dump.config import Settings, load_settings
from statsd_dump.health_server import HealthServer
from statsd_dump.listener import start_listener
from statsd_dump.logging import setup_logging
from statsd_dump.schemas import Metric
from statsd_dump.worker import CollectorWorker

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(settings: Settings) -> AsyncGenerator[CollectorWorker, None]:
    started = time.monotonic()
    queue: asyncio.Queue[Metric] = asyncio.Queue(maxsize=settings.queue_size)
    transport, listener = await start_listener(settings.host, settings.port, queue)
    collector = CollectorWorker(queue, settings.interval)
    worker_task = asyncio.create_task(collector.start())
    logger.info(
        f'Listening on {settings.host}:{settings.port} '
        f'and dumping every {settings.interval}s'
    )

    health_server: HealthServer | None = None
    try:
        if settings.health_port is not None:

            def status() -> dict[str, Any]:
                return {
                    'uptime_seconds': int(time.monotonic() - started),
                    **collector.status(),
                    **listener.status(),
                }

            health_server = HealthServer(
                settings.health_host, settings.health_port, status
            )
            await health_server.start()
        yield collector
    finally:
        logger.info('Shutting down...')
        transport.close()
        collector.stop()
        try:
            await asyncio.wait_for(
                worker_task, timeout=settings.worker_shutdown_timeout
            )
            logger.info('Collector worker stopped gracefully')
        except TimeoutError:
            logger.warning('Worker did not stop in time, cancelling...')
            worker_task.cancel()
            await asyncio.gather(worker_task, return_exceptions=True)
        if health_server is not None:
            await health_server.stop()
        logger.info('Shutdown complete')


async def main(settings: Settings) -> None:
    shutdown_event = asyncio.Event()

    for sig in [signal.SIGTERM, signal.SIGINT]:
        asyncio.get_running_loop().add_signal_handler(sig, shutdown_event.set)

    async with lifespan(settings):
        await shutdown_event.wait()


def run() -> None:
    settings = load_settings(sys.argv[1:])
    setup_logging(
        service_name=settings.service_name,
        level=settings.log_level,
        log_format=settings.log_format,
        version=settings.service_version,
    )
    asyncio.run(main(settings))


if __name__ == '__main__':
    run()
