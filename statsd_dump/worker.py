import asyncio
from datetime import datetime
import logging
import sys
import time
from typing import Any, TextIO

from statsd_dump.schemas import Metric
from statsd_dump.window import MetricsWindow

logger = logging.getLogger(__name__)


class CollectorWorker:
    """Feeds queued metrics into the interval and total windows.

    Every ``interval`` seconds the interval window is dumped together with the
    total window and then replaced by an empty one. The total window lives as
    long as the worker.
    """

    def __init__(
        self,
        queue: asyncio.Queue[Metric],
        interval: float,
        out: TextIO | None = None,
        poll_timeout: float = 1.0,
    ) -> None:
        self.queue = queue
        self.interval = interval
        self.poll_timeout = poll_timeout
        self.out = out or sys.stdout
        now = time.monotonic()
        self.interval_window = MetricsWindow(start_time=now)
        self.total_window = MetricsWindow(start_time=now)
        self.received = 0
        self.dumps = 0
        self._running = True

    def add_metric(self, metric: Metric) -> None:
        self.received += 1
        self.interval_window.add_metric(metric)
        self.total_window.add_metric(metric)

    def tick(self, now: float | None = None, timestamp: datetime | None = None) -> bool:
        if self.interval_window.is_empty():
            return False
        now = time.monotonic() if now is None else now
        timestamp = timestamp or datetime.now().astimezone()
        total_elapsed = int(now - self.total_window.start_time)

        try:
            self.out.write(f'\n\nDumping Metrics at {timestamp}\n')
            self.out.write(f'\nLast {self.interval}s\n')
            self.interval_window.render(self.out, now)
            self.out.write(f'\nLast {total_elapsed}s\n')
            self.total_window.render(self.out, now)
            self.out.flush()
        finally:
            self.interval_window = MetricsWindow(start_time=now)
        self.dumps += 1
        return True

    async def start(self) -> None:
        logger.info('Collector worker started', extra={'interval': self.interval})
        loop = asyncio.get_running_loop()
        next_tick = loop.time() + self.interval

        while self._running:
            try:
                timeout = next_tick - loop.time()
                if timeout <= 0:
                    while next_tick <= loop.time():
                        next_tick += self.interval
                    self.tick()
                    continue
                try:
                    metric = await asyncio.wait_for(
                        self.queue.get(), timeout=min(timeout, self.poll_timeout)
                    )
                except TimeoutError:
                    continue
                self.add_metric(metric)
            except asyncio.CancelledError:
                logger.info('Collector task cancelled')
                break
            except Exception as e:
                logger.exception(
                    'Unexpected error in collector loop', extra={'error': str(e)}
                )
                await asyncio.sleep(1)

    def stop(self) -> None:
        self._running = False

    def status(self) -> dict[str, Any]:
        return {
            'received': self.received,
            'dumps': self.dumps,
            'interval_summaries': len(self.interval_window),
            'total_summaries': len(self.total_window),
        }
