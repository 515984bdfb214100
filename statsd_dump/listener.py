import asyncio
import logging
from typing import Any

from statsd_dump.parser import MetricParseError, parse_line, split_datagram
from statsd_dump.schemas import Metric

logger = logging.getLogger(__name__)


class MetricsListener(asyncio.DatagramProtocol):
    def __init__(self, queue: asyncio.Queue[Metric]) -> None:
        self.queue = queue
        self.transport: asyncio.DatagramTransport | None = None
        self.datagrams = 0
        self.parse_errors = 0
        self.dropped = 0

    def connection_made(self, transport: asyncio.BaseTransport) -> None:
        self.transport = transport  # type: ignore[assignment]

    def datagram_received(self, data: bytes, addr: tuple[str | Any, int]) -> None:
        self.datagrams += 1
        for line in split_datagram(data):
            try:
                metric = parse_line(line)
            except MetricParseError as e:
                self.parse_errors += 1
                logger.error(
                    'Failed to parse metric line',
                    extra={'line': line, 'error': e.reason},
                )
                continue
            try:
                self.queue.put_nowait(metric)
            except asyncio.QueueFull:
                self.dropped += 1
                logger.warning(
                    'Metric queue full – dropping metric',
                    extra={'metric': metric.name, 'queue_size': self.queue.maxsize},
                )

    def error_received(self, exc: Exception) -> None:
        logger.warning('UDP receive error', extra={'error': str(exc)})

    def status(self) -> dict[str, int]:
        return {
            'datagrams': self.datagrams,
            'parse_errors': self.parse_errors,
            'dropped': self.dropped,
        }


async def start_listener(
    host: str, port: int, queue: asyncio.Queue[Metric]
) -> tuple[asyncio.DatagramTransport, MetricsListener]:
    loop = asyncio.get_running_loop()
    logger.info('Binding UDP listener', extra={'host': host, 'port': port})
    try:
        transport, protocol = await loop.create_datagram_endpoint(
            lambda: MetricsListener(queue), local_addr=(host, port)
        )
    except OSError:
        logger.exception(
            'Failed to bind UDP listener', extra={'host': host, 'port': port}
        )
        raise
    return transport, protocol
