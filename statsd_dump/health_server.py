from collections.abc import Callable
import logging
from typing import Any

from aiohttp import web
import orjson

logger = logging.getLogger(__name__)

StatusProvider = Callable[[], dict[str, Any]]


def _dumps(data: Any) -> str:
    return orjson.dumps(data).decode('utf-8')


class HealthServer:
    """Minimal async HTTP server reporting collector liveness and counters."""

    def __init__(self, host: str, port: int, status_provider: StatusProvider) -> None:
        self.host = host
        self.port = port
        self.status_provider = status_provider
        self._runner: web.AppRunner | None = None

    def create_app(self) -> web.Application:
        app = web.Application()
        app.router.add_get('/health', self._health_handler)
        return app

    async def start(self) -> None:
        if self._runner is not None:
            return
        self._runner = web.AppRunner(self.create_app())
        await self._runner.setup()
        site = web.TCPSite(self._runner, self.host, self.port)
        await site.start()
        logger.info(f'Health server started on {self.host}:{self.port}/health')

    async def stop(self) -> None:
        if self._runner is None:
            return
        await self._runner.cleanup()
        self._runner = None
        logger.info('Health server stopped')

    async def _health_handler(self, _request: web.Request) -> web.Response:
        return web.json_response(
            {'status': 'ok', **self.status_provider()}, dumps=_dumps
        )
