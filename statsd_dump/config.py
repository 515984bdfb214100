from collections.abc import Sequence
from importlib.metadata import PackageNotFoundError, version
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

DEFAULT_INTERVAL = 30

LogFormat = Literal['text', 'json']


def _package_version() -> str:
    try:
        return version('statsd-dump')
    except PackageNotFoundError:
        return '0.0.0'


class Settings(BaseSettings):
    model_config = {
        'extra': 'ignore',
        'env_prefix': 'STATSD_DUMP_',
        'env_file': '.env',
        'env_file_encoding': 'utf-8',
        'frozen': True,
    }

    host: str = Field(default='127.0.0.1', description='the hostname to listen on')
    port: int = Field(
        default=8125, ge=1, le=65535, description='the port number to listen on'
    )
    interval: int = Field(
        default=DEFAULT_INTERVAL,
        ge=0,
        description='the interval in seconds at which metrics should be displayed',
    )
    queue_size: int = Field(default=10000, ge=1)

    service_name: str = 'statsd-dump'
    service_version: str = Field(default_factory=_package_version)
    log_level: str = 'INFO'
    log_format: LogFormat = 'text'

    health_host: str = '127.0.0.1'
    health_port: int | None = Field(default=None, ge=1, le=65535)

    worker_shutdown_timeout: float = 5.0

    @field_validator('interval')
    @classmethod
    def _default_zero_interval(cls, value: int) -> int:
        return value or DEFAULT_INTERVAL


def load_settings(argv: Sequence[str] | None = None) -> Settings:
    if argv is None:
        return Settings()
    return Settings(
        _cli_parse_args=list(argv),  # type: ignore[call-arg]
        _cli_prog_name='statsd-dump',  # type: ignore[call-arg]
    )
