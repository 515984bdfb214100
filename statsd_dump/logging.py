import logging
from pathlib import Path
import sys
from typing import Any, TextIO

import orjson
from pydantic import BaseModel

LOG_CONFIG_PATH = Path(__file__).parent / 'log_config.json'


class LogConfig(BaseModel):
    model_config = {'frozen': True}

    datefmt: str | None = None
    standard_fields: frozenset[str]
    quiet_loggers: tuple[str, ...] = ()


def load_log_config(path: Path = LOG_CONFIG_PATH) -> LogConfig:
    try:
        return LogConfig.model_validate(orjson.loads(path.read_bytes()))
    except FileNotFoundError as e:
        raise RuntimeError(f'Log config file not found: {path}') from e
    except orjson.JSONDecodeError as e:
        raise RuntimeError(f'Invalid JSON in log config file {path}: {e}') from e


LOG_CONFIG = load_log_config()


class ServiceFormatter(logging.Formatter):
    """Stamps every record with the service identity and its ``extra`` fields."""

    default_time_format = '%Y-%m-%d %H:%M:%S'
    default_msec_format = '%s.%03d'

    def __init__(
        self, service_name: str, version: str, config: LogConfig = LOG_CONFIG
    ) -> None:
        super().__init__(datefmt=config.datefmt)
        self.service_name = service_name
        self.version = version
        self.standard_fields = config.standard_fields

    def extra_fields(self, record: logging.LogRecord) -> dict[str, Any]:
        return {
            key: value
            for key, value in vars(record).items()
            if key not in self.standard_fields and not key.startswith('_')
        }

    def traceback(self, record: logging.LogRecord) -> str | None:
        if record.exc_info:
            return self.formatException(record.exc_info)
        if record.stack_info:
            return self.formatStack(record.stack_info)
        return None


class JsonFormatter(ServiceFormatter):
    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            'timestamp': self.formatTime(record, self.datefmt),
            'level': record.levelname,
            'service': self.service_name,
            'version': self.version,
            'logger': record.name,
            'message': record.getMessage(),
            **self.extra_fields(record),
        }
        traceback = self.traceback(record)
        if traceback is not None:
            entry['exception'] = traceback
        return orjson.dumps(entry, default=str).decode('utf-8')


class TextFormatter(ServiceFormatter):
    def format(self, record: logging.LogRecord) -> str:
        fields = ''.join(f' [{k}={v}]' for k, v in self.extra_fields(record).items())
        line = (
            f'{self.formatTime(record, self.datefmt)} [{record.levelname:<8}] '
            f'{record.name}: {record.getMessage()}{fields}'
        )
        traceback = self.traceback(record)
        return line if traceback is None else f'{line}\n{traceback}'


FORMATTERS: dict[str, type[ServiceFormatter]] = {
    'json': JsonFormatter,
    'text': TextFormatter,
}


def setup_logging(
    service_name: str,
    level: str,
    log_format: str,
    version: str,
    stream: TextIO | None = None,
) -> None:
    """Route all log records to stderr so stdout only carries the metric dump."""
    log_level = logging.getLevelName(level.upper())
    if not isinstance(log_level, int):
        log_level = logging.INFO
    formatter_cls = FORMATTERS.get(log_format.lower(), TextFormatter)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(formatter_cls(service_name, version))
    handler.setLevel(log_level)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    for logger_name in LOG_CONFIG.quiet_loggers:
        logging.getLogger(logger_name).setLevel(logging.WARNING)
