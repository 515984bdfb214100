from collections.abc import Callable, Iterator
import logging

import pytest

from statsd_dump.schemas import Metric, MetricKind


@pytest.fixture
def make_metric() -> Callable[..., Metric]:
    def _make(
        name: str,
        kind: MetricKind,
        value: int | float,
        sample_rate: float = 1.0,
        tags: dict[str, str] | None = None,
    ) -> Metric:
        return Metric(
            name=name,
            kind=kind,
            value=value,
            sample_rate=sample_rate,
            tags=tags or {},
        )

    return _make


@pytest.fixture
def restore_root_logger() -> Iterator[logging.Logger]:
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    try:
        yield root
    finally:
        root.handlers[:] = handlers
        root.setLevel(level)
