from collections.abc import Iterator
import logging
import time
from typing import TextIO

from statsd_dump.schemas import Metric, MetricKind
from statsd_dump.summaries import CountSummary, GaugeSummary, MetricSummary

logger = logging.getLogger(__name__)


class MetricsWindow:
    """Summaries of every metric observed since ``start_time``.

    Counts, gauges and timings live in separate tables keyed by metric name.
    Tags are not part of the key: a name observed with different tag sets is
    merged into one summary showing the most recently seen tags.
    """

    def __init__(self, start_time: float | None = None) -> None:
        self.start_time = time.monotonic() if start_time is None else start_time
        self.counts: dict[str, CountSummary] = {}
        self.gauges: dict[str, GaugeSummary] = {}
        self.timings: dict[str, GaugeSummary] = {}
        self.name_width = 0
        self.tags_width = 0

    def __len__(self) -> int:
        return len(self.counts) + len(self.gauges) + len(self.timings)

    def is_empty(self) -> bool:
        return not self.counts and not self.gauges and not self.timings

    def add_metric(self, metric: Metric) -> bool:
        if metric.kind == MetricKind.COUNT:
            self._add_count(metric)
        elif metric.kind == MetricKind.GAUGE:
            self._add_gauge(self.gauges, metric)
        elif metric.kind in (MetricKind.TIMING, MetricKind.LEGACY_TIMING):
            self._add_gauge(self.timings, metric)
        else:
            logger.warning(
                'Ignoring metric of unsupported type',
                extra={'metric_type': metric.kind.value, 'metric': metric.name},
            )
            return False
        return True

    def _add_count(self, metric: Metric) -> None:
        summary = self.counts.get(metric.name)
        if summary is None:
            self.counts[metric.name] = CountSummary(metric)
        else:
            summary.add_value(metric)

    @staticmethod
    def _add_gauge(table: dict[str, GaugeSummary], metric: Metric) -> None:
        summary = table.get(metric.name)
        if summary is None:
            table[metric.name] = GaugeSummary(metric)
        else:
            summary.add_value(metric)

    def render_lines(self, now: float | None = None) -> Iterator[str]:
        elapsed = (time.monotonic() if now is None else now) - self.start_time
        tables: tuple[dict[str, CountSummary] | dict[str, GaugeSummary], ...] = (
            self.counts,
            self.gauges,
            self.timings,
        )
        for table in tables:
            for name in sorted(table):
                yield self._render_summary(table[name], elapsed)

    def render(self, out: TextIO, now: float | None = None) -> None:
        for line in self.render_lines(now):
            out.write(line)

    def _render_summary(self, summary: MetricSummary, elapsed: float) -> str:
        sample = summary.get_sample()
        tags = sample.tag_string()
        self.name_width = max(self.name_width, len(sample.name))
        self.tags_width = max(self.tags_width, len(tags))
        return (
            f'{sample.kind.value}\t{sample.name:<{self.name_width}}\t'
            f'{sample.sample_rate:.2f}\t{tags:<{self.tags_width}}\t'
            f'{summary.render_values(elapsed)}\n'
        )
