"""Tests for the aggregation window."""

from collections.abc import Callable
import io
import logging

import pytest

from statsd_dump.schemas import Metric, MetricKind
from statsd_dump.window import MetricsWindow

MetricFactory = Callable[..., Metric]


def test_new_window_is_empty() -> None:
    window = MetricsWindow(start_time=0.0)

    assert window.is_empty()
    assert len(window) == 0
    assert list(window.render_lines(now=30.0)) == []


def test_empty_window_renders_nothing() -> None:
    out = io.StringIO()
    MetricsWindow(start_time=0.0).render(out, now=30.0)

    assert out.getvalue() == ''


def test_routes_metrics_by_kind(make_metric: MetricFactory) -> None:
    window = MetricsWindow(start_time=0.0)

    assert window.add_metric(make_metric('hits', MetricKind.COUNT, 1))
    assert window.add_metric(make_metric('temp', MetricKind.GAUGE, 1.0))
    assert window.add_metric(make_metric('db.query', MetricKind.TIMING, 3.0))
    assert window.add_metric(make_metric('db.query', MetricKind.LEGACY_TIMING, 5.0))

    assert list(window.counts) == ['hits']
    assert list(window.gauges) == ['temp']
    assert list(window.timings) == ['db.query']
    assert window.timings['db.query'].count == 2
    assert not window.is_empty()


def test_same_name_different_kinds_kept_apart(make_metric: MetricFactory) -> None:
    window = MetricsWindow(start_time=0.0)
    window.add_metric(make_metric('latency', MetricKind.COUNT, 1))
    window.add_metric(make_metric('latency', MetricKind.GAUGE, 2.0))

    assert window.counts['latency'].sum == 1
    assert window.gauges['latency'].last == 2.0


def test_count_scenario(make_metric: MetricFactory) -> None:
    window = MetricsWindow(start_time=0.0)
    for value in (1, 1, 3):
        window.add_metric(make_metric('requests.count', MetricKind.COUNT, value))

    assert window.counts['requests.count'].sum == 5


def test_gauge_scenario(make_metric: MetricFactory) -> None:
    window = MetricsWindow(start_time=0.0)
    window.add_metric(make_metric('temp', MetricKind.GAUGE, 10.0))
    window.add_metric(make_metric('temp', MetricKind.GAUGE, 20.0))

    summary = window.gauges['temp']
    assert summary.last == 20.0
    assert summary.average == 15.0


@pytest.mark.parametrize(
    'kind', [MetricKind.SET, MetricKind.HISTOGRAM, MetricKind.DISTRIBUTION]
)
def test_unsupported_kind_dropped(
    make_metric: MetricFactory,
    caplog: pytest.LogCaptureFixture,
    kind: MetricKind,
) -> None:
    window = MetricsWindow(start_time=0.0)

    with caplog.at_level(logging.WARNING, logger='statsd_dump.window'):
        assert not window.add_metric(make_metric('users', kind, 42.0))

    assert window.is_empty()
    assert len(caplog.records) == 1
    assert caplog.records[0].metric_type == kind.value  # type: ignore[attr-defined]

    window.add_metric(make_metric('hits', MetricKind.COUNT, 2))
    assert window.counts['hits'].sum == 2
    assert len(window) == 1


def test_render_sorted_by_name_within_table(make_metric: MetricFactory) -> None:
    window = MetricsWindow(start_time=0.0)
    for name in ('zeta', 'alpha', 'mu', 'beta'):
        window.add_metric(make_metric(name, MetricKind.GAUGE, 1.0))
    for name in ('y', 'b'):
        window.add_metric(make_metric(name, MetricKind.COUNT, 1))
    window.add_metric(make_metric('a', MetricKind.TIMING, 1.0))

    names = [line.split('\t')[1].strip() for line in window.render_lines(now=10.0)]

    assert names == ['b', 'y', 'alpha', 'beta', 'mu', 'zeta', 'a']


def test_render_line_format(make_metric: MetricFactory) -> None:
    window = MetricsWindow(start_time=0.0)
    window.add_metric(
        make_metric(
            'requests.count',
            MetricKind.COUNT,
            5,
            sample_rate=0.5,
            tags={'host': 'web-1', 'env': 'dev'},
        )
    )
    window.add_metric(make_metric('temp', MetricKind.GAUGE, 10.0))
    window.add_metric(make_metric('temp', MetricKind.GAUGE, 20.0))

    out = io.StringIO()
    window.render(out, now=30.0)

    assert out.getvalue().splitlines() == [
        'c\trequests.count\t0.50\tenv:dev,host:web-1\t5\t0.166667/s',
        'g\ttemp          \t1.00\t                  \t20.0000 (last)\t15.0000 (avg)',
    ]


def test_render_shows_last_seen_tags(make_metric: MetricFactory) -> None:
    window = MetricsWindow(start_time=0.0)
    window.add_metric(make_metric('jobs', MetricKind.COUNT, 1, tags={'q': 'high'}))
    window.add_metric(make_metric('jobs', MetricKind.COUNT, 1, tags={'q': 'low'}))

    [line] = window.render_lines(now=1.0)

    assert line.split('\t')[3] == 'q:low'
    assert window.counts['jobs'].sum == 2


def test_width_hints_grow_only_when_rendering(make_metric: MetricFactory) -> None:
    window = MetricsWindow(start_time=0.0)
    window.add_metric(make_metric('a.very.long.metric.name', MetricKind.COUNT, 1))

    assert window.name_width == 0

    list(window.render_lines(now=1.0))
    assert window.name_width == len('a.very.long.metric.name')

    other = MetricsWindow(start_time=0.0)
    other.add_metric(make_metric('short', MetricKind.COUNT, 1))
    [line] = other.render_lines(now=1.0)
    assert line.split('\t')[1] == 'short'
