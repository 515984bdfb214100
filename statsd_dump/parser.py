"""Decoding of dogstatsd text lines into :class:`Metric` records.

A line looks like ``name:value|type[|@rate][|#tag[:value],...]``. Sections
other than the sample rate and the tags (dogstatsd timestamps, container ids)
are accepted and ignored.
"""

import math
import re

from pydantic import ValidationError

from statsd_dump.schemas import Metric, MetricKind

_INTEGER = re.compile(r'[+-]?[0-9]+')
_DECIMAL = re.compile(r'[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?')


class MetricParseError(ValueError):
    def __init__(self, line: str, reason: str) -> None:
        super().__init__(f'{reason}: {line!r}')
        self.line = line
        self.reason = reason


def split_datagram(data: bytes) -> list[str]:
    return data.decode('utf-8', errors='replace').split()


def _parse_kind(line: str, raw: str) -> MetricKind:
    try:
        return MetricKind(raw)
    except ValueError:
        raise MetricParseError(line, f'unknown metric type {raw!r}') from None


def _parse_value(line: str, raw: str, kind: MetricKind) -> int | float:
    if kind is MetricKind.COUNT:
        if not _INTEGER.fullmatch(raw):
            raise MetricParseError(line, f'invalid count value {raw!r}')
        return int(raw)
    if not _DECIMAL.fullmatch(raw):
        raise MetricParseError(line, f'invalid {kind.name.lower()} value {raw!r}')
    value = float(raw)
    if not math.isfinite(value):
        raise MetricParseError(line, f'non-finite value {raw!r}')
    return value


def _parse_sample_rate(line: str, raw: str) -> float:
    if not _DECIMAL.fullmatch(raw):
        raise MetricParseError(line, f'invalid sample rate {raw!r}')
    rate = float(raw)
    if not 0.0 < rate <= 1.0:
        raise MetricParseError(line, f'sample rate out of range {raw!r}')
    return rate


def _parse_tags(raw: str) -> dict[str, str]:
    tags: dict[str, str] = {}
    for tag in raw.split(','):
        if not tag:
            continue
        key, _, value = tag.partition(':')
        tags[key] = value
    return tags


def parse_line(line: str) -> Metric:
    name, sep, rest = line.partition(':')
    if not sep or not name:
        raise MetricParseError(line, 'missing metric name')

    sections = rest.split('|')
    if len(sections) < 2:
        raise MetricParseError(line, 'missing metric type')
    raw_value, raw_kind = sections[0], sections[1]
    if not raw_value:
        raise MetricParseError(line, 'missing metric value')

    kind = _parse_kind(line, raw_kind)
    value = _parse_value(line, raw_value, kind)
    sample_rate = 1.0
    tags: dict[str, str] = {}
    for section in sections[2:]:
        if section.startswith('@'):
            sample_rate = _parse_sample_rate(line, section[1:])
        elif section.startswith('#'):
            tags = _parse_tags(section[1:])

    try:
        return Metric(
            name=name, kind=kind, value=value, sample_rate=sample_rate, tags=tags
        )
    except ValidationError as e:
        raise MetricParseError(line, str(e)) from e
