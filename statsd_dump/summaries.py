from abc import ABC, abstractmethod

from statsd_dump.schemas import Metric


class MetricSummary(ABC):
    """Running statistic for every observation of one metric name in a window.

    A summary is seeded with the first observation; ``sample`` always holds
    the most recent record and is only used for its name, kind, sample rate
    and tags when rendering.
    """

    def __init__(self, metric: Metric) -> None:
        self.sample = metric

    @property
    def name(self) -> str:
        return self.sample.name

    def get_sample(self) -> Metric:
        return self.sample

    def add_value(self, metric: Metric) -> None:
        if metric.name != self.name:
            raise ValueError(
                f'Cannot add {metric.name!r} to the summary of {self.name!r}'
            )
        self._accumulate(metric)
        self.sample = metric

    @abstractmethod
    def _accumulate(self, metric: Metric) -> None: ...

    @abstractmethod
    def render_values(self, elapsed: float) -> str: ...


class CountSummary(MetricSummary):
    def __init__(self, metric: Metric) -> None:
        super().__init__(metric)
        self.sum = 0
        self._accumulate(metric)

    def _accumulate(self, metric: Metric) -> None:
        if not isinstance(metric.value, int):
            raise TypeError(f'Count value must be an integer, got {metric.value!r}')
        self.sum += metric.value

    def rate(self, elapsed: float) -> float:
        if elapsed <= 0:
            raise ValueError(f'Elapsed time must be positive, got {elapsed}')
        return self.sum / elapsed

    def render_values(self, elapsed: float) -> str:
        return f'{self.sum}\t{self.rate(elapsed):04f}/s'


class GaugeSummary(MetricSummary):
    """Summary shared by gauges and timings: last value and mean."""

    def __init__(self, metric: Metric) -> None:
        super().__init__(metric)
        self.sum = 0.0
        self.count = 0
        self.last = 0.0
        self._accumulate(metric)

    def _accumulate(self, metric: Metric) -> None:
        value = float(metric.value)
        self.sum += value
        self.count += 1
        self.last = value

    @property
    def average(self) -> float:
        return self.sum / self.count

    def render_values(self, elapsed: float) -> str:
        return f'{self.last:.4f} (last)\t{self.average:.4f} (avg)'
