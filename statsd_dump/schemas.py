from enum import Enum

from pydantic import BaseModel, Field, ValidationInfo, field_validator


class MetricKind(str, Enum):
    COUNT = 'c'
    GAUGE = 'g'
    TIMING = 'ms'
    LEGACY_TIMING = 'ts'
    HISTOGRAM = 'h'
    DISTRIBUTION = 'd'
    SET = 's'


class Metric(BaseModel):
    model_config = {'frozen': True}

    name: str = Field(min_length=1)
    kind: MetricKind
    value: int | float
    sample_rate: float = Field(default=1.0, gt=0.0, le=1.0)
    tags: dict[str, str] = Field(default_factory=dict)

    @field_validator('value')
    @classmethod
    def _value_matches_kind(
        cls, value: int | float, info: ValidationInfo
    ) -> int | float:
        kind = info.data.get('kind')
        if kind is None:
            return value
        if kind is MetricKind.COUNT:
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(
                    f'count metric value must be an integer, got {value!r}'
                )
            return value
        return float(value)

    def tag_string(self) -> str:
        return ','.join(sorted(f'{key}:{value}' for key, value in self.tags.items()))
