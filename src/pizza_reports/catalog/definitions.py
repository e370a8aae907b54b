"""
Declarative report definitions.

A report is data, not code: a QueryDefinition names the report, its tier and
parameters, and carries one of four computation descriptors that the query
executor knows how to run.
"""
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import ClassVar, Optional, Tuple

from pizza_reports.execution.request import GroupKey, Measure, Filter, Sort

TIERS = ('basic', 'intermediate', 'advanced')
PARAMETER_TYPES = ('integer', 'date', 'string')


@dataclass(frozen=True)
class Param:
    """Reference to a bound parameter, resolved when a request is built."""
    name: str


def resolve(value, params):
    if isinstance(value, Param):
        return params.get(value.name)
    return value


@dataclass(frozen=True)
class ParameterSpec:
    type: str
    required: bool = False
    default: object = None
    minimum: Optional[int] = None
    description: str = ''

    def __post_init__(self):
        if self.type not in PARAMETER_TYPES:
            raise ValueError(f"Unsupported parameter type: {self.type}")

    def coerce(self, value):
        """
        Check ``value`` against the declared type and return it in canonical form.

        Raises ValueError or TypeError with a short reason.
        """
        if self.type == 'integer':
            if isinstance(value, bool) or not isinstance(value, int):
                raise TypeError(f"expected integer, got {type(value).__name__}")
            if self.minimum is not None and value < self.minimum:
                raise ValueError(f"must be >= {self.minimum}")
            return value
        if self.type == 'date':
            if isinstance(value, datetime):
                return value.date()
            if isinstance(value, date):
                return value
            if isinstance(value, str):
                try:
                    return date.fromisoformat(value)
                except ValueError:
                    raise ValueError(f"not an ISO date: {value!r}") from None
            raise TypeError(f"expected date, got {type(value).__name__}")
        if not isinstance(value, str):
            raise TypeError(f"expected string, got {type(value).__name__}")
        return value

    def from_text(self, text):
        """Parse a command line value; unparseable text is returned unchanged."""
        if self.type == 'integer':
            try:
                return int(text)
            except ValueError:
                return text
        return text

    def describe(self):
        default = self.default.isoformat() if isinstance(self.default, date) else self.default
        return {
            'type': self.type,
            'required': self.required,
            'default': default,
            'description': self.description,
        }


def _param_names(values):
    return {value.name for value in values if isinstance(value, Param)}


@dataclass(frozen=True)
class SimpleAggregation:
    """Group, aggregate, order and limit. No group keys yields a single row."""
    kind: ClassVar[str] = 'simple_aggregation'

    entity: str
    measures: Tuple[Measure, ...]
    group_by: Tuple[GroupKey, ...] = ()
    filters: Tuple[Filter, ...] = ()
    order_by: Tuple[Sort, ...] = ()
    limit: object = None

    def output_columns(self):
        return tuple(key.name for key in self.group_by) + tuple(m.name for m in self.measures)

    def referenced_fields(self):
        return ([key.field for key in self.group_by] + [m.field for m in self.measures]
                + [f.field for f in self.filters])

    def referenced_params(self):
        return _param_names([f.value for f in self.filters] + [self.limit])


@dataclass(frozen=True)
class TwoLevelAggregation:
    """
    Aggregate per group, then aggregate the per-group values once more.

    ``second_level`` is 'share' (each group's percentage of the grand total,
    rows kept) or 'avg' (mean of the group values, one row).
    """
    kind: ClassVar[str] = 'two_level_aggregation'

    entity: str
    group_by: Tuple[GroupKey, ...]
    measure: Measure
    second_level: str
    output: str
    filters: Tuple[Filter, ...] = ()
    order_by: Tuple[Sort, ...] = ()

    def __post_init__(self):
        if self.second_level not in ('share', 'avg'):
            raise ValueError(f"Unsupported second level aggregation: {self.second_level}")

    def output_columns(self):
        if self.second_level == 'avg':
            return (self.output,)
        return tuple(key.name for key in self.group_by) + (self.measure.name, self.output)

    def referenced_fields(self):
        return ([key.field for key in self.group_by] + [self.measure.field]
                + [f.field for f in self.filters])

    def referenced_params(self):
        return _param_names([f.value for f in self.filters])


@dataclass(frozen=True)
class WindowedCumulative:
    """Per-date aggregate followed by a running total in ascending date order."""
    kind: ClassVar[str] = 'windowed_cumulative'

    entity: str
    date_key: GroupKey
    measure: Measure
    output: str
    filters: Tuple[Filter, ...] = ()

    def output_columns(self):
        return (self.date_key.name, self.measure.name, self.output)

    def referenced_fields(self):
        return [self.date_key.field, self.measure.field] + [f.field for f in self.filters]

    def referenced_params(self):
        return _param_names([f.value for f in self.filters])


@dataclass(frozen=True)
class PartitionedRank:
    """
    Aggregate per (partition, item), rank items inside each partition by the
    measure descending then item ascending, and keep the top ``limit``.
    """
    kind: ClassVar[str] = 'partitioned_rank'

    entity: str
    partition: GroupKey
    item: GroupKey
    measure: Measure
    limit: object
    filters: Tuple[Filter, ...] = ()
    rank_name: str = 'rank'

    def output_columns(self):
        return (self.partition.name, self.item.name, self.measure.name, self.rank_name)

    def referenced_fields(self):
        return ([self.partition.field, self.item.field, self.measure.field]
                + [f.field for f in self.filters])

    def referenced_params(self):
        return _param_names([f.value for f in self.filters] + [self.limit])


@dataclass(frozen=True)
class QueryDefinition:
    """One named report of the catalog. Immutable once built."""
    id: str
    tier: str
    description: str
    computation: object
    parameters: Tuple[Tuple[str, ParameterSpec], ...] = ()
    columns: Tuple[str, ...] = field(default=())

    def __post_init__(self):
        if self.tier not in TIERS:
            raise ValueError(f"Query {self.id}: tier must be one of {TIERS}, got {self.tier!r}")
        available = self.computation.output_columns()
        if not self.columns:
            object.__setattr__(self, 'columns', tuple(available))
        unknown = [column for column in self.columns if column not in available]
        if unknown:
            raise ValueError(f"Query {self.id}: unknown output columns {unknown}")
        unsortable = [
            sort.column for sort in getattr(self.computation, 'order_by', ())
            if sort.column not in available
        ]
        if unsortable:
            raise ValueError(f"Query {self.id}: cannot order by unknown columns {unsortable}")
        undeclared = self.computation.referenced_params() - set(self.parameter_schema())
        if undeclared:
            raise ValueError(f"Query {self.id}: undeclared parameters {sorted(undeclared)}")

    def parameter_schema(self):
        return dict(self.parameters)

    def describe(self):
        return {
            'id': self.id,
            'tier': self.tier,
            'description': self.description,
            'parameter_schema': {
                name: spec.describe() for name, spec in self.parameters
            },
        }
