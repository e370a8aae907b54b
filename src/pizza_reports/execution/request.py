"""
Structured computation requests handed to a data store.

A request never contains query text. Stores translate it into whatever
their backend understands (pandas operations, a SQLAlchemy select, ...).
"""
from dataclasses import dataclass
from typing import Optional, Tuple

AGGREGATE_FUNCTIONS = ('sum', 'count', 'count_distinct', 'max', 'min', 'avg')
FILTER_OPERATORS = ('eq', 'ge', 'gt', 'le', 'lt')


@dataclass(frozen=True)
class GroupKey:
    """Group rows by ``field`` and expose the key as column ``name``."""
    field: str
    name: str


@dataclass(frozen=True)
class Measure:
    """Aggregate ``field`` with ``function`` into column ``name``."""
    name: str
    function: str
    field: str

    def __post_init__(self):
        if self.function not in AGGREGATE_FUNCTIONS:
            raise ValueError(f"Unsupported aggregate function: {self.function}")


@dataclass(frozen=True)
class Filter:
    """Keep rows where ``field <op> value``. ``value`` may be a Param in a definition."""
    field: str
    op: str
    value: object

    def __post_init__(self):
        if self.op not in FILTER_OPERATORS:
            raise ValueError(f"Unsupported filter operator: {self.op}")


@dataclass(frozen=True)
class Sort:
    column: str
    descending: bool = False


@dataclass(frozen=True)
class RankWindow:
    """
    Dense rank of aggregated rows within each partition, ordered by
    ``order_by``; rows ranked above ``limit`` are dropped.
    """
    partition_by: Tuple[str, ...]
    order_by: Tuple[Sort, ...]
    limit: int
    name: str = 'rank'


@dataclass(frozen=True)
class ComputationRequest:
    query_id: str
    entity: str
    measures: Tuple[Measure, ...]
    group_by: Tuple[GroupKey, ...] = ()
    filters: Tuple[Filter, ...] = ()
    order_by: Tuple[Sort, ...] = ()
    limit: Optional[int] = None
    rank: Optional[RankWindow] = None

    def output_columns(self):
        columns = [key.name for key in self.group_by] + [m.name for m in self.measures]
        if self.rank is not None:
            columns.append(self.rank.name)
        return columns
