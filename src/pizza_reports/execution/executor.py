"""
Query executor: turns a catalog definition plus parameters into a report.

The executor validates parameters and the definition, builds a structured
ComputationRequest, hands it to a data store's ``run(request)`` and maps the
returned rows into a ReportResult. Second level computations (percentage of
total, average of group values, running totals) are applied here, over the
per-group rows the store returned, so that group values and totals always
come from the same numbers.
"""
import logging
import math

from pizza_reports.catalog.definitions import resolve
from pizza_reports.catalog.registry import default_registry
from pizza_reports.db.schema import default_schema
from pizza_reports.errors import InvalidParameter, DataStoreError
from pizza_reports.execution.request import ComputationRequest, RankWindow, Sort
from pizza_reports.execution.result import ReportResult, normalize_value

logger = logging.getLogger(__name__)


def bind_parameters(definition, params):
    """
    Validate ``params`` against the definition's parameter schema.

    Returns the bound parameters with defaults applied. Unknown, missing and
    badly typed parameters are all reported in one InvalidParameter.
    """
    params = dict(params or {})
    schema = definition.parameter_schema()
    problems = {}

    for name in params:
        if name not in schema:
            problems[name] = 'unknown parameter'

    bound = {}
    for name, spec in schema.items():
        value = params.get(name)
        if value is None:
            if spec.required:
                problems[name] = 'missing'
            elif spec.default is not None:
                bound[name] = spec.default
            continue
        try:
            bound[name] = spec.coerce(value)
        except (TypeError, ValueError) as e:
            problems[name] = str(e)

    if problems:
        raise InvalidParameter(problems.keys(), problems)
    return bound


def _bound_filters(filters, params):
    """Resolve filter parameters; filters whose parameter was not given are dropped."""
    resolved = []
    for condition in filters:
        value = resolve(condition.value, params)
        if value is None:
            continue
        resolved.append(type(condition)(condition.field, condition.op, value))
    return tuple(resolved)


def _sort_rows(rows, order_by):
    rows = list(rows)
    for sort in reversed(order_by):
        rows.sort(key=lambda row: row[sort.column], reverse=sort.descending)
    return rows


def _number(value):
    return 0 if value is None else value


# Request builders, one per computation kind

def _simple_request(query_id, computation, params):
    return ComputationRequest(
        query_id=query_id,
        entity=computation.entity,
        group_by=computation.group_by,
        measures=computation.measures,
        filters=_bound_filters(computation.filters, params),
        order_by=computation.order_by,
        limit=resolve(computation.limit, params),
    )


def _two_level_request(query_id, computation, params):
    return ComputationRequest(
        query_id=query_id,
        entity=computation.entity,
        group_by=computation.group_by,
        measures=(computation.measure,),
        filters=_bound_filters(computation.filters, params),
        order_by=tuple(Sort(key.name) for key in computation.group_by),
    )


def _cumulative_request(query_id, computation, params):
    return ComputationRequest(
        query_id=query_id,
        entity=computation.entity,
        group_by=(computation.date_key,),
        measures=(computation.measure,),
        filters=_bound_filters(computation.filters, params),
        order_by=(Sort(computation.date_key.name),),
    )


def _rank_request(query_id, computation, params):
    rank = RankWindow(
        partition_by=(computation.partition.name,),
        order_by=(Sort(computation.measure.name, descending=True), Sort(computation.item.name)),
        limit=resolve(computation.limit, params),
        name=computation.rank_name,
    )
    return ComputationRequest(
        query_id=query_id,
        entity=computation.entity,
        group_by=(computation.partition, computation.item),
        measures=(computation.measure,),
        filters=_bound_filters(computation.filters, params),
        order_by=(Sort(computation.partition.name), Sort(computation.rank_name)),
        rank=rank,
    )


# Second level computations over the rows a store returned

def _finish_simple(computation, rows):
    return rows


def _finish_two_level(computation, rows):
    values = [_number(row[computation.measure.name]) for row in rows]
    if computation.second_level == 'avg':
        average = math.fsum(values) / len(values) if values else 0.0
        return [{computation.output: average}]

    # Grand total from the same per-group values the shares are taken of
    total = math.fsum(values)
    finished = []
    for row, value in zip(rows, values):
        row = dict(row)
        row[computation.output] = (value / total * 100.0) if total else 0.0
        finished.append(row)
    return _sort_rows(finished, computation.order_by)


def _finish_cumulative(computation, rows):
    # Rows are already one per date, so ties on the date were summed by the grouping
    rows = _sort_rows(rows, (Sort(computation.date_key.name),))
    running = 0
    finished = []
    for row in rows:
        running += _number(row[computation.measure.name])
        row = dict(row)
        row[computation.output] = running
        finished.append(row)
    return finished


def _finish_rank(computation, rows):
    return rows


_COMPUTATIONS = {
    'simple_aggregation': (_simple_request, _finish_simple),
    'two_level_aggregation': (_two_level_request, _finish_two_level),
    'windowed_cumulative': (_cumulative_request, _finish_cumulative),
    'partitioned_rank': (_rank_request, _finish_rank),
}


class QueryExecutor:
    """Stateless executor over a registry and a schema descriptor."""

    def __init__(self, registry=None, schema=None):
        self.registry = registry if registry is not None else default_registry()
        self.schema = schema if schema is not None else default_schema()

    def build_request(self, definition, params):
        build, _ = _COMPUTATIONS[definition.computation.kind]
        return build(definition.id, definition.computation, params)

    def execute(self, query_id, params, data_store):
        definition = self.registry.get(query_id)
        bound = bind_parameters(definition, params)
        self.schema.validate(definition)

        request = self.build_request(definition, bound)
        logger.info(f"Executing report {query_id} with parameters {bound}")

        try:
            rows = [
                {column: normalize_value(value) for column, value in dict(row).items()}
                for row in data_store.run(request)
            ]
        except Exception as e:
            logger.error(f"Data store failed for report {query_id}: {str(e)}")
            raise DataStoreError(f"Data store failed running {query_id}: {e}", cause=e) from e

        expected = request.output_columns()
        missing = [column for column in expected if rows and column not in rows[0]]
        if missing:
            raise DataStoreError(f"Data store returned no column(s) {missing} for {query_id}")

        _, finish = _COMPUTATIONS[definition.computation.kind]
        rows = finish(definition.computation, rows)

        result = ReportResult.build(
            query_id=query_id,
            params=bound,
            columns=definition.columns,
            rows=({column: row[column] for column in definition.columns} for row in rows),
        )
        logger.info(f"Report {query_id} returned {len(result)} rows")
        return result


def execute(query_id, params, data_store):
    """Run a catalog report against ``data_store`` using the default catalog."""
    return QueryExecutor().execute(query_id, params, data_store)
