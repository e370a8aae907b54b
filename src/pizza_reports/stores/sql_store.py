"""
Relational data store: compiles computation requests into SQLAlchemy Core
selects, leaving the SQL dialect to SQLAlchemy.
"""
import logging
import operator
import traceback

from sqlalchemy import select, func, distinct, extract, cast, Integer

from pizza_reports.db.models import Base
from pizza_reports.db.schema import default_schema, split_field

logger = logging.getLogger(__name__)

FILTER_OPERATORS = {
    'eq': operator.eq,
    'ge': operator.ge,
    'gt': operator.gt,
    'le': operator.le,
    'lt': operator.lt,
}


def _aggregate(function, expression):
    if function == 'sum':
        return func.coalesce(func.sum(expression), 0)
    if function == 'count':
        return func.count(expression)
    if function == 'count_distinct':
        return func.count(distinct(expression))
    if function == 'max':
        return func.max(expression)
    if function == 'min':
        return func.min(expression)
    if function == 'avg':
        return func.avg(expression)
    raise ValueError(f"Unsupported aggregate function: {function}")


def _ordering(column, sort):
    return column.desc() if sort.descending else column.asc()


class SqlAlchemyStore:
    """Runs computation requests against a database through a SQLAlchemy engine."""

    def __init__(self, engine, metadata=None, schema=None):
        self.engine = engine
        self.metadata = metadata if metadata is not None else Base.metadata
        self.schema = schema if schema is not None else default_schema()

    def table(self, entity):
        try:
            return self.metadata.tables[entity]
        except KeyError:
            raise ValueError(f"No table declared for entity '{entity}'") from None

    def column(self, field):
        entity, name = split_field(field)
        return self.table(entity).c[name]

    def expression(self, field):
        derived = self.schema.derived(field)
        if derived is None:
            return self.column(field)
        if derived.kind == 'product':
            left, right = derived.sources
            return self.column(left) * self.column(right)
        if derived.kind == 'hour':
            (source,) = derived.sources
            return cast(extract('hour', self.column(source)), Integer)
        raise ValueError(f"Unsupported derived field kind: {derived.kind}")

    def build_select(self, request):
        """Compile a request into a select statement."""
        joined = self.table(request.entity)
        for step in self.schema.join_path(request.entity):
            child = self.table(step.child)
            parent = self.table(step.parent)
            joined = joined.join(parent, child.c[step.child_field] == parent.c[step.parent_field])

        group_expressions = [self.expression(key.field) for key in request.group_by]
        columns = [
            expression.label(key.name)
            for key, expression in zip(request.group_by, group_expressions)
        ] + [
            _aggregate(measure.function, self.expression(measure.field)).label(measure.name)
            for measure in request.measures
        ]

        statement = select(*columns).select_from(joined)
        for condition in request.filters:
            compare = FILTER_OPERATORS[condition.op]
            statement = statement.where(compare(self.expression(condition.field), condition.value))
        if group_expressions:
            statement = statement.group_by(*group_expressions)

        aggregated = statement.subquery('aggregated')

        if request.rank is not None:
            rank = request.rank
            rank_column = func.dense_rank().over(
                partition_by=[aggregated.c[name] for name in rank.partition_by],
                order_by=[_ordering(aggregated.c[sort.column], sort) for sort in rank.order_by],
            ).label(rank.name)
            ranked = select(*aggregated.c, rank_column).subquery('ranked')
            source = ranked
            statement = select(*ranked.c).where(ranked.c[rank.name] <= rank.limit)
        else:
            source = aggregated
            statement = select(*aggregated.c)

        if request.order_by:
            statement = statement.order_by(
                *[_ordering(source.c[sort.column], sort) for sort in request.order_by]
            )
        if request.limit is not None:
            statement = statement.limit(request.limit)
        return statement

    def run(self, request):
        try:
            logger.info(f"Running {request.query_id} against {self.engine.dialect.name}")
            statement = self.build_select(request)
            with self.engine.connect() as conn:
                rows = conn.execute(statement).mappings().all()
            return [dict(row) for row in rows]
        except Exception as e:
            logger.error(f"Error running {request.query_id}: {str(e)}")
            logger.error(traceback.format_exc())
            raise
