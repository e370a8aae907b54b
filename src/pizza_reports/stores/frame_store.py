"""
In-memory data store over pandas DataFrames.
"""
import logging
import operator
import traceback

import pandas as pd

from pizza_reports.db.schema import default_schema

logger = logging.getLogger(__name__)

FILTER_OPERATORS = {
    'eq': operator.eq,
    'ge': operator.ge,
    'gt': operator.gt,
    'le': operator.le,
    'lt': operator.lt,
}

# pandas reductions for each aggregate function
AGGREGATIONS = {
    'sum': 'sum',
    'count': 'count',
    'count_distinct': 'nunique',
    'max': 'max',
    'min': 'min',
    'avg': 'mean',
}


def _hour(value):
    if hasattr(value, 'hour'):
        return value.hour
    return int(str(value).split(':')[0])


class DataFrameStore:
    """
    Runs computation requests over one DataFrame per entity.

    Frames use the plain field names of the schema (``order_id``,
    ``price``...). They are copied on construction and never modified.
    """

    def __init__(self, frames, schema=None):
        self.schema = schema if schema is not None else default_schema()
        self._frames = {}
        for entity, df in frames.items():
            df = df.copy()
            for column in df.columns:
                if pd.api.types.is_datetime64_any_dtype(df[column]):
                    df[column] = df[column].dt.date
            self._frames[entity] = df

    def frame(self, entity):
        try:
            return self._frames[entity]
        except KeyError:
            raise ValueError(f"No data loaded for entity '{entity}'") from None

    def run(self, request):
        try:
            logger.info(f"Running {request.query_id} over in-memory frames")

            frame = self._joined_frame(request.entity)
            frame = self._apply_filters(frame, request.filters)
            result = self._aggregate(frame, request)

            if request.rank is not None:
                result = self._rank(result, request.rank)

            if request.order_by:
                result = result.sort_values(
                    by=[sort.column for sort in request.order_by],
                    ascending=[not sort.descending for sort in request.order_by],
                    kind='mergesort',
                )

            if request.limit is not None:
                result = result.head(request.limit)

            columns = request.output_columns()
            return [
                dict(zip(columns, row))
                for row in result[columns].itertuples(index=False, name=None)
            ]
        except Exception as e:
            logger.error(f"Error running {request.query_id}: {str(e)}")
            logger.error(traceback.format_exc())
            raise

    def _joined_frame(self, entity):
        """
        Join the base entity with every entity reachable through foreign keys.
        Columns are qualified as ``entity.field``.
        """
        joined = self.frame(entity).add_prefix(f"{entity}.")

        for step in self.schema.join_path(entity):
            parent = self.frame(step.parent).add_prefix(f"{step.parent}.")
            rows_before = len(joined)
            joined = pd.merge(
                joined,
                parent,
                left_on=f"{step.child}.{step.child_field}",
                right_on=f"{step.parent}.{step.parent_field}",
                how='inner'
            )
            dropped = rows_before - len(joined)
            if dropped:
                logger.warning(
                    f"Dropped {dropped} {step.child} rows with no matching {step.parent}"
                )

        return joined

    def _values(self, frame, field):
        derived = self.schema.derived(field)
        if derived is None:
            return frame[field]
        if derived.kind == 'product':
            left, right = derived.sources
            return frame[left] * frame[right]
        if derived.kind == 'hour':
            (source,) = derived.sources
            return frame[source].map(_hour)
        raise ValueError(f"Unsupported derived field kind: {derived.kind}")

    def _apply_filters(self, frame, filters):
        for condition in filters:
            compare = FILTER_OPERATORS[condition.op]
            frame = frame[compare(self._values(frame, condition.field), condition.value)]
        return frame

    def _aggregate(self, frame, request):
        work = pd.DataFrame(index=frame.index)
        for key in request.group_by:
            work[key.name] = self._values(frame, key.field)
        for measure in request.measures:
            work[f"__{measure.name}"] = self._values(frame, measure.field)

        if not request.group_by:
            row = {
                measure.name: getattr(work[f"__{measure.name}"], AGGREGATIONS[measure.function])()
                for measure in request.measures
            }
            return pd.DataFrame([row])

        grouped = work.groupby([key.name for key in request.group_by], sort=True, dropna=False)
        return grouped.agg(**{
            measure.name: (f"__{measure.name}", AGGREGATIONS[measure.function])
            for measure in request.measures
        }).reset_index()

    def _rank(self, result, rank):
        """Dense rank within each partition; rows ranked past the limit are dropped."""
        partition = list(rank.partition_by)
        sort_columns = [sort.column for sort in rank.order_by]

        ordered = result.sort_values(
            by=partition + sort_columns,
            ascending=[True] * len(partition) + [not sort.descending for sort in rank.order_by],
            kind='mergesort',
        )
        if ordered.empty:
            ordered[rank.name] = pd.Series(dtype='int64')
            return ordered

        keys = ordered[partition + sort_columns]
        changed = keys.ne(keys.shift()).any(axis=1).astype('int64')
        ordered[rank.name] = changed.groupby([ordered[column] for column in partition]).cumsum()
        return ordered[ordered[rank.name] <= rank.limit]
