"""
Tests for the query executor: parameter binding, request building, error
propagation and result mapping.
"""
import datetime as dt
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from pizza_reports.catalog.builtin import BUILTIN_QUERIES
from pizza_reports.catalog.definitions import QueryDefinition, SimpleAggregation
from pizza_reports.catalog.registry import CatalogRegistry, default_registry
from pizza_reports.errors import (
    InvalidParameter,
    DataStoreError,
    UnknownQuery,
    SchemaMismatch,
)
from pizza_reports.execution.executor import QueryExecutor, bind_parameters, execute
from pizza_reports.execution.request import Measure, Sort


@pytest.fixture
def executor():
    return QueryExecutor()


@pytest.fixture
def mock_store():
    store = MagicMock()
    store.run.return_value = [{'total_revenue': 12.5}]
    return store


def test_missing_required_parameter_never_reaches_the_store(executor, mock_store):
    with pytest.raises(InvalidParameter) as excinfo:
        executor.execute('top_pizzas_by_quantity', {}, mock_store)

    assert excinfo.value.names == ['top_n']
    assert excinfo.value.kind == 'invalid_parameter'
    mock_store.run.assert_not_called()


@pytest.mark.parametrize('value', ['3', 0, -1, 2.5, True])
def test_top_n_must_be_a_positive_integer(executor, mock_store, value):
    with pytest.raises(InvalidParameter) as excinfo:
        executor.execute('top_pizzas_by_revenue', {'top_n': value}, mock_store)

    assert excinfo.value.names == ['top_n']
    mock_store.run.assert_not_called()


def test_all_offending_parameters_are_listed(executor, mock_store):
    with pytest.raises(InvalidParameter) as excinfo:
        executor.execute(
            'top_pizzas_by_revenue',
            {'start_date': 'yesterday', 'colour': 'red'},
            mock_store,
        )

    assert excinfo.value.names == ['colour', 'start_date', 'top_n']
    assert 'missing' in str(excinfo.value)


def test_bind_parameters_coerces_dates_and_skips_absent_optionals():
    definition = default_registry().get('total_revenue')

    assert bind_parameters(definition, {'start_date': '2015-02-01'}) == {
        'start_date': dt.date(2015, 2, 1)
    }
    assert bind_parameters(definition, None) == {}


def test_optional_filters_are_dropped_when_not_given(executor):
    definition = executor.registry.get('total_revenue')

    assert executor.build_request(definition, {}).filters == ()

    request = executor.build_request(definition, {'end_date': dt.date(2015, 1, 3)})
    assert len(request.filters) == 1
    assert request.filters[0].op == 'le'
    assert request.filters[0].value == dt.date(2015, 1, 3)


def test_limit_parameter_is_resolved_into_the_request(executor):
    definition = executor.registry.get('top_pizzas_by_quantity')

    request = executor.build_request(definition, {'top_n': 4})

    assert request.limit == 4
    assert request.order_by == (Sort('quantity', descending=True), Sort('name'))


def test_partitioned_rank_request(executor):
    definition = executor.registry.get('top_pizzas_per_category')

    request = executor.build_request(definition, {'top_n': 3})

    assert request.rank.partition_by == ('category',)
    assert request.rank.order_by == (Sort('revenue', descending=True), Sort('name'))
    assert request.rank.limit == 3
    assert [key.name for key in request.group_by] == ['category', 'name']
    assert request.order_by == (Sort('category'), Sort('rank'))


def test_store_failure_is_wrapped_with_its_cause(executor, mock_store):
    failure = ConnectionError("connection lost")
    mock_store.run.side_effect = failure

    with pytest.raises(DataStoreError) as excinfo:
        executor.execute('total_revenue', {}, mock_store)

    assert excinfo.value.cause is failure
    assert excinfo.value.__cause__ is failure
    assert mock_store.run.call_count == 1


def test_store_rows_missing_columns_are_rejected(executor, mock_store):
    mock_store.run.return_value = [{'something_else': 1}]

    with pytest.raises(DataStoreError):
        executor.execute('total_revenue', {}, mock_store)


def test_result_follows_declared_column_order(executor, mock_store):
    mock_store.run.return_value = [
        {'quantity': 3, 'name': 'PizzaA'},
        {'quantity': 1, 'name': 'PizzaB'},
    ]

    result = executor.execute('top_pizzas_by_quantity', {'top_n': 2}, mock_store)

    assert result.columns == ('name', 'quantity')
    assert [list(row) for row in result] == [['name', 'quantity'], ['name', 'quantity']]
    assert result.params == {'top_n': 2}
    assert result.query_id == 'top_pizzas_by_quantity'


def test_unknown_query(executor, mock_store):
    with pytest.raises(UnknownQuery):
        executor.execute('most_popular_topping', {}, mock_store)


def test_schema_mismatch_is_raised_before_dispatch(mock_store):
    broken = QueryDefinition(
        id='pizza_weight',
        tier='basic',
        description='Total weight of pizzas on the menu.',
        computation=SimpleAggregation(
            entity='pizzas',
            measures=(Measure('weight', 'sum', 'pizzas.weight'),),
        ),
    )
    executor = QueryExecutor(registry=CatalogRegistry([broken]))

    with pytest.raises(SchemaMismatch):
        executor.execute('pizza_weight', {}, mock_store)
    mock_store.run.assert_not_called()


def test_every_builtin_query_validates_against_the_schema(executor):
    for definition in BUILTIN_QUERIES:
        executor.schema.validate(definition)


def test_module_level_execute_uses_default_catalog(frame_store):
    result = execute('total_orders', {}, frame_store)

    assert result.scalar() == 6


def test_decimal_values_from_the_store_become_floats(executor, mock_store):
    mock_store.run.return_value = [{'total_revenue': Decimal('50.00')}]

    result = executor.execute('total_revenue', {}, mock_store)

    assert result.scalar() == 50.0
    assert isinstance(result.scalar(), float)


def test_share_of_zero_total_is_zero(executor, mock_store):
    mock_store.run.return_value = [
        {'category': 'Classic', 'revenue': 0.0},
        {'category': 'Veggie', 'revenue': 0.0},
    ]

    result = executor.execute('revenue_share_by_category', {}, mock_store)

    assert result.column('revenue_share') == [0.0, 0.0]


def test_cumulative_sorts_dates_before_accumulating(executor, mock_store):
    mock_store.run.return_value = [
        {'order_date': dt.date(2015, 1, 3), 'revenue': 5.0},
        {'order_date': dt.date(2015, 1, 1), 'revenue': 10.0},
        {'order_date': dt.date(2015, 1, 2), 'revenue': 2.5},
    ]

    result = executor.execute('cumulative_revenue', {}, mock_store)

    assert result.column('order_date') == [
        dt.date(2015, 1, 1), dt.date(2015, 1, 2), dt.date(2015, 1, 3)
    ]
    assert result.column('cumulative_revenue') == [10.0, 12.5, 17.5]


def test_concurrent_executions_share_the_catalog(executor, frame_store):
    with ThreadPoolExecutor(max_workers=4) as pool:
        futures = [
            pool.submit(executor.execute, 'top_pizzas_by_revenue', {'top_n': n}, frame_store)
            for n in (1, 2, 3, 1, 2, 3)
        ]
        lengths = [len(future.result()) for future in futures]

    assert lengths == [1, 2, 3, 1, 2, 3]
