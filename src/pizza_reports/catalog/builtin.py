"""
The built-in pizza sales report catalog.
"""
from pizza_reports.catalog.definitions import (
    QueryDefinition,
    ParameterSpec,
    Param,
    SimpleAggregation,
    TwoLevelAggregation,
    WindowedCumulative,
    PartitionedRank,
)
from pizza_reports.execution.request import GroupKey, Measure, Filter, Sort

# Parameters shared by the sales based reports
DATE_RANGE = (
    ('start_date', ParameterSpec('date', description='First order date included')),
    ('end_date', ParameterSpec('date', description='Last order date included')),
)
TOP_N = ('top_n', ParameterSpec('integer', required=True, minimum=1,
                                description='Number of rows to keep'))

DATE_FILTERS = (
    Filter('orders.order_date', 'ge', Param('start_date')),
    Filter('orders.order_date', 'le', Param('end_date')),
)

PIZZA_NAME = GroupKey('pizzas.name', 'name')
CATEGORY = GroupKey('pizza_categories.name', 'category')
ORDER_DATE = GroupKey('orders.order_date', 'order_date')

REVENUE = Measure('revenue', 'sum', 'revenue')
QUANTITY = Measure('quantity', 'sum', 'order_details.quantity')


BUILTIN_QUERIES = (
    # basic
    QueryDefinition(
        id='total_orders',
        tier='basic',
        description='Total number of orders placed.',
        computation=SimpleAggregation(
            entity='orders',
            measures=(Measure('total_orders', 'count_distinct', 'orders.order_id'),),
            filters=DATE_FILTERS,
        ),
        parameters=DATE_RANGE,
    ),
    QueryDefinition(
        id='total_revenue',
        tier='basic',
        description='Total revenue generated from pizza sales.',
        computation=SimpleAggregation(
            entity='order_details',
            measures=(Measure('total_revenue', 'sum', 'revenue'),),
            filters=DATE_FILTERS,
        ),
        parameters=DATE_RANGE,
    ),
    QueryDefinition(
        id='total_pizzas_sold',
        tier='basic',
        description='Total number of pizzas sold.',
        computation=SimpleAggregation(
            entity='order_details',
            measures=(Measure('total_pizzas_sold', 'sum', 'order_details.quantity'),),
            filters=DATE_FILTERS,
        ),
        parameters=DATE_RANGE,
    ),
    QueryDefinition(
        id='highest_priced_pizza',
        tier='basic',
        description='The highest priced pizza on the menu.',
        computation=SimpleAggregation(
            entity='pizzas',
            group_by=(PIZZA_NAME,),
            measures=(Measure('price', 'max', 'pizzas.price'),),
            order_by=(Sort('price', descending=True), Sort('name')),
            limit=1,
        ),
    ),
    QueryDefinition(
        id='most_common_size',
        tier='basic',
        description='The pizza size ordered most often.',
        computation=SimpleAggregation(
            entity='order_details',
            group_by=(GroupKey('pizzas.size', 'size'),),
            measures=(Measure('order_count', 'count', 'order_details.order_detail_id'),),
            filters=DATE_FILTERS,
            order_by=(Sort('order_count', descending=True), Sort('size')),
            limit=1,
        ),
        parameters=DATE_RANGE,
    ),
    QueryDefinition(
        id='top_pizzas_by_quantity',
        tier='basic',
        description='Most ordered pizza types with their quantities.',
        computation=SimpleAggregation(
            entity='order_details',
            group_by=(PIZZA_NAME,),
            measures=(QUANTITY,),
            filters=DATE_FILTERS,
            order_by=(Sort('quantity', descending=True), Sort('name')),
            limit=Param('top_n'),
        ),
        parameters=(TOP_N,) + DATE_RANGE,
    ),

    # intermediate
    QueryDefinition(
        id='quantity_by_category',
        tier='intermediate',
        description='Total quantity ordered per pizza category.',
        computation=SimpleAggregation(
            entity='order_details',
            group_by=(CATEGORY,),
            measures=(QUANTITY,),
            filters=DATE_FILTERS,
            order_by=(Sort('quantity', descending=True), Sort('category')),
        ),
        parameters=DATE_RANGE,
    ),
    QueryDefinition(
        id='orders_by_hour',
        tier='intermediate',
        description='Distribution of orders by hour of the day.',
        computation=SimpleAggregation(
            entity='orders',
            group_by=(GroupKey('order_hour', 'hour'),),
            measures=(Measure('order_count', 'count_distinct', 'orders.order_id'),),
            filters=DATE_FILTERS,
            order_by=(Sort('hour'),),
        ),
        parameters=DATE_RANGE,
    ),
    QueryDefinition(
        id='pizzas_per_category',
        tier='intermediate',
        description='Number of distinct pizzas on the menu per category.',
        computation=SimpleAggregation(
            entity='pizzas',
            group_by=(CATEGORY,),
            measures=(Measure('pizza_count', 'count_distinct', 'pizzas.name'),),
            order_by=(Sort('category'),),
        ),
    ),
    QueryDefinition(
        id='average_pizzas_per_day',
        tier='intermediate',
        description='Average number of pizzas ordered per day, across all days.',
        computation=TwoLevelAggregation(
            entity='order_details',
            group_by=(ORDER_DATE,),
            measure=QUANTITY,
            second_level='avg',
            output='average_pizzas_per_day',
            filters=DATE_FILTERS,
        ),
        parameters=DATE_RANGE,
    ),
    QueryDefinition(
        id='top_pizzas_by_revenue',
        tier='intermediate',
        description='Pizza types bringing the most revenue.',
        computation=SimpleAggregation(
            entity='order_details',
            group_by=(PIZZA_NAME,),
            measures=(REVENUE,),
            filters=DATE_FILTERS,
            order_by=(Sort('revenue', descending=True), Sort('name')),
            limit=Param('top_n'),
        ),
        parameters=(TOP_N,) + DATE_RANGE,
    ),
    QueryDefinition(
        id='average_order_value',
        tier='intermediate',
        description='Average revenue per order.',
        computation=TwoLevelAggregation(
            entity='order_details',
            group_by=(GroupKey('orders.order_id', 'order_id'),),
            measure=REVENUE,
            second_level='avg',
            output='average_order_value',
            filters=DATE_FILTERS,
        ),
        parameters=DATE_RANGE,
    ),

    # advanced
    QueryDefinition(
        id='revenue_share_by_category',
        tier='advanced',
        description='Percentage contribution of each pizza category to total revenue.',
        computation=TwoLevelAggregation(
            entity='order_details',
            group_by=(CATEGORY,),
            measure=REVENUE,
            second_level='share',
            output='revenue_share',
            filters=DATE_FILTERS,
            order_by=(Sort('revenue_share', descending=True), Sort('category')),
        ),
        parameters=DATE_RANGE,
    ),
    QueryDefinition(
        id='cumulative_revenue',
        tier='advanced',
        description='Cumulative revenue generated over time.',
        computation=WindowedCumulative(
            entity='order_details',
            date_key=ORDER_DATE,
            measure=REVENUE,
            output='cumulative_revenue',
            filters=DATE_FILTERS,
        ),
        parameters=DATE_RANGE,
    ),
    QueryDefinition(
        id='top_pizzas_per_category',
        tier='advanced',
        description='Top pizza types by revenue within each category.',
        computation=PartitionedRank(
            entity='order_details',
            partition=CATEGORY,
            item=PIZZA_NAME,
            measure=REVENUE,
            limit=Param('top_n'),
            filters=DATE_FILTERS,
        ),
        parameters=(TOP_N,) + DATE_RANGE,
    ),
)
