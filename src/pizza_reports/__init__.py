"""
Pizza sales reporting catalog.

A fixed, named catalog of analytical reports over the pizza sales dataset
(orders, order details, pizzas, pizza categories), run against a pandas or
SQLAlchemy backed data store.
"""
from pizza_reports.catalog.registry import CatalogRegistry, default_registry
from pizza_reports.errors import (
    ReportingError,
    UnknownQuery,
    DuplicateQueryId,
    CatalogFrozen,
    InvalidParameter,
    SchemaMismatch,
    DataStoreError,
)
from pizza_reports.execution.executor import QueryExecutor, execute
from pizza_reports.execution.result import ReportResult
from pizza_reports.formatting.formatter import format_report
from pizza_reports.stores.frame_store import DataFrameStore
from pizza_reports.stores.sql_store import SqlAlchemyStore

__version__ = '0.1.0'
