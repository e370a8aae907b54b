"""
Test configuration and fixtures for pytest.

Provides small pizza sales datasets and data stores (pandas and SQLite)
loaded with them.
"""
import datetime as dt
import os

import pandas as pd
import pytest
from sqlalchemy import create_engine

from pizza_reports.ingestion.loader import load_frames_to_database
from pizza_reports.stores.frame_store import DataFrameStore
from pizza_reports.stores.sql_store import SqlAlchemyStore

COLUMNS = {
    'orders': ['order_id', 'order_date', 'order_time'],
    'order_details': ['order_detail_id', 'order_id', 'pizza_id', 'quantity'],
    'pizzas': ['pizza_id', 'name', 'category_id', 'size', 'price'],
    'pizza_categories': ['category_id', 'name'],
}


def make_frames(orders, order_details, pizzas, categories):
    return {
        'orders': pd.DataFrame(orders, columns=COLUMNS['orders']),
        'order_details': pd.DataFrame(order_details, columns=COLUMNS['order_details']),
        'pizzas': pd.DataFrame(pizzas, columns=COLUMNS['pizzas']),
        'pizza_categories': pd.DataFrame(categories, columns=COLUMNS['pizza_categories']),
    }


def write_dataset_csv(frames, directory):
    """Write frames as the dataset CSV files the loader expects."""
    os.makedirs(directory, exist_ok=True)
    for entity, df in frames.items():
        df.to_csv(os.path.join(directory, f"{entity}.csv"), index=False)
    return str(directory)


SAMPLE_CATEGORIES = [
    (1, 'Classic'),
    (2, 'Veggie'),
    (3, 'Supreme'),
]

SAMPLE_PIZZAS = [
    ('classic_dlx_m', 'The Classic Deluxe', 1, 'M', 16.0),
    ('classic_dlx_l', 'The Classic Deluxe', 1, 'L', 20.5),
    ('pepperoni_m', 'The Pepperoni Pizza', 1, 'M', 12.5),
    ('hawaiian_s', 'The Hawaiian Pizza', 1, 'S', 10.5),
    ('veggie_veg_l', 'The Vegetables Pizza', 2, 'L', 20.25),
    ('spinach_pesto_m', 'The Spinach Pesto Pizza', 2, 'M', 16.5),
    ('ital_supr_xl', 'The Italian Supreme Pizza', 3, 'XL', 25.5),
    ('spicy_ital_m', 'The Spicy Italian Pizza', 3, 'M', 16.5),
]

SAMPLE_ORDERS = [
    (1, dt.date(2015, 1, 1), dt.time(11, 38, 36)),
    (2, dt.date(2015, 1, 1), dt.time(11, 57, 40)),
    (3, dt.date(2015, 1, 2), dt.time(12, 12, 28)),
    (4, dt.date(2015, 1, 2), dt.time(13, 2, 59)),
    (5, dt.date(2015, 1, 3), dt.time(18, 14, 1)),
    (6, dt.date(2015, 1, 4), dt.time(12, 30, 0)),
]

SAMPLE_ORDER_DETAILS = [
    (1, 1, 'classic_dlx_m', 1),
    (2, 1, 'pepperoni_m', 2),
    (3, 2, 'veggie_veg_l', 1),
    (4, 3, 'ital_supr_xl', 1),
    (5, 3, 'hawaiian_s', 3),
    (6, 4, 'classic_dlx_l', 1),
    (7, 4, 'spinach_pesto_m', 2),
    (8, 5, 'spicy_ital_m', 1),
    (9, 5, 'pepperoni_m', 1),
    (10, 6, 'classic_dlx_m', 2),
]

SAMPLE_TOTAL_REVENUE = 232.75


@pytest.fixture
def sample_frames():
    """Six orders over four days, three categories."""
    return make_frames(SAMPLE_ORDERS, SAMPLE_ORDER_DETAILS, SAMPLE_PIZZAS, SAMPLE_CATEGORIES)


@pytest.fixture
def scenario_frames():
    """O1: 2 x PizzaA at $10; O2: 1 x PizzaA at $10 and 1 x PizzaB at $20."""
    return make_frames(
        orders=[
            (1, dt.date(2015, 1, 1), dt.time(12, 0, 0)),
            (2, dt.date(2015, 1, 2), dt.time(13, 0, 0)),
        ],
        order_details=[
            (1, 1, 'pizza_a', 2),
            (2, 2, 'pizza_a', 1),
            (3, 2, 'pizza_b', 1),
        ],
        pizzas=[
            ('pizza_a', 'PizzaA', 1, 'M', 10.0),
            ('pizza_b', 'PizzaB', 1, 'L', 20.0),
        ],
        categories=[(1, 'Classic')],
    )


@pytest.fixture
def empty_frames():
    """A menu but no orders."""
    return make_frames([], [], SAMPLE_PIZZAS, SAMPLE_CATEGORIES)


@pytest.fixture
def frame_store(sample_frames):
    return DataFrameStore(sample_frames)


@pytest.fixture
def sqlite_engine(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'pizza_sales.db'}")
    yield engine
    engine.dispose()


@pytest.fixture
def sql_store(sqlite_engine, sample_frames):
    load_frames_to_database(sqlite_engine, sample_frames)
    return SqlAlchemyStore(sqlite_engine)


def _store_for(request, frames):
    if request.param == 'frames':
        return DataFrameStore(frames)
    engine = request.getfixturevalue('sqlite_engine')
    load_frames_to_database(engine, frames)
    return SqlAlchemyStore(engine)


@pytest.fixture(params=['frames', 'sql'])
def store(request, sample_frames):
    """The sample dataset behind each data store implementation."""
    return _store_for(request, sample_frames)


@pytest.fixture(params=['frames', 'sql'])
def scenario_store(request, scenario_frames):
    return _store_for(request, scenario_frames)


@pytest.fixture(params=['frames', 'sql'])
def empty_store(request, empty_frames):
    return _store_for(request, empty_frames)
