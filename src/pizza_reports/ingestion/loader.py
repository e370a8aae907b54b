"""
Data ingestion components for the pizza sales dataset.
"""
import os
import logging
import traceback

import pandas as pd

from pizza_reports.db.engine import init_db
from pizza_reports.db.models import Base
from pizza_reports.db.schema import default_schema
from pizza_reports.execution.result import normalize_value

logger = logging.getLogger(__name__)

DATASET_FILES = {
    'orders': 'orders.csv',
    'order_details': 'order_details.csv',
    'pizzas': 'pizzas.csv',
    'pizza_categories': 'pizza_categories.csv',
}

# Alternative column names seen in exports of the dataset
COLUMN_ALIASES = {
    'orders': {
        'orderid': 'order_id',
        'date': 'order_date',
        'time': 'order_time',
    },
    'order_details': {
        'order_details_id': 'order_detail_id',
        'orderdetailid': 'order_detail_id',
        'orderid': 'order_id',
        'pizzaid': 'pizza_id',
    },
    'pizzas': {
        'pizzaid': 'pizza_id',
        'pizza_name': 'name',
        'categoryid': 'category_id',
    },
    'pizza_categories': {
        'categoryid': 'category_id',
        'category': 'name',
        'category_name': 'name',
    },
}

DTYPES = {
    'orders': {'order_id': 'int'},
    'order_details': {'order_detail_id': 'int', 'order_id': 'int', 'pizza_id': 'str', 'quantity': 'int'},
    'pizzas': {'pizza_id': 'str', 'name': 'str', 'category_id': 'int', 'size': 'str', 'price': 'float'},
    'pizza_categories': {'category_id': 'int', 'name': 'str'},
}


def normalize_frame(entity, df, schema=None):
    """
    Standardize column names, parse dates and times and keep only the
    schema's columns, in schema order.
    """
    schema = schema if schema is not None else default_schema()

    # Clean column names
    df = df.rename(columns=lambda x: x.strip().lower().replace(' ', '_') if isinstance(x, str) else x)
    aliases = {
        old: new for old, new in COLUMN_ALIASES.get(entity, {}).items()
        if old in df.columns and new not in df.columns
    }
    if aliases:
        logger.info(f"Standardizing column names in '{entity}': {aliases}")
        df = df.rename(columns=aliases)

    fields = list(schema.fields(entity))
    missing = [field for field in fields if field not in df.columns]
    if missing:
        raise ValueError(f"Columns {missing} missing from {entity} data")
    df = df[fields].copy()

    for column, dtype in DTYPES.get(entity, {}).items():
        df[column] = df[column].astype(dtype)

    if entity == 'orders':
        dates = pd.to_datetime(df['order_date'], errors='coerce')
        times = pd.to_datetime(df['order_time'].astype(str).str.slice(0, 8), format='%H:%M:%S', errors='coerce')
        invalid = dates.isnull() | times.isnull()
        if invalid.any():
            logger.warning(f"Dropping {int(invalid.sum())} orders with invalid dates or times")
            df, dates, times = df[~invalid], dates[~invalid], times[~invalid]
        df = df.assign(order_date=dates.dt.date, order_time=times.dt.time).reset_index(drop=True)

    return df


def read_dataset_csv(file_path, entity, schema=None):
    """
    Read one CSV file of the dataset into a normalized DataFrame.
    """
    logger.info(f"Loading {entity} from {file_path}")

    if not os.path.exists(file_path):
        raise FileNotFoundError(f"File not found: {file_path}")

    df = pd.read_csv(file_path)
    logger.info(f"Loaded {len(df)} rows from {file_path}")

    missing_values = df.isnull().sum().sum()
    if missing_values > 0:
        logger.warning(f"Found {missing_values} missing values in {file_path}")

    return normalize_frame(entity, df, schema)


def load_dataset(config=None, input_dir=None, schema=None):
    """
    Load all dataset CSV files.

    Returns:
        dict: entity name -> DataFrame
    """
    try:
        if input_dir is None:
            input_dir = config.get_input_path()

        frames = {
            entity: read_dataset_csv(os.path.join(input_dir, filename), entity, schema)
            for entity, filename in DATASET_FILES.items()
        }
        logger.info(
            "Dataset loaded: " + ", ".join(f"{entity}={len(df)}" for entity, df in frames.items())
        )
        return frames
    except Exception as e:
        logger.error(f"Failed to load dataset: {str(e)}")
        logger.error(traceback.format_exc())
        raise


def load_frames_to_database(engine, frames, replace=True, batch_size=1000):
    """
    Write dataset frames into the database tables, parents before children.

    Returns:
        dict: entity name -> rows inserted
    """
    try:
        init_db(engine, Base)
        tables = Base.metadata.sorted_tables
        inserted = {}

        with engine.begin() as conn:
            if replace:
                for table in reversed(tables):
                    conn.execute(table.delete())
                    logger.info(f"Cleared table {table.name}")

            for table in tables:
                df = frames.get(table.name)
                if df is None or len(df) == 0:
                    logger.warning(f"No data to load for table {table.name}")
                    inserted[table.name] = 0
                    continue

                records = [
                    {column: normalize_value(value) for column, value in record.items()}
                    for record in df.to_dict('records')
                ]
                for i in range(0, len(records), batch_size):
                    conn.execute(table.insert(), records[i:i + batch_size])
                inserted[table.name] = len(records)
                logger.info(f"Successfully loaded {len(records)} rows to {table.name}")

        return inserted
    except Exception as e:
        logger.error(f"Error loading dataset into database: {str(e)}")
        logger.error(traceback.format_exc())
        raise


def read_dataset_from_database(engine, schema=None):
    """
    Read the dataset tables back into normalized DataFrames.
    """
    frames = {}
    for entity in DATASET_FILES:
        df = pd.read_sql_table(entity, engine)
        frames[entity] = normalize_frame(entity, df, schema)
        logger.info(f"Read {len(df)} rows from table {entity}")
    return frames
