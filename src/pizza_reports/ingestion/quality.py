"""
Data quality checks for the pizza sales dataset.

The checks only report problems; the dataset belongs to the data store and
is never modified here.
"""
import logging
import traceback

from pizza_reports.db.schema import default_schema

logger = logging.getLogger(__name__)

# Expected value ranges per table and column
RANGE_CHECKS = {
    'order_details': {
        'quantity': lambda x: x > 0,  # Quantity should be positive
    },
    'pizzas': {
        'price': lambda x: x >= 0,  # Price should be non-negative
    },
}


def run_data_quality_checks(data_frames, schema=None):
    """
    Run a series of data quality checks on the dataset frames.

    """
    try:
        schema = schema if schema is not None else default_schema()
        logger.info("Running data quality checks")

        quality_results = {
            'missing_values': check_missing_values(data_frames),
            'duplicate_keys': check_duplicate_keys(data_frames, schema),
            'value_ranges': check_value_ranges(data_frames),
            'referential_integrity': check_referential_integrity(data_frames, schema),
        }

        total_issues = count_issues(quality_results)
        if total_issues > 0:
            logger.warning(f"Found a total of {total_issues} data quality issues")
        else:
            logger.info("All data quality checks passed")

        return quality_results
    except Exception as e:
        logger.error(f"Error running data quality checks: {str(e)}")
        logger.error(traceback.format_exc())
        raise


def count_issues(quality_results):
    """Total number of problems found across all checks."""
    total = 0
    for result in quality_results.get('missing_values', {}).values():
        total += result['total_missing']
    for result in quality_results.get('duplicate_keys', {}).values():
        total += result['duplicate_count']
    for column_results in quality_results.get('value_ranges', {}).values():
        total += sum(result['invalid_count'] for result in column_results.values())
    for result in quality_results.get('referential_integrity', {}).values():
        total += result['orphaned_count']
    return total


def check_missing_values(data_frames):
    """
    Check for missing values in each DataFrame.
    """
    results = {}

    for table_name, df in data_frames.items():
        # Get count of missing values by column
        missing_by_column = df.isnull().sum()
        total_missing = int(missing_by_column.sum())

        # Only include columns with missing values
        missing_columns = {
            column: int(count) for column, count in missing_by_column.items() if count > 0
        }

        results[table_name] = {
            'total_missing': total_missing,
            'missing_columns': missing_columns
        }

        if total_missing > 0:
            logger.warning(f"Table '{table_name}' has {total_missing} missing values")
            for col, count in missing_columns.items():
                logger.warning(f"  - Column '{col}': {count} missing values")

    return results


def check_duplicate_keys(data_frames, schema):
    """
    Check for duplicate primary keys in each DataFrame.
    """
    results = {}

    for table_name, df in data_frames.items():
        pk_columns = list(schema.entity(table_name).key)
        if not pk_columns or not all(col in df.columns for col in pk_columns):
            results[table_name] = {'duplicate_count': 0, 'duplicate_keys': []}
            continue

        duplicates = df[df.duplicated(subset=pk_columns, keep=False)]
        duplicate_count = len(duplicates)

        results[table_name] = {
            'duplicate_count': duplicate_count,
            'duplicate_keys': duplicates[pk_columns].head(10).values.tolist() if duplicate_count > 0 else []
        }

        if duplicate_count > 0:
            logger.warning(f"Table '{table_name}' has {duplicate_count} duplicate primary keys")

    return results


def check_value_ranges(data_frames):
    """
    Check for values outside of expected ranges.
    """
    results = {}

    for table_name, df in data_frames.items():
        table_results = {}

        for column, condition in RANGE_CHECKS.get(table_name, {}).items():
            if column not in df.columns:
                continue
            # Apply condition and count failures
            invalid_mask = ~df[column].apply(condition).astype(bool)
            invalid_count = int(invalid_mask.sum())

            table_results[column] = {
                'invalid_count': invalid_count,
                'invalid_examples': df.loc[invalid_mask, column].head(5).tolist() if invalid_count > 0 else []
            }

            if invalid_count > 0:
                logger.warning(f"Table '{table_name}' has {invalid_count} invalid values in column '{column}'")

        results[table_name] = table_results

    return results


def check_referential_integrity(data_frames, schema):
    """
    Check that every foreign key value has a matching referenced row.
    """
    results = {}

    for table_name, df in data_frames.items():
        for key, (ref_table, ref_key) in schema.foreign_keys(table_name).items():
            relationship = f"{table_name}.{key} -> {ref_table}.{ref_key}"
            if ref_table not in data_frames or key not in df.columns:
                continue

            fk_values = set(df[key].dropna().unique())
            ref_values = set(data_frames[ref_table][ref_key].unique())

            # Foreign keys without matching reference keys
            orphaned = fk_values - ref_values
            orphaned_count = len(orphaned)

            results[relationship] = {
                'orphaned_count': orphaned_count,
                'orphaned_examples': sorted(orphaned, key=str)[:10]
            }

            if orphaned_count > 0:
                logger.warning(
                    f"Referential integrity issue: {orphaned_count} values in "
                    f"{table_name}.{key} have no matching {ref_table}.{ref_key}"
                )

    return results
