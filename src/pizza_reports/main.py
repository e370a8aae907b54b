"""
Command line entry point for the pizza sales reporting catalog.
"""
import argparse
import json
import logging
import sys
import time

from sqlalchemy.exc import SQLAlchemyError

from pizza_reports.catalog.registry import default_registry
from pizza_reports.config import Config
from pizza_reports.db.engine import create_db_engine
from pizza_reports.errors import ReportingError
from pizza_reports.execution.executor import QueryExecutor
from pizza_reports.export.writer import export_report, EXPORT_FORMATS
from pizza_reports.formatting.formatter import format_report, format_catalog, STYLES
from pizza_reports.ingestion.loader import (
    load_dataset,
    load_frames_to_database,
    read_dataset_from_database,
)
from pizza_reports.ingestion.quality import run_data_quality_checks, count_issues
from pizza_reports.stores.frame_store import DataFrameStore
from pizza_reports.stores.sql_store import SqlAlchemyStore

logger = logging.getLogger(__name__)


def parse_param_pairs(definition, pairs):
    """
    Turn ``name=value`` strings into parameters typed after the report's
    parameter schema. Unknown names are passed through for the executor to
    reject.
    """
    schema = definition.parameter_schema()
    params = {}
    for pair in pairs or []:
        name, sep, text = pair.partition('=')
        if not sep:
            raise argparse.ArgumentTypeError(f"Parameter {pair!r} is not in name=value form")
        name = name.strip()
        spec = schema.get(name)
        params[name] = spec.from_text(text) if spec is not None else text
    return params


def read_frames(config):
    if config.get_report_source() == 'database':
        return read_dataset_from_database(create_db_engine(config))
    return load_dataset(config)


def build_data_store(config):
    """Data store for the configured report source."""
    if config.get_report_source() == 'database':
        return SqlAlchemyStore(create_db_engine(config))

    frames = load_dataset(config)
    if config.is_quality_check_enabled():
        quality_results = run_data_quality_checks(frames)
        issues = count_issues(quality_results)
        if issues:
            logger.warning(f"Reporting over a dataset with {issues} data quality issues")
    return DataFrameStore(frames)


def _print_structured(value):
    print(json.dumps(value, indent=2, default=str))


def cmd_list(config, args):
    style = args.style or config.get_default_style()
    rendered = format_catalog(default_registry().describe(args.tier), style)
    if style == 'structured':
        _print_structured(rendered)
    else:
        print(rendered)
    return 0


def cmd_run(config, args):
    registry = default_registry()
    definition = registry.get(args.query_id)
    params = parse_param_pairs(definition, args.param)
    style = args.style or config.get_default_style()

    start_time = time.time()
    result = QueryExecutor(registry).execute(definition.id, params, build_data_store(config))
    logger.info(f"Report {definition.id} finished in {time.time() - start_time:.2f} seconds")

    rendered = format_report(result, style, config.get_precision())
    if style == 'structured':
        _print_structured(rendered)
    else:
        print(rendered)

    if args.export:
        file_path = export_report(result, config.get_output_path(), args.export)
        print(f"\nExported to {file_path}")
    return 0


def cmd_check(config, args):
    quality_results = run_data_quality_checks(read_frames(config))
    issues = count_issues(quality_results)

    print("\nData Quality Summary:")
    for check, results in quality_results.items():
        print(f"\n{check.replace('_', ' ').capitalize()}:")
        for name, stats in results.items():
            print(f"  {name}: {stats}")
    print(f"\nTotal issues: {issues}")
    return 1 if issues else 0


def cmd_load(config, args):
    frames = load_dataset(config)
    inserted = load_frames_to_database(create_db_engine(config), frames, replace=not args.append)

    print("\nLoad Summary:")
    for table, count in inserted.items():
        print(f"  {table}: {count} rows")
    return 0


def build_parser():
    parser = argparse.ArgumentParser(description='Pizza Sales Reporting Catalog')
    parser.add_argument('--config', default='config.ini', help='Path to configuration file')
    parser.add_argument('--source', choices=['csv', 'database'], help='Override the report data source')
    subparsers = parser.add_subparsers(dest='command', required=True)

    list_parser = subparsers.add_parser('list', help='List the available reports')
    list_parser.add_argument('--tier', choices=['basic', 'intermediate', 'advanced'])
    list_parser.add_argument('--style', choices=STYLES)
    list_parser.set_defaults(handler=cmd_list)

    run_parser = subparsers.add_parser('run', help='Run one report')
    run_parser.add_argument('query_id', help='Report identifier, see "list"')
    run_parser.add_argument('-p', '--param', action='append', metavar='NAME=VALUE',
                            help='Report parameter, may be repeated')
    run_parser.add_argument('--style', choices=STYLES)
    run_parser.add_argument('--export', choices=EXPORT_FORMATS, help='Also export the result')
    run_parser.set_defaults(handler=cmd_run)

    check_parser = subparsers.add_parser('check', help='Run data quality checks on the dataset')
    check_parser.set_defaults(handler=cmd_check)

    load_parser = subparsers.add_parser('load', help='Load the CSV dataset into the database')
    load_parser.add_argument('--append', action='store_true', help='Keep existing rows')
    load_parser.set_defaults(handler=cmd_load)

    return parser


def main(argv=None):
    """Command line entry point."""
    args = build_parser().parse_args(argv)
    config = Config(args.config)

    if args.source:
        config.config['REPORTS']['source'] = args.source

    try:
        return args.handler(config, args)
    except (ReportingError, argparse.ArgumentTypeError, FileNotFoundError) as e:
        kind = getattr(e, 'kind', 'invalid_argument')
        print(f"Error [{kind}]: {e}", file=sys.stderr)
        return 2
    except ValueError as e:
        logger.error(f"Invalid input: {str(e)}")
        print(f"Error [invalid_input]: {e}", file=sys.stderr)
        return 2
    except SQLAlchemyError as e:
        logger.error(f"Database error: {str(e)}")
        print(f"Error [database_error]: {e.__class__.__name__}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
