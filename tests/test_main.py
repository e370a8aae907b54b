"""
Tests for the command line entry point.
"""
import json
import os

import pytest

from pizza_reports.main import main, parse_param_pairs
from pizza_reports.catalog.registry import default_registry
from tests.conftest import SAMPLE_TOTAL_REVENUE, write_dataset_csv


@pytest.fixture
def cli_config(tmp_path, sample_frames):
    input_dir = write_dataset_csv(sample_frames, tmp_path / 'input')
    path = tmp_path / 'config.ini'
    path.write_text(
        "[DATABASE]\n"
        "type = sqlite\n"
        f"name = {tmp_path / 'pizza_sales.db'}\n"
        "\n"
        "[LOGGING]\n"
        "level = WARNING\n"
        "file =\n"
        "\n"
        "[PATHS]\n"
        f"input_dir = {input_dir}\n"
        f"output_dir = {tmp_path / 'output'}\n"
    )
    return str(path)


def test_parse_param_pairs_types_values():
    definition = default_registry().get('top_pizzas_by_revenue')

    assert parse_param_pairs(definition, ['top_n=3', 'start_date=2015-01-02']) == {
        'top_n': 3,
        'start_date': '2015-01-02',
    }
    assert parse_param_pairs(definition, None) == {}


def test_list(cli_config, capsys):
    assert main(['--config', cli_config, 'list', '--tier', 'advanced']) == 0

    out = capsys.readouterr().out
    assert 'cumulative_revenue' in out
    assert 'top_pizzas_per_category' in out
    assert 'total_orders' not in out


def test_run_structured(cli_config, capsys):
    code = main(['--config', cli_config, 'run', 'top_pizzas_by_quantity', '-p', 'top_n=2',
                 '--style', 'structured'])

    assert code == 0
    assert json.loads(capsys.readouterr().out) == [
        {'name': 'The Classic Deluxe', 'quantity': 4},
        {'name': 'The Hawaiian Pizza', 'quantity': 3},
    ]


def test_run_table(cli_config, capsys):
    assert main(['--config', cli_config, 'run', 'total_orders']) == 0

    lines = capsys.readouterr().out.splitlines()
    assert lines[0].strip() == 'total_orders'
    assert lines[1].strip() == '6'


def test_missing_parameter_exits_with_error(cli_config, capsys):
    assert main(['--config', cli_config, 'run', 'top_pizzas_by_quantity']) == 2

    assert 'invalid_parameter' in capsys.readouterr().err


def test_unknown_report(cli_config, capsys):
    assert main(['--config', cli_config, 'run', 'best_topping']) == 2

    assert 'unknown_query' in capsys.readouterr().err


def test_malformed_parameter(cli_config, capsys):
    assert main(['--config', cli_config, 'run', 'top_pizzas_by_quantity', '-p', 'top_n']) == 2

    assert 'name=value' in capsys.readouterr().err


def test_run_with_export(cli_config, tmp_path, capsys):
    code = main(['--config', cli_config, 'run', 'revenue_share_by_category', '--export', 'json'])

    assert code == 0
    file_path = tmp_path / 'output' / 'revenue_share_by_category.json'
    assert os.path.exists(file_path)
    assert str(file_path) in capsys.readouterr().out


def test_check(cli_config, capsys):
    assert main(['--config', cli_config, 'check']) == 0

    assert 'Total issues: 0' in capsys.readouterr().out


def test_load_then_report_from_database(cli_config, capsys):
    assert main(['--config', cli_config, 'load']) == 0
    assert 'order_details: 10 rows' in capsys.readouterr().out

    code = main(['--config', cli_config, '--source', 'database', 'run', 'total_revenue',
                 '--style', 'structured'])

    assert code == 0
    rows = json.loads(capsys.readouterr().out)
    assert rows[0]['total_revenue'] == pytest.approx(SAMPLE_TOTAL_REVENUE)


def test_appending_existing_rows_reports_a_database_error(cli_config, capsys):
    assert main(['--config', cli_config, 'load']) == 0
    capsys.readouterr()

    assert main(['--config', cli_config, 'load', '--append']) == 2

    assert 'database_error' in capsys.readouterr().err


def test_dataset_missing_a_column_reports_invalid_input(cli_config, tmp_path, capsys):
    pizzas = tmp_path / 'input' / 'pizzas.csv'
    pizzas.write_text("pizza_id,name,category_id,size\nhawaiian_m,The Hawaiian Pizza,1,M\n")

    assert main(['--config', cli_config, 'run', 'total_orders']) == 2

    err = capsys.readouterr().err
    assert 'invalid_input' in err
    assert 'price' in err
