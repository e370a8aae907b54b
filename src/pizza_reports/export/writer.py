"""
Export of report results for downstream tools.
"""
import json
import logging
import os
import traceback

logger = logging.getLogger(__name__)

EXPORT_FORMATS = ('csv', 'json')


def _output_file(output_dir, result, extension):
    # Create output directory if it doesn't exist
    if not os.path.exists(output_dir):
        os.makedirs(output_dir)
    return os.path.join(output_dir, f"{result.query_id}.{extension}")


def export_report_to_csv(result, output_dir):
    """
    Export a report result to ``<output_dir>/<query_id>.csv``.

    """
    try:
        file_path = _output_file(output_dir, result, 'csv')
        result.to_frame().to_csv(file_path, index=False)
        logger.info(f"Exported {len(result)} rows to {file_path}")
        return file_path
    except Exception as e:
        logger.error(f"Error exporting {result.query_id} to CSV: {str(e)}")
        logger.error(traceback.format_exc())
        raise


def export_report_to_json(result, output_dir):
    """
    Export a report result, with the parameters it ran with, to
    ``<output_dir>/<query_id>.json``.
    """
    try:
        file_path = _output_file(output_dir, result, 'json')
        with open(file_path, 'w') as f:
            json.dump(result.to_dict(), f, indent=2, default=str)
        logger.info(f"Exported {len(result)} rows to {file_path}")
        return file_path
    except Exception as e:
        logger.error(f"Error exporting {result.query_id} to JSON: {str(e)}")
        logger.error(traceback.format_exc())
        raise


def export_report(result, output_dir, fmt):
    if fmt == 'csv':
        return export_report_to_csv(result, output_dir)
    if fmt == 'json':
        return export_report_to_json(result, output_dir)
    raise ValueError(f"Unsupported export format: {fmt}")
