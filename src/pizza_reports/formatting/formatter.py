"""
Rendering of report results and catalog listings.
"""
import pandas as pd

STYLES = ('table', 'structured')


def _render_table(columns, records, precision):
    if not records:
        return '  '.join(columns)
    frame = pd.DataFrame(records, columns=list(columns))
    return frame.to_string(index=False, float_format=lambda value: f"{value:.{precision}f}")


def format_report(result, style='table', precision=2):
    """
    Render a ReportResult.

    ``table`` returns aligned text with a header row; ``structured`` returns
    a list of fresh dicts in column order. The result itself is not touched.
    """
    if style == 'structured':
        return result.to_records()
    if style == 'table':
        return _render_table(result.columns, result.to_records(), precision)
    raise ValueError(f"Unknown style {style!r}; expected one of {STYLES}")


def format_catalog(records, style='table'):
    """Render catalog listing records (see CatalogRegistry.describe)."""
    records = list(records)
    if style == 'structured':
        return records
    if style == 'table':
        rows = [
            {
                'id': record['id'],
                'tier': record['tier'],
                'parameters': ', '.join(
                    name + ('' if spec['required'] else '?')
                    for name, spec in record['parameter_schema'].items()
                ) or '-',
                'description': record['description'],
            }
            for record in records
        ]
        return _render_table(('id', 'tier', 'parameters', 'description'), rows, 2)
    raise ValueError(f"Unknown style {style!r}; expected one of {STYLES}")
