"""
Typed report results.
"""
import math
from dataclasses import dataclass
from decimal import Decimal
from types import MappingProxyType
from typing import Mapping, Tuple

import numpy as np
import pandas as pd


def normalize_value(value):
    """Convert numpy, pandas and Decimal scalars into plain Python values."""
    if value is None:
        return None
    if isinstance(value, pd.Timestamp):
        if pd.isna(value):
            return None
        return value.to_pydatetime()
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, Decimal):
        value = float(value)
    if isinstance(value, float) and math.isnan(value):
        return None
    if value is pd.NaT:
        return None
    return value


@dataclass(frozen=True)
class ReportResult:
    """Rows produced by one report execution, in the report's column order."""
    query_id: str
    params: Mapping[str, object]
    columns: Tuple[str, ...]
    rows: Tuple[Mapping[str, object], ...]

    @classmethod
    def build(cls, query_id, params, columns, rows):
        return cls(
            query_id=query_id,
            params=MappingProxyType(dict(params)),
            columns=tuple(columns),
            rows=tuple(MappingProxyType(dict(row)) for row in rows),
        )

    def __len__(self):
        return len(self.rows)

    def __iter__(self):
        return iter(self.rows)

    def column(self, name):
        return [row[name] for row in self.rows]

    def scalar(self):
        """Value of the first column of the first row, for single value reports."""
        if not self.rows:
            return None
        return self.rows[0][self.columns[0]]

    def to_records(self):
        return [{column: row[column] for column in self.columns} for row in self.rows]

    def to_frame(self):
        return pd.DataFrame(self.to_records(), columns=list(self.columns))

    def to_dict(self):
        params = {
            name: value.isoformat() if hasattr(value, 'isoformat') else value
            for name, value in self.params.items()
        }
        return {'query_id': self.query_id, 'params': params, 'rows': self.to_records()}
