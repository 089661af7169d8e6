"""Export feature tables to ARFF and load them back."""

from pathlib import Path
from typing import List
import logging
import re

import numpy as np
import pandas as pd
from scipy.io import arff

from stylometry_api.core.constants import CLASS_ATTRIBUTE, TITLE_ATTRIBUTE

logger = logging.getLogger(__name__)

_SPECIAL_CHARS = set(" \t\n\r,{}%'\"\\")

# Backslash escapes inside quoted names and values, as Weka writes them
_ESCAPES = {"\\": "\\\\", "'": "\\'", "\n": "\\n", "\r": "\\r", "\t": "\\t"}
_UNESCAPES = {"n": "\n", "r": "\r", "t": "\t"}
_ESCAPED = re.compile(r"\\(.)", re.DOTALL)


def _quote(value) -> str:
    value = str(value)
    if not value or any(c in _SPECIAL_CHARS for c in value):
        escaped = "".join(_ESCAPES.get(c, c) for c in value)
        return f"'{escaped}'"
    return value


def _unquote(value: str) -> str:
    return _ESCAPED.sub(lambda m: _UNESCAPES.get(m.group(1), m.group(1)), value)


def _is_nominal(table: pd.DataFrame, column: str) -> bool:
    if column in (TITLE_ATTRIBUTE, CLASS_ATTRIBUTE):
        return True
    dtype = table[column].dtype
    return isinstance(dtype, pd.CategoricalDtype) or pd.api.types.is_object_dtype(dtype)


def _nominal_values(series: pd.Series) -> List[str]:
    if isinstance(series.dtype, pd.CategoricalDtype):
        return [str(v) for v in series.cat.categories]
    return sorted({str(v) for v in series.dropna()})


def _dense_values(series: pd.Series) -> np.ndarray:
    if isinstance(series.dtype, pd.SparseDtype):
        series = series.sparse.to_dense()
    return series.to_numpy()


def write_arff(path, table: pd.DataFrame, relation: str = "stylometry"):
    """
    Write a feature table as an ARFF file.

    Feature columns are declared numeric; the title and class columns are
    declared nominal over their categories. Rows are written densely, one
    per document, in table order.

    Args:
        path: Output file
        table: Feature table
        relation: Name written in the @relation header
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    nominal = {c: _is_nominal(table, c) for c in table.columns}
    lines = [f"@relation {_quote(relation)}", ""]
    for column in table.columns:
        if nominal[column]:
            values = ",".join(_quote(v) for v in _nominal_values(table[column]))
            lines.append(f"@attribute {_quote(column)} {{{values}}}")
        else:
            lines.append(f"@attribute {_quote(column)} numeric")
    lines += ["", "@data"]

    columns = [_dense_values(table[c]) for c in table.columns]
    for row in zip(*columns):
        cells = []
        for column, value in zip(table.columns, row):
            if pd.isna(value):
                cells.append("?")
            elif nominal[column]:
                cells.append(_quote(value))
            else:
                cells.append(repr(float(value)))
        lines.append(",".join(cells))

    with open(path, 'w', encoding='utf-8') as f:
        f.write("\n".join(lines) + "\n")

    logger.info(f"Wrote {len(table)} instances to {path}")


def read_arff(path) -> pd.DataFrame:
    """
    Load an ARFF file written by write_arff.

    Returns:
        DataFrame with the file's attributes in order; nominal attributes
        become categoricals. Rows are indexed by document title when the
        file carries a title attribute.
    """
    data, meta = arff.loadarff(str(path))
    names = meta.names()
    table = pd.DataFrame(data, columns=names)

    for name in names:
        kind, values = meta[name]
        if kind != 'nominal':
            continue
        decoded = [v.decode('utf-8') if isinstance(v, bytes) else v for v in table[name]]
        decoded = [None if v == '?' else _unquote(v) for v in decoded]
        table[name] = pd.Categorical(decoded, categories=[_unquote(v) for v in values])

    table.columns = [_unquote(name) for name in names]

    if TITLE_ATTRIBUTE in table.columns:
        table.index = table[TITLE_ATTRIBUTE].astype(str).tolist()

    return table
