"""Spreadsheet ingestion for bacteria/phage interaction tables.

Expected sheet layout (first sheet only):

- Row 1: free-form metadata, ignored
- Row 2: headers; columns 1-2 are metadata, columns 3+ are phage names
- Row 3+: bacterium name in column 1, interaction values from column 3

Any non-zero numeric value counts as an interaction (1); blanks and
non-numeric cells count as 0.
"""
from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import Any, List, Sequence

import numpy as np
import pandas as pd

from phagemap.errors import DatasetError
from phagemap.hierarchy.models import Dataset, Leaf

logger = logging.getLogger(__name__)

HEADER_ROW = 1
FIRST_DATA_ROW = 2
FIRST_VALUE_COLUMN = 2

_CSV_SUFFIXES = {".csv": ",", ".tsv": "\t"}
_EXCEL_SUFFIXES = {".xlsx", ".xls"}


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and np.isnan(value):
        return True
    return isinstance(value, str) and value.strip() == ""


def _binarize(values: Sequence[Any], width: int) -> tuple:
    """Coerce raw cells to 0/1, padded or truncated to ``width``."""
    numeric = pd.to_numeric(pd.Series(list(values[:width]), dtype=object), errors="coerce")
    flags = (numeric.fillna(0) != 0).astype(np.int8).tolist()
    flags.extend([0] * (width - len(flags)))
    return tuple(int(v) for v in flags)


def parse_rows(rows: Sequence[Sequence[Any]], source_name: str = "") -> Dataset:
    """Turn raw sheet rows into a Dataset, validating the layout."""
    if len(rows) < 3:
        raise DatasetError("Excel file must have at least 3 rows (metadata, headers, and data)")
    header_row = list(rows[HEADER_ROW])
    if len(header_row) < 3:
        raise DatasetError("Header row (row 2) must have at least 3 columns")

    headers: List[str] = [
        str(cell).strip()
        for cell in header_row[FIRST_VALUE_COLUMN:]
        if not _is_blank(cell)
    ]
    if not headers:
        raise DatasetError("No phage names found in header row (row 2, columns 3+)")

    leaves: List[Leaf] = []
    seen = set()
    for row in rows[FIRST_DATA_ROW:]:
        row = list(row)
        if not row or _is_blank(row[0]):
            continue
        name = str(row[0]).strip()
        if name in seen:
            logger.warning("Duplicate bacterium %s in %s; keeping the first row", name, source_name or "dataset")
            continue
        seen.add(name)
        leaves.append(Leaf(name=name, values=_binarize(row[FIRST_VALUE_COLUMN:], len(headers))))

    if not leaves:
        raise DatasetError("No bacteria data found starting from row 3")

    logger.info("Parsed %d bacteria x %d phages from %s", len(leaves), len(headers), source_name or "rows")
    return Dataset(headers=headers, leaves=leaves, source_name=source_name)


def dataset_from_frame(frame: pd.DataFrame, source_name: str = "") -> Dataset:
    """Parse a header-less DataFrame laid out like the spreadsheet."""
    rows = frame.astype(object).where(frame.notna(), None).values.tolist()
    return parse_rows(rows, source_name=source_name)


def _max_fields(path: Path, sep: str) -> int:
    """Widest row in a delimited file; the metadata row is often shorter."""
    # pandas sizes the frame from the first line, so a short metadata row
    # would make every wider data row a tokenizing error
    with path.open(newline="", encoding="utf-8-sig") as handle:
        return max((len(row) for row in csv.reader(handle, delimiter=sep)), default=1)


def load_dataset(path: Path) -> Dataset:
    """Read a spreadsheet (.xlsx/.xls/.csv/.tsv) into a Dataset."""
    path = Path(path)
    suffix = path.suffix.lower()
    try:
        if suffix in _CSV_SUFFIXES:
            sep = _CSV_SUFFIXES[suffix]
            frame = pd.read_csv(
                path,
                header=None,
                sep=sep,
                names=range(_max_fields(path, sep)),
                dtype=object,
                skip_blank_lines=False,
            )
        elif suffix in _EXCEL_SUFFIXES:
            frame = pd.read_excel(path, sheet_name=0, header=None)
        else:
            raise DatasetError(f"Unsupported file type '{suffix}'; expected .xlsx, .xls, .csv or .tsv")
    except DatasetError:
        raise
    except (OSError, ValueError, ImportError) as exc:
        raise DatasetError(f"Failed to parse Excel file: {exc}") from exc
    return dataset_from_frame(frame, source_name=path.name)
