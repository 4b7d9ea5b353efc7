"""Dataset ingestion for bacteria/phage interaction spreadsheets."""

from .loader import dataset_from_frame, load_dataset, parse_rows

__all__ = [
    "dataset_from_frame",
    "load_dataset",
    "parse_rows",
]
