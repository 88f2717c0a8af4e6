"""Data module: the Dataset value type and its transforms."""

from .dataset import Dataset
from .detection import ColumnRoles, detect_column_roles
from .transforms import filter_rows, search_rows, sort_rows, update_cell
from .utils import is_missing, is_number, is_present


__all__ = [
    "ColumnRoles",
    "Dataset",
    "detect_column_roles",
    "filter_rows",
    "is_missing",
    "is_number",
    "is_present",
    "search_rows",
    "sort_rows",
    "update_cell",
]
