"""Domain layer for datavision."""
from .types import CellValue, ErrorCode, FormulaName, ResultType, SUPPORTED_EXTENSIONS

__all__ = ["CellValue", "ErrorCode", "FormulaName", "ResultType", "SUPPORTED_EXTENSIONS"]
