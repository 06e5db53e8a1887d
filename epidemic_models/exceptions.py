"""Exception hierarchy used throughout the epidemic models."""

from __future__ import annotations

import enum


def build_error_message(file, line, function_name, category, message) -> str:
    """Format an error message that carries its source location."""
    return f"[{file}:{line} ({function_name})] {category}: {message}"


class ModelException(RuntimeError):
    """Base exception for epidemic modelling errors."""

    def __init__(self, function_name: str, message: str, file: str | None = None,
                 line: int | None = None) -> None:
        self.function_name = function_name
        self.detail = message
        self.file = file
        self.line = line
        super().__init__(self._format(function_name, message, file, line))

    def _format(self, function_name, message, file, line) -> str:
        if file is not None:
            return build_error_message(file, line, function_name, "ModelException", message)
        return f"[{function_name}] {message}"


class _CategorisedException(ModelException):
    """A model exception whose text is prefixed by a fixed category label."""

    prefix = ""

    def _format(self, function_name, message, file, line) -> str:
        return f"[{function_name}] {self.prefix}{message}"


class InvalidParameterException(_CategorisedException):
    """Raised for invalid method parameters."""


class SimulationException(_CategorisedException):
    """Raised for numerical simulation errors."""

    prefix = "Simulation Error: "


class ModelConstructionException(_CategorisedException):
    """Raised when a model cannot be constructed."""

    prefix = "Model Construction Error: "


class InterventionException(_CategorisedException):
    """Raised when an intervention cannot be applied."""

    prefix = "Intervention Error: "


class FileIOException(_CategorisedException):
    """Raised for file input/output errors."""

    prefix = "File IO Error: "


class DataFormatException(_CategorisedException):
    """Raised for data parsing or format errors."""

    prefix = "Data Format Error: "


class InvalidResultException(_CategorisedException):
    """Raised for invalid simulation results."""

    prefix = "Invalid Result: "


class OutOfRangeException(_CategorisedException):
    """Raised for out-of-range access."""


class CSVErrorType(enum.Enum):
    """Kinds of failure when reading a CSV file."""

    FILE_OPEN_ERROR = enum.auto()
    NOT_ENOUGH_COLUMNS = enum.auto()
    NOT_ENOUGH_ROWS = enum.auto()
    INVALID_NUMBER_FORMAT = enum.auto()


_CSV_MESSAGES = {
    CSVErrorType.FILE_OPEN_ERROR: "Failed to open CSV file: {}",
    CSVErrorType.NOT_ENOUGH_COLUMNS: "Not enough columns in {}",
    CSVErrorType.NOT_ENOUGH_ROWS: "Not enough rows: {}",
    CSVErrorType.INVALID_NUMBER_FORMAT: "Invalid number format at {}",
}


class CSVReadException(DataFormatException):
    """Raised when a CSV file cannot be read or has the wrong shape."""

    def __init__(self, error_type: CSVErrorType, function_name: str, details: str) -> None:
        self.error_type = error_type
        super().__init__(function_name, _CSV_MESSAGES[error_type].format(details))