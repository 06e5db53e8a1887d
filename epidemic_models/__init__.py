"""Parameters, calibration data and exceptions for age-structured SEPAIHRD epidemic models."""

__version__ = "0.1.0"

__all__ = [
    "exceptions",
    "parameters",
    "calibration_data",
]