# Utilities
from .logger import setup_logging, get_logger, WalletLogger
from .units import parse_units_prec, format_units_prec, gwei_to_wei

__all__ = [
    "setup_logging",
    "get_logger",
    "WalletLogger",
    "parse_units_prec",
    "format_units_prec",
    "gwei_to_wei",
]
