"""
Structured logging for the Limitless trader.

Records carry the wallet address and event tag sent by WalletLogger so
JSON output can be filtered per wallet.
"""

import logging
import sys
from typing import Optional
from pythonjsonlogger.json import JsonFormatter


ROOT_LOGGER_NAME = "limitless_trader"

JSON_FORMAT = '%(timestamp)s %(level)s %(name)s %(wallet)s %(tag)s %(message)s'
TEXT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - [%(tag)s] %(message)s'


class WalletContextFilter(logging.Filter):
    """Default the wallet and tag fields for records not sent by WalletLogger."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "wallet"):
            record.wallet = None
        if not hasattr(record, "tag"):
            record.tag = "-"
        return True


class WalletJsonFormatter(JsonFormatter):
    """JSON formatter with level, logger and timestamp fields."""

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)
        log_record['level'] = record.levelname
        log_record['logger'] = record.name
        log_record['timestamp'] = self.formatTime(record, self.datefmt)


def setup_logging(
    level: str = "INFO",
    json_format: bool = True,
    logger_name: Optional[str] = None
) -> logging.Logger:
    """
    Set up logging configuration.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_format: Whether to use JSON format
        logger_name: Optional specific logger name

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(logger_name or ROOT_LOGGER_NAME)
    logger.setLevel(getattr(logging, level.upper()))

    # Remove existing handlers
    logger.handlers = []

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(getattr(logging, level.upper()))
    handler.addFilter(WalletContextFilter())

    if json_format:
        formatter = WalletJsonFormatter(JSON_FORMAT)
    else:
        formatter = logging.Formatter(TEXT_FORMAT)

    handler.setFormatter(formatter)
    logger.addHandler(handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a child logger with the given name."""
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def short_address(wallet_address: Optional[str]) -> str:
    """Render a wallet address as a short `[0x1234ab...]` prefix."""
    if not wallet_address:
        return ""
    return f"[{wallet_address[:8]}...]"


class WalletLogger:
    """
    Logger for per-wallet chain events.

    Every call takes the wallet address (or None for process-wide events),
    a short severity tag and a message. The address and tag travel as
    structured fields so JSON output can be filtered per wallet.
    """

    def __init__(self, name: str = "wallet"):
        self.logger = get_logger(name)

    def _log(
        self,
        level: int,
        wallet_address: Optional[str],
        tag: str,
        message: str
    ) -> None:
        prefix = short_address(wallet_address)
        text = f"{prefix} {message}" if prefix else message
        self.logger.log(
            level,
            text,
            extra={
                "wallet": wallet_address,
                "tag": tag
            }
        )

    def debug(self, wallet_address: Optional[str], tag: str, message: str) -> None:
        self._log(logging.DEBUG, wallet_address, tag, message)

    def info(self, wallet_address: Optional[str], tag: str, message: str) -> None:
        self._log(logging.INFO, wallet_address, tag, message)

    def success(self, wallet_address: Optional[str], tag: str, message: str) -> None:
        self._log(logging.INFO, wallet_address, tag, message)

    def warn(self, wallet_address: Optional[str], tag: str, message: str) -> None:
        self._log(logging.WARNING, wallet_address, tag, message)

    def error(self, wallet_address: Optional[str], tag: str, message: str) -> None:
        self._log(logging.ERROR, wallet_address, tag, message)
