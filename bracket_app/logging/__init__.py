"""
Logging configuration and utilities for the bracket trading assistant.
"""
from .config import configure_logging, get_logger, get_order_logger

__all__ = ["configure_logging", "get_logger", "get_order_logger"]
