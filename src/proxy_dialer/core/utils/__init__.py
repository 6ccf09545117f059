"""Utility functions and helpers."""

from proxy_dialer.core.utils.log_config import LOG_DIR, setup_logging
from proxy_dialer.core.utils.utils import format_bytes, format_elapsed

__all__ = ["format_bytes", "format_elapsed", "LOG_DIR", "setup_logging"]
