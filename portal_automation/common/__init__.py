"""
Shared utilities: logging bootstrap.
"""

from portal_automation.common.global_config import get_logger, init_logger

__all__ = [
    "init_logger",
    "get_logger",
]
