"""
Resilience Layer for awaylog.

Provides retry handling for storage I/O.
"""

from .retry import execute_with_retry, is_transient_error

__all__ = [
    "execute_with_retry",
    "is_transient_error",
]
