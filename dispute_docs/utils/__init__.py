"""Utility modules for configuration, logging, retries and AWS integration."""

from .response_formatter import ResponseFormatter, clean_text
from .retry import RetryPolicy, is_retryable

__all__ = [
    'ResponseFormatter',
    'clean_text',
    'RetryPolicy',
    'is_retryable',
]
