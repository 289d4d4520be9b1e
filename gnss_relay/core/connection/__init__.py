"""
Connection helpers for the tracking server clients.

- Retry policies with exponential backoff
"""

from .retry_policy import RetryAttempt, RetryOutcome, RetryPolicy, RetryResult

__all__ = [
    'RetryPolicy',
    'RetryResult',
    'RetryOutcome',
    'RetryAttempt',
]
