"""
Backoff policy for queue dispatch failures.
"""

from __future__ import annotations

from prcapi.transport.base import ResponseNotOKError


def backoff_extension_ms(error: BaseException) -> float:
    """
    Extra delay to add to a queue's pacing interval after a failed dispatch.

    Only an upstream rate limit (HTTP 429) carrying a numeric ``retry-after``
    header extends the delay; every other failure resumes at normal pace.

    Args:
        error: The exception raised by the transport

    Returns:
        Extension in milliseconds
    """
    if isinstance(error, ResponseNotOKError) and error.is_rate_limited:
        retry_after = error.retry_after
        if retry_after is not None:
            return retry_after * 1000
    return 0.0
