"""
Operation Tracking (v1.0.0)
One call to log and count a finished stylist operation.
"""
import time
from typing import Optional

from stylist_ai.observability.logger import log_request
from stylist_ai.observability.metrics import increment_request


def record_operation(
    operation: str,
    started: float,
    provider: Optional[str],
    status: str = "success",
    user_id: Optional[str] = None,
    error: Optional[str] = None,
    fallback_used: bool = False
):
    """
    Log and count one finished operation.

    Args:
        operation: Flow name
        started: time.monotonic() stamp taken when the flow began
        provider: LLM provider that served the request
        status: success, fallback or fail
    """
    latency_ms = int((time.monotonic() - started) * 1000)
    log_request(
        operation=operation,
        provider=provider,
        latency_ms=latency_ms,
        status=status,
        user_id=user_id,
        error=error,
        fallback_used=fallback_used,
    )
    increment_request(operation, provider, error=status == "fail", fallback=fallback_used)
