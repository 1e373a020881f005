"""
Metrics Module (v1.1.0)
Track request counts per operation and provider.
"""
import threading
from typing import Dict, Any, Optional


def _empty() -> Dict[str, Any]:
    return {
        "total_requests": 0,
        "errors": 0,
        "fallbacks": 0,
        "requests_by_operation": {},
        "requests_by_provider": {},
    }


# Thread-safe metrics storage
_lock = threading.Lock()
_metrics = _empty()


def increment_request(operation: str, provider: Optional[str], error: bool = False, fallback: bool = False):
    """
    Record a request in metrics.

    Args:
        operation: Flow name
        provider: LLM provider used (None for static fallbacks)
        error: Whether request failed
        fallback: Whether a fallback path served the request
    """
    with _lock:
        _metrics["total_requests"] += 1

        by_op = _metrics["requests_by_operation"]
        by_op[operation] = by_op.get(operation, 0) + 1

        if provider:
            by_provider = _metrics["requests_by_provider"]
            by_provider[provider] = by_provider.get(provider, 0) + 1

        if error:
            _metrics["errors"] += 1
        if fallback:
            _metrics["fallbacks"] += 1


def get_metrics() -> Dict[str, Any]:
    """Get current metrics snapshot."""
    with _lock:
        total = _metrics["total_requests"]
        return {
            "total_requests": total,
            "errors": _metrics["errors"],
            "fallbacks": _metrics["fallbacks"],
            "error_ratio": round(_metrics["errors"] / total, 3) if total > 0 else 0.0,
            "requests_by_operation": dict(_metrics["requests_by_operation"]),
            "requests_by_provider": dict(_metrics["requests_by_provider"]),
        }


def reset_metrics():
    """Reset all metrics (for testing)."""
    global _metrics
    with _lock:
        _metrics = _empty()
