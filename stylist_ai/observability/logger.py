"""
Request Logger (v1.1.0)
Structured JSON lines for every stylist operation.
"""
import os
import json
import logging
from pathlib import Path
from datetime import datetime, timezone
from typing import Optional

# Ensure logs directory exists
LOGS_DIR = Path(os.getenv("STYLIST_LOGS_DIR", Path(__file__).parent.parent.parent / "logs"))
LOGS_DIR.mkdir(parents=True, exist_ok=True)

REQUEST_LOG_FILE = LOGS_DIR / "requests.log"

# Configure request logger
request_logger = logging.getLogger("stylist.requests")
request_logger.setLevel(logging.INFO)

# File handler for requests
file_handler = logging.FileHandler(REQUEST_LOG_FILE, encoding="utf-8")
file_handler.setFormatter(logging.Formatter("%(message)s"))
request_logger.addHandler(file_handler)

# Prevent propagation to root logger
request_logger.propagate = False


def log_request(
    operation: str,
    provider: Optional[str],
    latency_ms: int,
    status: str,
    user_id: Optional[str] = None,
    error: Optional[str] = None,
    fallback_used: bool = False
):
    """
    Log a structured request entry.

    Args:
        operation: Flow name (analyze, recreate, chat, ...)
        provider: LLM provider used (openai/gemini) or None
        latency_ms: Request latency in milliseconds
        status: success, fallback or fail
        user_id: Requesting user (if known)
        error: Error message if failed
        fallback_used: Whether a secondary provider or static fallback served it
    """
    if not is_logging_enabled():
        return

    entry = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "operation": operation,
        "provider": provider,
        "latency_ms": latency_ms,
        "status": status,
        "fallback_used": fallback_used,
    }

    if user_id:
        entry["user_id"] = user_id
    if error:
        entry["error"] = error

    request_logger.info(json.dumps(entry))


def is_logging_enabled() -> bool:
    """Check if request logging is enabled."""
    return os.getenv("STYLIST_LOGGING_ENABLED", "true").lower() == "true"
