# Observability module
from stylist_ai.observability.logger import log_request, is_logging_enabled
from stylist_ai.observability.metrics import (
    increment_request,
    get_metrics,
    reset_metrics,
)
from stylist_ai.observability.tracking import record_operation
