"""
Stylist Errors (v1.0.0)
Exceptions that carry the HTTP status the route layer should return.
"""


class StylistError(Exception):
    """Error during a stylist flow."""
    def __init__(self, message: str, status_code: int = 500):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class LLMUnavailableError(StylistError):
    """No LLM backend is configured or enabled."""
    def __init__(self, message: str = "No LLM provider available - check API keys"):
        super().__init__(message, status_code=503)
