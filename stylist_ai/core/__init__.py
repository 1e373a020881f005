# Core module
from stylist_ai.core.errors import StylistError, LLMUnavailableError
from stylist_ai.core.validation import (
    ValidationError,
    validate_image_upload,
    validate_file_size,
    validate_mime_type,
)
