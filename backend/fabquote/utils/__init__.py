from .errors import (
    error_response,
    error_envelope,
    QuoteError,
    NotFoundError,
    QuoteValidationError,
    InvalidTransitionError,
    ConflictError,
    RepositoryError,
)
from .json import dumps_bytes
