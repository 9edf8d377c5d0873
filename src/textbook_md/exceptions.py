"""Exception classes for the textbook-md pipeline.

Only the table normalization adapter can fail; every other stage is total.
Service failures are classified so the retry loop can pick the right backoff,
and exhaustion is absorbed at reassembly, so none of these ever escape
``convert_text``.
"""


class TextbookMdError(Exception):
    """Base exception for all textbook-md errors."""


class ServiceError(TextbookMdError):
    """Generic failure from the normalization service (short fixed backoff)."""


class ServiceThrottled(ServiceError):
    """The normalization service signalled rate limiting (attempt-scaled backoff)."""


class ServiceExhausted(ServiceError):
    """Raised after the final retry attempt failed.

    Caught at the reassembly boundary, where the original chunk text is
    substituted for the normalized output.
    """

    def __init__(self, attempts: int, last_error: str = ""):
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"Normalization failed after {attempts} attempts: {last_error}")
