"""Domain errors raised by the stores and translated to HTTP responses in main."""


class PadError(Exception):
    """Base class for errors that map to a client-visible response."""

    status_code = 500
    code = "error"
    default_message = "Request failed"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFound(PadError):
    status_code = 404
    code = "not_found"
    default_message = "Not found"


class Unauthorized(PadError):
    status_code = 401
    code = "unauthorized"
    default_message = "Incorrect password"


class AlreadyExists(PadError):
    status_code = 409
    code = "already_exists"
    default_message = "This URL name is already taken."


class InvalidInput(PadError):
    status_code = 400
    code = "invalid_input"
    default_message = "Invalid request"


class InvalidFile(PadError):
    status_code = 400
    code = "invalid_file"
    default_message = "Invalid or unsupported file. Allowed: PDF, JPEG, PNG, DOCX."


class TooLarge(PadError):
    status_code = 413
    code = "too_large"
    default_message = "File too large"


class Expired(PadError):
    status_code = 410
    code = "expired"
    default_message = "File expired"


class UpstreamUnavailable(PadError):
    """An outbound dependency (object storage, summarization) failed or timed out."""

    status_code = 503
    code = "upstream_unavailable"
    default_message = "A required service is unavailable. Please try again later."
