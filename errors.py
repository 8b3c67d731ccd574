"""Error kinds surfaced to API clients.

Every failure the service reports is one of the classes below. Each carries a
stable ``kind`` string and the HTTP status it maps to; ``main`` installs a
single handler that renders them as ``{"error": kind, "message": ...}``.
"""


class NoiseReportError(Exception):
    kind = "InternalError"
    status_code = 500
    default_message = "Unexpected error"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self):
        return {"error": self.kind, "message": self.message}


class Unauthenticated(NoiseReportError):
    kind = "Unauthenticated"
    status_code = 401
    default_message = "Authentication required"


class PermissionDenied(NoiseReportError):
    kind = "PermissionDenied"
    status_code = 403
    default_message = "Permission denied"


class NotFound(NoiseReportError):
    kind = "NotFound"
    status_code = 404
    default_message = "Report not found"


class InvalidInput(NoiseReportError):
    kind = "InvalidInput"
    status_code = 400
    default_message = "Invalid data provided"


class RateLimited(NoiseReportError):
    kind = "RateLimited"
    status_code = 429
    default_message = "Report submission limit reached"


class UpstreamUnavailable(NoiseReportError):
    kind = "UpstreamUnavailable"
    status_code = 502
    default_message = "Upstream service unavailable"


class WriteError(NoiseReportError):
    kind = "WriteError"
    status_code = 500
    default_message = "Database operation failed"
