"""
Failure kinds for the Indisense service.

Every failure the analysis pipeline can produce is an ``AnalysisError``
subclass carrying the HTTP status it maps to and a stable wire code, so the
server can render it once at the HTTP boundary and the client can raise the
same class again on the other side.
"""


class AnalysisError(Exception):
    """Base class for failures surfaced to the caller."""

    status_code: int = 500
    default_message: str = "Analysis failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def code(self) -> str:
        return type(self).__name__


class InvalidInput(AnalysisError):
    status_code = 400
    default_message = "Invalid input"


class ServiceUnavailable(AnalysisError):
    default_message = "AI service not configured"


class TranscriptionFailed(AnalysisError):
    status_code = 400
    default_message = (
        "Could not transcribe audio. Please ensure the audio contains clear speech."
    )


class MalformedModelResponse(AnalysisError):
    default_message = "Failed to parse sentiment analysis"


class InvalidResultShape(AnalysisError):
    default_message = "Invalid analysis result structure"


class RateLimited(AnalysisError):
    status_code = 429
    default_message = "Rate limit exceeded. Please try again later."


class QuotaExhausted(AnalysisError):
    status_code = 402
    default_message = "AI credits exhausted. Please add credits."


class UpstreamError(AnalysisError):
    """Any other non-success reply from the model gateway."""

    default_message = "AI analysis failed"

    def __init__(
        self,
        message: str | None = None,
        status: int | None = None,
        body: str = "",
    ) -> None:
        super().__init__(message)
        self.status = status
        self.body = body


class DeviceUnavailable(AnalysisError):
    default_message = "Could not access the recording device"


class CaptureStateError(RuntimeError):
    """Raised when a capture operation is invoked from the wrong state."""


_ERRORS_BY_CODE: dict[str, type[AnalysisError]] = {
    cls.__name__: cls
    for cls in (
        InvalidInput,
        ServiceUnavailable,
        TranscriptionFailed,
        MalformedModelResponse,
        InvalidResultShape,
        RateLimited,
        QuotaExhausted,
        UpstreamError,
        DeviceUnavailable,
    )
}

_ERRORS_BY_STATUS: dict[int, type[AnalysisError]] = {
    400: InvalidInput,
    402: QuotaExhausted,
    429: RateLimited,
}


def error_from_envelope(
    message: str, code: str | None = None, status_code: int | None = None
) -> AnalysisError:
    """
    Rebuild an AnalysisError from a failure envelope.

    Args:
        message: The human readable message from the envelope
        code: The wire code, if the server sent one
        status_code: The HTTP status the envelope arrived with

    Returns:
        An instance of the matching AnalysisError subclass
    """
    cls = _ERRORS_BY_CODE.get(code or "")
    if cls is None:
        cls = _ERRORS_BY_STATUS.get(status_code or 0, AnalysisError)
    return cls(message)
