"""
Client side of the Indisense service.

``AnalysisClient`` posts capture payloads to the analysis handlers and turns
their envelopes back into results or typed errors. ``AnalysisSession`` sits
on top of it and tracks what a user interface shows: the active input kind,
its capture session, the one in-flight request and the latest result.
"""

import logging
from types import TracebackType

import httpx

from .capture import CapturePayload, CaptureSession, MediaDevices
from .errors import AnalysisError, CaptureStateError, UpstreamError, error_from_envelope
from .models import AnalysisResult, InputKind

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:8000"


class AnalysisClient:
    """Async HTTP client for the analysis handlers."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._owns_client = http_client is None
        # No deadline: an analysis waits as long as the model takes
        self._client = http_client or httpx.AsyncClient(timeout=None)

    async def __aenter__(self) -> "AnalysisClient":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def analyze(self, payload: CapturePayload) -> AnalysisResult:
        """
        Send one payload to its handler.

        Args:
            payload: A TextPayload or MediaPayload from a CaptureSession

        Returns:
            The AnalysisResult from the success envelope

        Raises:
            AnalysisError: The subclass named by the failure envelope
        """
        response = await self._client.post(
            f"{self.base_url}/{payload.endpoint}", json=payload.to_request_body()
        )

        try:
            body = response.json()
        except ValueError:
            raise UpstreamError(
                f"Unreadable response from server (HTTP {response.status_code})",
                status=response.status_code,
                body=response.text,
            )

        if not isinstance(body, dict):
            raise UpstreamError(
                "Unexpected response from server",
                status=response.status_code,
                body=response.text,
            )

        if body.get("status") == "error" or not response.is_success:
            raise error_from_envelope(
                body.get("message") or f"HTTP {response.status_code}",
                body.get("code"),
                response.status_code,
            )

        return AnalysisResult.model_validate(body)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


class AnalysisSession:
    """
    State behind an analysis screen.

    At most one analysis runs at a time. Starting a new one clears the
    previous result, and ``reset`` returns to a fresh input state.
    """

    def __init__(
        self,
        client: AnalysisClient,
        kind: InputKind = InputKind.TEXT,
        devices: MediaDevices | None = None,
    ) -> None:
        self.client = client
        self._devices = devices
        self.capture = CaptureSession(kind, devices)
        self.result: AnalysisResult | None = None
        self.error: str | None = None
        self.is_loading = False

    @property
    def kind(self) -> InputKind:
        return self.capture.kind

    def select_kind(self, kind: InputKind) -> CaptureSession:
        """Switch input kind, discarding whatever the old capture held."""
        self.capture.close()
        self.capture = CaptureSession(kind, self._devices)
        return self.capture

    async def submit(self, payload: CapturePayload | None = None) -> AnalysisResult:
        """
        Run one analysis.

        Args:
            payload: What to analyze; defaults to the capture session's candidate

        Returns:
            The new AnalysisResult, also kept on ``self.result``
        """
        if self.is_loading:
            raise CaptureStateError("An analysis is already in progress")
        if payload is None:
            payload = self.capture.submit()

        self.is_loading = True
        self.result = None
        self.error = None
        try:
            self.result = await self.client.analyze(payload)
        except AnalysisError as e:
            logger.error("Analysis error: %s", e.message)
            self.error = e.message
            raise
        finally:
            self.is_loading = False
        return self.result

    def reset(self) -> None:
        """Drop the current result and start over with an empty input."""
        self.result = None
        self.error = None
        self.select_kind(self.kind)
