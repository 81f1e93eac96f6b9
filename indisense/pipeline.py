"""
Analysis pipeline for the Indisense service.

A request runs through a fixed sequence of steps, each of which either
succeeds or raises an ``AnalysisError`` that ends the request:

1. Configuration check (is a gateway credential set?)
2. Transcription, for audio and video requests
3. Sentiment extraction
4. Assembly of the ``AnalysisResult``

The pipeline keeps no per-request state, so one instance serves any number
of concurrent requests.
"""

import base64
import binascii
import logging

from .config import Settings
from .errors import InvalidInput, ServiceUnavailable, UpstreamError
from .gateway import GatewayClient
from .models import (
    AnalysisResult,
    InputKind,
    MediaAnalysisRequest,
    SentimentResult,
    TextAnalysisRequest,
)
from .parsing import parse_sentiment, parse_transcription, validate_transcription
from .prompts import (
    TRANSCRIPTION_INSTRUCTIONS,
    sentiment_prompt,
    sentiment_request,
    transcription_prompt,
)

logger = logging.getLogger(__name__)

_MEDIA_LABELS = {InputKind.AUDIO: "audio", InputKind.VIDEO: "video audio"}


def audio_format_hint(mime_type: str | None) -> str:
    """Format hint for the audio attachment, derived from the MIME type."""
    return "wav" if "wav" in (mime_type or "").lower() else "mp3"


class AnalysisPipeline:
    """Turns analysis requests into validated results via the model gateway."""

    def __init__(self, settings: Settings, gateway: GatewayClient | None = None) -> None:
        self.settings = settings
        self.gateway = gateway or GatewayClient(settings)

    async def analyze_text(self, request: TextAnalysisRequest) -> AnalysisResult:
        """
        Analyze typed text.

        Args:
            request: The validated text request

        Returns:
            Emotion scores and key themes for the text
        """
        self._check_configured()
        logger.info("Analyzing text sentiment: %s", request.text[:100])

        sentiment = await self.extract_sentiment(InputKind.TEXT, request.text)
        return AnalysisResult(
            emotions=sentiment.emotions, key_themes=sentiment.key_themes
        )

    async def analyze_media(
        self, request: MediaAnalysisRequest, kind: InputKind
    ) -> AnalysisResult:
        """
        Transcribe an audio or video submission and analyze what was said.

        Args:
            request: The validated media request
            kind: InputKind.AUDIO or InputKind.VIDEO

        Returns:
            Emotion scores, key themes and the transcription
        """
        if kind is InputKind.TEXT:
            raise ValueError("analyze_media needs an audio or video kind")

        request = self._check_media(request)
        self._check_configured()
        logger.info(
            "Processing %s file: %s MIME: %s",
            kind.value,
            request.file_name or "unknown",
            request.mime_type,
        )

        transcription = await self.transcribe(kind, request)
        sentiment = await self.extract_sentiment(kind, transcription)
        return AnalysisResult(
            emotions=sentiment.emotions,
            key_themes=sentiment.key_themes,
            transcription=transcription,
        )

    async def transcribe(self, kind: InputKind, request: MediaAnalysisRequest) -> str:
        """
        Ask the model for the words spoken in a media submission.

        Raises:
            TranscriptionFailed: If fewer than two real words come back
        """
        label = _MEDIA_LABELS[kind]
        messages = [
            {"role": "system", "content": transcription_prompt(kind)},
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": TRANSCRIPTION_INSTRUCTIONS[kind]},
                    {
                        "type": "input_audio",
                        "input_audio": {
                            "data": request.audio_data,
                            "format": audio_format_hint(request.mime_type),
                        },
                    },
                ],
            },
        ]

        try:
            reply = await self.gateway.complete(messages)
        except UpstreamError as e:
            raise UpstreamError(f"Failed to transcribe {label}", e.status, e.body) from e

        transcription = parse_transcription(reply)
        logger.info("Transcription: %s", transcription)
        return validate_transcription(
            transcription,
            f"Could not transcribe {label}. "
            f"Please ensure the {kind.value} contains clear speech.",
        )

    async def extract_sentiment(self, kind: InputKind, text: str) -> SentimentResult:
        """
        Ask the model for emotion scores and key themes of a piece of text.

        Raises:
            MalformedModelResponse: If the reply holds no JSON object
            InvalidResultShape: If the JSON has no usable emotions
        """
        messages = [
            {"role": "system", "content": sentiment_prompt(kind)},
            {"role": "user", "content": sentiment_request(kind, text)},
        ]

        try:
            reply = await self.gateway.complete(messages)
        except UpstreamError as e:
            raise UpstreamError("Failed to analyze sentiment", e.status, e.body) from e

        result = parse_sentiment(reply)
        logger.info("Sentiment result: %s", result.emotions.as_dict())
        return result

    async def aclose(self) -> None:
        await self.gateway.aclose()

    def _check_configured(self) -> None:
        if not self.settings.api_key:
            logger.error("LOVABLE_API_KEY not configured")
            raise ServiceUnavailable()

    def _check_media(self, request: MediaAnalysisRequest) -> MediaAnalysisRequest:
        # Line-wrapped base64 (RFC 2045) is accepted and forwarded unwrapped
        audio_data = "".join(request.audio_data.split())
        try:
            media = base64.b64decode(audio_data, validate=True)
        except (binascii.Error, ValueError):
            raise InvalidInput("Media data is not valid base64")

        if not media:
            raise InvalidInput("No audio data provided")
        if len(media) > self.settings.max_media_bytes:
            raise InvalidInput(
                f"Media too large: {len(media) / (1024 * 1024):.1f}MB > "
                f"{self.settings.max_media_mb:g}MB limit"
            )
        return request.model_copy(update={"audio_data": audio_data})
