"""
Shared data models for the Indisense service.

This module defines the core domain models used across multiple layers
of the application (analysis pipeline, HTTP API, client, CLI).
"""

import math
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, StrictStr, field_validator

EMOTION_LABELS = ("Happy", "Sad", "Anger", "Fear", "Surprise", "Neutral")

# Overall sentiment thresholds, in score points
POSITIVE_THRESHOLD = 40.0
NEGATIVE_THRESHOLD = 40.0


class InputKind(str, Enum):
    """The kind of input a user submits."""

    TEXT = "text"
    AUDIO = "audio"
    VIDEO = "video"


class OverallSentiment(str, Enum):
    POSITIVE = "Positive"
    NEGATIVE = "Negative"
    NEUTRAL = "Neutral"


class EmotionScores(BaseModel):
    """
    Scores for the six canonical emotions, each in [0, 100].

    Scores are expected to sum to roughly 100 but this is not enforced.
    Out-of-range values are clamped; labels the model omits default to 0
    and labels outside the canonical set are ignored.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    happy: float = Field(0.0, alias="Happy")
    sad: float = Field(0.0, alias="Sad")
    anger: float = Field(0.0, alias="Anger")
    fear: float = Field(0.0, alias="Fear")
    surprise: float = Field(0.0, alias="Surprise")
    neutral: float = Field(0.0, alias="Neutral")

    @field_validator("*")
    @classmethod
    def _clamp_score(cls, value: float) -> float:
        if not math.isfinite(value):
            raise ValueError("emotion score must be a finite number")
        return min(max(value, 0.0), 100.0)

    def as_dict(self) -> dict[str, float]:
        """Return the scores keyed by canonical label."""
        return self.model_dump(by_alias=True)


class SentimentResult(BaseModel):
    """Parsed output of the sentiment step."""

    model_config = ConfigDict(frozen=True)

    emotions: EmotionScores
    key_themes: tuple[str, ...] = ()


class AnalysisResult(BaseModel):
    """The outcome of one successful analysis request."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    emotions: EmotionScores = Field(..., description="Per-emotion scores")
    transcription: str | None = Field(
        None, description="Transcribed speech, for media requests only"
    )
    key_themes: tuple[str, ...] = Field(
        (), alias="keyThemes", description="Short key themes of the input"
    )

    @property
    def dominant_emotion(self) -> str:
        """Label with the highest score; ties go to the earlier label."""
        scores = self.emotions.as_dict()
        return max(EMOTION_LABELS, key=lambda label: scores[label])

    @property
    def confidence(self) -> int:
        return round(self.emotions.as_dict()[self.dominant_emotion])

    @property
    def overall_sentiment(self) -> OverallSentiment:
        e = self.emotions
        if e.happy > POSITIVE_THRESHOLD or e.surprise > POSITIVE_THRESHOLD:
            return OverallSentiment.POSITIVE
        if (
            e.sad > NEGATIVE_THRESHOLD
            or e.anger > NEGATIVE_THRESHOLD
            or e.fear > NEGATIVE_THRESHOLD
        ):
            return OverallSentiment.NEGATIVE
        return OverallSentiment.NEUTRAL

    def to_response(self) -> dict:
        """Render the success envelope returned by the handlers."""
        body = {
            "status": "analyzed",
            "emotions": self.emotions.as_dict(),
            "keyThemes": list(self.key_themes),
        }
        if self.transcription is not None:
            body["transcription"] = self.transcription
        return body


# API Request/Response Schemas
class TextAnalysisRequest(BaseModel):
    """Payload for text analysis requests."""

    text: StrictStr = Field(..., description="The text to analyze")

    @field_validator("text")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("text must not be blank")
        return value


class MediaAnalysisRequest(BaseModel):
    """Payload for audio and video analysis requests."""

    model_config = ConfigDict(populate_by_name=True)

    audio_data: StrictStr = Field(
        ..., alias="audioData", min_length=1, description="Base64 encoded media"
    )
    mime_type: str | None = Field(None, alias="mimeType")
    file_name: str | None = Field(None, alias="fileName")


class ErrorResponse(BaseModel):
    """Failure envelope returned by the handlers."""

    status: Literal["error"] = "error"
    message: str
    code: str
