"""
Parsing of model gateway replies.

Model replies are free text that usually, but not always, contain a JSON
object somewhere in them: wrapped in markdown fences, preceded by a sentence
of prose, or followed by an explanation. These helpers find the first JSON
object in such a reply and turn it into the shapes the pipeline expects.
"""

import json
from typing import Any

from pydantic import ValidationError

from .errors import InvalidResultShape, MalformedModelResponse, TranscriptionFailed
from .models import EMOTION_LABELS, EmotionScores, SentimentResult

MIN_TRANSCRIPT_WORDS = 2

_decoder = json.JSONDecoder()
_labels_by_lower = {label.lower(): label for label in EMOTION_LABELS}


def extract_json_object(text: str) -> dict[str, Any] | None:
    """
    Find the first JSON object embedded in a block of text.

    Each ``{`` is tried in turn as the start of a JSON document, so braces
    inside string values and prose after the object do not confuse the scan.

    Args:
        text: Raw reply text from the model

    Returns:
        The decoded object, or None if no ``{`` starts a valid JSON object
    """
    index = text.find("{")
    while index != -1:
        try:
            value, _ = _decoder.raw_decode(text, index)
        except json.JSONDecodeError:
            pass
        else:
            if isinstance(value, dict):
                return value
        index = text.find("{", index + 1)
    return None


def parse_transcription(raw: str) -> str:
    """
    Pull the transcription out of a transcription reply.

    Falls back to the whole trimmed reply when it holds no JSON object.
    """
    parsed = extract_json_object(raw)
    if parsed is None:
        return raw.strip()

    transcription = parsed.get("transcription")
    if not isinstance(transcription, str):
        return ""
    return transcription.strip()


def qualifying_words(text: str) -> list[str]:
    """Whitespace separated tokens longer than one character."""
    return [word for word in text.split() if len(word) > 1]


def validate_transcription(transcription: str, message: str | None = None) -> str:
    """
    Reject transcriptions that do not look like speech.

    Raises:
        TranscriptionFailed: If fewer than two qualifying words were heard
    """
    if len(qualifying_words(transcription)) < MIN_TRANSCRIPT_WORDS:
        raise TranscriptionFailed(message)
    return transcription


def parse_sentiment(raw: str) -> SentimentResult:
    """
    Turn a sentiment reply into emotion scores and key themes.

    Raises:
        MalformedModelResponse: If the reply holds no JSON object
        InvalidResultShape: If the object has no usable ``emotions`` field
    """
    parsed = extract_json_object(raw)
    if parsed is None:
        raise MalformedModelResponse()

    emotions = parsed.get("emotions")
    if not emotions or not isinstance(emotions, dict):
        raise InvalidResultShape()

    canonical = _canonical_labels(emotions)
    if not canonical:
        raise InvalidResultShape("No known emotion labels in analysis result")

    try:
        scores = EmotionScores.model_validate(canonical)
    except ValidationError as e:
        raise InvalidResultShape(f"Invalid emotion scores: {e.errors()[0]['msg']}")

    return SentimentResult(
        emotions=scores, key_themes=_key_themes(parsed.get("keyThemes"))
    )


def _canonical_labels(emotions: dict[str, Any]) -> dict[str, Any]:
    """Map label spellings like "happy" or "HAPPY" onto canonical labels."""
    canonical: dict[str, Any] = {}
    for key, value in emotions.items():
        label = _labels_by_lower.get(str(key).strip().lower())
        if label is not None:
            canonical[label] = value
    return canonical


def _key_themes(value: Any) -> tuple[str, ...]:
    if not isinstance(value, list):
        return ()
    return tuple(
        theme.strip() for theme in value if isinstance(theme, str) and theme.strip()
    )
