"""
Instruction prompts sent to the model gateway.
"""

from .models import EMOTION_LABELS, InputKind

# Emoji treated as strong signals for each emotion in typed text
EMOJI_SIGNALS: dict[str, tuple[str, ...]] = {
    "Happy": ("😊", "😄", "😃", "🎉", "❤️"),
    "Sad": ("😢", "😭", "💔"),
    "Anger": ("😠", "😡", "🤬"),
    "Fear": ("😨", "😰", "😱"),
    "Surprise": ("😮", "😲", "🤯"),
    "Neutral": ("😐", "🤷"),
}

MAX_KEY_THEMES = 3

_TRANSCRIPTION_SHAPE = """Return ONLY a JSON object with this structure:
{
  "transcription": "the exact words spoken in the %s"
}

If there is no speech or the audio is unclear, return:
{
  "transcription": ""
}"""

AUDIO_TRANSCRIPTION_PROMPT = (
    "You are a speech-to-text transcription expert. Listen to the audio and "
    "transcribe it accurately.\n" + _TRANSCRIPTION_SHAPE % "audio"
)

VIDEO_TRANSCRIPTION_PROMPT = (
    "You are a speech-to-text transcription expert. Listen to the audio track "
    "of this video and transcribe all spoken words accurately.\n\n"
    "IMPORTANT:\n"
    "- Only transcribe the spoken words\n"
    "- Do NOT describe what you see in the video\n"
    "- Do NOT analyze facial expressions or body language\n"
    "- Only return what was actually SAID\n\n" + _TRANSCRIPTION_SHAPE % "video"
)

TRANSCRIPTION_INSTRUCTIONS = {
    InputKind.AUDIO: "Please transcribe the speech in this audio:",
    InputKind.VIDEO: (
        "Please transcribe ONLY the speech in this video (ignore visual elements):"
    ),
}


def transcription_prompt(kind: InputKind) -> str:
    if kind is InputKind.VIDEO:
        return VIDEO_TRANSCRIPTION_PROMPT
    return AUDIO_TRANSCRIPTION_PROMPT


def _emoji_table() -> str:
    lines = [
        f"- {' '.join(emoji)} = {label}" for label, emoji in EMOJI_SIGNALS.items()
    ]
    return "Consider emojis as strong sentiment indicators:\n" + "\n".join(lines)


def _result_shape() -> str:
    scores = ",\n".join(f'    "{label}": <0-100>' for label in EMOTION_LABELS)
    themes = ", ".join(f'"theme{n}"' for n in range(1, MAX_KEY_THEMES + 1))
    return (
        "Respond with ONLY this JSON structure, no other text:\n"
        "{\n"
        '  "emotions": {\n'
        f"{scores}\n"
        "  },\n"
        f'  "keyThemes": [{themes}]\n'
        "}\n\n"
        "The emotion scores must sum to approximately 100. "
        f"List at most {MAX_KEY_THEMES} short key themes."
    )


def sentiment_prompt(kind: InputKind) -> str:
    """
    Build the system prompt for the sentiment step.

    Typed text gets the emoji table; transcripts are judged on their words
    alone, without any implied tone of voice or visual context.
    """
    parts = [
        "You are a sentiment analysis expert. Analyze the given text and return "
        "ONLY a valid JSON object with emotion scores."
    ]
    if kind is InputKind.TEXT:
        parts.append(_emoji_table())
    else:
        parts.append(
            "CRITICAL: Base your analysis ONLY on the words provided. Do NOT "
            "consider tone of voice, facial expressions, or any visual elements."
        )
    parts.append(_result_shape())
    return "\n\n".join(parts)


def sentiment_request(kind: InputKind, text: str) -> str:
    """User message carrying the text to analyze."""
    if kind is InputKind.TEXT:
        return f'Analyze the sentiment of this text: "{text}"'
    if kind is InputKind.VIDEO:
        return (
            "Analyze the sentiment of this transcribed speech "
            f'(text only, ignore any context about video): "{text}"'
        )
    return f'Analyze the sentiment of this transcribed speech: "{text}"'
