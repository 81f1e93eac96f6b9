"""
Client-to-server tests: AnalysisClient and AnalysisSession talking to the
real FastAPI app over an in-process ASGI transport.
"""

import json

import httpx
import pytest

from conftest import SENTIMENT_REPLY, ScriptedGateway, build_pipeline
from indisense.capture import MediaPayload, TextPayload
from indisense.client import AnalysisClient, AnalysisSession
from indisense.errors import CaptureStateError, RateLimited, TranscriptionFailed
from indisense.models import InputKind, OverallSentiment
from indisense.server import create_app

BASE_URL = "http://testserver"

SILENT_CLIP = MediaPayload(
    kind=InputKind.AUDIO,
    data=b"\x00" * 64,
    mime_type="audio/webm",
    source_name="recording.webm",
)


def _client(gateway: ScriptedGateway) -> AnalysisClient:
    app = create_app(build_pipeline(gateway))
    http_client = httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app), base_url=BASE_URL
    )
    return AnalysisClient(BASE_URL, http_client)


class TestAnalysisClient:
    async def test_text_with_emoji_is_positive(self):
        gateway = ScriptedGateway(SENTIMENT_REPLY)
        client = _client(gateway)

        result = await client.analyze(TextPayload(text="I love this! 😊🎉"))

        assert result.emotions.happy > 40 or result.emotions.surprise > 40
        assert result.overall_sentiment is OverallSentiment.POSITIVE
        assert "I love this! 😊🎉" in gateway.requests[0]["messages"][1]["content"]

    async def test_media_carries_transcription(self):
        gateway = ScriptedGateway(
            json.dumps({"transcription": "see you next week"}), SENTIMENT_REPLY
        )
        client = _client(gateway)

        result = await client.analyze(SILENT_CLIP)

        assert result.transcription == "see you next week"
        attachment = gateway.requests[0]["messages"][1]["content"][1]["input_audio"]
        assert attachment["data"] == SILENT_CLIP.to_request_body()["audioData"]

    async def test_silent_media_raises_transcription_failed(self):
        client = _client(ScriptedGateway(json.dumps({"transcription": ""})))

        with pytest.raises(TranscriptionFailed):
            await client.analyze(SILENT_CLIP)

    async def test_rate_limit_raises_typed_error(self):
        client = _client(ScriptedGateway(httpx.Response(429)))

        with pytest.raises(RateLimited) as exc_info:
            await client.analyze(TextPayload(text="hello"))
        assert exc_info.value.status_code == 429


class TestAnalysisSession:
    """Submit, reset and the single in-flight request rule."""

    def setup_method(self):
        self.gateway = ScriptedGateway(SENTIMENT_REPLY, SENTIMENT_REPLY)
        self.session = AnalysisSession(_client(self.gateway))

    async def test_submit_from_capture(self):
        self.session.capture.set_text("such a good day")

        result = await self.session.submit()

        assert self.session.result == result
        assert not self.session.is_loading
        assert self.gateway.requests[0]["messages"][1]["content"].endswith(
            '"such a good day"'
        )

    async def test_reset_discards_result(self):
        self.session.capture.set_text("first message")
        await self.session.submit()
        old_capture = self.session.capture

        self.session.reset()

        assert self.session.result is None
        assert self.session.error is None
        assert self.session.kind is InputKind.TEXT
        assert self.session.capture is not old_capture
        assert not self.session.capture.can_submit

        self.session.reset()
        assert self.session.result is None

        self.session.capture.set_text("second message")
        result = await self.session.submit()
        assert result.transcription is None
        assert "second message" in self.gateway.requests[1]["messages"][1]["content"]

    async def test_one_request_at_a_time(self):
        self.session.is_loading = True

        with pytest.raises(CaptureStateError):
            await self.session.submit(TextPayload(text="hello"))
        assert self.gateway.requests == []

    async def test_error_is_kept_for_display(self):
        session = AnalysisSession(
            _client(ScriptedGateway(json.dumps({"transcription": "hm"}))),
            kind=InputKind.AUDIO,
        )

        with pytest.raises(TranscriptionFailed):
            await session.submit(SILENT_CLIP)

        assert session.result is None
        assert session.error is not None
        assert not session.is_loading

    def test_select_kind_starts_fresh_capture(self):
        self.session.capture.set_text("draft")

        capture = self.session.select_kind(InputKind.VIDEO)

        assert capture.kind is InputKind.VIDEO
        assert self.session.kind is InputKind.VIDEO
        assert not capture.can_submit
