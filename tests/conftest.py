"""
Shared fixtures for the Indisense tests.

The model gateway is replaced by an ``httpx.MockTransport`` that answers
each request with the next scripted reply, so no test touches the network.
"""

import json

import httpx
import pytest

from indisense.config import Settings
from indisense.gateway import GatewayClient
from indisense.pipeline import AnalysisPipeline

SENTIMENT_REPLY = json.dumps(
    {
        "emotions": {
            "Happy": 70,
            "Sad": 5,
            "Anger": 0,
            "Fear": 0,
            "Surprise": 20,
            "Neutral": 5,
        },
        "keyThemes": ["gratitude", "celebration"],
    }
)


class ScriptedGateway:
    """MockTransport handler that replays queued gateway replies in order."""

    def __init__(self, *replies: str | httpx.Response | Exception) -> None:
        self.replies = list(replies)
        self.requests: list[dict] = []
        self.headers: list[httpx.Headers] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(json.loads(request.content))
        self.headers.append(request.headers)

        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, httpx.Response):
            return reply
        return httpx.Response(
            200, json={"choices": [{"message": {"role": "assistant", "content": reply}}]}
        )


def build_pipeline(
    gateway: ScriptedGateway, api_key: str | None = "test-key", **settings
) -> AnalysisPipeline:
    config = Settings(api_key=api_key, **settings)
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(gateway))
    return AnalysisPipeline(config, GatewayClient(config, http_client))


@pytest.fixture
def make_pipeline():
    """Factory: ``make_pipeline(*replies, **settings) -> (pipeline, gateway)``."""

    def factory(*replies, **settings):
        gateway = ScriptedGateway(*replies)
        return build_pipeline(gateway, **settings), gateway

    return factory
