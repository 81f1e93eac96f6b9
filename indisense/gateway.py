"""
Client for the hosted language model gateway.

The gateway speaks the chat completions dialect: it takes
``{model, messages}`` and answers ``{choices: [{message: {content}}]}``.
This module only moves text in and out; making sense of the reply is the
job of ``indisense.parsing``.
"""

import logging
from typing import Any

import httpx

from .config import Settings
from .errors import QuotaExhausted, RateLimited, ServiceUnavailable, UpstreamError

logger = logging.getLogger(__name__)

Message = dict[str, Any]


class GatewayClient:
    """
    Thin async wrapper around the gateway endpoint.

    Each call is attempted exactly once; retrying is left to the caller.
    """

    def __init__(
        self, settings: Settings, http_client: httpx.AsyncClient | None = None
    ) -> None:
        self._settings = settings
        self._client = http_client or httpx.AsyncClient(
            timeout=settings.gateway_timeout
        )

    async def complete(self, messages: list[Message]) -> str:
        """
        Send a conversation to the model and return its reply text.

        Args:
            messages: Chat messages, each with a ``role`` and ``content``

        Returns:
            The content of the first choice, or "" if the reply carries none

        Raises:
            ServiceUnavailable: If no credential is configured
            RateLimited: If the gateway answers 429
            QuotaExhausted: If the gateway answers 402
            UpstreamError: On any other failure to get a reply
        """
        if not self._settings.api_key:
            raise ServiceUnavailable()

        try:
            response = await self._client.post(
                self._settings.gateway_url,
                headers={"Authorization": f"Bearer {self._settings.api_key}"},
                json={"model": self._settings.model, "messages": messages},
            )
        except httpx.TransportError as e:
            logger.error("AI gateway unreachable: %s", e)
            raise UpstreamError("Could not reach the AI service", body=str(e))

        if response.status_code == 429:
            raise RateLimited()
        if response.status_code == 402:
            raise QuotaExhausted()
        if not response.is_success:
            logger.error(
                "AI gateway error: %s %s", response.status_code, response.text
            )
            raise UpstreamError(status=response.status_code, body=response.text)

        try:
            payload = response.json()
        except ValueError:
            logger.error("AI gateway returned non-JSON body: %s", response.text)
            raise UpstreamError(
                "AI service returned an unreadable reply",
                status=response.status_code,
                body=response.text,
            )

        content = _first_choice_content(payload)
        logger.debug("AI gateway reply: %s", content)
        return content

    async def aclose(self) -> None:
        await self._client.aclose()


def _first_choice_content(payload: Any) -> str:
    """Dig ``choices[0].message.content`` out of a reply, tolerating gaps."""
    try:
        content = payload["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        return ""
    return content if isinstance(content, str) else ""
