"""
HTTP transport to the server-side AI endpoints.

Three POST endpoints sit under one base URL: ``/chat``,
``/decompose`` and ``/suggestions``.  Every method returns a response
model; network failures, non-2xx statuses and unparseable bodies become
``success=False`` responses with an ``error`` string rather than
exceptions.
"""

import logging
from typing import Any, Dict, List, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from ascend_ai.client.schemas import (
    ChatMessage,
    ChatResponse,
    DecomposeResponse,
    SuggestionsResponse,
    SuggestionType,
)
from ascend_ai.config import TransportSettings

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=BaseModel)

NETWORK_ERROR = "Network error. Please try again."


class AITransport:
    """Async client for the AI endpoints.

    Args:
        settings: Base URL and timeout.
        client: Pre-built ``httpx.AsyncClient`` (tests inject one with
            a ``MockTransport``).  Its ``base_url`` is used as-is.
    """

    def __init__(
        self,
        settings: Optional[TransportSettings] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._settings = settings or TransportSettings()
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=self._settings.base_url.rstrip("/"),
            timeout=self._settings.timeout_seconds,
        )

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this transport created it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "AITransport":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def _post(
        self,
        path: str,
        payload: Dict[str, Any],
        model: Type[R],
        default_error: str,
    ) -> R:
        try:
            response = await self._client.post(path, json=payload)
        except httpx.HTTPError as e:
            logger.error(
                "AI request failed",
                extra={"path": path, "error": str(e)},
            )
            return model(success=False, error=NETWORK_ERROR)

        try:
            body = response.json()
        except ValueError:
            body = None

        if not response.is_success:
            error = body.get("error") if isinstance(body, dict) else None
            logger.warning(
                "AI endpoint returned an error status",
                extra={"path": path, "status_code": response.status_code},
            )
            return model(success=False, error=error or default_error)

        if not isinstance(body, dict):
            return model(success=False, error="Malformed response body")

        try:
            return model.model_validate(body)
        except ValidationError as e:
            logger.warning(
                "AI response failed validation",
                extra={"path": path, "error": str(e)},
            )
            return model(success=False, error="Malformed response body")

    async def chat(self, messages: List[ChatMessage]) -> ChatResponse:
        """Send role-tagged messages to the chat endpoint."""
        payload = {"messages": [m.model_dump() for m in messages]}
        return await self._post("/chat", payload, ChatResponse, "Chat request failed")

    async def decompose_goal(
        self,
        goal: str,
        timeframe_days: int,
        context: Optional[Dict[str, Any]] = None,
    ) -> DecomposeResponse:
        """Ask the decomposition endpoint for milestones."""
        payload = {
            "goal": goal,
            "timeframeDays": timeframe_days,
            "context": context or {},
        }
        return await self._post(
            "/decompose", payload, DecomposeResponse, "Decomposition failed"
        )

    async def get_suggestions(
        self, suggestion_type: SuggestionType, context: Dict[str, Any]
    ) -> SuggestionsResponse:
        """Request habit suggestions, insights, or coaching items."""
        payload = {"type": suggestion_type, "context": context}
        return await self._post(
            "/suggestions", payload, SuggestionsResponse, "Suggestions request failed"
        )
