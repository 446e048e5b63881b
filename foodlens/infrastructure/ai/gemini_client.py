"""
Gemini generateContent HTTP client.

Async transport for one request/response cycle:
- POST JSON body, API key as ``key`` query parameter
- Map transport failures and timeouts to NetworkError
- Map non-2xx responses to ApiError (error envelope or raw body)
- Validate 2xx bodies into GeminiResponse

No retries: every call is exactly one outbound request.
"""

from __future__ import annotations

import json
import time
from typing import Any, Optional

import httpx
import structlog
from pydantic import ValidationError

from foodlens.config import GeminiSettings
from foodlens.domain.shared.errors import (
    ApiError,
    MalformedResponseError,
    NetworkError,
    NetworkTimeoutError,
)
from foodlens.infrastructure.ai.gemini_models import GeminiRequest, GeminiResponse

logger = structlog.get_logger(__name__)


class GeminiClient:
    """
    Async client for the Gemini generateContent endpoint.

    Owns an ``httpx.AsyncClient`` unless one is injected (testing).

    Example:
        >>> async with GeminiClient(settings) as client:
        ...     response = await client.generate_content(request)
        ...     print(response.candidates[0].first_text())
    """

    def __init__(
        self,
        settings: GeminiSettings,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        """
        Initialize Gemini client.

        Args:
            settings: Endpoint, model, key and timeout
            http_client: Optional pre-configured httpx client (for testing)
        """
        self.settings = settings
        self._session: Optional[httpx.AsyncClient] = http_client
        self._owns_session = http_client is None

    async def __aenter__(self) -> GeminiClient:
        """Async context manager entry."""
        self._ensure_session()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.aclose()

    def _ensure_session(self) -> httpx.AsyncClient:
        if self._session is None:
            self._session = httpx.AsyncClient(timeout=httpx.Timeout(self.settings.timeout_s))
            self._owns_session = True
        return self._session

    async def aclose(self) -> None:
        """Close the owned HTTP session."""
        if self._session is not None and self._owns_session:
            await self._session.aclose()
            self._session = None

    async def generate_content(self, request: GeminiRequest) -> GeminiResponse:
        """
        Send one generateContent request.

        Args:
            request: Request body

        Returns:
            Validated response envelope of a 2xx reply

        Raises:
            NetworkTimeoutError: If the request timed out
            NetworkError: On transport failure or unusable HTTP response
            ApiError: On non-2xx status
            MalformedResponseError: If a 2xx body is not a valid envelope
        """
        session = self._ensure_session()
        start = time.perf_counter()

        try:
            response = await session.post(
                self.settings.endpoint_url,
                params={"key": self.settings.api_key},
                json=request.to_payload(),
                headers={"Content-Type": "application/json"},
                timeout=self.settings.timeout_s,
            )
        except httpx.TimeoutException as e:
            logger.error(
                "Gemini API timeout",
                model=self.settings.model,
                timeout_s=self.settings.timeout_s,
            )
            raise NetworkTimeoutError(
                f"Request timed out after {self.settings.timeout_s}s: {type(e).__name__}"
            ) from e
        except httpx.HTTPError as e:
            logger.error("Gemini API transport error", model=self.settings.model, error=str(e))
            raise NetworkError(f"Transport failure: {type(e).__name__}: {e}") from e

        elapsed_ms = int((time.perf_counter() - start) * 1000)
        status_code = getattr(response, "status_code", None)

        if not isinstance(status_code, int) or not 100 <= status_code <= 599:
            raise NetworkError(f"Response has no recognisable HTTP status: {status_code!r}")

        body = response.text
        logger.debug(
            "Gemini raw response",
            status=status_code,
            elapsed_ms=elapsed_ms,
            body=body,
        )

        if not 200 <= status_code < 300:
            raise self._api_error(status_code, body)

        try:
            return GeminiResponse.model_validate_json(body)
        except ValidationError as e:
            raise MalformedResponseError(
                f"Invalid response envelope (status {status_code}): {e.error_count()} problem(s)"
            ) from e

    def _api_error(self, status_code: int, body: str) -> ApiError:
        """
        Build the ApiError for a non-2xx reply.

        Preference order: error envelope, candidate text, raw body.
        Only the envelope's message is shown to users; candidate text and
        raw bodies stay in the diagnostic message.
        """
        logger.warning("Gemini API error status", status=status_code, model=self.settings.model)

        try:
            envelope = GeminiResponse.model_validate_json(body)
        except (ValidationError, json.JSONDecodeError):
            envelope = None

        if envelope is not None and envelope.error is not None:
            err = envelope.error
            message = err.message or "Unknown error from API."
            return ApiError(
                err.code if err.code is not None else status_code,
                message,
                status=err.status,
                body=body,
                user_message=message,
            )

        if envelope is not None and envelope.candidates:
            text = envelope.candidates[0].first_text()
            if text:
                return ApiError(status_code, f"API response issue: {text}", body=body)

        message = f"Unexpected response from server (status {status_code})"
        if body:
            message += f". Details: {body}"
        return ApiError(status_code, message, body=body)
