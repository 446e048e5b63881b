"""
Food analysis service.

AI-powered nutrition breakdown of a food photo using Gemini vision.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any, Optional

import structlog

from foodlens.config import GeminiSettings
from foodlens.domain.analysis.decoder import decode_analysis_payload
from foodlens.domain.analysis.models import AnalysisResult, AnalysisResultFactory
from foodlens.domain.analysis.prompts import build_analysis_request
from foodlens.domain.shared.errors import AnalysisError, ApiError, MalformedResponseError
from foodlens.infrastructure.ai.gemini_client import GeminiClient
from foodlens.infrastructure.ai.gemini_models import FINISH_REASON_STOP, GeminiResponse
from foodlens.infrastructure.imaging.jpeg import encode_image_for_transport
from foodlens.metrics import food_analysis as analysis_metrics
from foodlens.metrics.core import MetricsRegistry

logger = structlog.get_logger(__name__)


class FoodAnalysisClient:
    """
    Client for AI-powered food analysis from photos.

    Recompresses the photo, sends it with a fixed nutrition prompt to
    Gemini and decodes the model's JSON reply into an AnalysisResult.

    Features:
    - Exactly one outbound request per analysis (no retries, no caching)
    - Typed failures (every error is an AnalysisError subclass)
    - Structured logging and in-memory metrics per call

    Example:
        >>> settings = GeminiSettings.create(api_key="AIza...")  # or GeminiSettings.from_env()
        >>> async with FoodAnalysisClient(settings) as client:
        ...     result = await client.analyze(photo_bytes)
        >>> print(f"{result.name}: {result.calories} kcal")
    """

    def __init__(
        self,
        settings: GeminiSettings,
        gemini_client: Optional[GeminiClient] = None,
        metrics: Optional[MetricsRegistry] = None,
    ) -> None:
        """
        Initialize food analysis client.

        Args:
            settings: Gemini endpoint configuration
            gemini_client: Optional pre-configured transport (for testing)
            metrics: Optional metrics registry (defaults to the global one)
        """
        self.settings = settings
        self.gemini_client = gemini_client or GeminiClient(settings)
        self.metrics = metrics

    async def __aenter__(self) -> FoodAnalysisClient:
        await self.gemini_client.__aenter__()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Release the underlying HTTP session."""
        await self.gemini_client.aclose()

    async def analyze(self, image_bytes: bytes) -> AnalysisResult:
        """
        Analyze a food photo.

        Args:
            image_bytes: Encoded photo (any format Pillow can read)

        Returns:
            AnalysisResult with fresh ids

        Raises:
            EncodingError: Image could not be recompressed (no request sent)
            NetworkError: Transport failure or timeout
            ApiError: Non-2xx reply or the model stopped early
            MalformedResponseError: Reply lacks candidates or text
            DecodingError: Embedded JSON does not match the analysis shape
            AnalysisError: Any other unexpected failure

        Example:
            >>> result = await client.analyze(photo_bytes)
            >>> [m.name for m in result.macros]
            ['Protein', 'Carbs', 'Fat']
        """
        start = time.perf_counter()
        log = logger.bind(model=self.settings.model)
        log.info("food_analysis.started", image_size=len(image_bytes or b""))

        try:
            result = await self._run(image_bytes, log)
        except asyncio.CancelledError:
            log.info("food_analysis.cancelled")
            raise
        except AnalysisError as e:
            self._record_failure(e, start, log)
            raise
        except Exception as e:
            wrapped = AnalysisError(f"Unexpected failure: {type(e).__name__}: {e}")
            self._record_failure(wrapped, start, log)
            raise wrapped from e

        latency_ms = (time.perf_counter() - start) * 1000
        analysis_metrics.record_success(latency_ms, model=self.settings.model, reg=self.metrics)
        log.info(
            "food_analysis.completed",
            latency_ms=int(latency_ms),
            food=result.name,
            calories=result.calories,
            macros=len(result.macros),
            vitamins=len(result.vitamins),
        )
        return result

    async def _run(self, image_bytes: bytes, log: Any) -> AnalysisResult:
        image_b64 = encode_image_for_transport(image_bytes, self.settings.jpeg_quality)
        request = build_analysis_request(image_b64)

        log.info("food_analysis.request_sent", jpeg_b64_size=len(image_b64))
        response = await self.gemini_client.generate_content(request)

        text = self._extract_text(response)
        payload = decode_analysis_payload(text)
        return AnalysisResultFactory.create(payload)

    @staticmethod
    def _extract_text(response: GeminiResponse) -> str:
        """
        Pull the embedded analysis JSON out of a 2xx envelope.

        Raises:
            ApiError: Error envelope present, or finish reason not STOP
            MalformedResponseError: No candidates or no text payload
        """
        if response.error is not None:
            err = response.error
            message = err.message or "Unknown error from API."
            raise ApiError(err.code, message, status=err.status, user_message=message)

        if not response.candidates:
            raise MalformedResponseError("no candidates")

        candidate = response.candidates[0]
        reason = candidate.finish_reason
        if reason is not None and reason != FINISH_REASON_STOP:
            flagged = candidate.flagged_ratings()
            issues = [(r.category, r.probability) for r in flagged]
            message = f"Model stopped generating: {reason}"
            if issues:
                message += ". Safety issues: " + ", ".join(f"{c}: {p}" for c, p in issues)
            raise ApiError(
                None,
                message,
                finish_reason=reason,
                safety_issues=issues,
                user_message=message,
            )

        text = candidate.first_text()
        if not text:
            raise MalformedResponseError("no text payload")
        return text

    def _record_failure(self, error: AnalysisError, start: float, log: Any) -> None:
        latency_ms = (time.perf_counter() - start) * 1000
        analysis_metrics.record_failure(
            error.kind, latency_ms, model=self.settings.model, reg=self.metrics
        )
        log.warning(
            "food_analysis.failed",
            error_kind=error.kind,
            error=str(error),
            latency_ms=int(latency_ms),
        )
