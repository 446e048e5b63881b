"""
Shared fixtures for foodlens tests.

HTTP is faked with httpx.MockTransport; images are generated with Pillow.
"""

import io
import json
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx
import pytest
from PIL import Image

from foodlens.config import GeminiSettings
from foodlens.metrics.core import MetricsRegistry

TEST_API_KEY = "test-key-123"

Handler = Callable[[httpx.Request], httpx.Response]


# ═══════════════════════════════════════════════════════════
# CONFIGURATION
# ═══════════════════════════════════════════════════════════


@pytest.fixture
def settings() -> GeminiSettings:
    """Settings pointing at the default endpoint with a fake key."""
    return GeminiSettings.create(api_key=TEST_API_KEY, timeout_s=5.0)


@pytest.fixture
def metrics() -> MetricsRegistry:
    """Isolated metrics registry."""
    return MetricsRegistry()


# ═══════════════════════════════════════════════════════════
# PAYLOADS
# ═══════════════════════════════════════════════════════════


@pytest.fixture
def sample_payload() -> Dict[str, Any]:
    """Analysis JSON as the model would write it."""
    return {
        "name": "Caesar Salad",
        "description": "Romaine lettuce with croutons, parmesan and Caesar dressing.",
        "calories": 350,
        "macros": [
            {
                "name": "Protein",
                "amount": 12,
                "unit": "g",
                "percentage": 24,
                "icon": "fish.fill",
                "color": "FF6347",
            },
            {
                "name": "Carbs",
                "amount": 20,
                "unit": "g",
                "percentage": 7,
                "icon": "leaf.fill",
                "color": "32CD32",
            },
            {
                "name": "Fat",
                "amount": 25,
                "unit": "g",
                "percentage": 32,
                "icon": "drop.fill",
                "color": "FFD700",
            },
        ],
        "vitamins": [
            {
                "name": "Vitamin A",
                "percentage": 90,
                "benefit": "Supports vision",
                "color": "FFA500",
            },
            {
                "name": "Vitamin K",
                "percentage": 120,
                "benefit": "Blood clotting",
                "color": "#0F0",
            },
        ],
        "ingredients": ["Romaine lettuce", "Croutons", "Parmesan", "Caesar dressing"],
        "allergies": ["Gluten", "Dairy", "Eggs", "Fish"],
    }


@pytest.fixture
def sample_payload_json(sample_payload: Dict[str, Any]) -> str:
    return json.dumps(sample_payload)


def gemini_body(
    text: Optional[str] = None,
    *,
    finish_reason: Optional[str] = "STOP",
    safety: Optional[List[Tuple[str, str]]] = None,
    candidates: bool = True,
) -> Dict[str, Any]:
    """Build a generateContent response envelope."""
    if not candidates:
        return {"candidates": []}
    candidate: Dict[str, Any] = {"content": {"parts": [{"text": text}], "role": "model"}}
    if finish_reason is not None:
        candidate["finishReason"] = finish_reason
    if safety is not None:
        candidate["safetyRatings"] = [
            {"category": category, "probability": probability} for category, probability in safety
        ]
    return {"candidates": [candidate]}


@pytest.fixture
def make_gemini_body() -> Callable[..., Dict[str, Any]]:
    return gemini_body


# ═══════════════════════════════════════════════════════════
# HTTP
# ═══════════════════════════════════════════════════════════


class RecordingTransport:
    """Wrap a handler and keep every request it saw."""

    def __init__(self, handler: Handler) -> None:
        self.handler = handler
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


@pytest.fixture
def recording_transport() -> Callable[[Handler], RecordingTransport]:
    """Factory: recording_transport(handler) -> RecordingTransport."""
    return RecordingTransport


@pytest.fixture
def json_response() -> Callable[[int, Any], Handler]:
    """Factory: json_response(status, body) -> handler returning that JSON."""

    def make(status_code: int, body: Any) -> Handler:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(status_code, json=body)

        return handler

    return make


# ═══════════════════════════════════════════════════════════
# IMAGES
# ═══════════════════════════════════════════════════════════


def _encode(img: Image.Image, fmt: str) -> bytes:
    buf = io.BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture
def png_bytes() -> bytes:
    """Small opaque RGB PNG."""
    return _encode(Image.new("RGB", (16, 16), (200, 80, 40)), "PNG")


@pytest.fixture
def transparent_png_bytes() -> bytes:
    """Small fully transparent RGBA PNG."""
    return _encode(Image.new("RGBA", (8, 8), (0, 0, 0, 0)), "PNG")
