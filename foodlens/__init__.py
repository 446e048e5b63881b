"""
FoodLens food analysis client.

Sends a food photo to a multimodal model and decodes the reply into a
typed nutrition analysis.

Structure:
- domain/: Analysis models, prompt, decoding and the analysis client
- infrastructure/: External concerns (Gemini HTTP API, JPEG encoding)
- application/: Session state machine driven by a presentation layer
- metrics/: In-memory counters and latency windows
"""

from foodlens.config import GeminiSettings
from foodlens.domain.analysis.models import AnalysisResult, MacroNutrient, Vitamin
from foodlens.domain.analysis.service import FoodAnalysisClient
from foodlens.application.analysis.session import AnalysisSession

__version__ = "1.0.0"

__all__ = [
    "AnalysisResult",
    "AnalysisSession",
    "FoodAnalysisClient",
    "GeminiSettings",
    "MacroNutrient",
    "Vitamin",
]
