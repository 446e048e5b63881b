"""
Ports (Interfaces) for the analysis session.

The session depends on this interface rather than on FoodAnalysisClient,
so a presentation layer or a test can drive it with any analyzer.
"""

from typing import Protocol, runtime_checkable

from foodlens.domain.analysis.models import AnalysisResult


@runtime_checkable
class IFoodAnalyzer(Protocol):
    """
    Port for a food photo analyzer.

    Implemented by FoodAnalysisClient.
    """

    async def analyze(self, image_bytes: bytes) -> AnalysisResult:
        """
        Analyze one food photo.

        Args:
            image_bytes: Encoded photo

        Returns:
            AnalysisResult

        Raises:
            AnalysisError: On any failure
        """
        ...

    async def aclose(self) -> None:
        """Release underlying resources."""
        ...
