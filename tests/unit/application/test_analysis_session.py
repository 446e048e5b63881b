"""
Unit tests for the AnalysisSession state machine.
"""

import asyncio
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock

import pytest

from foodlens.application.analysis.session import (
    AnalysisSession,
    Analyzing,
    Failed,
    Idle,
    ImageSet,
    SessionState,
    Succeeded,
)
from foodlens.domain.analysis.models import AnalysisPayload, AnalysisResult, AnalysisResultFactory
from foodlens.domain.shared.errors import ApiError, InputError, NetworkError

IMAGE = b"photo-1"
OTHER_IMAGE = b"photo-2"


@pytest.fixture
def sample_result(sample_payload: Dict[str, Any]) -> AnalysisResult:
    return AnalysisResultFactory.create(AnalysisPayload.model_validate(sample_payload))


class GatedAnalyzer:
    """Analyzer that blocks until released, to observe in-flight states."""

    def __init__(self, result: AnalysisResult) -> None:
        self.result = result
        self.started = asyncio.Event()
        self.release = asyncio.Event()
        self.error: Optional[Exception] = None
        self.calls: List[bytes] = []
        self.cancelled = 0
        self.aclose = AsyncMock()

    async def analyze(self, image_bytes: bytes) -> AnalysisResult:
        self.calls.append(image_bytes)
        self.started.set()
        try:
            await self.release.wait()
        except asyncio.CancelledError:
            self.cancelled += 1
            raise
        if self.error is not None:
            raise self.error
        return self.result


def _analyzer(result: Any = None, error: Optional[Exception] = None) -> AsyncMock:
    analyzer = AsyncMock()
    if error is not None:
        analyzer.analyze.side_effect = error
    else:
        analyzer.analyze.return_value = result
    return analyzer


class TestSessionTransitions:
    """Test the basic state machine."""

    def test_initial_state(self) -> None:
        session = AnalysisSession(_analyzer())

        assert isinstance(session.state, Idle)
        assert session.has_image is False
        assert session.is_analyzing is False
        assert session.result is None
        assert session.error_message is None

    def test_set_and_clear_image(self) -> None:
        session = AnalysisSession(_analyzer())

        session.set_image(IMAGE)
        assert session.state == ImageSet(IMAGE)
        assert session.has_image is True

        session.set_image(None)
        assert session.state == Idle()
        assert session.has_image is False

    @pytest.mark.asyncio
    async def test_analyze_success(self, sample_result: AnalysisResult) -> None:
        analyzer = _analyzer(sample_result)
        session = AnalysisSession(analyzer)
        session.set_image(IMAGE)

        await session.analyze()

        assert session.state == Succeeded(IMAGE, sample_result)
        assert session.result is sample_result
        assert session.error is None
        assert session.is_analyzing is False
        analyzer.analyze.assert_awaited_once_with(IMAGE)

    @pytest.mark.asyncio
    async def test_analyze_failure(self) -> None:
        error = ApiError(403, "bad key", user_message="bad key")
        session = AnalysisSession(_analyzer(error=error))
        session.set_image(IMAGE)

        await session.analyze()

        assert isinstance(session.state, Failed)
        assert session.error is error
        assert session.error_message == "bad key"
        assert session.result is None
        assert session.is_analyzing is False

    @pytest.mark.asyncio
    async def test_analyze_without_image(self) -> None:
        """Should fail with the no-image message and never call the analyzer."""
        analyzer = _analyzer()
        session = AnalysisSession(analyzer)

        await session.analyze()

        assert isinstance(session.error, InputError)
        assert session.error_message == "No image selected."
        assert session.state == Failed(None, session.error)
        analyzer.analyze.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_new_image_clears_outcome(self, sample_result: AnalysisResult) -> None:
        session = AnalysisSession(_analyzer(sample_result))
        session.set_image(IMAGE)
        await session.analyze()

        session.set_image(OTHER_IMAGE)

        assert session.result is None
        assert session.error is None
        assert session.state == ImageSet(OTHER_IMAGE)

    @pytest.mark.asyncio
    async def test_unexpected_exception_becomes_failed(self) -> None:
        session = AnalysisSession(_analyzer(error=RuntimeError("boom")))
        session.set_image(IMAGE)

        await session.analyze()

        assert isinstance(session.state, Failed)
        assert session.error is not None
        assert isinstance(session.error.__cause__, RuntimeError)


class TestSessionInFlight:
    """Test is_analyzing and cancellation."""

    @pytest.mark.asyncio
    async def test_is_analyzing_while_in_flight(self, sample_result: AnalysisResult) -> None:
        analyzer = GatedAnalyzer(sample_result)
        session = AnalysisSession(analyzer)
        session.set_image(IMAGE)

        task = asyncio.create_task(session.analyze())
        await analyzer.started.wait()

        assert session.is_analyzing is True
        assert session.state == Analyzing(IMAGE)

        analyzer.release.set()
        await task

        assert session.is_analyzing is False
        assert isinstance(session.state, Succeeded)

    @pytest.mark.asyncio
    async def test_clearing_image_discards_result(self, sample_result: AnalysisResult) -> None:
        """Result of a superseded analysis must never become visible."""
        analyzer = GatedAnalyzer(sample_result)
        session = AnalysisSession(analyzer)
        session.set_image(IMAGE)

        task = asyncio.create_task(session.analyze())
        await analyzer.started.wait()

        session.set_image(None)
        analyzer.release.set()
        await task

        assert session.state == Idle()
        assert session.result is None
        assert session.is_analyzing is False
        assert analyzer.cancelled == 1

    @pytest.mark.asyncio
    async def test_new_image_discards_error(self, sample_result: AnalysisResult) -> None:
        analyzer = GatedAnalyzer(sample_result)
        analyzer.error = NetworkError("down")
        session = AnalysisSession(analyzer)
        session.set_image(IMAGE)

        task = asyncio.create_task(session.analyze())
        await analyzer.started.wait()

        session.set_image(OTHER_IMAGE)
        analyzer.release.set()
        await task

        assert session.state == ImageSet(OTHER_IMAGE)
        assert session.error is None

    @pytest.mark.asyncio
    async def test_newer_analyze_supersedes(self, sample_result: AnalysisResult) -> None:
        analyzer = GatedAnalyzer(sample_result)
        session = AnalysisSession(analyzer)
        session.set_image(IMAGE)

        first = asyncio.create_task(session.analyze())
        await analyzer.started.wait()
        analyzer.started.clear()

        second = asyncio.create_task(session.analyze())
        await analyzer.started.wait()
        analyzer.release.set()
        await asyncio.gather(first, second)

        assert analyzer.cancelled == 1
        assert len(analyzer.calls) == 2
        assert isinstance(session.state, Succeeded)

    @pytest.mark.asyncio
    async def test_caller_cancelled_returns_to_image_set(
        self, sample_result: AnalysisResult
    ) -> None:
        """Cancelling the awaiting caller should propagate and restore ImageSet."""
        analyzer = GatedAnalyzer(sample_result)
        session = AnalysisSession(analyzer)
        session.set_image(IMAGE)

        task = asyncio.create_task(session.analyze())
        await analyzer.started.wait()
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

        assert session.state == ImageSet(IMAGE)
        assert session.is_analyzing is False
        assert analyzer.cancelled == 1

    @pytest.mark.asyncio
    async def test_close_cancels_in_flight(self, sample_result: AnalysisResult) -> None:
        analyzer = GatedAnalyzer(sample_result)
        session = AnalysisSession(analyzer)
        session.set_image(IMAGE)

        task = asyncio.create_task(session.analyze())
        await analyzer.started.wait()

        await session.close()
        await task

        assert session.state == ImageSet(IMAGE)
        assert session.result is None
        analyzer.aclose.assert_awaited_once()


class TestSessionSubscribers:
    """Test transition notifications."""

    @pytest.mark.asyncio
    async def test_subscriber_sees_every_transition(self, sample_result: AnalysisResult) -> None:
        session = AnalysisSession(_analyzer(sample_result))
        seen: List[SessionState] = []
        session.subscribe(seen.append)

        session.set_image(IMAGE)
        await session.analyze()

        assert [type(s) for s in seen] == [ImageSet, Analyzing, Succeeded]

    @pytest.mark.asyncio
    async def test_failing_subscriber_does_not_stall_analysis(
        self, sample_result: AnalysisResult
    ) -> None:
        """A subscriber raising on Analyzing must not leave is_analyzing set."""
        session = AnalysisSession(_analyzer(sample_result))
        seen: List[SessionState] = []

        def explode_on_analyzing(state: SessionState) -> None:
            if isinstance(state, Analyzing):
                raise RuntimeError("render failed")

        session.subscribe(explode_on_analyzing)
        session.subscribe(seen.append)
        session.set_image(IMAGE)

        await session.analyze()

        assert session.is_analyzing is False
        assert session.state == Succeeded(IMAGE, sample_result)
        assert [type(s) for s in seen] == [ImageSet, Analyzing, Succeeded]

    def test_unsubscribe(self) -> None:
        session = AnalysisSession(_analyzer())
        seen: List[SessionState] = []
        unsubscribe = session.subscribe(seen.append)

        session.set_image(IMAGE)
        unsubscribe()
        session.set_image(None)

        assert seen == [ImageSet(IMAGE)]
