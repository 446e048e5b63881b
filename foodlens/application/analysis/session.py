"""
Analysis session state machine.

Holds the currently selected photo and the outcome of its analysis for a
presentation layer. The state is one of:

    Idle -> ImageSet -> Analyzing -> Succeeded | Failed

Every change goes through ``_transition`` which logs it and notifies
subscribers. A generation counter discards results of superseded calls.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Callable, List, Optional, Union

import structlog

from foodlens.domain.analysis.models import AnalysisResult
from foodlens.domain.analysis.ports import IFoodAnalyzer
from foodlens.domain.shared.errors import AnalysisError, InputError

logger = structlog.get_logger(__name__)


# ═══════════════════════════════════════════════════════════
# STATES
# ═══════════════════════════════════════════════════════════


@dataclass(frozen=True)
class Idle:
    """No image selected."""


@dataclass(frozen=True)
class ImageSet:
    """Image selected, nothing analysed yet."""

    image: bytes


@dataclass(frozen=True)
class Analyzing:
    """Analysis of ``image`` in flight."""

    image: bytes


@dataclass(frozen=True)
class Succeeded:
    image: bytes
    result: AnalysisResult


@dataclass(frozen=True)
class Failed:
    """Last analysis failed; ``image`` is None when none was selected."""

    image: Optional[bytes]
    error: AnalysisError


SessionState = Union[Idle, ImageSet, Analyzing, Succeeded, Failed]
Subscriber = Callable[[SessionState], None]


# ═══════════════════════════════════════════════════════════
# SESSION
# ═══════════════════════════════════════════════════════════


class AnalysisSession:
    """
    Drives one analyzer on behalf of a UI.

    Example:
        >>> session = AnalysisSession(client)
        >>> unsubscribe = session.subscribe(render)
        >>> session.set_image(photo_bytes)
        >>> await session.analyze()
        >>> session.result.name if session.result else session.error_message
        'Caesar Salad'
    """

    def __init__(self, analyzer: IFoodAnalyzer) -> None:
        self.analyzer = analyzer
        self._state: SessionState = Idle()
        self._subscribers: List[Subscriber] = []
        self._task: Optional[asyncio.Task[AnalysisResult]] = None
        self._generation = 0

    async def __aenter__(self) -> AnalysisSession:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    # ───────────────────────────────────────────────────────
    # Observable fields
    # ───────────────────────────────────────────────────────

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def image(self) -> Optional[bytes]:
        return getattr(self._state, "image", None)

    @property
    def has_image(self) -> bool:
        return self.image is not None

    @property
    def is_analyzing(self) -> bool:
        return isinstance(self._state, Analyzing)

    @property
    def result(self) -> Optional[AnalysisResult]:
        return self._state.result if isinstance(self._state, Succeeded) else None

    @property
    def error(self) -> Optional[AnalysisError]:
        return self._state.error if isinstance(self._state, Failed) else None

    @property
    def error_message(self) -> Optional[str]:
        """User-facing text of the last failure."""
        error = self.error
        return error.user_message if error is not None else None

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """
        Register a callback invoked with the new state on every transition.

        Exceptions raised by a callback are logged and do not stop the
        transition or the remaining callbacks.

        Returns:
            Function removing the callback
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    # ───────────────────────────────────────────────────────
    # Commands
    # ───────────────────────────────────────────────────────

    def set_image(self, image: Optional[bytes]) -> None:
        """
        Select a new photo (or clear it with None).

        Cancels any analysis in flight and clears the previous outcome.
        """
        self._cancel_in_flight()
        self._transition(Idle() if image is None else ImageSet(image))

    async def analyze(self) -> None:
        """
        Analyze the selected photo.

        Ends in Succeeded or Failed unless superseded by set_image, a newer
        analyze() or close(), in which case the outcome is dropped.

        Raises:
            asyncio.CancelledError: If the awaiting caller is cancelled
                (the session returns to ImageSet first)
        """
        image = self.image
        self._cancel_in_flight()

        if image is None:
            self._transition(Failed(None, InputError("analyze() called without an image")))
            return

        generation = self._generation
        self._transition(Analyzing(image))
        task = asyncio.ensure_future(self.analyzer.analyze(image))
        self._task = task

        try:
            result = await task
        except asyncio.CancelledError:
            if generation != self._generation:
                logger.debug("analysis_session.superseded", generation=generation)
                return
            self._task = None
            self._transition(ImageSet(image))
            raise
        except AnalysisError as e:
            if self._is_current(generation, task):
                self._transition(Failed(image, e))
            return
        except Exception as e:
            if self._is_current(generation, task):
                wrapped = AnalysisError(f"Unexpected failure: {type(e).__name__}: {e}")
                wrapped.__cause__ = e
                self._transition(Failed(image, wrapped))
            return

        if self._is_current(generation, task):
            self._transition(Succeeded(image, result))

    async def close(self) -> None:
        """Cancel any analysis in flight and release the analyzer."""
        image = self.image
        was_analyzing = self.is_analyzing
        self._cancel_in_flight()
        if was_analyzing and image is not None:
            self._transition(ImageSet(image))
        await self.analyzer.aclose()

    # ───────────────────────────────────────────────────────
    # Internals
    # ───────────────────────────────────────────────────────

    def _is_current(self, generation: int, task: asyncio.Future) -> bool:
        if generation != self._generation:
            logger.debug("analysis_session.stale_result_dropped", generation=generation)
            return False
        if self._task is task:
            self._task = None
        return True

    def _cancel_in_flight(self) -> None:
        self._generation += 1
        task, self._task = self._task, None
        if task is not None and not task.done():
            logger.debug("analysis_session.cancel_in_flight", generation=self._generation)
            task.cancel()

    def _transition(self, new_state: SessionState) -> None:
        old_state = self._state
        self._state = new_state
        logger.info(
            "analysis_session.transition",
            from_state=type(old_state).__name__,
            to_state=type(new_state).__name__,
            error_kind=getattr(getattr(new_state, "error", None), "kind", None),
        )
        # State is already committed; subscriber failures are isolated
        for callback in list(self._subscribers):
            try:
                callback(new_state)
            except Exception:
                logger.exception(
                    "analysis_session.subscriber_failed",
                    to_state=type(new_state).__name__,
                    subscriber=getattr(callback, "__qualname__", repr(callback)),
                )
