"""Top-level game state machine: title, selecting, generating, viewing."""

from __future__ import annotations

import asyncio
import threading
from typing import Callable, Optional

from content_filter import PromptSafetyFilter
from errors import (
    JOIN_VIOLATION,
    PROMPT_UNSAFE_INPUT,
    SELECTION_MISUSE,
    TRANSPORT_ERROR,
    WordCanvasError,
)
from events import EventSource, Subscription
from interfaces import Display, ImageGenerator, PresentationTask
from join_barrier import JoinBarrier
from logger import get_logger
from models import CoordinatorState, GenerationResult
from selection import SelectionStateMachine

logger = get_logger("coordinator")

StateCallback = Callable[[CoordinatorState, CoordinatorState], None]
ErrorCallback = Callable[[str, str], None]
ResultCallback = Callable[[GenerationResult], None]

PRESENTATION = "presentation"
GENERATION = "generation"


class GenerationCoordinator:
    """Runs the presentation sequence and the image request side by side.

    ``start_generation`` must be called from the task that owns the event
    loop. The Viewing transition fires once both tasks have reported back,
    in either order; completions from a round abandoned by ``retry`` are
    discarded.
    """

    def __init__(
        self,
        selection: SelectionStateMachine,
        client: ImageGenerator,
        presentation: Optional[PresentationTask] = None,
        display: Optional[Display] = None,
        image_count: int = 1,
        min_words_required: int = 3,
        safety_filter: Optional[PromptSafetyFilter] = None,
        on_state_change: Optional[StateCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> None:
        if image_count <= 0:
            raise ValueError(f"image_count must be positive, got {image_count}")
        self._selection = selection
        self._client = client
        self._presentation = presentation
        self._display = display
        self._image_count = image_count
        self._min_words_required = min_words_required
        self._safety_filter = safety_filter
        self._on_error = on_error

        self._state_changed = EventSource[StateCallback]()
        if on_state_change is not None:
            self._state_changed.subscribe(on_state_change)
        self._result_ready = EventSource[ResultCallback]()

        self._lock = threading.RLock()
        self._state = CoordinatorState.TITLE
        self._barrier = JoinBarrier((PRESENTATION, GENERATION), on_joined=self._on_joined)
        self._result: Optional[GenerationResult] = None
        self._generation_task: Optional[asyncio.Task] = None
        self._result_future: Optional[asyncio.Future] = None

    @property
    def state(self) -> CoordinatorState:
        return self._state

    @property
    def result(self) -> Optional[GenerationResult]:
        return self._result

    @property
    def epoch(self) -> int:
        return self._barrier.epoch

    @property
    def can_generate(self) -> bool:
        if self._selection.is_complete:
            return True
        return self._selection.filled_count >= self._min_words_required

    def subscribe(self, listener: StateCallback) -> Subscription:
        return self._state_changed.subscribe(listener)

    def subscribe_result(self, listener: ResultCallback) -> Subscription:
        return self._result_ready.subscribe(listener)

    def start_game(self) -> None:
        with self._lock:
            if self._state != CoordinatorState.TITLE:
                return
            self._selection.reset()
            self._transition(CoordinatorState.SELECTING)

    def start_generation(self) -> bool:
        with self._lock:
            if self._state != CoordinatorState.SELECTING:
                logger.warning(f"Cannot start generation while {self._state.value}")
                return False
            if not self.can_generate:
                logger.warning("Sentence is not complete, generation not started")
                self._emit_error(SELECTION_MISUSE, "sentence is not complete")
                return False

            prompt = self._selection.compose_prompt(allow_partial=True)
            self._report_blocked_words(prompt)
            loop = asyncio.get_running_loop()

            self._result = None
            self._result_future = loop.create_future()
            epoch = self._barrier.reset()
            self._transition(CoordinatorState.GENERATING)

            self._generation_task = loop.create_task(
                self._client.generate(prompt, self._image_count)
            )
            self._generation_task.add_done_callback(
                lambda task: self._on_generation_done(epoch, task)
            )
            self._start_presentation(epoch)
            return True

    def retry(self) -> None:
        with self._lock:
            if self._state not in (CoordinatorState.GENERATING, CoordinatorState.VIEWING):
                self._selection.reset()
                return
            self._abandon_round()
            self._selection.reset()
            self._result = None
            if self._display is not None:
                self._display.clear()
            self._transition(CoordinatorState.SELECTING)

    async def wait_for_result(self) -> GenerationResult:
        """Wait for the current round to reach Viewing."""
        if self._result_future is None:
            raise RuntimeError("no generation has been started")
        return await asyncio.shield(self._result_future)

    def dispose(self) -> None:
        with self._lock:
            self._abandon_round()
            self._state_changed.clear()
            self._result_ready.clear()

    def _report_blocked_words(self, prompt: str) -> None:
        if self._safety_filter is None:
            return
        blocked = self._safety_filter.find_blocked_terms(prompt)
        if blocked:
            logger.warning(f"{PROMPT_UNSAFE_INPUT}: {', '.join(blocked)}")
            self._emit_error(PROMPT_UNSAFE_INPUT, ", ".join(blocked))

    def _start_presentation(self, epoch: int) -> None:
        if self._presentation is None:
            self._barrier.arrive(epoch, PRESENTATION)
            return
        try:
            self._presentation.run(lambda: self._on_presentation_done(epoch))
        except Exception as exc:
            logger.error(f"Presentation failed to start: {exc}")
            self._barrier.arrive(epoch, PRESENTATION)

    def _on_presentation_done(self, epoch: int) -> None:
        with self._lock:
            self._barrier.arrive(epoch, PRESENTATION)

    def _on_generation_done(self, epoch: int, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        with self._lock:
            if not self._barrier.is_current(epoch):
                logger.warning(f"{JOIN_VIOLATION}: discarding result from epoch {epoch}")
                return
            if exc is not None:
                logger.error(f"Generation raised unexpectedly: {exc}")
                if isinstance(exc, WordCanvasError):
                    self._emit_error(exc.code, exc.user_message)
                else:
                    self._emit_error(TRANSPORT_ERROR, str(exc))
                self._result = self._client.fallback(self._image_count)
            else:
                self._result = task.result()
            self._barrier.arrive(epoch, GENERATION)

    def _on_joined(self, epoch: int) -> None:
        result = self._result
        if result is None:
            result = self._client.fallback(self._image_count)
            self._result = result
        self._generation_task = None
        self._transition(CoordinatorState.VIEWING)
        if self._display is not None:
            self._display.show(result)
        self._result_ready.emit(result)
        if self._result_future is not None and not self._result_future.done():
            self._result_future.set_result(result)

    def _abandon_round(self) -> None:
        self._barrier.cancel()
        if self._generation_task is not None and not self._generation_task.done():
            self._generation_task.cancel()
        self._generation_task = None
        if self._result_future is not None and not self._result_future.done():
            self._result_future.cancel()
        self._result_future = None

    def _emit_error(self, code: str, message: str) -> None:
        if self._on_error:
            self._on_error(code, message)

    def _transition(self, to_state: CoordinatorState) -> None:
        from_state = self._state
        if from_state == to_state:
            return
        self._state = to_state
        logger.debug(f"{from_state.value} -> {to_state.value}")
        self._state_changed.emit(from_state, to_state)
