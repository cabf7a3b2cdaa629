"""User-visible progress of a storage mode transition.

``idle -> running(title, message) -> success(message) | failure(error)``,
returning to ``idle`` on its own after a short (success) or longer
(failure) display delay.  This is a projection for a UI; nothing is
persisted.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable
from enum import StrEnum

from pydantic import BaseModel, ConfigDict

_logger = logging.getLogger(__name__)


class ProgressPhase(StrEnum):
    IDLE = "idle"
    RUNNING = "running"
    SUCCESS = "success"
    FAILURE = "failure"


class ProgressState(BaseModel):
    model_config = ConfigDict(frozen=True)

    phase: ProgressPhase = ProgressPhase.IDLE
    title: str | None = None
    message: str | None = None
    error: str | None = None


_IDLE = ProgressState()

ProgressListener = Callable[[ProgressState], None]


class MigrationProgress:
    """Observable transition progress with auto-hide."""

    def __init__(self, *, success_delay: float = 1.2, failure_delay: float = 3.0) -> None:
        self._success_delay = success_delay
        self._failure_delay = failure_delay
        self._state = _IDLE
        self._listeners: list[ProgressListener] = []
        self._hide_task: asyncio.Task[None] | None = None

    @property
    def state(self) -> ProgressState:
        return self._state

    @property
    def is_visible(self) -> bool:
        return self._state.phase is not ProgressPhase.IDLE

    def add_listener(self, listener: ProgressListener) -> Callable[[], None]:
        """Call *listener* on every state change; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def _remove() -> None:
            with contextlib.suppress(ValueError):
                self._listeners.remove(listener)

        return _remove

    def _set(self, state: ProgressState) -> None:
        self._state = state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                _logger.debug("Progress listener failed", exc_info=True)

    def _cancel_hide(self) -> None:
        if self._hide_task is not None and not self._hide_task.done():
            self._hide_task.cancel()
        self._hide_task = None

    def _schedule_hide(self, delay: float) -> None:
        self._cancel_hide()
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._set(_IDLE)
            return
        self._hide_task = loop.create_task(self._hide_after(delay))

    async def _hide_after(self, delay: float) -> None:
        await asyncio.sleep(delay)
        self._hide_task = None
        self._set(_IDLE)

    def start(self, title: str, message: str | None = None) -> None:
        # A new run must not be hidden by the previous run's pending auto-hide.
        self._cancel_hide()
        self._set(ProgressState(phase=ProgressPhase.RUNNING, title=title, message=message))

    def update(self, message: str | None) -> None:
        """Replace the message of a running state; ignored otherwise."""
        if self._state.phase is not ProgressPhase.RUNNING:
            return
        self._set(self._state.model_copy(update={"message": message}))

    def succeed(self, message: str | None = None) -> None:
        self._set(ProgressState(phase=ProgressPhase.SUCCESS, message=message))
        self._schedule_hide(self._success_delay)

    def fail(self, error: str) -> None:
        self._set(ProgressState(phase=ProgressPhase.FAILURE, error=error))
        self._schedule_hide(self._failure_delay)

    async def wait_idle(self) -> None:
        """Wait for a pending auto-hide to complete."""
        task = self._hide_task
        if task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await task
