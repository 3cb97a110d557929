"""
Frame Scheduler
===============

Drives a repeating tick at the host's frame cadence.

The host supplies `wait`, which blocks until the next frame is due (for
example `pygame.time.Clock().tick`). Headless runs leave it unset and tick
as fast as possible.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)

IDLE = "idle"
RUNNING = "running"
STOPPED = "stopped"
TERMINATED = "terminated"


class FrameScheduler:
    """
    Calls `tick` once per frame until it asks to stop.

    `tick` returns a truthy value to keep going; an object with a
    `should_continue` attribute (such as a TickResult) is also accepted.
    Once `tick` reports the end, the scheduler terminates and never
    schedules again.
    """

    def __init__(
        self,
        tick: Callable[[], Any],
        wait: Optional[Callable[[], Any]] = None,
        max_frames: Optional[int] = None
    ):
        """
        Initialize scheduler.

        Args:
            tick: Per-frame callback.
            wait: Blocks until the next frame is due. None runs unthrottled.
            max_frames: Stop after this many frames (None = unlimited).
        """
        self._tick = tick
        self._wait = wait
        self._max_frames = max_frames
        self._state = IDLE
        self._frames = 0

    @property
    def state(self) -> str:
        return self._state

    @property
    def frames(self) -> int:
        """Total frames executed."""
        return self._frames

    @property
    def is_running(self) -> bool:
        return self._state == RUNNING

    def start(self) -> None:
        """Allow frames to run. Restarting after stop() is fine."""
        if self._state == TERMINATED:
            raise RuntimeError("Cannot start a terminated scheduler")
        self._state = RUNNING

    def stop(self) -> None:
        """Stop after the current frame; start() may resume later."""
        if self._state == RUNNING:
            self._state = STOPPED

    def terminate(self) -> None:
        """Stop for good."""
        if self._state != TERMINATED:
            logger.debug("Scheduler terminated after %d frames", self._frames)
        self._state = TERMINATED

    @staticmethod
    def _wants_more(outcome: Any) -> bool:
        if hasattr(outcome, "should_continue"):
            return bool(outcome.should_continue)
        return bool(outcome)

    def step(self) -> bool:
        """
        Run exactly one frame.

        Returns:
            True if another frame should follow.
        """
        if self._state != RUNNING:
            return False

        outcome = self._tick()
        self._frames += 1

        if not self._wants_more(outcome):
            self.terminate()
            return False
        if self._max_frames is not None and self._frames >= self._max_frames:
            self.stop()
            return False
        return self._state == RUNNING

    def run(self) -> int:
        """
        Run frames until the tick ends the game, stop() or terminate() is
        called, or max_frames is reached.

        Returns:
            Number of frames executed during this call.
        """
        if self._state == IDLE or self._state == STOPPED:
            self.start()

        start_frames = self._frames
        while self.step():
            if self._wait is not None:
                self._wait()
        return self._frames - start_frames
