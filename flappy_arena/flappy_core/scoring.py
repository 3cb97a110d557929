"""
Scoring System
==============

Applies collision results to the score. The score is always
next_pipe_id - 1 and only ever grows by one per cleared pipe.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from flappy_arena.flappy_core.collision import CollisionResult
from flappy_arena.flappy_core.errors import InvariantViolation

logger = logging.getLogger(__name__)


@dataclass
class ScoreEvent:
    """Record of a cleared pipe."""
    pipe_id: int
    score: int
    first_pipe: bool = False

    def __repr__(self) -> str:
        return f"ScoreEvent(pipe={self.pipe_id}, score={self.score})"


class ScoreTracker:
    """Tracks which pipe must be cleared next."""

    def __init__(self):
        self._next_pipe_id: int = 1

    @property
    def next_pipe_id(self) -> int:
        """Id of the pipe the bird must clear next."""
        return self._next_pipe_id

    @property
    def score(self) -> int:
        """Pipes cleared so far."""
        return self._next_pipe_id - 1

    def apply(self, result: CollisionResult) -> Optional[ScoreEvent]:
        """
        Apply the scoring part of a collision result.

        Args:
            result: Evaluation computed against the current next_pipe_id.

        Returns:
            ScoreEvent when a pipe was cleared, else None.

        Raises:
            InvariantViolation: If the result would move the score by
                anything other than +1 on a clear or 0 otherwise.
        """
        expected = self._next_pipe_id + 1 if result.scored else self._next_pipe_id
        if result.next_pipe_id != expected:
            raise InvariantViolation(
                f"Score would move from {self.score} to {result.next_pipe_id - 1} "
                f"(scored={result.scored})"
            )

        if not result.scored:
            return None

        cleared = self._next_pipe_id
        self._next_pipe_id = result.next_pipe_id
        logger.debug("Cleared pipe %d, score %d", cleared, self.score)
        return ScoreEvent(
            pipe_id=cleared,
            score=self.score,
            first_pipe=result.first_pipe_cleared
        )

    def reset(self) -> None:
        """Reset score to zero."""
        self._next_pipe_id = 1
