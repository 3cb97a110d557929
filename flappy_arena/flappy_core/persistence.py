"""
Best Score Persistence
======================

Collaborators that remember the best score between games. The core only
needs read and write; the storage medium is up to the host.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Protocol, Union

logger = logging.getLogger(__name__)


class BestScoreStore(Protocol):
    """Storage for the best score."""

    def read_best_score(self) -> Optional[int]:
        ...

    def write_best_score(self, score: int) -> None:
        ...


def _coerce_score(value: Any) -> Optional[int]:
    """Interpret a stored value as a score, or None if it isn't one."""
    if value is None or isinstance(value, bool):
        return None
    try:
        score = int(value)
    except (TypeError, ValueError):
        return None
    if score < 0:
        return None
    return score


class InMemoryBestScoreStore:
    """Keeps the best score for the lifetime of the process."""

    def __init__(self, initial: Optional[int] = None):
        self._value = initial

    def read_best_score(self) -> Optional[int]:
        return self._value

    def write_best_score(self, score: int) -> None:
        self._value = int(score)


class JsonFileBestScoreStore:
    """
    Stores the best score under a key of a JSON object file.

    Other keys in the file are preserved. Unreadable or corrupt files read
    as "no previous best". When the file cannot be written, the score is
    still remembered in memory for this process.
    """

    def __init__(self, path: Union[str, Path], key: str = "highscore"):
        self._path = Path(path)
        self._key = key
        self._fallback: Dict[str, Any] = {}

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> Dict[str, Any]:
        if not self._path.exists():
            return dict(self._fallback)
        try:
            with open(self._path, "r") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable score file %s: %s", self._path, e)
            return dict(self._fallback)
        if not isinstance(data, dict):
            logger.warning("Ignoring score file %s: not a JSON object", self._path)
            return dict(self._fallback)
        return data

    def read_best_score(self) -> Optional[int]:
        return _coerce_score(self._load().get(self._key))

    def write_best_score(self, score: int) -> None:
        data = self._load()
        data[self._key] = int(score)
        self._fallback[self._key] = int(score)
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with open(self._path, "w") as f:
                json.dump(data, f, indent=2)
        except OSError as e:
            logger.warning("Could not write score file %s: %s", self._path, e)


def record_best_score(store: Optional[BestScoreStore], final_score: int) -> int:
    """
    Merge a final score into the store.

    The best of the stored value (absent counts as 0) and final_score is
    always written back, even when unchanged.

    Returns:
        The best score after merging.
    """
    if store is None:
        return final_score

    try:
        previous = _coerce_score(store.read_best_score())
    except Exception as e:
        logger.warning("Best score read failed, treating as none: %s", e)
        previous = None

    best = max(previous or 0, final_score)
    try:
        store.write_best_score(best)
    except Exception as e:
        logger.warning("Best score write failed, keeping %d in memory: %s", best, e)
    return best
