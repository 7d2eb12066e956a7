"""Источники времени для экземпляров леджера.

У каждого экземпляра леджера свои часы; общие часы у двух доменов
никогда не предполагаются.
"""

import time
from typing import Callable

Clock = Callable[[], int]


def system_clock() -> int:
    """Время хоста, целые секунды (Unix)."""
    return int(time.time())


class ManualClock:
    """Детерминированные часы для тестов и симуляций."""

    def __init__(self, start: int = 0):
        if start < 0:
            raise ValueError(f"start must be non-negative, got {start}")
        self._now = start

    def __call__(self) -> int:
        return self._now

    def advance(self, seconds: int) -> int:
        """Сдвиг вперёд на seconds; возвращает новое время."""
        if seconds < 0:
            raise ValueError(f"seconds must be non-negative, got {seconds}")
        self._now += seconds
        return self._now

    def set(self, now: int) -> None:
        """Установка абсолютного времени (назад нельзя)."""
        if now < self._now:
            raise ValueError(f"clock cannot go backwards: {now} < {self._now}")
        self._now = now
