from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Iterable, List

from pygame.math import Vector2


@dataclass(slots=True)
class Food:
    position: Vector2
    eaten: bool = False


@dataclass(frozen=True, slots=True)
class FoodView:
    """Copy of one food item taken under the pool lock."""

    index: int
    x: float
    y: float
    eaten: bool

    @property
    def position(self) -> Vector2:
        return Vector2(self.x, self.y)


class FoodPool:
    """Food shared by every agent task, guarded by one exclusive lock.

    Each read or write touches a single item and holds the lock only for
    that access. A sensing scan or consumption pass is a sequence of such
    accesses, so two agents may both read an item as uneaten before either
    marks it. ``mark_eaten`` resolves that race: the first writer wins and
    every later writer gets ``False``.
    """

    def __init__(self, items: Iterable[Food] = ()) -> None:
        self._lock = threading.Lock()
        self._items: List[Food] = list(items)

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def read(self, index: int) -> FoodView:
        with self._lock:
            item = self._items[index]
            return FoodView(index, item.position.x, item.position.y, item.eaten)

    def mark_eaten(self, index: int) -> bool:
        with self._lock:
            item = self._items[index]
            if item.eaten:
                return False
            item.eaten = True
            return True

    def replace(self, items: Iterable[Food]) -> None:
        fresh = list(items)
        with self._lock:
            self._items.clear()
            self._items.extend(fresh)

    def remaining(self) -> int:
        with self._lock:
            return sum(1 for item in self._items if not item.eaten)

    def views(self) -> List[FoodView]:
        with self._lock:
            return [
                FoodView(index, item.position.x, item.position.y, item.eaten)
                for index, item in enumerate(self._items)
            ]
