from __future__ import annotations

import math

from pygame.math import Vector2


def _clamp_value(value: float, min_value: float, max_value: float) -> float:
    return max(min_value, min(max_value, value))


def _ray_directions(count: int) -> tuple[Vector2, ...]:
    """Unit directions spaced clockwise from screen "up" (y grows down)."""
    step = 2.0 * math.pi / count
    directions = []
    for index in range(count):
        angle = index * step
        directions.append(Vector2(math.sin(angle), -math.cos(angle)))
    return tuple(directions)


def _ray_hits_circle(origin: Vector2, direction: Vector2, center: Vector2, radius: float) -> bool:
    # direction must be unit length
    offset_x = center.x - origin.x
    offset_y = center.y - origin.y
    offset_sq = offset_x * offset_x + offset_y * offset_y
    radius_sq = radius * radius
    along = offset_x * direction.x + offset_y * direction.y
    if along < 0.0:
        return offset_sq <= radius_sq
    return offset_sq - along * along <= radius_sq


def _circles_overlap(a: Vector2, radius_a: float, b: Vector2, radius_b: float) -> bool:
    reach = radius_a + radius_b
    return a.distance_squared_to(b) <= reach * reach
