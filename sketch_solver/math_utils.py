from __future__ import annotations

import math

from .model import Vec3


def _dot3(a: Vec3, b: Vec3) -> float:
    return a[0] * b[0] + a[1] * b[1] + a[2] * b[2]


def _sub3(a: Vec3, b: Vec3) -> Vec3:
    return Vec3(a[0] - b[0], a[1] - b[1], a[2] - b[2])


def _norm3(v: Vec3) -> float:
    return math.sqrt(max(_dot3(v, v), 0.0))


def _distance3(a: Vec3, b: Vec3) -> float:
    return _norm3(_sub3(a, b))


def _perpendicular_distance(point: Vec3, anchor: Vec3, direction: Vec3) -> float:
    # Assumes ``direction`` is unit length; it is not renormalized here.
    v = _sub3(point, anchor)
    proj = _dot3(v, direction)
    return math.sqrt(max(_dot3(v, v) - proj * proj, 0.0))


def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def _with_component(v: Vec3, axis: int, delta: float) -> Vec3:
    components = list(v)
    components[axis] += delta
    return Vec3(*components)


__all__ = [
    "_clamp",
    "_distance3",
    "_dot3",
    "_norm3",
    "_perpendicular_distance",
    "_sub3",
    "_with_component",
]
