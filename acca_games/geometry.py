"""Point math for the shape-rotation game.

Shapes are flat point lists where every consecutive pair is one drawn segment.
Curves are tessellated on parse, so everything downstream only sees straight
segments.
"""

from __future__ import annotations

import math
import re
from collections.abc import Sequence
from dataclasses import dataclass
from functools import cmp_to_key
from types import MappingProxyType

EPSILON = 1e-3
TESSELLATION_SEGMENTS = 10

GRID_SIZE = 4
CELL_SIZE = 50
GRID_CENTER = GRID_SIZE * CELL_SIZE / 2

ROTATE_LEFT_45 = "rotate_left_45"
ROTATE_RIGHT_45 = "rotate_right_45"
FLIP_HORIZONTAL = "flip_horizontal"
FLIP_VERTICAL = "flip_vertical"

TRANSFORMS: tuple[str, ...] = (ROTATE_LEFT_45, ROTATE_RIGHT_45, FLIP_HORIZONTAL, FLIP_VERTICAL)

INVERSE_TRANSFORMS = MappingProxyType(
    {
        ROTATE_LEFT_45: ROTATE_RIGHT_45,
        ROTATE_RIGHT_45: ROTATE_LEFT_45,
        FLIP_HORIZONTAL: FLIP_HORIZONTAL,
        FLIP_VERTICAL: FLIP_VERTICAL,
    }
)

_PATH_COMMAND_RE = re.compile(r"([MLQCZ])([^MLQCZ]*)")
_ARG_SPLIT_RE = re.compile(r"[ ,]+")


@dataclass(frozen=True, slots=True)
class Point:
    x: float
    y: float


def _parse_args(raw: str) -> list[float]:
    return [float(tok) for tok in _ARG_SPLIT_RE.split(raw.strip()) if tok]


def _segments(curve: list[Point]) -> list[Point]:
    out: list[Point] = []
    for a, b in zip(curve, curve[1:]):
        out.extend((a, b))
    return out


def tessellate_quadratic(p0: Point, p1: Point, p2: Point) -> list[Point]:
    curve: list[Point] = []
    for i in range(TESSELLATION_SEGMENTS + 1):
        t = i / TESSELLATION_SEGMENTS
        mt = 1 - t
        curve.append(
            Point(
                mt * mt * p0.x + 2 * mt * t * p1.x + t * t * p2.x,
                mt * mt * p0.y + 2 * mt * t * p1.y + t * t * p2.y,
            )
        )
    return _segments(curve)


def tessellate_cubic(p0: Point, p1: Point, p2: Point, p3: Point) -> list[Point]:
    curve: list[Point] = []
    for i in range(TESSELLATION_SEGMENTS + 1):
        t = i / TESSELLATION_SEGMENTS
        mt = 1 - t
        curve.append(
            Point(
                mt**3 * p0.x + 3 * mt**2 * t * p1.x + 3 * mt * t * t * p2.x + t**3 * p3.x,
                mt**3 * p0.y + 3 * mt**2 * t * p1.y + 3 * mt * t * t * p2.y + t**3 * p3.y,
            )
        )
    return _segments(curve)


def parse_shape_to_points(path_data: str) -> list[Point]:
    """Parse SVG-style path data (M, L, Q, C, Z) into segment endpoint pairs."""

    points: list[Point] = []
    current = Point(0.0, 0.0)
    start = current

    for command, raw_args in _PATH_COMMAND_RE.findall(path_data):
        args = _parse_args(raw_args)
        if command == "M":
            current = Point(args[0], args[1])
            start = current
        elif command == "L":
            end = Point(args[0], args[1])
            points.extend((current, end))
            current = end
        elif command == "Q":
            end = Point(args[2], args[3])
            points.extend(tessellate_quadratic(current, Point(args[0], args[1]), end))
            current = end
        elif command == "C":
            end = Point(args[4], args[5])
            points.extend(tessellate_cubic(current, Point(args[0], args[1]), Point(args[2], args[3]), end))
            current = end
        else:  # Z
            points.extend((current, start))

    return points


def parse_grid_to_corner_points(grid: str) -> list[Point]:
    """Border segments for every active cell of a `"0110/0110/..."` grid string."""

    points: list[Point] = []
    for row_idx, row in enumerate(grid.split("/")):
        for col_idx, cell in enumerate(row):
            if cell != "1":
                continue
            top = float(row_idx * CELL_SIZE)
            left = float(col_idx * CELL_SIZE)
            right = left + CELL_SIZE
            bottom = top + CELL_SIZE
            points.extend(
                (
                    Point(left, top), Point(right, top),
                    Point(right, top), Point(right, bottom),
                    Point(right, bottom), Point(left, bottom),
                    Point(left, bottom), Point(left, top),
                )
            )
    return points


def generate_grid_lines() -> list[Point]:
    size = float(GRID_SIZE * CELL_SIZE)
    points: list[Point] = []
    for i in range(GRID_SIZE + 1):
        offset = float(i * CELL_SIZE)
        points.extend((Point(offset, 0.0), Point(offset, size)))
        points.extend((Point(0.0, offset), Point(size, offset)))
    return points


def centroid(points: Sequence[Point]) -> Point:
    if not points:
        return Point(0.0, 0.0)
    n = len(points)
    return Point(sum(p.x for p in points) / n, sum(p.y for p in points) / n)


def apply_transformations(
    points: Sequence[Point],
    transformations: Sequence[str],
    center: Point | None = None,
) -> list[Point]:
    """Apply transforms in order about `center` (the centroid when omitted).

    Unknown transform names are ignored here; callers validate move vocabularies.
    """

    c = center if center is not None else centroid(points)
    moved = [(p.x - c.x, p.y - c.y) for p in points]

    for name in transformations:
        if name == ROTATE_RIGHT_45:
            angle = math.pi / 4
        elif name == ROTATE_LEFT_45:
            angle = -math.pi / 4
        else:
            angle = 0.0

        if angle:
            cos_a, sin_a = math.cos(angle), math.sin(angle)
            moved = [(x * cos_a - y * sin_a, x * sin_a + y * cos_a) for x, y in moved]
        elif name == FLIP_HORIZONTAL:
            moved = [(-x, y) for x, y in moved]
        elif name == FLIP_VERTICAL:
            moved = [(x, -y) for x, y in moved]

    return [Point(x + c.x, y + c.y) for x, y in moved]


def _compare_points(a: Point, b: Point) -> int:
    if abs(a.x - b.x) > EPSILON:
        return -1 if a.x < b.x else 1
    if a.y < b.y:
        return -1
    if a.y > b.y:
        return 1
    return 0


def compare_point_sets(a: Sequence[Point], b: Sequence[Point]) -> bool:
    """Order-independent equality within `EPSILON`."""

    if len(a) != len(b):
        return False

    key = cmp_to_key(_compare_points)
    for pa, pb in zip(sorted(a, key=key), sorted(b, key=key)):
        if abs(pa.x - pb.x) > EPSILON or abs(pa.y - pb.y) > EPSILON:
            return False
    return True


def points_to_path_string(points: Sequence[Point]) -> str:
    parts: list[str] = []
    for i in range(0, len(points) - 1, 2):
        start, end = points[i], points[i + 1]
        if i == 0 or points[i - 1] != start:
            parts.append(f"M {start.x:.3f} {start.y:.3f}")
        parts.append(f"L {end.x:.3f} {end.y:.3f}")
    return " ".join(parts)


def get_center(points: Sequence[Point]) -> Point:
    """Bounding-box center (used for display, not for transforms)."""

    if not points:
        return Point(0.0, 0.0)
    xs = [p.x for p in points]
    ys = [p.y for p in points]
    return Point(min(xs) + (max(xs) - min(xs)) / 2, min(ys) + (max(ys) - min(ys)) / 2)
