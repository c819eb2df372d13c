"""Reduce a track to a bounded number of points for map and profile rendering."""

import logging
from dataclasses import dataclass
from typing import Iterator, Optional, Sequence

import numpy as np

from .geometry import cumulative_distances, segment_distances, to_local
from .gpx_parser import TrackPoint

logger = logging.getLogger(__name__)

DEFAULT_MAX_POINTS = 500
DEFAULT_TOLERANCE_M = 5.0
MIN_MAX_POINTS = 4  # first, last, highest and lowest point
_MAX_TOLERANCE_ATTEMPTS = 8


@dataclass(frozen=True)
class SimplifiedTrack:
    """Ordered subset of a track's points ready for rendering.

    ``indices`` are positions in the input sequence and ``distances_m`` the
    distance along the full track at each kept point.
    """

    points: tuple[TrackPoint, ...]
    indices: tuple[int, ...]
    distances_m: tuple[float, ...]
    tolerance_m: float = 0.0
    decimated: bool = False

    def __len__(self) -> int:
        return len(self.points)

    def __iter__(self) -> Iterator[TrackPoint]:
        return iter(self.points)

    def profile(self) -> list[tuple[float, Optional[float]]]:
        """(distance along track, elevation) pairs for an elevation chart."""
        return [(d, p.elevation) for d, p in zip(self.distances_m, self.points)]


def _chord_deviations(coords: np.ndarray, start: int, end: int) -> np.ndarray:
    """Distance of each point strictly between start and end to the chord segment."""
    a, b = coords[start], coords[end]
    pts = coords[start + 1:end]
    ab = b - a
    denom = float(ab @ ab)
    if denom == 0.0:
        return np.linalg.norm(pts - a, axis=1)
    t = np.clip((pts - a) @ ab / denom, 0.0, 1.0)
    return np.linalg.norm(pts - (a + t[:, None] * ab), axis=1)


def douglas_peucker(coords: np.ndarray, tolerance_m: float) -> np.ndarray:
    """Ramer-Douglas-Peucker simplification; returns a boolean keep mask.

    Uses an explicit work stack instead of recursion so very long, nearly
    straight tracks cannot exhaust the interpreter stack.
    """
    n = len(coords)
    keep = np.zeros(n, dtype=bool)
    if n == 0:
        return keep
    keep[0] = keep[-1] = True
    stack = [(0, n - 1)]
    while stack:
        start, end = stack.pop()
        if end - start < 2:
            continue
        deviations = _chord_deviations(coords, start, end)
        k = int(np.argmax(deviations))
        if deviations[k] > tolerance_m:
            split = start + 1 + k
            keep[split] = True
            stack.append((split, end))
            stack.append((start, split))
    return keep


def _forced_indices(points: Sequence[TrackPoint]) -> np.ndarray:
    """First, last, highest and lowest point (first occurrence on ties)."""
    forced = {0, len(points) - 1}
    elevs = np.array(
        [p.elevation if p.elevation is not None else np.nan for p in points], dtype=float
    )
    if not np.isnan(elevs).all():
        forced.add(int(np.nanargmax(elevs)))
        forced.add(int(np.nanargmin(elevs)))
    return np.array(sorted(forced), dtype=int)


def _decimate(keep: np.ndarray, forced: np.ndarray, max_points: int) -> np.ndarray:
    """Evenly thin the kept points down to max_points, never dropping forced ones."""
    forced_mask = np.zeros(len(keep), dtype=bool)
    forced_mask[forced] = True
    candidates = np.nonzero(keep & ~forced_mask)[0]
    budget = max_points - len(forced)
    thinned = forced_mask.copy()
    if budget > 0 and len(candidates):
        picks = np.linspace(0, len(candidates) - 1, num=min(budget, len(candidates)))
        thinned[candidates[picks.astype(int)]] = True
    return thinned


def simplify_track(
    points: Sequence[TrackPoint],
    max_points: int = DEFAULT_MAX_POINTS,
    tolerance_m: float = DEFAULT_TOLERANCE_M,
    cum_dist: Optional[np.ndarray] = None,
) -> SimplifiedTrack:
    """Simplify a track to at most ``max_points`` points.

    Douglas-Peucker runs on local east/north/elevation meters so that both the
    map outline and the elevation profile keep their shape. The tolerance is
    doubled until the result fits; if it still does not, the surviving points
    are decimated evenly. The first, last, highest and lowest points are always
    kept.
    """
    if max_points < MIN_MAX_POINTS:
        raise ValueError(f"max_points must be at least {MIN_MAX_POINTS}, got {max_points}")
    if tolerance_m < 0:
        raise ValueError(f"tolerance_m must not be negative, got {tolerance_m}")

    n = len(points)
    if cum_dist is None:
        cum_dist = cumulative_distances(segment_distances(points))
    if n == 0:
        return SimplifiedTrack(points=(), indices=(), distances_m=(), tolerance_m=tolerance_m)

    forced = _forced_indices(points)
    coords = to_local(points)

    tolerance = tolerance_m
    keep = douglas_peucker(coords, tolerance)
    keep[forced] = True

    attempts = 0
    while keep.sum() > max_points and attempts < _MAX_TOLERANCE_ATTEMPTS:
        tolerance = tolerance * 2 if tolerance > 0 else 1.0
        keep = douglas_peucker(coords, tolerance)
        keep[forced] = True
        attempts += 1
    if attempts:
        logger.debug("Raised simplification tolerance to %.1f m after %d attempts", tolerance, attempts)

    decimated = False
    if keep.sum() > max_points:
        logger.debug("Decimating %d points to %d", int(keep.sum()), max_points)
        keep = _decimate(keep, forced, max_points)
        decimated = True

    indices = np.nonzero(keep)[0]
    return SimplifiedTrack(
        points=tuple(points[i] for i in indices),
        indices=tuple(int(i) for i in indices),
        distances_m=tuple(float(cum_dist[i]) for i in indices),
        tolerance_m=tolerance,
        decimated=decimated,
    )
