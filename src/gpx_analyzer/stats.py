"""Summary statistics for a parsed track: distance, climbing, grades, timing."""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Sequence

import numpy as np

from .climbs import ClimbSegment, detect_climbs
from .difficulty import Difficulty, rate_difficulty
from .errors import EmptyTrackError
from .geometry import cumulative_distances, distance, segment_distances
from .gpx_parser import RawTrack, TrackPoint

DEFAULT_MIN_ELEVATION_DELTA_M = 1.0
DEFAULT_MIN_GRADE_DISTANCE_M = 1.0
DEFAULT_GRADE_WINDOW_M = 300.0
DEFAULT_LOOP_RADIUS_M = 500.0


@dataclass(frozen=True)
class BoundingBox:
    min_lat: float
    max_lat: float
    min_lon: float
    max_lon: float

    def contains(self, point: TrackPoint) -> bool:
        return (self.min_lat <= point.lat <= self.max_lat
                and self.min_lon <= point.lon <= self.max_lon)


@dataclass(frozen=True)
class GpxStats:
    """Summary of one track.

    Elevation figures are taken from the smoothed profile. Grades are signed
    percentages; every other figure is non-negative. Fields that cannot be
    derived (no elevation data, no timestamps, fewer than two points) are None.
    """

    point_count: int
    segment_count: int
    distance_m: float
    elevation_gain_m: float
    elevation_loss_m: float
    min_elevation_m: Optional[float]
    max_elevation_m: Optional[float]
    average_elevation_m: Optional[float]
    bounds: BoundingBox
    start: tuple[float, float]
    end: tuple[float, float]
    duration: Optional[timedelta]
    average_speed_mps: Optional[float]
    average_grade_pct: Optional[float]
    max_grade_pct: Optional[float]
    min_grade_pct: Optional[float]
    steepest_grade_pct: Optional[float]
    steepest_segment_index: Optional[int]
    sustained_climb_grade_pct: Optional[float]
    sustained_descent_grade_pct: Optional[float]
    is_loop: bool
    name: Optional[str]
    difficulty: Difficulty
    climbs: tuple[ClimbSegment, ...] = ()


def route_distances(track: RawTrack, count_segment_gaps: bool = True) -> np.ndarray:
    """Per-segment distances, optionally zeroing the jumps between track segments."""
    dists = segment_distances(track.points)
    if not count_segment_gaps:
        for start in track.segment_starts[1:]:
            dists[start - 1] = 0.0
    return dists


def elevation_gain_loss(
    elevations: Sequence[float], threshold_m: float = DEFAULT_MIN_ELEVATION_DELTA_M
) -> tuple[float, float]:
    """Accumulate climbing and descent with a hysteresis threshold.

    Movement is measured from the last counted elevation and only counted once
    it strictly exceeds ``threshold_m``. Whatever movement is still pending at
    the last point is counted, so a steady climb in sub-threshold steps adds up
    to its net change. A threshold of zero gives the plain sum of positive and
    negative deltas.
    """
    gain = loss = 0.0
    if len(elevations) == 0:
        return gain, loss
    ref = elevations[0]
    for elev in elevations[1:]:
        delta = elev - ref
        if delta > threshold_m:
            gain += delta
            ref = elev
        elif -delta > threshold_m:
            loss -= delta
            ref = elev
    residual = elevations[-1] - ref
    if residual > 0:
        gain += residual
    else:
        loss -= residual
    return float(gain), float(loss)


def compute_bounds(points: Sequence[TrackPoint]) -> BoundingBox:
    lats = [p.lat for p in points]
    lons = [p.lon for p in points]
    return BoundingBox(min(lats), max(lats), min(lons), max(lons))


def compute_duration(points: Sequence[TrackPoint]) -> Optional[timedelta]:
    """Elapsed time from first to last point.

    Only defined when every point is timestamped and time does not run
    backwards between the first and last point.
    """
    if len(points) < 2:
        return None
    times: list[Optional[datetime]] = [p.time for p in points]
    if any(t is None for t in times):
        return None
    first, last = times[0], times[-1]
    if (first.tzinfo is None) != (last.tzinfo is None):
        return None
    if last < first:
        return None
    return last - first


def _segment_grades(
    elevations: np.ndarray, seg_dists: np.ndarray, min_distance_m: float
) -> tuple[np.ndarray, np.ndarray]:
    """Grades (%) of segments long enough to be meaningful, with their indices."""
    eligible = (seg_dists > 0) & (seg_dists >= min_distance_m)
    indices = np.nonzero(eligible)[0]
    grades = np.diff(elevations)[indices] / seg_dists[indices] * 100
    return grades, indices


def _sustained_grades(
    elevations: np.ndarray, cum_dist: np.ndarray, window_m: float
) -> tuple[Optional[float], Optional[float]]:
    """Steepest climbing and descending grade over stretches of at least window_m."""
    if len(cum_dist) < 2 or cum_dist[-1] < window_m:
        return None, None
    ends = np.searchsorted(cum_dist, cum_dist + window_m, side="left")
    starts = np.nonzero(ends < len(cum_dist))[0]
    ends = ends[starts]
    spans = cum_dist[ends] - cum_dist[starts]
    keep = spans > 0
    if not keep.any():
        return None, None
    grades = (elevations[ends[keep]] - elevations[starts[keep]]) / spans[keep] * 100
    return float(grades.max()), float(grades.min())


def compute_stats(
    track: RawTrack,
    smoothed: Sequence[Optional[float]],
    *,
    min_elevation_delta_m: float = DEFAULT_MIN_ELEVATION_DELTA_M,
    min_grade_distance_m: float = DEFAULT_MIN_GRADE_DISTANCE_M,
    grade_window_m: float = DEFAULT_GRADE_WINDOW_M,
    loop_radius_m: float = DEFAULT_LOOP_RADIUS_M,
    count_segment_gaps: bool = True,
) -> GpxStats:
    """Aggregate a track and its smoothed elevations into a GpxStats record.

    A single point is a valid, degenerate track: zero distance, no grades and
    no duration.
    """
    points = track.points
    if not points:
        raise EmptyTrackError("Cannot compute statistics for a track without points")
    if len(smoothed) != len(points):
        raise ValueError(
            f"Expected {len(points)} smoothed elevations, got {len(smoothed)}"
        )

    seg_dists = route_distances(track, count_segment_gaps)
    cum_dist = cumulative_distances(seg_dists)
    total = float(cum_dist[-1])

    duration = compute_duration(points)
    speed = None
    if duration is not None and duration.total_seconds() > 0:
        speed = total / duration.total_seconds()

    gain = loss = 0.0
    min_elev = max_elev = avg_elev = None
    avg_grade = max_grade = min_grade = steepest = steepest_idx = None
    sustained_up = sustained_down = None
    climbs: tuple[ClimbSegment, ...] = ()

    if smoothed[0] is not None:
        elevs = np.asarray(smoothed, dtype=float)
        gain, loss = elevation_gain_loss(elevs, min_elevation_delta_m)
        min_elev, max_elev = float(elevs.min()), float(elevs.max())
        avg_elev = float(elevs.mean())
        if total > 0:
            avg_grade = float((elevs[-1] - elevs[0]) / total * 100)

        grades, indices = _segment_grades(elevs, seg_dists, min_grade_distance_m)
        if len(grades):
            max_grade, min_grade = float(grades.max()), float(grades.min())
            # argmax returns the first occurrence, so ties go to the earliest segment
            pos = int(np.argmax(np.abs(grades)))
            steepest, steepest_idx = float(grades[pos]), int(indices[pos])

        sustained_up, sustained_down = _sustained_grades(elevs, cum_dist, grade_window_m)
        climbs = detect_climbs(elevs, cum_dist)

    first, last = points[0], points[-1]
    return GpxStats(
        point_count=len(points),
        segment_count=track.segment_count,
        distance_m=total,
        elevation_gain_m=gain,
        elevation_loss_m=loss,
        min_elevation_m=min_elev,
        max_elevation_m=max_elev,
        average_elevation_m=avg_elev,
        bounds=compute_bounds(points),
        start=(first.lat, first.lon),
        end=(last.lat, last.lon),
        duration=duration,
        average_speed_mps=speed,
        average_grade_pct=avg_grade,
        max_grade_pct=max_grade,
        min_grade_pct=min_grade,
        steepest_grade_pct=steepest,
        steepest_segment_index=steepest_idx,
        sustained_climb_grade_pct=sustained_up,
        sustained_descent_grade_pct=sustained_down,
        is_loop=len(points) > 1 and distance(first, last) < loop_radius_m,
        name=track.name,
        difficulty=rate_difficulty(total, gain, loss),
        climbs=climbs,
    )
