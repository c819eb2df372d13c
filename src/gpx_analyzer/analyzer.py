"""Single entry point: GPX bytes in, statistics and a renderable track out."""

from dataclasses import dataclass, replace
from typing import Optional, Union

from .geometry import cumulative_distances
from .gpx_parser import parse_gpx
from .simplify import (
    DEFAULT_MAX_POINTS,
    DEFAULT_TOLERANCE_M,
    MIN_MAX_POINTS,
    SimplifiedTrack,
    simplify_track,
)
from .smoothing import auto_window, smooth_elevations
from .stats import (
    DEFAULT_GRADE_WINDOW_M,
    DEFAULT_LOOP_RADIUS_M,
    DEFAULT_MIN_ELEVATION_DELTA_M,
    DEFAULT_MIN_GRADE_DISTANCE_M,
    GpxStats,
    compute_stats,
    route_distances,
)


@dataclass(frozen=True)
class AnalysisOptions:
    """Tuning knobs for :func:`analyze`.

    max_points: upper bound on the number of points returned for rendering.
    smoothing_window: moving-average width in samples; None picks 5-11 from
        the point density, 1 disables smoothing.
    min_elevation_delta_m: elevation changes up to this size are treated as
        noise when accumulating gain and loss.
    simplify_tolerance_m: starting Douglas-Peucker tolerance.
    min_grade_distance_m: shorter segments are left out of grade extremes.
    grade_window_m: stretch length for sustained climb/descent grades.
    loop_radius_m: start/end distance below which the route counts as a loop.
    count_segment_gaps: include the jump between track segments in distance.
    """

    max_points: int = DEFAULT_MAX_POINTS
    smoothing_window: Optional[int] = None
    min_elevation_delta_m: float = DEFAULT_MIN_ELEVATION_DELTA_M
    simplify_tolerance_m: float = DEFAULT_TOLERANCE_M
    min_grade_distance_m: float = DEFAULT_MIN_GRADE_DISTANCE_M
    grade_window_m: float = DEFAULT_GRADE_WINDOW_M
    loop_radius_m: float = DEFAULT_LOOP_RADIUS_M
    count_segment_gaps: bool = True

    def __post_init__(self) -> None:
        if self.max_points < MIN_MAX_POINTS:
            raise ValueError(f"max_points must be at least {MIN_MAX_POINTS}")
        if self.smoothing_window is not None and self.smoothing_window < 1:
            raise ValueError("smoothing_window must be at least 1")
        if self.min_elevation_delta_m < 0:
            raise ValueError("min_elevation_delta_m must not be negative")
        if self.simplify_tolerance_m < 0:
            raise ValueError("simplify_tolerance_m must not be negative")
        if self.min_grade_distance_m < 0:
            raise ValueError("min_grade_distance_m must not be negative")
        if self.grade_window_m <= 0:
            raise ValueError("grade_window_m must be positive")
        if self.loop_radius_m < 0:
            raise ValueError("loop_radius_m must not be negative")


DEFAULT_OPTIONS = AnalysisOptions()


def analyze(
    data: Union[bytes, str], options: Optional[AnalysisOptions] = None
) -> tuple[GpxStats, SimplifiedTrack]:
    """Analyze GPX data.

    Raises ParseError for malformed input and EmptyTrackError when the file has
    no points; nothing is returned alongside an error.
    """
    if options is None:
        options = DEFAULT_OPTIONS

    track = parse_gpx(data)
    seg_dists = route_distances(track, options.count_segment_gaps)

    window = options.smoothing_window
    if window is None:
        window = auto_window(seg_dists)
    smoothed = smooth_elevations([p.elevation for p in track.points], window)

    stats = compute_stats(
        track,
        smoothed,
        min_elevation_delta_m=options.min_elevation_delta_m,
        min_grade_distance_m=options.min_grade_distance_m,
        grade_window_m=options.grade_window_m,
        loop_radius_m=options.loop_radius_m,
        count_segment_gaps=options.count_segment_gaps,
    )

    smoothed_points = [
        replace(p, elevation=e) for p, e in zip(track.points, smoothed)
    ]
    simplified = simplify_track(
        smoothed_points,
        max_points=options.max_points,
        tolerance_m=options.simplify_tolerance_m,
        cum_dist=cumulative_distances(seg_dists),
    )
    return stats, simplified
