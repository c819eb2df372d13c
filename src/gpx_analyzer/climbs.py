"""Detect the main climbs along a track."""

from dataclasses import dataclass

import numpy as np

MIN_CLIMB_GAIN_M = 30.0
MIN_CLIMB_LENGTH_M = 100.0
MAX_CLIMB_DIP_M = 10.0
MAX_CLIMBS = 10


@dataclass(frozen=True)
class ClimbSegment:
    start_index: int
    end_index: int
    start_distance_m: float
    end_distance_m: float
    length_m: float
    elevation_gain_m: float
    average_grade_pct: float


def detect_climbs(
    elevations: np.ndarray,
    cum_dist: np.ndarray,
    min_gain_m: float = MIN_CLIMB_GAIN_M,
    min_length_m: float = MIN_CLIMB_LENGTH_M,
    max_dip_m: float = MAX_CLIMB_DIP_M,
    limit: int = MAX_CLIMBS,
) -> tuple[ClimbSegment, ...]:
    """Find continuous climbs in a smoothed elevation profile.

    A climb starts at the first rise, tolerates dips of up to ``max_dip_m``
    below its highest point so far, and ends at that highest point once the
    profile drops further. Climbs are returned largest gain first.
    """
    n = len(elevations)
    if n < 2:
        return ()

    rises = np.clip(np.diff(elevations), 0.0, None)
    cum_gain = np.concatenate(([0.0], np.cumsum(rises)))

    found = []

    def close(start: int, peak: int) -> None:
        gain = float(cum_gain[peak] - cum_gain[start])
        length = float(cum_dist[peak] - cum_dist[start])
        if gain >= min_gain_m and length > min_length_m:
            found.append(ClimbSegment(
                start_index=start,
                end_index=peak,
                start_distance_m=float(cum_dist[start]),
                end_distance_m=float(cum_dist[peak]),
                length_m=length,
                elevation_gain_m=gain,
                average_grade_pct=gain / length * 100,
            ))

    start = peak = None
    for i in range(1, n):
        if start is None:
            if elevations[i] > elevations[i - 1]:
                start, peak = i - 1, i
        elif elevations[i] > elevations[peak]:
            peak = i
        elif elevations[peak] - elevations[i] > max_dip_m:
            close(start, peak)
            start = peak = None
    if start is not None:
        close(start, peak)

    # sorted() is stable, so equal gains keep track order
    found.sort(key=lambda c: -c.elevation_gain_m)
    return tuple(found[:limit])
