"""Elevation smoothing: fill missing readings and suppress GPS/barometric jitter."""

import logging
from typing import Optional, Sequence

import numpy as np

logger = logging.getLogger(__name__)

# (median point spacing upper bound in meters, window in samples)
_WINDOW_BY_SPACING = [
    (5.0, 11),
    (15.0, 9),
    (30.0, 7),
]
_SPARSE_WINDOW = 5


def auto_window(spacings_m: np.ndarray) -> int:
    """Pick a smoothing window from the typical distance between points.

    Dense recordings (1 s sampling) carry more jitter per meter and get a wider
    window; sparse, planned routes get a narrow one.
    """
    if len(spacings_m) == 0:
        return 1
    median = float(np.median(spacings_m))
    window = _SPARSE_WINDOW
    for limit, candidate in _WINDOW_BY_SPACING:
        if median < limit:
            window = candidate
            break
    logger.debug("Median point spacing %.1f m, smoothing window %d", median, window)
    return window


def fill_gaps(elevations: Sequence[Optional[float]]) -> Optional[np.ndarray]:
    """Fill missing elevations by linear interpolation between known neighbors.

    Leading and trailing gaps take the nearest known value. Returns None when
    no elevation is known at all.
    """
    known = np.array([e is not None for e in elevations], dtype=bool)
    if not known.any():
        return None
    idx = np.arange(len(elevations))
    values = np.array([e for e in elevations if e is not None], dtype=float)
    # np.interp holds the end values constant outside the known range
    return np.interp(idx, idx[known], values)


def centered_moving_average(values: np.ndarray, window: int) -> np.ndarray:
    """Centered moving average whose window shrinks symmetrically at the ends.

    The first and last samples are returned unchanged and a linear ramp is
    reproduced exactly, so genuine monotone trends survive smoothing.
    """
    values = np.asarray(values, dtype=float)
    n = len(values)
    half = min(window // 2, (n - 1) // 2)
    out = values.copy()
    if half <= 0:
        return out

    width = 2 * half + 1
    out[half:n - half] = np.convolve(values, np.ones(width), mode="valid") / width
    for i in range(1, half):
        out[i] = values[:2 * i + 1].mean()
        out[n - 1 - i] = values[n - 1 - 2 * i:].mean()
    return out


def smooth_elevations(
    elevations: Sequence[Optional[float]], window: int
) -> list[Optional[float]]:
    """Return gap-filled, smoothed elevations of the same length as the input.

    Even windows are widened by one sample so the average stays centered;
    ``window=1`` only fills gaps. If no elevation is known the result is all
    None.
    """
    if window < 1:
        raise ValueError(f"Smoothing window must be at least 1, got {window}")
    if window % 2 == 0:
        window += 1

    filled = fill_gaps(elevations)
    if filled is None:
        return [None] * len(elevations)
    return centered_moving_average(filled, window).tolist()
