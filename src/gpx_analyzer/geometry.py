"""Great-circle distances, bearings and local projections for track points."""

from typing import Sequence

import numpy as np

from .gpx_parser import TrackPoint

EARTH_RADIUS_M = 6_371_008.8  # mean Earth radius
# Meters per degree of latitude on the sphere above
M_PER_DEG_LAT = np.pi * EARTH_RADIUS_M / 180.0


def haversine(lat1, lon1, lat2, lon2):
    """Distance in meters between lat/lon points.

    Accepts scalars or numpy arrays; scalar input returns a float.
    """
    phi1, phi2 = np.radians(lat1), np.radians(lat2)
    dphi = np.radians(np.subtract(lat2, lat1))
    dlam = np.radians(np.subtract(lon2, lon1))
    a = np.sin(dphi / 2) ** 2 + np.cos(phi1) * np.cos(phi2) * np.sin(dlam / 2) ** 2
    # Clip guards sqrt(1 - a) against rounding just above 1 for antipodal points
    a = np.clip(a, 0.0, 1.0)
    d = 2 * EARTH_RADIUS_M * np.arctan2(np.sqrt(a), np.sqrt(1 - a))
    return float(d) if np.ndim(d) == 0 else d


def distance(a: TrackPoint, b: TrackPoint) -> float:
    """Great-circle distance in meters between two track points."""
    return haversine(a.lat, a.lon, b.lat, b.lon)


def bearing(a: TrackPoint, b: TrackPoint) -> float:
    """Initial bearing in degrees (0=north, 90=east) from point a to point b."""
    phi1, phi2 = np.radians(a.lat), np.radians(b.lat)
    dlam = np.radians(b.lon - a.lon)
    x = np.sin(dlam) * np.cos(phi2)
    y = np.cos(phi1) * np.sin(phi2) - np.sin(phi1) * np.cos(phi2) * np.cos(dlam)
    return float((np.degrees(np.arctan2(x, y)) + 360) % 360)


def segment_distances(points: Sequence[TrackPoint]) -> np.ndarray:
    """Distance in meters of each consecutive pair; length is len(points) - 1."""
    if len(points) < 2:
        return np.zeros(0)
    lats = np.array([p.lat for p in points])
    lons = np.array([p.lon for p in points])
    return haversine(lats[:-1], lons[:-1], lats[1:], lons[1:])


def cumulative_distances(segments: np.ndarray) -> np.ndarray:
    """Cumulative arc length at each point given the per-segment distances."""
    return np.concatenate(([0.0], np.cumsum(segments)))


def to_local(points: Sequence[TrackPoint]) -> np.ndarray:
    """Convert points to local 3D Cartesian meters (east, north, up).

    Uses a planar approximation centered on the track's bounding box.
    Points without elevation sit at z = 0.
    """
    lats = np.array([p.lat for p in points], dtype=float)
    lons = np.array([p.lon for p in points], dtype=float)
    elevs = np.array(
        [p.elevation if p.elevation is not None else 0.0 for p in points], dtype=float
    )
    origin_lat = (lats.min() + lats.max()) / 2
    origin_lon = (lons.min() + lons.max()) / 2
    x = (lons - origin_lon) * np.cos(np.radians(origin_lat)) * M_PER_DEG_LAT
    y = (lats - origin_lat) * M_PER_DEG_LAT
    return np.column_stack((x, y, elevs))
