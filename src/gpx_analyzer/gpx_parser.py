"""Parse GPX data and extract track points."""

import logging
import math
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional, Union

import gpxpy
import gpxpy.gpx
import gpxpy.gpxfield

from .errors import EmptyTrackError, ParseError

logger = logging.getLogger(__name__)

MAX_GPX_SIZE = 50 * 1024 * 1024  # 50 MB
_HTML_SIGNATURES = ["<!doctype html", "<html", "<head", "<body"]
_TIME_ELEMENT = re.compile(r"<(?:\w+:)?time>([^<]*)</(?:\w+:)?time>")


@dataclass(frozen=True)
class TrackPoint:
    lat: float
    lon: float
    elevation: Optional[float] = None  # meters, None when the file omits <ele>
    time: Optional[datetime] = None


@dataclass(frozen=True)
class RawTrack:
    """All points of one GPX file in file order.

    Segments are concatenated into a single sequence; ``segment_starts`` holds
    the index of the first point of each segment so that consumers can tell
    where the recording was interrupted.
    """

    points: tuple[TrackPoint, ...]
    segment_starts: tuple[int, ...] = (0,)
    name: Optional[str] = None
    source: str = "track"

    def __len__(self) -> int:
        return len(self.points)

    @property
    def segment_count(self) -> int:
        return len(self.segment_starts)


def _decode(data: Union[bytes, str]) -> str:
    if isinstance(data, str):
        return data.lstrip("\ufeff")
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise ParseError(f"GPX data is not valid UTF-8: {e}") from e


def _syntax_error_message(text: str) -> str:
    head = text.lstrip()[:500].lower()
    if any(sig in head for sig in _HTML_SIGNATURES):
        return (
            "The data appears to be an HTML web page, not a GPX file.\n"
            "If you downloaded this from an activity tracker, export the GPX\n"
            "file first; the activity page itself is not a track file."
        )
    return "Failed to parse GPX: the data is not well-formed XML."


def _check_timestamps(text: str) -> None:
    """Reject <time> values gpxpy would silently turn into None."""
    for match in _TIME_ELEMENT.finditer(text):
        value = match.group(1).strip()
        if not value:
            continue
        try:
            gpxpy.gpxfield.parse_time(value)
        except (gpxpy.gpx.GPXException, ValueError) as e:
            raise ParseError(f"Invalid timestamp {value!r}") from e


def _coordinate(value, name: str, limit: float) -> float:
    if value is None:
        raise ParseError(f"Point is missing its '{name}' attribute")
    value = float(value)
    if not math.isfinite(value) or abs(value) > limit:
        raise ParseError(f"Invalid {name} value {value!r}")
    return value


def _elevation(value) -> Optional[float]:
    if value is None:
        return None
    value = float(value)
    if not math.isfinite(value):
        raise ParseError(f"Invalid elevation value {value!r}")
    return value


def _convert(point: gpxpy.gpx.GPXTrackPoint) -> TrackPoint:
    return TrackPoint(
        lat=_coordinate(point.latitude, "lat", 90.0),
        lon=_coordinate(point.longitude, "lon", 180.0),
        elevation=_elevation(point.elevation),
        time=point.time,
    )


def _collect(groups: Iterable[Iterable[gpxpy.gpx.GPXTrackPoint]]) -> tuple[list[TrackPoint], list[int]]:
    """Flatten point groups, remembering where each non-empty group begins."""
    points: list[TrackPoint] = []
    starts: list[int] = []
    for group in groups:
        converted = [_convert(p) for p in group]
        if converted:
            starts.append(len(points))
            points.extend(converted)
    return points, starts


def _track_name(gpx: gpxpy.gpx.GPX) -> Optional[str]:
    for track in gpx.tracks:
        if track.name:
            return track.name.strip() or None
    return gpx.name.strip() if gpx.name and gpx.name.strip() else None


def parse_gpx(data: Union[bytes, str]) -> RawTrack:
    """Parse GPX content and return its points as one ordered track.

    Track points are preferred; files without any fall back to route points
    and then to waypoints.
    """
    if len(data) > MAX_GPX_SIZE:
        raise ParseError(
            f"GPX data too large ({len(data) / 1024 / 1024:.1f} MB, max 50 MB)"
        )

    text = _decode(data)
    if not text.strip():
        raise EmptyTrackError("GPX data is empty")

    try:
        gpx = gpxpy.parse(text)
    except gpxpy.gpx.GPXXMLSyntaxException as e:
        raise ParseError(_syntax_error_message(text)) from e
    except (gpxpy.gpx.GPXException, ValueError) as e:
        raise ParseError(f"Invalid GPX content: {e}") from e
    _check_timestamps(text)

    try:
        points, starts = _collect(
            segment.points for track in gpx.tracks for segment in track.segments
        )
        source = "track"
        if not points:
            points, starts = _collect(route.points for route in gpx.routes)
            source = "route"
        if not points:
            points, starts = _collect([gpx.waypoints])
            source = "waypoints"
    except ParseError:
        raise
    except (TypeError, ValueError) as e:
        raise ParseError(f"Invalid coordinate in GPX data: {e}") from e

    if not points:
        raise EmptyTrackError("GPX data contains no track, route or waypoint points")

    logger.debug(
        "Parsed %d points in %d segment(s) from %s data", len(points), len(starts), source
    )
    return RawTrack(
        points=tuple(points),
        segment_starts=tuple(starts),
        name=_track_name(gpx),
        source=source,
    )
