"""Shared GPX builders and fixtures."""

import math

import pytest

GPX_HEADER = (
    '<?xml version="1.0" encoding="UTF-8"?>\n'
    '<gpx version="1.1" creator="gpx-analyzer tests" '
    'xmlns="http://www.topografix.com/GPX/1/1">\n'
)
GPX_FOOTER = "</gpx>\n"


def point_xml(tag, lat, lon, ele=None, time=None):
    children = ""
    if ele is not None:
        children += f"<ele>{ele}</ele>"
    if time is not None:
        children += f"<time>{time}</time>"
    return f'<{tag} lat="{lat}" lon="{lon}">{children}</{tag}>\n'


def make_gpx(*segments, name=None):
    """Build a one-track GPX document; each segment is a list of point tuples.

    A point tuple is (lat, lon), (lat, lon, ele) or (lat, lon, ele, time).
    """
    body = "<trk>\n"
    if name:
        body += f"<name>{name}</name>\n"
    for segment in segments:
        body += "<trkseg>\n"
        body += "".join(point_xml("trkpt", *pt) for pt in segment)
        body += "</trkseg>\n"
    body += "</trk>\n"
    return GPX_HEADER + body + GPX_FOOTER


def make_route_gpx(points):
    body = "<rte>\n" + "".join(point_xml("rtept", *pt) for pt in points) + "</rte>\n"
    return GPX_HEADER + body + GPX_FOOTER


def make_waypoint_gpx(points):
    return GPX_HEADER + "".join(point_xml("wpt", *pt) for pt in points) + GPX_FOOTER


def line_points(elevations, step_deg=0.001):
    """Points heading east along the equator, one per elevation."""
    return [(0.0, round(i * step_deg, 6), ele) for i, ele in enumerate(elevations)]


@pytest.fixture
def square_gpx():
    """Closed square with 0.001 degree sides at the equator, flat at 100 m."""
    corners = [(0.0, 0.0), (0.0, 0.001), (0.001, 0.001), (0.001, 0.0), (0.0, 0.0)]
    return make_gpx([(lat, lon, 100.0) for lat, lon in corners]).encode()


@pytest.fixture
def timed_gpx():
    return make_gpx([
        (46.5000, 7.5000, 1000.0, "2024-05-01T08:00:00Z"),
        (46.5010, 7.5000, 1010.0, "2024-05-01T08:01:00Z"),
        (46.5020, 7.5000, 1025.0, "2024-05-01T08:02:30Z"),
    ], name="Morning climb").encode()


@pytest.fixture
def hilly_gpx():
    """2000 points along a rolling profile."""
    elevations = [round(500 + 80 * math.sin(i / 60) + 20 * math.sin(i / 7), 2) for i in range(2000)]
    return make_gpx(line_points(elevations, step_deg=0.0002)).encode()
