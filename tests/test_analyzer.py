"""End-to-end tests for the analyze() facade."""

import pytest

from conftest import GPX_FOOTER, GPX_HEADER, line_points, make_gpx
from gpx_analyzer.analyzer import AnalysisOptions, analyze
from gpx_analyzer.errors import EmptyTrackError, ParseError
from gpx_analyzer.geometry import haversine
from gpx_analyzer.simplify import SimplifiedTrack
from gpx_analyzer.stats import GpxStats


def test_square_track(square_gpx):
    stats, track = analyze(square_gpx)
    expected = 4 * haversine(0.0, 0.0, 0.0, 0.001)

    assert isinstance(stats, GpxStats)
    assert isinstance(track, SimplifiedTrack)
    assert expected == pytest.approx(444.0, rel=0.01)
    assert stats.distance_m == pytest.approx(expected, rel=0.05)
    assert stats.elevation_gain_m == 0.0
    assert stats.elevation_loss_m == 0.0
    assert stats.is_loop is True


def test_smoothing_suppresses_jitter():
    gpx = make_gpx(line_points([100.0, 105.0, 95.0, 110.0])).encode()

    raw, _ = analyze(gpx, AnalysisOptions(smoothing_window=1, min_elevation_delta_m=1.0))
    smoothed, _ = analyze(gpx, AnalysisOptions(smoothing_window=5, min_elevation_delta_m=1.0))

    assert raw.elevation_gain_m == pytest.approx(20.0)
    assert smoothed.elevation_gain_m < raw.elevation_gain_m


@pytest.mark.parametrize("window", [None, 1, 3, 5, 11])
def test_constant_elevation_has_no_gain_or_loss(window):
    gpx = make_gpx(line_points([321.5] * 30)).encode()
    stats, _ = analyze(gpx, AnalysisOptions(smoothing_window=window))

    assert stats.elevation_gain_m == 0.0
    assert stats.elevation_loss_m == 0.0


@pytest.mark.parametrize("window", [None, 1, 5, 9])
def test_monotone_climb_gain_is_net_change(window):
    gpx = make_gpx(line_points([100.0 + 10.0 * i for i in range(30)])).encode()
    stats, _ = analyze(gpx, AnalysisOptions(smoothing_window=window))

    assert stats.elevation_gain_m == pytest.approx(290.0)
    assert stats.elevation_loss_m == 0.0


@pytest.mark.parametrize("window", [None, 1, 5])
def test_gentle_climb_gain_is_net_change(window):
    gpx = make_gpx(line_points([100.0 + 0.3 * i for i in range(30)])).encode()
    stats, _ = analyze(gpx, AnalysisOptions(smoothing_window=window))

    assert stats.elevation_gain_m == pytest.approx(8.7)
    assert stats.elevation_loss_m == 0.0


def test_short_climb_below_threshold_steps():
    gpx = make_gpx(line_points([100.0, 101.5, 102.2]))
    stats, _ = analyze(gpx, AnalysisOptions(smoothing_window=1))

    assert stats.elevation_gain_m == pytest.approx(2.2)


def test_analysis_is_idempotent(hilly_gpx):
    assert analyze(hilly_gpx) == analyze(hilly_gpx)


def test_bounds_and_distance_invariants(hilly_gpx, timed_gpx):
    for data in (hilly_gpx, timed_gpx):
        stats, track = analyze(data)

        assert stats.distance_m >= 0
        assert stats.elevation_gain_m >= 0
        assert stats.elevation_loss_m >= 0
        assert all(stats.bounds.contains(p) for p in track)


def test_simplified_track_is_capped_and_keeps_extremes(hilly_gpx):
    stats, track = analyze(hilly_gpx, AnalysisOptions(max_points=60))
    elevations = [p.elevation for p in track]

    assert 2 <= len(track) <= 60
    assert track.indices[0] == 0
    assert track.indices[-1] == stats.point_count - 1
    assert max(elevations) == pytest.approx(stats.max_elevation_m)
    assert min(elevations) == pytest.approx(stats.min_elevation_m)


def test_simplified_points_carry_smoothed_elevation():
    gpx = make_gpx(line_points([100.0, 105.0, 95.0, 110.0])).encode()
    _, track = analyze(gpx, AnalysisOptions(smoothing_window=3, simplify_tolerance_m=0.0))

    assert [p.elevation for p in track] == pytest.approx([100.0, 100.0, 103.3333333, 110.0])


def test_timed_track_reports_duration(timed_gpx):
    stats, _ = analyze(timed_gpx)

    assert stats.name == "Morning climb"
    assert stats.duration.total_seconds() == 150
    assert stats.average_speed_mps == pytest.approx(stats.distance_m / 150)


def test_single_point_file():
    stats, track = analyze(make_gpx([(45.0, 7.0, 1200.0, "2024-05-01T08:00:00Z")]))

    assert stats.point_count == 1
    assert stats.distance_m == 0.0
    assert stats.steepest_grade_pct is None
    assert stats.average_grade_pct is None
    assert stats.duration is None
    assert len(track) == 1


def test_track_without_elevation():
    stats, track = analyze(make_gpx([(45.0, 7.0), (45.001, 7.0), (45.002, 7.001)]))

    assert stats.min_elevation_m is None
    assert stats.elevation_gain_m == 0.0
    assert all(p.elevation is None for p in track)


def test_segment_gap_option():
    gpx = make_gpx(
        [(0.0, 0.0, 10.0), (0.0, 0.001, 10.0)],
        [(0.0, 0.010, 10.0), (0.0, 0.011, 10.0)],
    )
    joined, joined_track = analyze(gpx)
    split, split_track = analyze(gpx, AnalysisOptions(count_segment_gaps=False))

    assert joined.distance_m == pytest.approx(11 * haversine(0.0, 0.0, 0.0, 0.001), rel=1e-6)
    assert split.distance_m == pytest.approx(2 * haversine(0.0, 0.0, 0.0, 0.001), rel=1e-6)
    assert split_track.distances_m[-1] == pytest.approx(split.distance_m)
    assert joined_track.distances_m[-1] == pytest.approx(joined.distance_m)


@pytest.mark.parametrize("data", [b"", GPX_HEADER + GPX_FOOTER])
def test_empty_files_raise(data):
    with pytest.raises(EmptyTrackError):
        analyze(data)


def test_malformed_file_raises():
    with pytest.raises(ParseError):
        analyze(b"<gpx><trk><trkseg><trkpt lat='1' lon='1'></trkseg></gpx>")


@pytest.mark.parametrize(
    "kwargs",
    [
        {"max_points": 3},
        {"smoothing_window": 0},
        {"min_elevation_delta_m": -1.0},
        {"simplify_tolerance_m": -0.5},
        {"min_grade_distance_m": -1.0},
        {"grade_window_m": 0.0},
        {"loop_radius_m": -10.0},
    ],
)
def test_invalid_options(kwargs):
    with pytest.raises(ValueError):
        AnalysisOptions(**kwargs)
