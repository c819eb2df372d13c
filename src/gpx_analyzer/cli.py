"""CLI entry point for gpx-analyzer."""

import dataclasses
import json
import logging

import click

from .analyzer import AnalysisOptions, analyze
from .errors import GpxAnalysisError
from .simplify import SimplifiedTrack
from .stats import DEFAULT_MIN_ELEVATION_DELTA_M, GpxStats

DETAIL_PRESETS = {
    "low": {"max_points": 200},
    "medium": {"max_points": 500},
    "high": {"max_points": 1500},
}


def _stats_to_dict(stats: GpxStats) -> dict:
    data = dataclasses.asdict(stats)
    duration = data.pop("duration")
    data["duration_s"] = duration.total_seconds() if duration is not None else None
    return data


def _points_to_list(track: SimplifiedTrack) -> list[dict]:
    return [
        {
            "index": index,
            "lat": p.lat,
            "lon": p.lon,
            "elevation": p.elevation,
            "distance_m": dist,
            "time": p.time.isoformat() if p.time else None,
        }
        for index, p, dist in zip(track.indices, track.points, track.distances_m)
    ]


def _fmt_optional(value, fmt: str, suffix: str = "") -> str:
    return "n/a" if value is None else f"{value:{fmt}}{suffix}"


def _echo_summary(stats: GpxStats, track: SimplifiedTrack) -> None:
    if stats.name:
        click.echo(f"Track: {stats.name}")
    click.echo(f"  Points:          {stats.point_count} in {stats.segment_count} segment(s)")
    click.echo(f"  Distance:        {stats.distance_m / 1000:.2f} km")
    click.echo(f"  Elevation gain:  {stats.elevation_gain_m:.0f} m")
    click.echo(f"  Elevation loss:  {stats.elevation_loss_m:.0f} m")
    click.echo(
        f"  Elevation range: {_fmt_optional(stats.min_elevation_m, '.0f')}"
        f" - {_fmt_optional(stats.max_elevation_m, '.0f', ' m')}"
    )
    click.echo(f"  Average grade:   {_fmt_optional(stats.average_grade_pct, '.1f', '%')}")
    click.echo(
        f"  Steepest:        {_fmt_optional(stats.steepest_grade_pct, '+.1f', '%')}"
        + (f" (segment {stats.steepest_segment_index})"
           if stats.steepest_segment_index is not None else "")
    )
    if stats.duration is not None:
        click.echo(f"  Duration:        {stats.duration}")
        click.echo(f"  Average speed:   {_fmt_optional(stats.average_speed_mps, '.2f', ' m/s')}")
    click.echo(f"  Loop:            {'yes' if stats.is_loop else 'no'}")
    d = stats.difficulty
    click.echo(
        f"  Difficulty:      {d.category} ({d.label}), {d.itra_points:.1f} ITRA points,"
        f" {d.effort_distance_km:.1f} km effort"
    )
    for n, climb in enumerate(stats.climbs, start=1):
        click.echo(
            f"  Climb {n}: km {climb.start_distance_m / 1000:.2f}-{climb.end_distance_m / 1000:.2f},"
            f" +{climb.elevation_gain_m:.0f} m at {climb.average_grade_pct:.1f}%"
        )
    click.echo(f"  Rendered points: {len(track)}")


@click.command()
@click.argument("gpx_file", type=click.File("rb"))
@click.option("--detail", type=click.Choice(["low", "medium", "high"]), default="medium",
              help="Rendering detail preset: low=200, medium=500, high=1500 points.")
@click.option("--max-points", type=click.IntRange(min=4), default=None,
              help="Maximum simplified points (overrides --detail).")
@click.option("--window", type=click.IntRange(min=1), default=None,
              help="Elevation smoothing window in samples (default: automatic).")
@click.option("--threshold", type=click.FloatRange(min=0.0), default=DEFAULT_MIN_ELEVATION_DELTA_M,
              show_default=True, help="Elevation change in meters ignored as noise.")
@click.option("--json", "as_json", is_flag=True, help="Print statistics as JSON.")
@click.option("--points", is_flag=True, help="Include the simplified points in JSON output.")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
def main(
    gpx_file,
    detail: str,
    max_points: int | None,
    window: int | None,
    threshold: float,
    as_json: bool,
    points: bool,
    verbose: bool,
) -> None:
    """Print distance, climbing and grade statistics for a GPX file."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    options = AnalysisOptions(
        max_points=max_points if max_points is not None else DETAIL_PRESETS[detail]["max_points"],
        smoothing_window=window,
        min_elevation_delta_m=threshold,
    )

    try:
        stats, track = analyze(gpx_file.read(), options)
    except GpxAnalysisError as e:
        raise click.ClickException(str(e)) from e

    if as_json:
        payload = {"stats": _stats_to_dict(stats)}
        if points:
            payload["points"] = _points_to_list(track)
        click.echo(json.dumps(payload, indent=2, ensure_ascii=False))
    else:
        _echo_summary(stats, track)


if __name__ == "__main__":
    main()
