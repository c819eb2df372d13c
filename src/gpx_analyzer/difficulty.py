"""Route difficulty rating based on distance and climbing."""

from dataclasses import dataclass

# (upper bound of ITRA points, category, label)
DIFFICULTY_CATEGORIES = [
    (25.0, "XXS", "Very easy"),
    (45.0, "XS", "Easy"),
    (75.0, "S", "Moderate"),
    (115.0, "M", "Hard"),
    (155.0, "L", "Very hard"),
    (210.0, "XL", "Ultra"),
]
_TOP_CATEGORY = ("XXL", "Extreme")


@dataclass(frozen=True)
class Difficulty:
    itra_points: float
    effort_distance_km: float
    category: str
    label: str


def rate_difficulty(distance_m: float, gain_m: float, loss_m: float) -> Difficulty:
    """Rate a route by ITRA effort points.

    ITRA points count one point per kilometer plus one per 100 m of climbing.
    The effort distance additionally charges one kilometer per 200 m of
    descent.
    """
    km = distance_m / 1000
    itra_points = km + gain_m / 100
    effort_km = km + gain_m / 100 + loss_m / 200

    category, label = _TOP_CATEGORY
    for limit, cat, lab in DIFFICULTY_CATEGORIES:
        if itra_points < limit:
            category, label = cat, lab
            break
    return Difficulty(
        itra_points=itra_points,
        effort_distance_km=effort_km,
        category=category,
        label=label,
    )
