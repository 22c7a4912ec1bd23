"""Small statistics helpers shared by the detectors."""

import math
from typing import Sequence, Tuple

# Scales MAD to a standard-deviation equivalent for normal data.
MAD_TO_STD_DEV = 0.6745


def mean(values: Sequence[float]) -> float:
    """Arithmetic mean, 0 for an empty sample."""
    if not values:
        return 0.0
    return sum(values) / len(values)


def population_std_dev(values: Sequence[float]) -> float:
    """Population standard deviation rounded to 2 decimals, 0 for fewer than 2 values."""
    if len(values) <= 1:
        return 0.0
    avg = mean(values)
    variance = sum((v - avg) ** 2 for v in values) / len(values)
    return round(math.sqrt(variance), 2)


def median(values: Sequence[float]) -> float:
    """Median, 0 for an empty sample."""
    if not values:
        return 0.0
    ordered = sorted(values)
    mid = len(ordered) // 2
    if len(ordered) % 2 == 1:
        return ordered[mid]
    return (ordered[mid - 1] + ordered[mid]) / 2


def median_absolute_deviation(values: Sequence[float]) -> Tuple[float, float]:
    """Return (median, MAD) of the sample."""
    if not values:
        return 0.0, 0.0
    center = median(values)
    return center, median([abs(v - center) for v in values])


def modified_z_score(value: float, center: float, mad: float) -> float:
    """Modified Z-Score; 0 when the sample has no spread."""
    if mad == 0:
        return 0.0
    return MAD_TO_STD_DEV * (value - center) / mad


def z_band(center: float, mad: float, z_threshold: float) -> Tuple[float, float]:
    """Values whose modified z-score stays within the threshold, lower bound clamped at 0."""
    spread = z_threshold * mad / MAD_TO_STD_DEV
    return max(0.0, center - spread), center + spread


def round_half_up(value: float, digits: int = 0) -> float:
    """Round like a calculator (2.5 -> 3), not banker's rounding."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor

