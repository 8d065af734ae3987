"""
Scoring Normalizer - maps raw metric values onto a 0-1 score.

Scores follow the complementary CDF of a log-normal distribution fixed by two
control points: a value at p10 scores 0.9 and a value at the median scores 0.5.
Lower raw values are better (latency, bytes, element counts).
"""

import math
import sys

from pageaudit.schemas.audit import ScoreOptions

# Scores at or above this count as passing
PASS_THRESHOLD = 0.9

# Closest double to erfc^-1(1/5)
_INVERSE_ERFC_ONE_FIFTH = 0.9061938024368232


def clamp_to_2_decimals(value: float) -> float:
    """Round half up to two decimals."""
    return math.floor(value * 100 + 0.5) / 100


def get_log_normal_score(options: ScoreOptions, value: float) -> float:
    """
    Raw log-normal percentile for value, in [0, 1].

    Raises:
        ValueError: control points that cannot define the curve
    """
    median = options.median
    p10 = options.p10
    if median <= 0:
        raise ValueError("median must be greater than zero")
    if p10 <= 0:
        raise ValueError("p10 must be greater than zero")
    # p10 above the median would flip the curve into a p90 point
    if p10 >= median:
        raise ValueError("p10 must be less than the median")

    # Non-positive values are outside the distribution: best possible
    if value <= 0:
        return 1.0

    x_log_ratio = math.log(max(sys.float_info.min, value / median))
    p10_log_ratio = -math.log(max(sys.float_info.min, p10 / median))
    standardized_x = x_log_ratio * _INVERSE_ERFC_ONE_FIFTH / p10_log_ratio
    percentile = math.erfc(standardized_x) / 2

    return min(1.0, max(0.0, percentile))


def compute_log_normal_score(options: ScoreOptions, value: float) -> float:
    """
    Final score for a metric value.

    Scores above 0.9 get a small linear boost (0 at 0.9, +0.005 at 1.0) so near
    perfect values round to a perfect score, then everything is floored to two
    decimals and clamped to [0, 1].
    """
    percentile = get_log_normal_score(options, value)
    if percentile > 0.9:
        percentile += 0.05 * (percentile - 0.9)
    return min(1.0, max(0.0, math.floor(percentile * 100) / 100))
