"""
Frecency Model - Time-decayed usage scores anchored to a fixed epoch.

Scores decay geometrically with a configurable half-life:
  present_value = stored_score / 2 ** (elapsed / half_life)

Where elapsed is the number of seconds since the catalog's reference time.
Rather than rewriting every score as time passes, each entry stores its
score in decay-inverted form. A launch converts the stored value to its
present-day worth, adds the launch weight, and converts the sum back:

  stored_score = (present_value + weight) * 2 ** (elapsed / half_life)

Because elapsed is always measured from the same reference time, older
launches shrink relative to newer ones without any per-entry timestamps.
"""

import math
import time

from loguru import logger

from ..errors import ConfigInvalid, ScoreOverflow
from ..models import Entry

# Half life of 3 days
DEFAULT_HALF_LIFE = 60.0 * 60.0 * 24.0 * 3.0


def current_time_secs() -> float:
    """Return the current wall-clock time in seconds, to the millisecond."""
    return round(time.time() * 1000) / 1000.0


def validate_half_life(half_life: float) -> float:
    """
    Check that a half-life can be used for decay calculations.

    Args:
        half_life: Seconds after which an unreinforced score halves

    Returns:
        The half-life as a float

    Raises:
        ConfigInvalid: If the value is not a finite number greater than zero
    """
    try:
        value = float(half_life)
    except (TypeError, ValueError) as e:
        raise ConfigInvalid(f"half_life must be a number, got {half_life!r}") from e
    if not math.isfinite(value) or value <= 0:
        raise ConfigInvalid(f"half_life must be positive and finite, got {half_life!r}")
    return value


def validate_score(score: float) -> float:
    """
    Check that a usage score is a finite, non-negative number.

    Raises:
        ConfigInvalid: If the score is negative, infinite, NaN or not a number
    """
    if isinstance(score, bool) or not isinstance(score, (int, float)):
        raise ConfigInvalid(f"score must be a number, got {score!r}")
    if not math.isfinite(score) or score < 0:
        raise ConfigInvalid(f"score must be finite and non-negative, got {score!r}")
    return float(score)


def _scale(score: float, halvings: float) -> float:
    """Return score * 2 ** halvings, split so the power itself cannot overflow."""
    if score == 0:
        return 0.0
    try:
        whole = math.floor(halvings)
        value = math.ldexp(score * 2.0 ** (halvings - whole), int(whole))
    except OverflowError as e:
        raise ScoreOverflow(halvings) from e
    if not math.isfinite(value):
        raise ScoreOverflow(halvings)
    return value


def decayed_score(raw_score: float, elapsed: float, half_life: float) -> float:
    """What a stored score is worth after `elapsed` seconds."""
    return _scale(raw_score, -elapsed / half_life)


def undecay(normalized_score: float, elapsed: float, half_life: float) -> float:
    """Inverse of decayed_score: convert a present-day value to stored form."""
    return _scale(normalized_score, elapsed / half_life)


def reinforce(entry: Entry, weight: float, elapsed: float, half_life: float) -> None:
    """
    Add `weight` to an entry's present-day score.

    Args:
        entry: Entry whose score is updated in place
        weight: Amount added to the present-day score (1.0 per launch)
        elapsed: Seconds since the catalog's reference time
        half_life: Catalog half-life in seconds

    Raises:
        ScoreOverflow: If the stored score would leave the float range
    """
    if weight < 0:
        raise ValueError(f"weight must not be negative, got {weight}")

    present = decayed_score(entry.score, elapsed, half_life) + weight
    entry.score = undecay(present, elapsed, half_life)
    logger.debug(f"Reinforced {entry.display_name}: present score {present:.3f}")
