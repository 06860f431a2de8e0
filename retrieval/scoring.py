"""Distance to relevance conversion for search hits."""

import math

from .exceptions import InvalidArgumentError


def relevance_score(distance: float) -> float:
    """
    Convert an L2 distance into a similarity score.

    Uses the inverse distance formula 1 / (1 + distance): identical vectors
    score 1.0 and the score approaches (but never reaches) 0 as the distance
    grows.
    """
    if math.isnan(distance) or distance < 0:
        raise InvalidArgumentError(f"Distance must be a non-negative number, got {distance}")
    return 1.0 / (1.0 + distance)
