"""Vector similarity used to rank knowledge entries."""

from __future__ import annotations

import math
from typing import Sequence

from ..domain.exceptions import DimensionMismatchError


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine of the angle between two equal-length vectors.

    Returns a value in [-1, 1]. A zero vector on either side yields 0.

    Raises:
        DimensionMismatchError: If the vectors differ in length
    """
    if len(a) != len(b):
        raise DimensionMismatchError(len(a), len(b))

    dot = 0.0
    norm_a = 0.0
    norm_b = 0.0
    for x, y in zip(a, b):
        dot += x * y
        norm_a += x * x
        norm_b += y * y

    denominator = math.sqrt(norm_a) * math.sqrt(norm_b)
    if denominator == 0:
        return 0.0

    # Rounding can push identical vectors a hair past 1
    return max(-1.0, min(1.0, dot / denominator))
