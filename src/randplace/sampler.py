"""Weighted random selection — probability proportional to weight."""

from __future__ import annotations

import math
import random

from randplace.db.models import WeightedEntry, WeightedTable
from randplace.errors import EmptyDistributionError


def sample(table: WeightedTable, rng: random.Random | None = None) -> WeightedEntry:
    """Draw one entry with probability ``weight / sum(weights)``."""
    if not table:
        raise EmptyDistributionError("weighted table is empty")
    weights = [e.weight for e in table]
    total = sum(weights)
    if total <= 0:
        raise EmptyDistributionError(f"all {len(table)} entries have zero weight")
    if not math.isfinite(total):
        # Finite weights, overflowing sum: rescale, ratios unchanged
        largest = max(weights)
        weights = [w / largest for w in weights]
    chooser = rng or random
    return chooser.choices(table, weights=weights, k=1)[0]
