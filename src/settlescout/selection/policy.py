from __future__ import annotations

from enum import Enum


class SelectionPolicy(str, Enum):
    """How one winner is chosen among the candidates of a single query."""

    NEAREST_ONLY = "nearest_only"
    POPULATION_BAND_NEAREST = "population_band_nearest"
    POPULATION_THEN_DISTANCE = "population_then_distance"
