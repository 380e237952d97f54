"""
Candidate selection.

Chooses one settlement among the candidates of a single query according to a
`SelectionPolicy`, honoring the run's exclusion list and already-used names.

This module is pure: it reads `RunState` but never mutates it. Recording the
winner as used is the resolver's job once the point is accepted.
"""

from __future__ import annotations

from collections.abc import Sequence

from settlescout.domain.models import (
    FailureReason,
    ResolutionFailure,
    RunState,
    SettlementCandidate,
)
from settlescout.selection.policy import SelectionPolicy

DEFAULT_POPULATION_BAND = (20_000, 50_000)


def in_population_band(candidate: SettlementCandidate, band: tuple[int, int]) -> bool:
    if candidate.population is None:
        return False
    low, high = band
    return low <= candidate.population <= high


def _first_eligible(ordered: Sequence[SettlementCandidate], state: RunState) -> SettlementCandidate:
    for candidate in ordered:
        if state.is_eligible(candidate.name):
            return candidate
    raise ResolutionFailure(FailureReason.ALL_CANDIDATES_EXCLUDED)


def _nearest_only(candidates: Sequence[SettlementCandidate], state: RunState) -> SettlementCandidate:
    # No fallback to the next-nearest: an excluded/used nearest fails the point.
    nearest = min(candidates, key=lambda c: c.distance_km)
    if not state.is_eligible(nearest.name):
        raise ResolutionFailure(FailureReason.ALL_CANDIDATES_EXCLUDED, f"nearest={nearest.name}")
    return nearest


def _population_band_nearest(
    candidates: Sequence[SettlementCandidate], state: RunState, band: tuple[int, int]
) -> SettlementCandidate:
    in_band = [c for c in candidates if in_population_band(c, band)]
    if not in_band:
        raise ResolutionFailure(FailureReason.NO_POPULATION_BAND_MATCH)
    return _first_eligible(sorted(in_band, key=lambda c: c.distance_km), state)


def _population_then_distance(
    candidates: Sequence[SettlementCandidate], state: RunState
) -> SettlementCandidate:
    ordered = sorted(candidates, key=lambda c: (-(c.population or 0), c.distance_km))
    return _first_eligible(ordered, state)


def select_settlement(
    candidates: Sequence[SettlementCandidate],
    state: RunState,
    policy: SelectionPolicy = SelectionPolicy.POPULATION_THEN_DISTANCE,
    *,
    population_band: tuple[int, int] = DEFAULT_POPULATION_BAND,
) -> SettlementCandidate:
    """Return the winning candidate for one point.

    Raises:
        ResolutionFailure: NO_SETTLEMENTS_RECOGNIZED (empty input),
            NO_POPULATION_BAND_MATCH or ALL_CANDIDATES_EXCLUDED.
    """
    if not candidates:
        raise ResolutionFailure(FailureReason.NO_SETTLEMENTS_RECOGNIZED)

    policy = SelectionPolicy(policy)
    if policy is SelectionPolicy.NEAREST_ONLY:
        return _nearest_only(candidates, state)
    if policy is SelectionPolicy.POPULATION_BAND_NEAREST:
        return _population_band_nearest(candidates, state, population_band)
    return _population_then_distance(candidates, state)
