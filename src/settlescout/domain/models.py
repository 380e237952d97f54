"""
Domain models.

These types represent the stable "contract" between layers:
- input points (`Coordinate`)
- parsed query results (`SettlementCandidate`)
- per-point results (`ResolutionOutcome`, `PointResult`)
- run-wide exclusion/dedup bookkeeping (`RunState`)

They are plain frozen dataclasses: candidates are produced in bulk per query and
never cross a validation boundary, so Pydantic would add cost without benefit.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from settlescout.core.geo import normalize_latitude, normalize_longitude


@dataclass(frozen=True)
class Coordinate:
    """A longitude/latitude pair in decimal degrees."""

    lon: float
    lat: float

    @classmethod
    def normalized(cls, lon: float, lat: float) -> "Coordinate":
        return cls(lon=normalize_longitude(float(lon)), lat=normalize_latitude(float(lat)))


@dataclass(frozen=True)
class SettlementCandidate:
    """One named place parsed from a query response."""

    name: str
    coordinate: Coordinate
    distance_km: float
    kind: str = "unknown"
    population: int | None = None


class FailureReason(str, Enum):
    INVALID_COORDINATE = "invalid_coordinate"
    UNEXPECTED_SERVER_FORMAT = "unexpected_server_format"
    PARSE_ERROR = "parse_error"
    NO_ELEMENTS = "no_elements"
    NO_SETTLEMENTS_RECOGNIZED = "no_settlements_recognized"
    NO_POPULATION_BAND_MATCH = "no_population_band_match"
    ALL_CANDIDATES_EXCLUDED = "all_candidates_excluded"
    RATE_LIMITED = "rate_limited"
    GATEWAY_TIMEOUT = "gateway_timeout"
    HTTP_ERROR = "http_error"
    RETRIES_EXHAUSTED = "retries_exhausted"
    UNHANDLED_EXCEPTION = "unhandled_exception"

    @property
    def message(self) -> str:
        return _FAILURE_MESSAGES[self]


_FAILURE_MESSAGES: dict[FailureReason, str] = {
    FailureReason.INVALID_COORDINATE: "Invalid coordinates",
    FailureReason.UNEXPECTED_SERVER_FORMAT: "Server error: received HTML instead of JSON",
    FailureReason.PARSE_ERROR: "Failed to parse response",
    FailureReason.NO_ELEMENTS: "No settlements found",
    FailureReason.NO_SETTLEMENTS_RECOGNIZED: "No named settlements recognized",
    FailureReason.NO_POPULATION_BAND_MATCH: "No settlement within the population band",
    FailureReason.ALL_CANDIDATES_EXCLUDED: "No suitable settlement (all excluded or already used)",
    FailureReason.RATE_LIMITED: "Too many requests - try again later",
    FailureReason.GATEWAY_TIMEOUT: "Server timeout",
    FailureReason.HTTP_ERROR: "HTTP error",
    FailureReason.RETRIES_EXHAUSTED: "Request retries exhausted",
    FailureReason.UNHANDLED_EXCEPTION: "Exception",
}


class ResolutionFailure(Exception):
    """A typed, per-point failure raised where it is detected and caught by the resolver."""

    def __init__(
        self,
        reason: FailureReason,
        detail: str | None = None,
        *,
        status_code: int | None = None,
        raw_body: str | None = None,
    ):
        self.reason = reason
        self.detail = detail
        self.status_code = status_code
        self.raw_body = raw_body
        super().__init__(describe_failure(reason, detail=detail, status_code=status_code))


def describe_failure(
    reason: FailureReason, *, detail: str | None = None, status_code: int | None = None
) -> str:
    """Human-readable status text for a failure (what the output workbook shows)."""
    if reason is FailureReason.HTTP_ERROR and status_code is not None:
        return f"HTTP error {status_code}"
    if reason is FailureReason.UNHANDLED_EXCEPTION and detail:
        return f"Exception: {detail}"
    return reason.message


@dataclass(frozen=True)
class ResolutionOutcome:
    """Exactly one of `settlement` / `failure` is set."""

    settlement: SettlementCandidate | None = None
    failure: FailureReason | None = None
    detail: str | None = None
    status_code: int | None = None
    attempts: int = 1

    def __post_init__(self) -> None:
        if (self.settlement is None) == (self.failure is None):
            raise ValueError("ResolutionOutcome needs exactly one of settlement or failure")

    @classmethod
    def resolved(cls, settlement: SettlementCandidate, *, attempts: int = 1) -> "ResolutionOutcome":
        return cls(settlement=settlement, attempts=attempts)

    @classmethod
    def failed(
        cls,
        reason: FailureReason,
        detail: str | None = None,
        *,
        status_code: int | None = None,
        attempts: int = 1,
    ) -> "ResolutionOutcome":
        return cls(failure=reason, detail=detail, status_code=status_code, attempts=attempts)

    @classmethod
    def from_failure(cls, exc: ResolutionFailure, *, attempts: int = 1) -> "ResolutionOutcome":
        return cls.failed(exc.reason, exc.detail, status_code=exc.status_code, attempts=attempts)

    @property
    def ok(self) -> bool:
        return self.settlement is not None

    @property
    def status_text(self) -> str:
        if self.failure is None:
            return "OK"
        return describe_failure(self.failure, detail=self.detail, status_code=self.status_code)


@dataclass(frozen=True)
class PointResult:
    """An input point (as read) paired with its outcome."""

    point: Coordinate
    outcome: ResolutionOutcome


def fold_name(name: str) -> str:
    """Canonical form used for case-insensitive name comparisons."""
    return name.strip().casefold()


@dataclass
class RunState:
    """Per-run exclusion and dedup sets, passed explicitly to resolver and selector.

    `excluded_names` is fixed for the whole run; `used_names` only ever grows.
    """

    excluded_names: frozenset[str] = frozenset()
    used_names: set[str] = field(default_factory=set)

    @classmethod
    def create(cls, excluded: set[str] | list[str] | frozenset[str] | None = None) -> "RunState":
        names = frozenset(fold_name(n) for n in (excluded or ()) if n and n.strip())
        return cls(excluded_names=names)

    def is_excluded(self, name: str) -> bool:
        return fold_name(name) in self.excluded_names

    def is_used(self, name: str) -> bool:
        return fold_name(name) in self.used_names

    def is_eligible(self, name: str) -> bool:
        if self.is_excluded(name):
            return False
        return not self.is_used(name)

    def mark_used(self, name: str) -> None:
        self.used_names.add(fold_name(name))
