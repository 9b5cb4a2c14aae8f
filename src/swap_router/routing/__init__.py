from __future__ import annotations

from .candidates import CandidateOutcome, RouteKind, RouteSearch
from .optimizer import RouteOptimizerService

__all__ = ["CandidateOutcome", "RouteKind", "RouteSearch", "RouteOptimizerService"]
