from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum

from ..domain import OptimalRoute, Token


class RouteKind(str, Enum):
    DIRECT = "direct"
    BRIDGE = "bridge"
    SPLIT = "split"


@dataclass(frozen=True)
class CandidateOutcome:
    """Either a viable route or the reason a candidate was excluded."""

    kind: RouteKind
    label: str
    route: OptimalRoute | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.route is not None

    @property
    def reason(self) -> str:
        if self.error is None:
            return ""
        return f"{type(self.error).__name__}: {self.error}"


@dataclass
class RouteSearch:
    """Every candidate evaluated for one quote request."""

    token_in: Token
    token_out: Token
    amount: Decimal
    outcomes: list[CandidateOutcome] = field(default_factory=list)
    early_exit: bool = False

    @property
    def viable(self) -> list[OptimalRoute]:
        return [outcome.route for outcome in self.outcomes if outcome.route is not None]

    @property
    def failures(self) -> list[CandidateOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.ok]

    @property
    def best(self) -> OptimalRoute | None:
        """Route with the highest expected output; earlier candidates win ties."""
        routes = self.viable
        if not routes:
            return None
        return sorted(routes, key=lambda route: route.expected_output, reverse=True)[0]
