"""Ordered fallback tiers shared by the scoring strategies"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Set

from ..domain import Candidate
from ..errors import BackingStoreUnavailable
from ..utils.logging import get_logger

logger = get_logger(__name__)

MOCK_TIER = "mock"


@dataclass
class ScoringResult:
    """
    Outcome of one strategy invocation

    Either candidates from the named tier, or an error when every tier
    that could have answered failed against its store.
    """

    candidates: List[Candidate] = field(default_factory=list)
    tier: Optional[str] = None
    error: Optional[BackingStoreUnavailable] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def failure(cls, error: BackingStoreUnavailable) -> "ScoringResult":
        return cls(error=error)


def non_empty(candidates: List[Candidate]) -> bool:
    return len(candidates) > 0


@dataclass
class FallbackStep:
    """One tier: a query producing candidates and the test its output must pass"""

    name: str
    query: Callable[[], List[Candidate]]
    accept: Callable[[List[Candidate]], bool] = non_empty


class FallbackChain:
    """
    Runs tiers strictly in order and stops at the first accepted result

    A tier that raises BackingStoreUnavailable counts as failed and the
    next tier is tried. If nothing is accepted the result is empty, or
    carries the last store error when any tier failed.
    """

    def __init__(self, steps: Iterable[FallbackStep], strategy: str = ""):
        self.steps = list(steps)
        self.strategy = strategy

    def run(self) -> ScoringResult:
        last_error: Optional[BackingStoreUnavailable] = None

        for step in self.steps:
            try:
                candidates = step.query()
            except BackingStoreUnavailable as e:
                logger.warning(
                    "Fallback tier failed",
                    strategy=self.strategy,
                    tier=step.name,
                    error=str(e),
                )
                last_error = e
                continue

            if step.accept(candidates):
                return ScoringResult(candidates=candidates, tier=step.name)

            logger.debug("Fallback tier empty", strategy=self.strategy, tier=step.name)

        if last_error is not None:
            return ScoringResult.failure(last_error)
        return ScoringResult(tier=self.steps[-1].name if self.steps else None)


def rank(
    candidates: Iterable[Candidate],
    limit: int,
    exclude: Set[str] = frozenset(),
    key: Optional[Callable[[Candidate], tuple]] = None,
) -> List[Candidate]:
    """Drop excluded and duplicate products, sort by (-score, product_id), truncate"""

    key = key or (lambda c: c.sort_key)

    best: Dict[str, Candidate] = {}
    for candidate in candidates:
        if candidate.product_id in exclude:
            continue
        current = best.get(candidate.product_id)
        if current is None or key(candidate) < key(current):
            best[candidate.product_id] = candidate

    return sorted(best.values(), key=key)[:limit]


class ScoringStrategy(ABC):
    """A recommendation model: scores products for a user"""

    name: str = ""

    def score(self, user_id: int, limit: int) -> ScoringResult:
        """Ranked candidates (at most limit), never containing purchased products"""

        return self._run(lambda: self.build_chain(user_id, limit), user_id)

    def _run(self, build: Callable[[], FallbackChain], user_id: int) -> ScoringResult:
        try:
            chain = build()
        except BackingStoreUnavailable as e:
            logger.warning("User profile unavailable", strategy=self.name, user_id=user_id, error=str(e))
            return ScoringResult.failure(e)

        return chain.run()

    @abstractmethod
    def build_chain(self, user_id: int, limit: int) -> FallbackChain:
        """Load what the tiers need about the user and return them in order"""

    @abstractmethod
    def mock(self, user_id: int, limit: int) -> List[Candidate]:
        """Deterministic stand-in list used when the store is unreachable"""
