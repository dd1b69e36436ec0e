"""Tests for the fallback chain shared by the strategies"""

from multirec.domain import Candidate
from multirec.errors import BackingStoreUnavailable
from multirec.services.fallback import FallbackChain, FallbackStep, rank


def candidates(*pairs):
    return [Candidate(product_id=pid, score=score) for pid, score in pairs]


def test_first_accepted_tier_wins():
    """Later tiers are not queried once one answers"""

    calls = []

    def tier(name, result):
        def query():
            calls.append(name)
            return result
        return query

    chain = FallbackChain([
        FallbackStep("primary", tier("primary", [])),
        FallbackStep("secondary", tier("secondary", candidates(("X", 1.0)))),
        FallbackStep("tertiary", tier("tertiary", candidates(("Y", 1.0)))),
    ])
    result = chain.run()

    assert result.ok
    assert result.tier == "secondary"
    assert [c.product_id for c in result.candidates] == ["X"]
    assert calls == ["primary", "secondary"]


def test_failed_tier_moves_on():
    """A store error in one tier does not stop the chain"""

    def broken():
        raise BackingStoreUnavailable("interaction")

    result = FallbackChain([
        FallbackStep("primary", broken),
        FallbackStep("secondary", lambda: candidates(("X", 2.0))),
    ]).run()

    assert result.ok
    assert result.tier == "secondary"


def test_all_failed_carries_error():
    """Nothing accepted after a failure: the result carries the error"""

    def broken():
        raise BackingStoreUnavailable("interaction")

    result = FallbackChain([
        FallbackStep("primary", broken),
        FallbackStep("secondary", lambda: []),
    ]).run()

    assert not result.ok
    assert isinstance(result.error, BackingStoreUnavailable)
    assert result.candidates == []


def test_all_empty_is_a_valid_result():
    """Exhausting every tier without failures is an empty answer"""

    result = FallbackChain([
        FallbackStep("primary", lambda: []),
        FallbackStep("secondary", lambda: []),
    ]).run()

    assert result.ok
    assert result.candidates == []
    assert result.tier == "secondary"


def test_custom_acceptance():
    """A step can demand more than a non-empty list"""

    result = FallbackChain([
        FallbackStep("primary", lambda: candidates(("X", 1.0)), accept=lambda c: len(c) >= 2),
        FallbackStep("secondary", lambda: candidates(("Y", 1.0), ("Z", 1.0))),
    ]).run()

    assert result.tier == "secondary"


def test_rank_orders_and_truncates():
    """Score desc, product id asc on ties"""

    ranked = rank(candidates(("B", 1.0), ("A", 1.0), ("C", 3.0), ("D", 0.5)), limit=3)

    assert [c.product_id for c in ranked] == ["C", "A", "B"]


def test_rank_drops_duplicates_and_excluded():
    """Each product once, keeping its best score; excluded ids never appear"""

    ranked = rank(candidates(("A", 1.0), ("A", 5.0), ("B", 2.0), ("C", 4.0)), limit=10, exclude={"C"})

    assert [(c.product_id, c.score) for c in ranked] == [("A", 5.0), ("B", 2.0)]
