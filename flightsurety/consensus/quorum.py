"""Quorum helpers.

Small, pure functions deciding whether a set of voters or responders has
reached its threshold. Independent from the ledger so they can be
unit-tested in isolation.
"""

from __future__ import annotations

from math import ceil
from typing import Iterable, Set

# Registrations beyond this count need a vote among registered airlines.
MULTIPARTY_MIN_AIRLINES = 4


def required_vote_count(num_registered: int, ratio: float = 0.5) -> int:
    """Return the minimum number of votes to admit a new airline.

    Args:
        num_registered: Airlines currently registered.
        ratio: Fraction of registered airlines that must vote (default: 50%).

    Returns:
        ``ceil(num_registered * ratio)``, or 1 for an empty committee.
    """
    if num_registered <= 0:
        return 1
    return max(1, ceil(num_registered * ratio))


def needs_multiparty_vote(num_registered: int, min_airlines: int = MULTIPARTY_MIN_AIRLINES) -> bool:
    """True once enough airlines are registered to require a vote."""
    return num_registered >= min_airlines


def has_vote_quorum(voters: Iterable[str], *, num_registered: int, ratio: float = 0.5) -> bool:
    """Check the airline vote quorum on distinct voters."""
    unique: Set[str] = set(voters)
    return len(unique) >= required_vote_count(num_registered, ratio)


def has_response_quorum(responders: Iterable[str], *, min_responses: int) -> bool:
    """Check whether enough distinct oracles agree on one status."""
    if min_responses <= 0:
        raise ValueError("min_responses must be positive")
    return len(set(responders)) >= min_responses


__all__ = [
    "MULTIPARTY_MIN_AIRLINES",
    "required_vote_count",
    "needs_multiparty_vote",
    "has_vote_quorum",
    "has_response_quorum",
]
