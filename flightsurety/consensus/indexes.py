"""Unpredictable index derivation for oracles and requests.

Indexes are derived from SHA-256 over three inputs: fresh entropy drawn at
call time, a state nonce that changes on every draw, and the caller
identity. The entropy is never stored in the ledger, so nobody can compute a
registration's indexes before the call is processed.
"""

from __future__ import annotations

import hashlib
import secrets
from typing import Callable, List, Tuple

EntropySource = Callable[[int], bytes]

DEFAULT_INDEX_SPACE = 10
INDEXES_PER_ORACLE = 3


class IndexGenerator:
    """Draws indexes uniformly from ``[0, space)``."""

    def __init__(
        self,
        space: int = DEFAULT_INDEX_SPACE,
        entropy: EntropySource = secrets.token_bytes,
        entropy_bytes: int = 32,
    ) -> None:
        if not 0 < space <= 256:
            raise ValueError("index space must be within 1..256")
        self.space = space
        self._entropy = entropy
        self._entropy_bytes = entropy_bytes

    def _stream(self, identity: str, nonce: int):
        """Yield unbiased values in ``[0, space)`` derived from one seed."""
        seed = hashlib.sha256(
            self._entropy(self._entropy_bytes) + identity.encode("utf-8") + nonce.to_bytes(16, "big")
        ).digest()
        # Rejection sampling keeps every bucket equally likely.
        limit = 256 - (256 % self.space)
        counter = 0
        while True:
            block = hashlib.sha256(seed + counter.to_bytes(8, "big")).digest()
            for byte in block:
                if byte < limit:
                    yield byte % self.space
            counter += 1

    def draw(self, identity: str, nonce: int) -> int:
        """Draw a single index, e.g. a request's dispatch bucket."""
        return next(self._stream(identity, nonce))

    def draw_distinct(self, identity: str, nonce: int, count: int = INDEXES_PER_ORACLE) -> Tuple[int, ...]:
        """Draw ``count`` distinct indexes for one oracle."""
        if count > self.space:
            raise ValueError("cannot draw more distinct indexes than the index space holds")
        picked: List[int] = []
        for value in self._stream(identity, nonce):
            if value not in picked:
                picked.append(value)
                if len(picked) == count:
                    break
        return tuple(picked)


__all__ = ["DEFAULT_INDEX_SPACE", "INDEXES_PER_ORACLE", "EntropySource", "IndexGenerator"]
