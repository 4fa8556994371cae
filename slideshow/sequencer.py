"""Ordering of a catalog into repeating passes.

A pass shows every eligible item exactly once.  Sequential passes follow
the insertion order.  Shuffled passes are a permutation derived only from
the catalog fingerprint and the pass index, so any process that sees the
same catalog computes the same order for the same pass without sharing a
random generator or a stored queue.
"""

from __future__ import annotations

import hashlib
from typing import List, Sequence

from .media import EmptyCatalogError, MediaItem, OrderingMode, SlideshowConfig, catalog_fingerprint

__all__ = ["build_pass", "order_catalog"]


def order_catalog(catalog: Sequence[MediaItem]) -> List[MediaItem]:
    """Return the catalog sorted by ordinal, using the id as tie-break."""

    return sorted(catalog, key=lambda item: (item.ordinal, item.id))


class _CounterStream:
    """Counter-based generator: draw ``n`` is ``sha256(seed:n)``."""

    __slots__ = ("_seed", "_counter")

    def __init__(self, seed: str) -> None:
        self._seed = seed
        self._counter = 0

    def below(self, bound: int) -> int:
        digest = hashlib.sha256(f"{self._seed}:{self._counter}".encode("utf-8")).digest()
        self._counter += 1
        return int.from_bytes(digest, "big") % bound


def _permute(ordered: List[MediaItem], fingerprint: str, pass_index: int) -> List[MediaItem]:
    items = list(ordered)
    stream = _CounterStream(f"{fingerprint}:{pass_index}")
    for i in range(len(items) - 1, 0, -1):
        j = stream.below(i + 1)
        items[i], items[j] = items[j], items[i]
    return items


def _avoid_repeat(items: List[MediaItem], previous_tail: MediaItem) -> List[MediaItem]:
    if len(items) > 1 and items[0].id == previous_tail.id:
        items[0], items[1] = items[1], items[0]
    return items


def build_pass(
    catalog: Sequence[MediaItem],
    config: SlideshowConfig,
    pass_index: int,
) -> List[MediaItem]:
    """Return the ordered items of pass ``pass_index``.

    Raises
    ------
    EmptyCatalogError
        When ``catalog`` has no items.
    ValueError
        When ``pass_index`` is negative.
    """

    if pass_index < 0:
        raise ValueError(f"pass index must not be negative, got {pass_index}")
    if not catalog:
        raise EmptyCatalogError("catalog has no eligible media")
    ordered = order_catalog(catalog)
    if config.ordering is OrderingMode.SEQUENTIAL or len(ordered) == 1:
        # first and last ordinal differ, so consecutive passes never repeat
        return ordered

    fingerprint = catalog_fingerprint(ordered)
    if len(ordered) == 2:
        # with two items the tail of every pass must lead into the same
        # head again, which pins every pass to the order of pass zero
        return _permute(ordered, fingerprint, 0)

    items = _permute(ordered, fingerprint, pass_index)
    if pass_index == 0:
        return items
    # the head swap only touches indices 0 and 1, so the tail of the
    # previous pass is the tail of its raw permutation
    previous_tail = _permute(ordered, fingerprint, pass_index - 1)[-1]
    return _avoid_repeat(items, previous_tail)
