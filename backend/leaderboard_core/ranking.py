from __future__ import annotations

from typing import Any, Callable, List, Sequence, Tuple, TypeVar

from .entry import ScoreEntry

ACTIVE_STATUSES = frozenset({"scored", "cap"})
DNF_STATUS = "dnf"

T = TypeVar("T")


def assign_ranks(ordered: Sequence[T], key: Callable[[T], Any]) -> List[Tuple[T, int]]:
    """Standard competition ranking over an already ordered sequence.

    Entries with equal keys share a rank and the next distinct key takes
    its 1-based position, so a two-way tie at the top ranks 1, 1, 3, 4.
    """
    ranked: List[Tuple[T, int]] = []
    rank = 1
    for index, item in enumerate(ordered):
        if index and key(item) != key(ordered[index - 1]):
            rank = index + 1
        ranked.append((item, rank))
    return ranked


def award_ranks(items: List[Any], key: Callable[[Any], Any], attr: str = "rank") -> None:
    """Sort ``items`` best-first by a descending key and store each rank on ``attr``."""
    if not items:
        return
    # list.sort is stable with reverse=True, so equal keys keep input order.
    items.sort(key=key, reverse=True)
    for item, rank in assign_ranks(items, key):
        setattr(item, attr, rank)


def score_key(entries: Sequence[ScoreEntry]) -> Callable[[ScoreEntry], Any]:
    """Comparison key for one event/division list of active scores.

    Sort keys are compared only when every entry carries one; otherwise the
    whole list falls back to numeric value with missing values as zero.
    """
    if entries and all(entry.sort_key for entry in entries):
        return lambda entry: entry.sort_key
    return lambda entry: entry.value if entry.value is not None else 0


def rank_event_division(entries: Sequence[ScoreEntry]) -> List[Tuple[ScoreEntry, int]]:
    """Rank the scores of one division on one event.

    Active scores are ordered better-first and ranked with ties. Every DNF
    then shares the rank just below the last active placing. Any other
    status is left out and ends up with the no-score placeholder.
    """
    active = [entry for entry in entries if entry.status in ACTIVE_STATUSES]
    dnfs = [entry for entry in entries if entry.status == DNF_STATUS]

    key = score_key(active)
    ranked = assign_ranks(sorted(active, key=key), key)

    last_active_rank = ranked[-1][1] if ranked else 0
    ranked.extend((entry, last_active_rank + 1) for entry in dnfs)
    return ranked
