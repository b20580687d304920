"""Position sequencing for branch stacks.

Pure functions that keep a feature's stack positions dense (1..N).
Persisting the result is the caller's job; see Tracker.reorder_branches().
"""

from __future__ import annotations

from collections import Counter
from typing import Hashable, Iterable, Sequence, TypeVar

from stacktrack.exceptions import InvalidInputError

K = TypeVar("K", bound=Hashable)


def append_position(existing_positions: Iterable[int]) -> int:
    """Position for a branch appended to the end of a stack.

    Returns ``max(existing_positions) + 1``, or 1 for an empty stack.
    """
    return max(existing_positions, default=0) + 1


def reorder_positions(ordered_ids: Sequence[K]) -> dict[K, int]:
    """Map each id to its 1-based index in *ordered_ids*.

    The caller must pass a permutation of exactly the stack's member ids;
    membership is not checked here.

    Raises:
        InvalidInputError: If *ordered_ids* contains duplicates.
    """
    dupes = sorted(
        (str(k) for k, n in Counter(ordered_ids).items() if n > 1)
    )
    if dupes:
        raise InvalidInputError(
            f"Duplicate ids in reorder: {', '.join(dupes)}"
        )
    return {item_id: index + 1 for index, item_id in enumerate(ordered_ids)}


def compact_positions(rows: Iterable[tuple[int, int]]) -> dict[int, int]:
    """Re-rank ``(id, position)`` pairs densely, keeping their relative order.

    Ties on position are broken by id.
    """
    ordered = sorted(rows, key=lambda r: (r[1], r[0]))
    return reorder_positions([item_id for item_id, _ in ordered])


def move_to(ordered_ids: Sequence[K], item_id: K, new_position: int) -> list[K]:
    """Return a new ordering with *item_id* moved to 1-based *new_position*.

    Out-of-range targets are clamped to the ends of the stack.

    Raises:
        InvalidInputError: If *item_id* is not in *ordered_ids*.
    """
    if item_id not in ordered_ids:
        raise InvalidInputError(f"{item_id} is not part of the stack")
    remaining = [i for i in ordered_ids if i != item_id]
    index = min(max(new_position, 1), len(ordered_ids)) - 1
    remaining.insert(index, item_id)
    return remaining
