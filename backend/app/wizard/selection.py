"""
Immutable selection of checklist question ids.

Every operation returns a new SelectionSet so a session draft snapshot
taken before an edit is never changed by it. Insertion order is kept
because it becomes the persisted display order of session items.
"""
from typing import FrozenSet, Iterable, Iterator, Tuple


class SelectionSet:
    """Ordered, duplicate-free, immutable set of question item ids"""

    __slots__ = ("_ids", "_members")

    def __init__(self, ids: Iterable[str] = ()):
        # dict keeps insertion order and drops duplicates
        self._ids: Tuple[str, ...] = tuple(dict.fromkeys(ids))
        self._members: FrozenSet[str] = frozenset(self._ids)

    # --- queries ---

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._members

    def __iter__(self) -> Iterator[str]:
        return iter(self._ids)

    def __len__(self) -> int:
        return len(self._ids)

    def __eq__(self, other: object) -> bool:
        # Order is part of the value: it becomes display_order
        if isinstance(other, SelectionSet):
            return self._ids == other._ids
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._ids)

    def same_members(self, other: "SelectionSet") -> bool:
        return self._members == other._members

    def __repr__(self) -> str:
        return f"SelectionSet({list(self._ids)!r})"

    def as_list(self) -> list:
        return list(self._ids)

    def contains_all(self, ids: Iterable[str]) -> bool:
        return all(i in self._members for i in ids)

    # --- transforms ---

    def add(self, item_id: str) -> "SelectionSet":
        if item_id in self._members:
            return self
        return SelectionSet(self._ids + (item_id,))

    def remove(self, item_id: str) -> "SelectionSet":
        if item_id not in self._members:
            return self
        return SelectionSet(i for i in self._ids if i != item_id)

    def toggle(self, item_id: str) -> "SelectionSet":
        if item_id in self._members:
            return self.remove(item_id)
        return self.add(item_id)

    def union(self, ids: Iterable[str]) -> "SelectionSet":
        return SelectionSet(self._ids + tuple(ids))

    def difference(self, ids: Iterable[str]) -> "SelectionSet":
        drop = frozenset(ids)
        return SelectionSet(i for i in self._ids if i not in drop)

    def toggle_all(self, ids: Iterable[str]) -> "SelectionSet":
        """
        Flip a whole group at once.

        If every id of the group is already selected the group is removed,
        otherwise the missing ids are added. Never leaves a partial group.
        """
        group = list(ids)
        if self.contains_all(group):
            return self.difference(group)
        return self.union(group)


def toggle_one(item_id: str, selection: SelectionSet) -> SelectionSet:
    return selection.toggle(item_id)
