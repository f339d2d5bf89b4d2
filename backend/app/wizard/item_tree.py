"""
Standard item hierarchy used by the session item selector.

A standard's checklist is a forest of StandardItem nodes. Only nodes with
field_type == "question" can be selected; every other field type is a
grouping node that is walked through but never counted.

All functions here are pure: they never mutate the trees they receive.
"""
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from app.wizard.selection import SelectionSet

QUESTION = "question"


@dataclass(frozen=True)
class StandardItem:
    """One node of a standard's checklist"""
    id: str
    standard_id: str
    title: str
    item_number: Optional[str] = None
    field_type: str = QUESTION
    children: Tuple["StandardItem", ...] = field(default_factory=tuple)

    @property
    def is_question(self) -> bool:
        return self.field_type == QUESTION


ItemTree = Tuple[StandardItem, ...]


def _row_value(row: Any, key: str, default: Any = None) -> Any:
    if isinstance(row, Mapping):
        return row.get(key, default)
    return getattr(row, key, default)


def build_tree(rows: Iterable[Any]) -> ItemTree:
    """
    Nest flat catalog rows into a tree.

    Rows may be dicts or ORM objects with id, standard_id, parent_id,
    item_number, title, field_type and display_order. Siblings are ordered
    by display_order, then item_number. A row whose parent is missing is
    treated as a root.
    """
    rows = list(rows)
    by_id = {str(_row_value(r, "id")): r for r in rows}
    children_of: Dict[Optional[str], List[Any]] = {}
    for row in rows:
        parent = _row_value(row, "parent_id")
        parent_key = str(parent) if parent is not None and str(parent) in by_id else None
        children_of.setdefault(parent_key, []).append(row)

    def sort_key(row: Any):
        return (_row_value(row, "display_order") or 0, str(_row_value(row, "item_number") or ""))

    def build(parent_key: Optional[str], seen: frozenset) -> ItemTree:
        nodes = []
        for row in sorted(children_of.get(parent_key, []), key=sort_key):
            row_id = str(_row_value(row, "id"))
            if row_id in seen:
                continue  # cycle in parent_id chain
            nodes.append(
                StandardItem(
                    id=row_id,
                    standard_id=str(_row_value(row, "standard_id")),
                    title=_row_value(row, "title") or "",
                    item_number=_row_value(row, "item_number"),
                    field_type=_row_value(row, "field_type") or QUESTION,
                    children=build(row_id, seen | {row_id}),
                )
            )
        return tuple(nodes)

    return build(None, frozenset())


def _matches(item: StandardItem, needle: str) -> bool:
    if needle in (item.title or "").lower():
        return True
    return needle in (item.item_number or "").lower()


def filter_by_search(tree: Sequence[StandardItem], term: Optional[str]) -> ItemTree:
    """
    Prune a tree to the nodes matching a search term.

    A node is kept when its title or item number contains the term
    (case-insensitive) or when at least one descendant is kept. A kept
    node that matched itself keeps only its matching descendants, so
    non-matching branches disappear entirely.

    Args:
        tree: Root nodes of one standard
        term: Search text; empty/blank returns the tree unchanged

    Returns:
        New tree (possibly empty)
    """
    needle = (term or "").strip().lower()
    if not needle:
        return tuple(tree)

    result = []
    for item in tree:
        children = filter_by_search(item.children, needle)
        if children or _matches(item, needle):
            result.append(
                StandardItem(
                    id=item.id,
                    standard_id=item.standard_id,
                    title=item.title,
                    item_number=item.item_number,
                    field_type=item.field_type,
                    children=children,
                )
            )
    return tuple(result)


def count_questions(tree: Sequence[StandardItem]) -> int:
    """Count question nodes at any depth (grouping nodes are not counted)."""
    total = 0
    for item in tree:
        if item.is_question:
            total += 1
        total += count_questions(item.children)
    return total


def collect_question_ids(tree: Sequence[StandardItem]) -> List[str]:
    """Pre-order list of every question id in the tree."""
    ids: List[str] = []
    for item in tree:
        if item.is_question:
            ids.append(item.id)
        ids.extend(collect_question_ids(item.children))
    return ids


def toggle_all_in_standard(tree: Sequence[StandardItem], selection: SelectionSet) -> SelectionSet:
    """Select every question of the tree, or deselect all of them if all are selected."""
    return selection.toggle_all(collect_question_ids(tree))


def selection_ratio(tree: Sequence[StandardItem], selection: SelectionSet) -> Tuple[int, int]:
    """(selected, total) question counts for the "x/y" badge."""
    ids = collect_question_ids(tree)
    selected = sum(1 for i in ids if i in selection)
    return selected, len(ids)


def selection_percent(tree: Sequence[StandardItem], selection: SelectionSet) -> float:
    selected, total = selection_ratio(tree, selection)
    if total == 0:
        return 0.0
    return selected / total * 100


def show_bulk_toggle(tree: Sequence[StandardItem]) -> bool:
    """A standard without question leaves gets no select-all control."""
    return count_questions(tree) > 0


def find_item(tree: Sequence[StandardItem], item_id: str) -> Optional[StandardItem]:
    for item in tree:
        if item.id == item_id:
            return item
        found = find_item(item.children, item_id)
        if found is not None:
            return found
    return None


class ItemCatalog:
    """
    Item trees indexed by standard id.

    Each standard is fetched on its own and only once; trees are never
    shared between standards.
    """

    def __init__(self, trees: Optional[Mapping[str, Sequence[StandardItem]]] = None):
        self._trees: Dict[str, ItemTree] = {
            str(k): tuple(v) for k, v in (trees or {}).items()
        }

    def __contains__(self, standard_id: object) -> bool:
        return str(standard_id) in self._trees

    def standard_ids(self) -> List[str]:
        return list(self._trees)

    def get(self, standard_id: str) -> ItemTree:
        return self._trees.get(str(standard_id), ())

    def put(self, standard_id: str, tree: Sequence[StandardItem]) -> None:
        self._trees[str(standard_id)] = tuple(tree)

    async def ensure_loaded(
        self,
        standard_id: str,
        fetch: Callable[[str], Awaitable[Sequence[StandardItem]]],
    ) -> ItemTree:
        """Fetch a standard's tree unless it is already indexed."""
        key = str(standard_id)
        if key not in self._trees:
            self._trees[key] = tuple(await fetch(key))
        return self._trees[key]

    def question_ids(self, standard_ids: Iterable[str]) -> set:
        """All selectable ids across the given standards."""
        ids = set()
        for standard_id in standard_ids:
            ids.update(collect_question_ids(self.get(standard_id)))
        return ids

    def count_questions(self, standard_id: str) -> int:
        return count_questions(self.get(standard_id))
