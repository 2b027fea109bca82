# tabs/prompts/selection.py
from __future__ import annotations

from collections import deque
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Iterable, Optional

from .model import Group, group
from .notifier import ChangeNotifier

NONE, SOME, ALL = "none", "some", "all"


def default_id(ent: Any) -> Any:
    """Identifier of a dict-like record or an object with an .id attribute."""
    if isinstance(ent, Mapping):
        return ent["id"]
    return ent.id


def _frozen(d: Optional[dict] = None) -> Mapping:
    return MappingProxyType(dict(d or {}))


@dataclass(frozen=True)
class SelectionSnapshot:
    """
    One committed selection state.
    items    = { entity_id: bool }   absence == False
    groups   = { group_key: bool }   True only when every member is selected
    expanded = { group_key: bool }   UI-only
    """
    items: Mapping = field(default_factory=_frozen)
    groups: Mapping = field(default_factory=_frozen)
    expanded: Mapping = field(default_factory=_frozen)


def _all_selected(grp: Group, item_selected: Mapping, id_of: Callable[[Any], Any]) -> bool:
    return all(item_selected.get(id_of(m)) is True for m in grp.members)


def reconcile(groups: Iterable[Group], item_selected: Mapping,
              id_of: Callable[[Any], Any] = default_id) -> dict:
    """Group checkbox booleans derived from item-level state."""
    return {g.key: _all_selected(g, item_selected, id_of) for g in groups}


def tri_state(grp: Group, item_selected: Mapping,
              id_of: Callable[[Any], Any] = default_id) -> str:
    """Display value for a group checkbox. Computed on read, never stored."""
    picked = sum(1 for m in grp.members if item_selected.get(id_of(m)) is True)
    if picked == 0:
        return NONE
    return ALL if picked == len(grp.members) else SOME


class SelectionStore:
    """
    Owns the class -> student selection for one selector instance.
    Every operation builds a full SelectionSnapshot, swaps it in, then publishes
    the flattened selection through the notifier. Unknown ids/keys are no-ops
    and return False. A call made from inside the subscriber is deferred until
    the current transition finishes and returns None, since its outcome is not
    known yet. If the subscriber raises, deferred calls are dropped.
    """

    def __init__(self, key_fn: Callable[[Any], Optional[str]],
                 id_of: Callable[[Any], Any] = default_id,
                 label_fn: Optional[Callable[[str], str]] = None,
                 sort_keys: bool = False,
                 notifier: Optional[ChangeNotifier] = None,
                 prune_stale: bool = False):
        self.key_fn = key_fn
        self.id_of = id_of
        self.label_fn = label_fn
        self.sort_keys = sort_keys
        self.notifier = notifier or ChangeNotifier()
        self.prune_stale = prune_stale

        self._entities: tuple = ()
        self._groups: list[Group] = []
        self._by_key: dict[str, Group] = {}
        self._owner: dict[Any, str] = {}
        self._snap = SelectionSnapshot()

        self._busy = False
        self._pending: deque = deque()

    # ---- read side ----
    @property
    def snapshot(self) -> SelectionSnapshot:
        return self._snap

    @property
    def entities(self) -> tuple:
        return self._entities

    @property
    def groups(self) -> list[Group]:
        return list(self._groups)

    def get_group(self, key: str) -> Optional[Group]:
        return self._by_key.get(key)

    def is_selected(self, item_id) -> bool:
        return self._snap.items.get(item_id) is True

    def is_expanded(self, key: str) -> bool:
        return self._snap.expanded.get(key) is True

    def group_state(self, key: str) -> str:
        grp = self._by_key.get(key)
        if grp is None:
            return NONE
        return tri_state(grp, self._snap.items, self.id_of)

    def selected_count(self, key: str) -> int:
        grp = self._by_key.get(key)
        if grp is None:
            return 0
        return sum(1 for m in grp.members if self.is_selected(self.id_of(m)))

    def selected(self) -> list:
        """Currently selected entities, in input order."""
        return [e for e in self._entities if self.is_selected(self.id_of(e))]

    def total_selected(self) -> int:
        return len(self.selected())

    # ---- input ----
    def set_entities(self, entities: Iterable[Any]) -> None:
        """Regroup after the entity source delivers a new snapshot."""
        def op():
            self._entities = tuple(entities)
            self._groups = group(self._entities, self.key_fn, self.label_fn, self.sort_keys)
            self._by_key = {g.key: g for g in self._groups}
            self._owner = {self.id_of(m): g.key for g in self._groups for m in g.members}

            items = dict(self._snap.items)
            expanded = dict(self._snap.expanded)
            if self.prune_stale:
                items = {k: v for k, v in items.items() if k in self._owner}
                expanded = {k: v for k, v in expanded.items() if k in self._by_key}
            self._commit(items, reconcile(self._groups, items, self.id_of), expanded)
            return True
        self._dispatch(op)

    # ---- operations ----
    def toggle_item(self, item_id, group_key: Optional[str] = None) -> Optional[bool]:
        def op():
            owner = self._owner.get(item_id)
            if owner is None or (group_key is not None and group_key != owner):
                return False
            items = dict(self._snap.items)
            items[item_id] = not items.get(item_id, False)
            groups = dict(self._snap.groups)
            groups[owner] = _all_selected(self._by_key[owner], items, self.id_of)
            self._commit(items, groups, self._snap.expanded)
            return True
        return self._dispatch(op)

    def toggle_group(self, group_key: str, members: Optional[Iterable[Any]] = None) -> Optional[bool]:
        def op():
            grp = self._by_key.get(group_key)
            if grp is None:
                return False
            if members is None:
                ids = grp.member_ids(self.id_of)
            else:
                ids = [m for m in members if self._owner.get(m) == group_key]
            # a mixed group is stored as False, so the first toggle selects all
            new_value = not self._snap.groups.get(group_key, False)
            items = dict(self._snap.items)
            for item_id in ids:
                items[item_id] = new_value
            groups = dict(self._snap.groups)
            groups[group_key] = _all_selected(grp, items, self.id_of)
            self._commit(items, groups, self._snap.expanded)
            return True
        return self._dispatch(op)

    def toggle_expanded(self, group_key: str) -> Optional[bool]:
        def op():
            if group_key not in self._by_key:
                return False
            expanded = dict(self._snap.expanded)
            expanded[group_key] = not expanded.get(group_key, False)
            self._commit(self._snap.items, self._snap.groups, expanded)
            return True
        return self._dispatch(op)

    def clear_all(self) -> Optional[bool]:
        def op():
            self._commit({}, {}, {})
            return True
        return self._dispatch(op)

    # ---- internals ----
    def _commit(self, items, groups, expanded) -> None:
        self._snap = SelectionSnapshot(_frozen(items), _frozen(groups), _frozen(expanded))
        self.notifier.publish(self.selected())

    def _dispatch(self, op: Callable[[], bool]) -> Optional[bool]:
        # Calls made from inside a subscriber run after the current transition finishes.
        if self._busy:
            self._pending.append(op)
            return None
        self._busy = True
        try:
            changed = op()
            while self._pending:
                self._pending.popleft()()
        except Exception:
            # follow-ups queued by a failing subscriber must not leak into the next operation
            self._pending.clear()
            raise
        finally:
            self._busy = False
        return changed
