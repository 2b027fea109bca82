# tabs/prompts/model.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional

UNKNOWN_KEY = "Unknown"


@dataclass(frozen=True)
class Group:
    """A derived partition of entities sharing one grouping key."""
    key: str
    label: str
    members: tuple

    def member_ids(self, id_of: Callable[[Any], str]) -> list[str]:
        return [id_of(m) for m in self.members]

    def __len__(self) -> int:
        return len(self.members)


def group(
    entities: Iterable[Any],
    key_fn: Callable[[Any], Optional[str]],
    label_fn: Optional[Callable[[str], str]] = None,
    sort_keys: bool = False,
) -> list[Group]:
    """
    Partition entities by key_fn.
    Groups come out in first-seen key order (or sorted by key when sort_keys=True);
    members keep input order. Missing/blank keys land in UNKNOWN_KEY.
    """
    buckets: dict[str, list] = {}
    for ent in entities:
        key = key_fn(ent) or UNKNOWN_KEY
        buckets.setdefault(key, []).append(ent)

    keys = sorted(buckets) if sort_keys else list(buckets)
    label_fn = label_fn or (lambda k: k)
    return [Group(key=k, label=label_fn(k), members=tuple(buckets[k])) for k in keys]
