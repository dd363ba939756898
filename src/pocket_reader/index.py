"""Tag and domain indices derived from the entry store."""

from __future__ import annotations

from collections import defaultdict

from pocket_reader.models import Entry


class TagDomainIndex:
    """Maps tags and domains to the ids of live entries holding them.

    The index stores ids only; entry state always comes from the store.
    Soft-deleted entries are not indexed.
    """

    __slots__ = ("_by_domain", "_by_tag")

    def __init__(self) -> None:
        self._by_tag: defaultdict[str, set[str]] = defaultdict(set)
        self._by_domain: defaultdict[str, set[str]] = defaultdict(set)

    def update(self, old: Entry | None, new: Entry | None) -> None:
        """Replace ``old``'s memberships with ``new``'s."""
        if old is not None:
            self._retract(old)
        if new is not None and not new.deleted:
            for tag in new.tags:
                self._by_tag[tag].add(new.id)
            if new.domain:
                self._by_domain[new.domain].add(new.id)

    def _retract(self, entry: Entry) -> None:
        for tag in entry.tags:
            _discard(self._by_tag, tag, entry.id)
        if entry.domain:
            _discard(self._by_domain, entry.domain, entry.id)

    def ids_for_tag(self, tag: str) -> frozenset[str]:
        return frozenset(self._by_tag.get(tag, ()))

    def ids_for_domain(self, domain: str) -> frozenset[str]:
        return frozenset(self._by_domain.get(domain, ()))

    def tags(self) -> list[str]:
        return sorted(self._by_tag)

    def domains(self) -> list[str]:
        return sorted(self._by_domain)

    def counts_by_tag(self) -> list[tuple[str, int]]:
        """Return (tag, count) pairs, most used first, then alphabetical."""
        return _sorted_counts(self._by_tag)

    def counts_by_domain(self, limit: int | None = None) -> list[tuple[str, int]]:
        counts = _sorted_counts(self._by_domain)
        return counts if limit is None else counts[:limit]

    def copy(self) -> TagDomainIndex:
        clone = TagDomainIndex()
        for tag, ids in self._by_tag.items():
            clone._by_tag[tag] = set(ids)
        for domain, ids in self._by_domain.items():
            clone._by_domain[domain] = set(ids)
        return clone

    def __len__(self) -> int:
        return len(self._by_tag)


def _discard(mapping: defaultdict[str, set[str]], key: str, entry_id: str) -> None:
    ids = mapping.get(key)
    if ids is None:
        return
    ids.discard(entry_id)
    if not ids:
        del mapping[key]


def _sorted_counts(mapping: dict[str, set[str]]) -> list[tuple[str, int]]:
    return sorted(((key, len(ids)) for key, ids in mapping.items()), key=lambda kv: (-kv[1], kv[0]))


__all__ = ["TagDomainIndex"]
