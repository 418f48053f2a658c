"""Lexicon backends mapping terms to index entries.

Three interchangeable implementations share the :class:`Lexicon` protocol:

* ``ArrayLexicon`` - fixed-capacity array kept in term order by the caller,
  looked up by binary search.
* ``HashLexicon`` - plain dictionary, capacity is only a hint.
* ``TreeLexicon`` - term-ordered map without a capacity.

Use :func:`create_lexicon` to pick one by :class:`LexiconType`.
"""

from __future__ import annotations

import bisect
from collections.abc import Iterator
from enum import Enum
from typing import Protocol

from inverted_index.models import IndexEntry


class LexiconError(ValueError):
    """Raised when a lexicon is configured or used inconsistently."""


class RankOutOfRangeError(LexiconError, IndexError):
    """Raised when an entry is inserted outside an array lexicon's bounds."""


class LexiconType(str, Enum):
    """Data structure used to store the lexicon."""

    ARRAY = "array"
    HASH = "hash"
    TREE = "tree"


class Lexicon(Protocol):
    """Capability set shared by every lexicon backend."""

    kind: LexiconType

    def insert(self, entry: IndexEntry, rank: int) -> None:  # pragma: no cover - interface definition
        ...

    def lookup(self, term: str) -> IndexEntry | None:  # pragma: no cover - interface definition
        ...

    def size(self) -> int:  # pragma: no cover - interface definition
        ...

    def enumerate(self) -> Iterator[IndexEntry]:  # pragma: no cover - interface definition
        ...


def _check_capacity(capacity: int) -> None:
    if capacity < 0:
        msg = f"Lexicon capacity cannot be negative: {capacity}"
        raise LexiconError(msg)


class ArrayLexicon:
    """Lexicon stored in a fixed-size array.

    Entries land at the exact rank given by the caller, which must insert
    them in ascending term order for :meth:`lookup` to work.
    """

    kind = LexiconType.ARRAY

    def __init__(self, capacity: int) -> None:
        _check_capacity(capacity)
        self._data: list[IndexEntry | None] = [None] * capacity

    @property
    def capacity(self) -> int:
        return len(self._data)

    def insert(self, entry: IndexEntry, rank: int) -> None:
        if rank < 0 or rank >= len(self._data):
            msg = f"Rank {rank} is outside the lexicon bounds [0, {len(self._data)})"
            raise RankOutOfRangeError(msg)
        self._data[rank] = entry

    def lookup(self, term: str) -> IndexEntry | None:
        low, high = 0, len(self._data)
        while low < high:
            middle = (low + high) // 2
            # empty slots are skipped by probing leftwards inside the window
            entry: IndexEntry | None = None
            probe = middle
            while probe >= low:
                entry = self._data[probe]
                if entry is not None:
                    break
                probe -= 1
            if entry is None:
                low = middle + 1
                continue
            if entry.term == term:
                return entry
            if entry.term < term:
                low = middle + 1
            else:
                high = probe
        return None

    def size(self) -> int:
        return sum(1 for entry in self._data if entry is not None)

    def enumerate(self) -> Iterator[IndexEntry]:
        return (entry for entry in self._data if entry is not None)


class HashLexicon:
    """Lexicon stored in a hash table; the last insert of a term wins."""

    kind = LexiconType.HASH

    def __init__(self, capacity: int = 0) -> None:
        _check_capacity(capacity)
        self._data: dict[str, IndexEntry] = {}

    def insert(self, entry: IndexEntry, rank: int) -> None:
        self._data[entry.term] = entry

    def lookup(self, term: str) -> IndexEntry | None:
        return self._data.get(term)

    def size(self) -> int:
        return len(self._data)

    def enumerate(self) -> Iterator[IndexEntry]:
        return iter(self._data.values())


class TreeLexicon:
    """Term-ordered lexicon with no fixed size.

    Terms are kept in a sorted key list next to the mapping so enumeration
    always runs in ascending term order.
    """

    kind = LexiconType.TREE

    def __init__(self) -> None:
        self._terms: list[str] = []
        self._data: dict[str, IndexEntry] = {}

    def insert(self, entry: IndexEntry, rank: int) -> None:
        if entry.term not in self._data:
            bisect.insort(self._terms, entry.term)
        self._data[entry.term] = entry

    def lookup(self, term: str) -> IndexEntry | None:
        return self._data.get(term)

    def size(self) -> int:
        return len(self._data)

    def enumerate(self) -> Iterator[IndexEntry]:
        return (self._data[term] for term in self._terms)


def resolve_lexicon_type(kind: LexiconType | str) -> LexiconType:
    try:
        return LexiconType(kind)
    except ValueError as exc:
        msg = f"Unknown lexicon type '{kind}'. Available: {sorted(item.value for item in LexiconType)}"
        raise LexiconError(msg) from exc


def create_lexicon(kind: LexiconType | str, capacity: int = 0) -> Lexicon:
    """Create the lexicon backend matching ``kind``.

    ``capacity`` is the fixed size of an array lexicon and a hint for the
    others.
    """

    lexicon_type = resolve_lexicon_type(kind)
    if lexicon_type is LexiconType.ARRAY:
        return ArrayLexicon(capacity)
    if lexicon_type is LexiconType.HASH:
        return HashLexicon(capacity)
    _check_capacity(capacity)
    return TreeLexicon()
