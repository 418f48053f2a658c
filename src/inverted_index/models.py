"""Value types shared by the builder, the lexicons and the query engines."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
import functools
from typing import Any


class IndexStateError(RuntimeError):
    """Raised when an index structure is mutated after it was frozen."""


@dataclass(frozen=True, order=True, slots=True)
class Token:
    """A term candidate observed in a document.

    Ordering is by term first, then by document id, which is the order the
    builder relies on to group occurrences.
    """

    term: str
    doc_id: int


@dataclass(frozen=True, order=True, slots=True)
class Posting:
    """Occurrence of a term in one document.

    Equality, ordering and hashing only look at ``doc_id`` so posting lists
    behave like sets of documents during merges.
    """

    doc_id: int
    frequency: int = field(default=0, compare=False)

    def __post_init__(self) -> None:
        if self.frequency < 0:
            msg = f"Posting frequency cannot be negative: {self.frequency}"
            raise ValueError(msg)

    def __str__(self) -> str:
        return f"<{self.doc_id} [{self.frequency}]>"

    def to_list(self) -> list[int]:
        return [self.doc_id, self.frequency]

    @classmethod
    def from_list(cls, data: Sequence[int]) -> Posting:
        doc_id, frequency = data
        return cls(doc_id=int(doc_id), frequency=int(frequency))


@functools.total_ordering
class IndexEntry:
    """Lexicon entry: a term, its postings and its document frequency."""

    __slots__ = ("_frozen", "_postings", "document_frequency", "term")

    def __init__(self, term: str, postings: Iterable[Posting] | None = None) -> None:
        self.term = term
        self._postings: list[Posting] | tuple[Posting, ...] = []
        self._frozen = False
        self.document_frequency = 0
        for posting in postings or ():
            self.add_posting(posting)

    @property
    def postings(self) -> Sequence[Posting]:
        return self._postings

    @property
    def frozen(self) -> bool:
        return self._frozen

    def add_posting(self, posting: Posting) -> None:
        if self._frozen:
            msg = f"Entry '{self.term}' is frozen; postings can only be added while building"
            raise IndexStateError(msg)
        self._postings.append(posting)  # type: ignore[union-attr]
        self.document_frequency += 1

    def freeze(self) -> None:
        """Make the posting list read-only."""
        if not self._frozen:
            self._postings = tuple(self._postings)
            self._frozen = True

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, IndexEntry):
            return NotImplemented
        return self.term == other.term

    def __lt__(self, other: IndexEntry) -> bool:
        if not isinstance(other, IndexEntry):
            return NotImplemented
        return self.term < other.term

    def __hash__(self) -> int:
        return hash(self.term)

    def __repr__(self) -> str:
        return f"IndexEntry(term={self.term!r}, document_frequency={self.document_frequency})"

    def __str__(self) -> str:
        postings = " ".join(str(posting) for posting in self._postings)
        return f"<{self.term} [{self.document_frequency}] ( {postings} )>"

    def to_dict(self) -> dict[str, Any]:
        """Serialize with minimal keys: t=term, p=postings as [doc_id, frequency]."""
        return {"t": self.term, "p": [posting.to_list() for posting in self._postings]}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> IndexEntry:
        """Rebuild an entry; doc ids must be strictly increasing."""
        postings = [Posting.from_list(item) for item in data["p"]]
        for previous, current in zip(postings, postings[1:]):
            if current.doc_id <= previous.doc_id:
                msg = (
                    f"Postings of '{data['t']}' are not strictly increasing: "
                    f"{previous.doc_id} then {current.doc_id}"
                )
                raise ValueError(msg)
        return cls(str(data["t"]), postings)
