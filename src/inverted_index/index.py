"""In-memory inverted index: a lexicon backend plus corpus metadata."""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from typing import Any

from inverted_index.analysis import Normalizer, Tokenizer
from inverted_index.lexicon import Lexicon, LexiconType, create_lexicon
from inverted_index.models import IndexEntry, IndexStateError


class InvertedIndex:
    """Inverted file whose lexicon is held by a pluggable backend.

    The index is populated once by the builder, then frozen. A frozen index
    rejects new entries and its posting lists become tuples, so it can be
    shared between query engines.
    """

    def __init__(
        self,
        lexicon: Lexicon,
        *,
        normalizer: Normalizer | None = None,
        tokenizer: Tokenizer | None = None,
        document_names: Sequence[str] | None = None,
        document_count: int | None = None,
    ) -> None:
        self.lexicon = lexicon
        self.normalizer = normalizer or Normalizer()
        self.tokenizer = tokenizer or Tokenizer()
        self.document_names: tuple[str, ...] = tuple(document_names or ())
        self.document_count = document_count if document_count is not None else len(self.document_names)
        self._frozen = False

    @classmethod
    def create(cls, kind: LexiconType | str, capacity: int = 0, **kwargs: Any) -> InvertedIndex:
        return cls(create_lexicon(kind, capacity), **kwargs)

    @property
    def lexicon_type(self) -> LexiconType:
        return self.lexicon.kind

    @property
    def frozen(self) -> bool:
        return self._frozen

    def add_entry(self, entry: IndexEntry, rank: int) -> None:
        """Add an entry at ``rank``; the rank only matters for array lexicons."""
        if self._frozen:
            msg = f"Cannot add '{entry.term}': the index is frozen"
            raise IndexStateError(msg)
        self.lexicon.insert(entry, rank)

    def get_entry(self, term: str) -> IndexEntry | None:
        return self.lexicon.lookup(term)

    def get_size(self) -> int:
        return self.lexicon.size()

    def entries(self) -> Iterator[IndexEntry]:
        return self.lexicon.enumerate()

    def freeze(self) -> InvertedIndex:
        for entry in self.lexicon.enumerate():
            entry.freeze()
        self._frozen = True
        return self

    def document_name(self, doc_id: int) -> str | None:
        if 0 <= doc_id < len(self.document_names):
            return self.document_names[doc_id]
        return None

    def dump(self) -> Iterator[str]:
        """Yield one printable line per entry, in backend order."""
        for entry in self.entries():
            yield str(entry)

    def __len__(self) -> int:
        return self.get_size()

    def __contains__(self, term: object) -> bool:
        return isinstance(term, str) and self.get_entry(term) is not None

    def __repr__(self) -> str:
        return (
            f"InvertedIndex(lexicon={self.lexicon_type.value}, terms={self.get_size()}, "
            f"documents={self.document_count}, frozen={self._frozen})"
        )
