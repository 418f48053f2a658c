"""Tokenizer and normalizer used at indexing and query time.

The normalizer is a composable chain of term filters, in the spirit of a
tokenizer/filter analyzer pipeline: each filter receives a term and returns
the transformed term, or ``None`` to drop it. The chain stops at the first
filter that drops the term.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
import logging
from pathlib import Path
import re
from typing import Any, Protocol
import unicodedata

from inverted_index.models import Token


logger = logging.getLogger(__name__)


class TermFilter(Protocol):
    """Protocol implemented by term filters."""

    def __call__(self, term: str) -> str | None:  # pragma: no cover - interface definition
        ...


class Tokenizer:
    """Splits text on every run of characters that are neither letters nor digits."""

    _SPLIT_PATTERN = re.compile(r"[^\W_]+", re.UNICODE)

    def tokenize(self, text: str) -> list[str]:
        return self._SPLIT_PATTERN.findall(text)

    def iter_tokens(self, lines: Iterable[str], doc_id: int) -> Iterator[Token]:
        for line in lines:
            for candidate in self.tokenize(line):
                yield Token(candidate, doc_id)


class DiacriticFilter:
    """Removes combining marks after canonical decomposition."""

    def __call__(self, term: str) -> str | None:
        decomposed = unicodedata.normalize("NFD", term)
        return "".join(char for char in decomposed if not unicodedata.combining(char))


class LowercaseFilter:
    """Case-folds the term."""

    def __call__(self, term: str) -> str | None:
        return term if term.islower() else term.lower()


# Lucene's English stop set
DEFAULT_STOPWORDS: tuple[str, ...] = tuple(
    """
    a an and are as at be but by for if in into is it no not of on or such
    that the their then there these they this to was will with
    """.split()
)


def load_stop_words(path: Path) -> list[str]:
    """Read a UTF-8 stop-word file, one word per line, ignoring blanks and ``#`` comments."""

    words: list[str] = []
    with path.open(encoding="utf-8") as handle:
        for line in handle:
            word = line.strip()
            if word and not word.startswith("#"):
                words.append(word)
    logger.debug("Loaded %d stop-words from %s", len(words), path)
    return words


class StopFilter:
    """Drops stop-words. Comparison happens on the already normalized form."""

    def __init__(self, stopwords: Iterable[str] | None = None) -> None:
        vocab = stopwords if stopwords is not None else DEFAULT_STOPWORDS
        self.stopwords = frozenset(_fold(word) for word in vocab)

    def __call__(self, term: str) -> str | None:
        return None if term in self.stopwords else term


_SUFFIX_RULES: tuple[tuple[str, str], ...] = (
    ("ization", "ize"),
    ("ational", "ate"),
    ("fulness", "ful"),
    ("ousness", "ous"),
    ("iveness", "ive"),
    ("tional", "tion"),
    ("biliti", "ble"),
    ("lessli", "less"),
    ("entli", "ent"),
    ("enci", "ence"),
    ("anci", "ance"),
    ("izer", "ize"),
    ("abli", "able"),
    ("alli", "al"),
    ("ator", "ate"),
    ("alism", "al"),
    ("aliti", "al"),
    ("ousli", "ous"),
    ("ation", "ate"),
    ("ness", ""),
    ("ment", ""),
    ("able", ""),
    ("ible", ""),
)

_SIMPLE_SUFFIX_RULES: tuple[tuple[str, str], ...] = tuple(
    (suffix, "") for suffix in ("ingly", "edly", "ing", "ed", "ly", "es", "s")
)


class PorterStemFilter:
    """Light Porter-style suffix stripping."""

    def __call__(self, term: str) -> str | None:
        stemmed = _strip_suffix(term, _SUFFIX_RULES)
        if stemmed is None:
            stemmed = _strip_suffix(term, _SIMPLE_SUFFIX_RULES)
        return stemmed or term


def _strip_suffix(term: str, rules: Iterable[tuple[str, str]]) -> str | None:
    for suffix, replacement in rules:
        if term.endswith(suffix) and len(term) - len(suffix) >= 2:
            return term[: -len(suffix)] + replacement
    return None


def _fold(text: str) -> str:
    return LowercaseFilter()(DiacriticFilter()(text) or "") or ""


class Normalizer:
    """Turns term candidates into index terms.

    Diacritics are stripped and text is case-folded; stop-word filtering and
    stemming are optional and run in that order, so stop-words are matched
    before they get stemmed.
    """

    def __init__(
        self,
        *,
        stemming: bool = False,
        stop_words: Sequence[str] | None = None,
    ) -> None:
        self.stemming = stemming
        self.stop_words = tuple(stop_words) if stop_words is not None else None
        filters: list[TermFilter] = [DiacriticFilter(), LowercaseFilter()]
        if self.stop_words is not None:
            filters.append(StopFilter(self.stop_words))
        if stemming:
            filters.append(PorterStemFilter())
        self.filters = filters

    def normalize(self, candidate: str) -> str | None:
        term: str | None = candidate
        for term_filter in self.filters:
            term = term_filter(term)
            if not term:
                return None
        return term

    def normalize_tokens(self, tokens: list[Token]) -> None:
        """Normalize the tokens in place, removing the ones that vanish."""

        kept = 0
        for token in tokens:
            term = self.normalize(token.term)
            if term is None:
                continue
            tokens[kept] = Token(term, token.doc_id)
            kept += 1
        del tokens[kept:]

    def to_dict(self) -> dict[str, Any]:
        return {
            "stemming": self.stemming,
            "stop_words": list(self.stop_words) if self.stop_words is not None else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Normalizer:
        stop_words = data.get("stop_words")
        return cls(stemming=bool(data.get("stemming", False)), stop_words=stop_words)


def build_normalizer(
    *,
    stemming: bool = False,
    filtering_stop_words: bool = False,
    stop_words_file: Path | None = None,
) -> Normalizer:
    """Build a normalizer from configuration toggles."""

    stop_words: list[str] | None = None
    if filtering_stop_words:
        stop_words = load_stop_words(stop_words_file) if stop_words_file else list(DEFAULT_STOPWORDS)
    return Normalizer(stemming=stemming, stop_words=stop_words)
