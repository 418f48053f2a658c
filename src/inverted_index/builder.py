"""Index construction: sort, deduplicate, then assemble posting lists.

The builder receives the normalized ``(term, doc_id)`` token stream and turns
it into a frozen :class:`~inverted_index.index.InvertedIndex`:

1. the tokens are sorted by term, then by document;
2. every run of identical ``(term, doc_id)`` tokens collapses into one token
   whose run length becomes the in-document frequency, and distinct terms are
   counted during the same scan;
3. a lexicon of the requested kind is allocated for that many terms;
4. one pass creates an entry at each term change and appends a posting for
   every retained token.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
import time
from typing import Any

from inverted_index.index import InvertedIndex
from inverted_index.lexicon import LexiconType, resolve_lexicon_type
from inverted_index.models import IndexEntry, Posting, Token
from inverted_index.observability.metrics import INDEX_BUILD_LATENCY, INDEX_TERM_COUNT, track_latency
from inverted_index.observability.tracing import create_span


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FilterResult:
    """Outcome of the deduplication scan."""

    term_count: int
    frequencies: list[int]


def filter_tokens(tokens: list[Token]) -> FilterResult:
    """Collapse duplicate ``(term, doc_id)`` runs of a sorted token list in place.

    ``frequencies[i]`` is the run length of the i-th retained token. Term
    boundaries are detected on the same scan, so a frequency run can never
    straddle two terms.
    """

    frequencies: list[int] = []
    term_count = 0
    kept = 0
    previous: Token | None = None

    for token in tokens:
        if previous is not None and token.doc_id == previous.doc_id and token.term == previous.term:
            frequencies[-1] += 1
            continue
        if previous is None or token.term != previous.term:
            term_count += 1
        tokens[kept] = token
        kept += 1
        frequencies.append(1)
        previous = token

    del tokens[kept:]
    return FilterResult(term_count=term_count, frequencies=frequencies)


def build_postings(tokens: list[Token], frequencies: list[int], index: InvertedIndex) -> int:
    """Fill ``index`` from filtered tokens; returns the number of postings listed."""

    if len(tokens) != len(frequencies):
        msg = f"Got {len(frequencies)} frequencies for {len(tokens)} tokens"
        raise ValueError(msg)

    rank = 0
    entry: IndexEntry | None = None
    for token, frequency in zip(tokens, frequencies):
        if entry is None or entry.term != token.term:
            entry = IndexEntry(token.term)
            index.add_entry(entry, rank)
            rank += 1
        entry.add_posting(Posting(token.doc_id, frequency))
    return len(tokens)


class Builder:
    """Builds an inverted index out of a normalized token list."""

    def build_index(
        self,
        tokens: list[Token],
        lexicon_type: LexiconType | str,
        **index_kwargs: Any,
    ) -> InvertedIndex:
        """Build and freeze an index; ``tokens`` is sorted and deduplicated in place.

        Extra keyword arguments (normalizer, document names, ...) are passed to
        the :class:`InvertedIndex` constructor.
        """

        kind = resolve_lexicon_type(lexicon_type)
        with create_span("index.build", attributes={"index.lexicon": kind.value, "index.tokens": len(tokens)}):
            with track_latency(INDEX_BUILD_LATENCY, lexicon=kind.value):
                start = time.perf_counter()
                tokens.sort()
                logger.info("Sorted %d tokens in %.1f ms", len(tokens), _elapsed_ms(start))

                start = time.perf_counter()
                filtered = filter_tokens(tokens)
                logger.info(
                    "Filtered tokens: %d remaining for %d terms in %.1f ms",
                    len(tokens),
                    filtered.term_count,
                    _elapsed_ms(start),
                )

                start = time.perf_counter()
                index = InvertedIndex.create(kind, filtered.term_count, **index_kwargs)
                posting_count = build_postings(tokens, filtered.frequencies, index)
                index.freeze()
                logger.info(
                    "Listed %d postings in a %s lexicon in %.1f ms",
                    posting_count,
                    kind.value,
                    _elapsed_ms(start),
                )

        INDEX_TERM_COUNT.labels(lexicon=kind.value).set(index.get_size())
        return index


def build_index(tokens: list[Token], lexicon_type: LexiconType | str, **index_kwargs: Any) -> InvertedIndex:
    """Shortcut for ``Builder().build_index(...)``."""
    return Builder().build_index(tokens, lexicon_type, **index_kwargs)


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000
