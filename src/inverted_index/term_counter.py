"""Term occurrence counts over a normalized corpus, used to pick stop-words."""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
import csv
import logging
from pathlib import Path
import time

from inverted_index.analysis import Normalizer, Tokenizer
from inverted_index.corpus import tokenize_corpus
from inverted_index.models import Token


logger = logging.getLogger(__name__)


def count_terms(tokens: Iterable[Token]) -> Counter[str]:
    return Counter(token.term for token in tokens)


def count_corpus_terms(
    folder: Path,
    normalizer: Normalizer | None = None,
    tokenizer: Tokenizer | None = None,
) -> Counter[str]:
    """Tokenize and normalize ``folder``, then count its terms."""

    corpus = tokenize_corpus(folder, tokenizer)
    (normalizer or Normalizer()).normalize_tokens(corpus.tokens)

    start = time.perf_counter()
    counts = count_terms(corpus.tokens)
    logger.info(
        "Counted %d distinct terms over %d tokens in %.1f ms",
        len(counts),
        len(corpus.tokens),
        (time.perf_counter() - start) * 1000,
    )
    return counts


def write_counts(counts: Counter[str], path: Path) -> Path:
    """Write ``"term",count`` rows, most frequent first."""

    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8", newline="") as handle:
        writer = csv.writer(handle, quoting=csv.QUOTE_NONNUMERIC, lineterminator="\n")
        for term, count in counts.most_common():
            writer.writerow((term, count))
    logger.info("Recorded %d term counts in %s", len(counts), path)
    return path
