"""Corpus enumeration: turn a folder of text files into an index."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
import logging
from pathlib import Path
import time

from inverted_index.analysis import Normalizer, Tokenizer
from inverted_index.builder import Builder
from inverted_index.index import InvertedIndex
from inverted_index.lexicon import LexiconType, resolve_lexicon_type
from inverted_index.models import Posting, Token
from inverted_index.observability.tracing import create_span


logger = logging.getLogger(__name__)


@dataclass
class CorpusTokens:
    """Raw token stream of a corpus and the file name behind each doc id."""

    tokens: list[Token] = field(default_factory=list)
    document_names: list[str] = field(default_factory=list)

    @property
    def document_count(self) -> int:
        return len(self.document_names)


def list_documents(folder: Path) -> list[Path]:
    """Regular files directly inside ``folder``, sorted by name."""

    if not folder.is_dir():
        msg = f"Corpus folder not found: {folder}"
        raise FileNotFoundError(msg)
    return sorted((path for path in folder.iterdir() if path.is_file()), key=lambda path: path.name)


def tokenize_corpus(folder: Path, tokenizer: Tokenizer | None = None) -> CorpusTokens:
    """Tokenize every document of ``folder``; doc ids follow file name order."""

    tokenizer = tokenizer or Tokenizer()
    corpus = CorpusTokens()
    for doc_id, path in enumerate(list_documents(folder)):
        with path.open(encoding="utf-8") as handle:
            corpus.tokens.extend(tokenizer.iter_tokens(handle, doc_id))
        corpus.document_names.append(path.name)
    return corpus


def index_corpus(
    folder: Path,
    lexicon_type: LexiconType | str,
    normalizer: Normalizer | None = None,
    tokenizer: Tokenizer | None = None,
) -> InvertedIndex:
    """Tokenize, normalize and index the documents of ``folder``."""

    normalizer = normalizer or Normalizer()
    tokenizer = tokenizer or Tokenizer()
    kind = resolve_lexicon_type(lexicon_type)

    with create_span("index.corpus", attributes={"corpus.folder": str(folder), "index.lexicon": kind.value}):
        start = time.perf_counter()
        corpus = tokenize_corpus(folder, tokenizer)
        logger.info(
            "Tokenized %d documents into %d tokens in %.1f ms",
            corpus.document_count,
            len(corpus.tokens),
            (time.perf_counter() - start) * 1000,
        )

        start = time.perf_counter()
        normalizer.normalize_tokens(corpus.tokens)
        logger.info(
            "Normalized tokens: %d remaining in %.1f ms",
            len(corpus.tokens),
            (time.perf_counter() - start) * 1000,
        )

        index = Builder().build_index(
            corpus.tokens,
            kind,
            normalizer=normalizer,
            tokenizer=tokenizer,
            document_names=corpus.document_names,
        )

    logger.info("Indexed %s: %d terms over %d documents", folder, index.get_size(), index.document_count)
    return index


def postings_from_file_names(file_names: Iterable[str], document_names: Sequence[str]) -> list[Posting]:
    """Sorted postings for the named documents; unknown names are skipped."""

    doc_ids: Mapping[str, int] = {name: doc_id for doc_id, name in enumerate(document_names)}
    postings: set[Posting] = set()
    for name in file_names:
        doc_id = doc_ids.get(name)
        if doc_id is None:
            logger.warning("Unknown document name: %s", name)
            continue
        postings.add(Posting(doc_id))
    return sorted(postings)


def file_names_from_postings(postings: Iterable[Posting], document_names: Sequence[str]) -> list[str]:
    """File names of the documents referenced by ``postings``."""

    names: list[str] = []
    for posting in postings:
        if 0 <= posting.doc_id < len(document_names):
            names.append(document_names[posting.doc_id])
        else:
            logger.warning("Unknown document id: %d", posting.doc_id)
    return names
