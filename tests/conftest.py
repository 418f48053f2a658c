"""Shared test fixtures and configuration."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
import os
from pathlib import Path

from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
import pytest

from inverted_index.builder import build_index
from inverted_index.index import InvertedIndex
from inverted_index.lexicon import LexiconType
from inverted_index.models import Token
from inverted_index.observability.tracing import init_tracing


# Pin every setting so a developer's environment or .env cannot leak into tests
TEST_ENV = {
    "DATA_DIR": "data",
    "CORPUS_NAME": "wp",
    "LEXICON_TYPE": "tree",
    "STEMMING_TOKENS": "false",
    "FILTERING_STOP_WORDS": "false",
    "LOG_LEVEL": "info",
    "LOG_JSON": "false",
}

for key, value in TEST_ENV.items():
    os.environ[key] = value
os.environ.pop("STOP_WORDS_FILE", None)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Reset the settings environment before each test."""
    for key, value in TEST_ENV.items():
        monkeypatch.setenv(key, value)
    monkeypatch.delenv("STOP_WORDS_FILE", raising=False)


@pytest.fixture
def span_exporter() -> InMemorySpanExporter:
    """Route spans created through ``create_span`` into an in-memory exporter."""
    exporter = InMemorySpanExporter()
    init_tracing("inverted-index-test", span_processors=[SimpleSpanProcessor(exporter)])
    return exporter


def tokens_for(postings_by_term: Mapping[str, Sequence[int]]) -> list[Token]:
    """One token per (term, doc id) pair, in scrambled order."""
    tokens = [Token(term, doc_id) for term, doc_ids in postings_by_term.items() for doc_id in doc_ids]
    return tokens[::-1]


@pytest.fixture
def make_index():
    """Factory building a frozen index where each listed doc id holds the term once."""

    def _make(postings_by_term: Mapping[str, Sequence[int]], kind: LexiconType | str = "tree") -> InvertedIndex:
        return build_index(tokens_for(postings_by_term), kind)

    return _make


@pytest.fixture
def corpus_dir(tmp_path: Path) -> Path:
    """A tiny French/English corpus, one document per file."""
    folder = tmp_path / "docs"
    folder.mkdir()
    (folder / "001.txt").write_text("Le chat mange la souris.\nLe chien dort.\n", encoding="utf-8")
    (folder / "002.txt").write_text("Une souris verte, qui courait dans l'herbe.\n", encoding="utf-8")
    (folder / "003.txt").write_text("Le CHIEN et le chat jouent; le chien gagne.\n", encoding="utf-8")
    (folder / "004.txt").write_text("Élève, élève! L'école est fermée.\n", encoding="utf-8")
    return folder
