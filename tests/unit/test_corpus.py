"""Unit tests for corpus enumeration and indexing."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from inverted_index.analysis import Normalizer
from inverted_index.corpus import (
    file_names_from_postings,
    index_corpus,
    list_documents,
    postings_from_file_names,
    tokenize_corpus,
)
from inverted_index.models import Posting, Token


@pytest.mark.unit
class TestTokenizeCorpus:
    def test_doc_ids_follow_file_name_order(self, tmp_path: Path) -> None:
        (tmp_path / "b.txt").write_text("deux", encoding="utf-8")
        (tmp_path / "a.txt").write_text("un", encoding="utf-8")
        (tmp_path / "sub").mkdir()

        corpus = tokenize_corpus(tmp_path)

        assert corpus.document_names == ["a.txt", "b.txt"]
        assert corpus.document_count == 2
        assert corpus.tokens == [Token("un", 0), Token("deux", 1)]

    def test_reads_every_line(self, corpus_dir: Path) -> None:
        corpus = tokenize_corpus(corpus_dir)

        assert [token.term for token in corpus.tokens if token.doc_id == 0] == [
            "Le",
            "chat",
            "mange",
            "la",
            "souris",
            "Le",
            "chien",
            "dort",
        ]

    def test_missing_folder(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            tokenize_corpus(tmp_path / "absent")

    def test_list_documents_skips_folders(self, corpus_dir: Path) -> None:
        (corpus_dir / "nested").mkdir()

        assert [path.name for path in list_documents(corpus_dir)] == ["001.txt", "002.txt", "003.txt", "004.txt"]


@pytest.mark.unit
class TestIndexCorpus:
    def test_builds_normalized_index(self, corpus_dir: Path) -> None:
        index = index_corpus(corpus_dir, "tree")

        assert index.document_count == 4
        assert index.document_names == ("001.txt", "002.txt", "003.txt", "004.txt")
        assert [(p.doc_id, p.frequency) for p in index.get_entry("chien").postings] == [(0, 1), (2, 2)]
        assert [(p.doc_id, p.frequency) for p in index.get_entry("eleve").postings] == [(3, 2)]
        assert index.get_entry("Le") is None
        assert index.get_entry("le").document_frequency == 2

    def test_normalizer_is_attached(self, corpus_dir: Path) -> None:
        normalizer = Normalizer(stop_words=["le", "la"])

        index = index_corpus(corpus_dir, "array", normalizer)

        assert index.normalizer is normalizer
        assert index.get_entry("le") is None
        assert index.get_entry("chat") is not None

    def test_emits_span(self, corpus_dir: Path, span_exporter) -> None:
        index_corpus(corpus_dir, "hash")

        names = [span.name for span in span_exporter.get_finished_spans()]
        assert "index.corpus" in names
        assert "index.build" in names


@pytest.mark.unit
class TestFileNameMapping:
    NAMES = ["001.txt", "002.txt", "003.txt"]

    def test_postings_from_file_names_are_sorted_and_unique(self) -> None:
        postings = postings_from_file_names(["003.txt", "001.txt", "003.txt"], self.NAMES)

        assert [posting.doc_id for posting in postings] == [0, 2]

    def test_unknown_file_name_is_skipped(self, caplog) -> None:
        with caplog.at_level(logging.WARNING, logger="inverted_index.corpus"):
            postings = postings_from_file_names(["999.txt", "002.txt"], self.NAMES)

        assert [posting.doc_id for posting in postings] == [1]
        assert "999.txt" in caplog.text

    def test_file_names_from_postings(self) -> None:
        names = file_names_from_postings([Posting(2, 1), Posting(0, 4), Posting(7, 1)], self.NAMES)

        assert names == ["003.txt", "001.txt"]
