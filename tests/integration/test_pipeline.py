"""End-to-end tests: corpus on disk -> index -> persistence -> queries -> evaluation."""

from __future__ import annotations

from pathlib import Path

import pytest

from inverted_index.analysis import Normalizer
from inverted_index.corpus import file_names_from_postings, index_corpus
from inverted_index.evaluation import BooleanEvaluator, GroundTruth, MeasureName
from inverted_index.lexicon import LexiconType
from inverted_index.persistence import read_index, write_index
from inverted_index.query import AndOrQueryEngine, AndQueryEngine


QUERIES = ["chat", "chien chat", "souris, eleve", "le", "licorne", "souris verte, chien gagne", ""]


def _snapshot(index):
    return {
        entry.term: [(posting.doc_id, posting.frequency) for posting in entry.postings] for entry in index.entries()
    }


@pytest.mark.integration
class TestPipeline:
    def test_backends_hold_identical_contents(self, corpus_dir: Path) -> None:
        indexes = [index_corpus(corpus_dir, kind) for kind in LexiconType]

        sizes = {index.get_size() for index in indexes}
        snapshots = [_snapshot(index) for index in indexes]

        assert len(sizes) == 1
        assert snapshots[0] == snapshots[1] == snapshots[2]

    def test_backends_answer_queries_identically(self, corpus_dir: Path) -> None:
        engines = [AndOrQueryEngine(index_corpus(corpus_dir, kind)) for kind in LexiconType]

        for query in QUERIES:
            answers = [[posting.doc_id for posting in engine.process_query(query)] for engine in engines]
            assert answers[0] == answers[1] == answers[2], query

    @pytest.mark.parametrize("kind", list(LexiconType))
    def test_persisted_index_answers_like_the_built_one(self, corpus_dir: Path, tmp_path: Path, kind) -> None:
        normalizer = Normalizer(stemming=True, stop_words=["le", "la"])
        built = index_corpus(corpus_dir, kind, normalizer)
        path = write_index(built, tmp_path / f"{kind.value}.json")

        restored = read_index(path)

        assert _snapshot(restored) == _snapshot(built)
        for query in QUERIES:
            assert AndOrQueryEngine(restored).process_query(query) == AndOrQueryEngine(built).process_query(query)

    def test_stemmed_queries_match_plural_forms(self, corpus_dir: Path) -> None:
        index = index_corpus(corpus_dir, "tree", Normalizer(stemming=True))
        engine = AndQueryEngine(index)

        names = file_names_from_postings(engine.process_query("Chats"), index.document_names)

        assert names == ["001.txt", "003.txt"]

    def test_evaluation_over_built_index(self, corpus_dir: Path) -> None:
        index = index_corpus(corpus_dir, "array")
        ground_truth = GroundTruth.from_bytes(
            b"<groundtruth>"
            b'<query expr="chat"><doc>001.txt</doc><doc>003.txt</doc></query>'
            b'<query expr="souris chat"><doc>001.txt</doc><doc>002.txt</doc></query>'
            b"</groundtruth>",
            index.document_names,
        )

        rows = BooleanEvaluator(ground_truth).evaluate_engine(AndQueryEngine(index))

        assert rows[0][MeasureName.F_MEASURE] == 1.0
        assert rows[1][MeasureName.PRECISION] == 1.0
        assert rows[1][MeasureName.RECALL] == 0.5
        assert rows[2][MeasureName.RECALL] == pytest.approx(0.75)
