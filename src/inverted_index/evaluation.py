"""Precision, recall and F-measure of a query engine against a ground truth.

The ground truth is an XML file listing evaluation queries together with the
names of their relevant documents::

    <groundtruth>
      <query expr="recherche, information">
        <doc>001.txt</doc>
        <doc>017.txt</doc>
      </query>
    </groundtruth>
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
import logging
from pathlib import Path

from lxml import etree  # type: ignore[import-untyped]

from inverted_index.corpus import postings_from_file_names
from inverted_index.models import Posting
from inverted_index.query import QueryEngine


logger = logging.getLogger(__name__)


class MeasureName(str, Enum):
    PRECISION = "precision"
    RECALL = "recall"
    F_MEASURE = "f_measure"


Measures = dict[MeasureName, float]


class GroundTruthError(ValueError):
    """Raised when a ground truth file cannot be parsed."""


@dataclass
class GroundTruth:
    """Evaluation queries and, for each, the sorted postings of relevant documents."""

    queries: list[str] = field(default_factory=list)
    posting_lists: list[list[Posting]] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.queries)

    @classmethod
    def from_file(cls, path: Path, document_names: Sequence[str]) -> GroundTruth:
        logger.info("Reading ground truth file %s", path)
        return cls.from_bytes(path.read_bytes(), document_names)

    @classmethod
    def from_bytes(cls, content: bytes, document_names: Sequence[str]) -> GroundTruth:
        try:
            root = etree.fromstring(content)
        except etree.XMLSyntaxError as exc:
            msg = f"Ground truth is not well-formed XML: {exc}"
            raise GroundTruthError(msg) from exc
        return cls.from_element(root, document_names)

    @classmethod
    def from_element(cls, root: etree._Element, document_names: Sequence[str]) -> GroundTruth:
        ground_truth = cls()
        for query_elt in root.iter("query"):
            names = [(doc_elt.text or "").strip() for doc_elt in query_elt.iter("doc")]
            ground_truth.queries.append((query_elt.get("expr") or "").strip())
            ground_truth.posting_lists.append(postings_from_file_names(names, document_names))
        logger.info(
            "Found %d queries (%s relevant documents)",
            len(ground_truth),
            " ".join(str(len(postings)) for postings in ground_truth.posting_lists),
        )
        return ground_truth


def evaluate_query_answer(reference: Sequence[Posting], answer: Sequence[Posting]) -> Measures:
    """Measures for one query.

    An empty answer has precision 0; an empty reference has recall 1.
    """

    true_positives = len({posting.doc_id for posting in reference} & {posting.doc_id for posting in answer})
    precision = true_positives / len(answer) if answer else 0.0
    recall = true_positives / len(reference) if reference else 1.0
    f_measure = 0.0
    if precision and recall:
        f_measure = 2 * precision * recall / (precision + recall)
    return {
        MeasureName.PRECISION: precision,
        MeasureName.RECALL: recall,
        MeasureName.F_MEASURE: f_measure,
    }


def mean_measures(rows: Sequence[Measures]) -> Measures:
    if not rows:
        return dict.fromkeys(MeasureName, 0.0)
    return {name: sum(row[name] for row in rows) / len(rows) for name in MeasureName}


class BooleanEvaluator:
    """Runs every ground-truth query through a boolean engine."""

    def __init__(self, ground_truth: GroundTruth) -> None:
        self.ground_truth = ground_truth

    def evaluate_answers(self, answers: Sequence[Sequence[Posting]]) -> list[Measures]:
        """One row per answer, followed by a row of mean values."""

        if len(answers) != len(self.ground_truth):
            msg = f"Got {len(answers)} answers for {len(self.ground_truth)} ground-truth queries"
            raise ValueError(msg)
        rows = [
            evaluate_query_answer(reference, answer)
            for reference, answer in zip(self.ground_truth.posting_lists, answers)
        ]
        rows.append(mean_measures(rows))
        return rows

    def evaluate_engine(self, engine: QueryEngine) -> list[Measures]:
        answers = [engine.process_query(query) for query in self.ground_truth.queries]
        rows = self.evaluate_answers(answers)
        means = rows[-1]
        logger.info(
            "Evaluated %d queries: precision=%.3f recall=%.3f f_measure=%.3f",
            len(answers),
            means[MeasureName.PRECISION],
            means[MeasureName.RECALL],
            means[MeasureName.F_MEASURE],
        )
        return rows


def format_performances(rows: Sequence[Measures]) -> str:
    lines = ["\t".join(str(row[name]) for name in MeasureName) for row in rows]
    return "\n".join(lines) + "\n" if lines else ""


def write_performances(rows: Sequence[Measures], path: Path) -> Path:
    """Write one tab-separated line per row, columns in :class:`MeasureName` order."""

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(format_performances(rows), encoding="utf-8")
    logger.info("Wrote %d performance rows to %s", len(rows), path)
    return path
