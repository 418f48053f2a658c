"""Boolean query evaluation over posting lists.

Queries are disjunctions of conjunctions: ``,`` separates OR-groups and the
tokenizer boundary rule separates the AND-terms of a group. Terms go through
the index's normalizer before lookup; a term that normalizes to nothing is
dropped, while a term missing from the index contributes an empty list.

Posting lists are merged pairwise with two-pointer scans. N-way merges sort
their inputs by length once, smallest first, then fold left to right.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence
import logging
import time
from typing import ClassVar

from inverted_index.index import InvertedIndex
from inverted_index.models import Posting
from inverted_index.observability.metrics import QUERY_COUNT, QUERY_LATENCY, track_latency
from inverted_index.observability.tracing import create_span


logger = logging.getLogger(__name__)

OR_SEPARATOR = ","


def intersect(first: Iterable[Posting], second: Iterable[Posting]) -> list[Posting]:
    """Postings whose document appears in both sorted lists."""

    result: list[Posting] = []
    first_iter, second_iter = iter(first), iter(second)
    left = next(first_iter, None)
    right = next(second_iter, None)
    while left is not None and right is not None:
        if left.doc_id == right.doc_id:
            result.append(left)
            left = next(first_iter, None)
            right = next(second_iter, None)
        elif left.doc_id < right.doc_id:
            left = next(first_iter, None)
        else:
            right = next(second_iter, None)
    return result


def union(first: Iterable[Posting], second: Iterable[Posting]) -> list[Posting]:
    """Postings whose document appears in either sorted list, once each."""

    result: list[Posting] = []
    first_iter, second_iter = iter(first), iter(second)
    left = next(first_iter, None)
    right = next(second_iter, None)
    while left is not None and right is not None:
        if left.doc_id == right.doc_id:
            result.append(left)
            left = next(first_iter, None)
            right = next(second_iter, None)
        elif left.doc_id < right.doc_id:
            result.append(left)
            left = next(first_iter, None)
        else:
            result.append(right)
            right = next(second_iter, None)

    if left is not None:
        result.append(left)
        result.extend(first_iter)
    elif right is not None:
        result.append(right)
        result.extend(second_iter)
    return result


def intersect_all(lists: Sequence[Sequence[Posting]]) -> list[Posting]:
    """Intersect every list, shortest first; stops as soon as the result is empty."""

    if not lists:
        return []
    ordered = sorted(lists, key=len)
    result = list(ordered[0])
    for postings in ordered[1:]:
        if not result:
            break
        result = intersect(result, postings)
    return result


def union_all(lists: Sequence[Sequence[Posting]]) -> list[Posting]:
    """Union of every list, shortest first."""

    if not lists:
        return []
    ordered = sorted(lists, key=len)
    result = list(ordered[0])
    for postings in ordered[1:]:
        result = union(result, postings)
    return result


class QueryEngine(ABC):
    """Base class: normalizes query terms and fetches their posting lists.

    Subclasses implement :meth:`evaluate`. The index is only read, so several
    engines can share one frozen index.
    """

    name: ClassVar[str] = "boolean"

    def __init__(self, index: InvertedIndex) -> None:
        self.index = index

    def process_query(self, query: str) -> list[Posting]:
        """Return the postings matching ``query``, ascending by document id."""

        with create_span("query.process", attributes={"query.engine": self.name, "query.text": query}) as span:
            with track_latency(QUERY_LATENCY, engine=self.name):
                start = time.perf_counter()
                result = self.evaluate(query)
            span.set_attribute("query.results", len(result))

        QUERY_COUNT.labels(engine=self.name, outcome="hit" if result else "empty").inc()
        logger.debug(
            "Query %r answered with %d postings in %.3f ms",
            query,
            len(result),
            (time.perf_counter() - start) * 1000,
        )
        return result

    @abstractmethod
    def evaluate(self, query: str) -> list[Posting]:
        """Evaluate ``query`` without instrumentation."""

    def group_postings(self, group: str) -> list[Sequence[Posting]]:
        """Posting lists of the AND-terms of ``group``.

        Unknown terms yield an empty list; terms that normalize to nothing are
        skipped.
        """

        postings: list[Sequence[Posting]] = []
        for candidate in self.index.tokenizer.tokenize(group):
            term = self.index.normalizer.normalize(candidate)
            if term is None:
                continue
            entry = self.index.get_entry(term)
            postings.append(entry.postings if entry is not None else ())
        return postings

    def evaluate_group(self, group: str) -> list[Posting]:
        postings = self.group_postings(group)
        if len(postings) == 1:
            return list(postings[0])
        return intersect_all(postings)


class AndQueryEngine(QueryEngine):
    """Conjunctive engine: every term of the query must match.

    Commas are plain separators here, so the whole query is a single AND-group.
    """

    name = "and"

    def evaluate(self, query: str) -> list[Posting]:
        return self.evaluate_group(query)


class AndOrQueryEngine(QueryEngine):
    """Engine for ``,``-separated OR-groups of AND-terms."""

    name = "and-or"

    def evaluate(self, query: str) -> list[Posting]:
        groups = [self.evaluate_group(group) for group in query.split(OR_SEPARATOR)]
        if not groups:
            return []
        if len(groups) == 1:
            return groups[0]
        return union_all(groups)


ENGINES: dict[str, type[QueryEngine]] = {
    AndQueryEngine.name: AndQueryEngine,
    AndOrQueryEngine.name: AndOrQueryEngine,
}


def create_engine(name: str, index: InvertedIndex) -> QueryEngine:
    try:
        engine_cls = ENGINES[name]
    except KeyError:
        msg = f"Unknown query engine '{name}'. Available: {sorted(ENGINES)}"
        raise ValueError(msg) from None
    return engine_cls(index)
