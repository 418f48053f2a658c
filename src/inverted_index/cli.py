"""Command line entry point: build, query and evaluate inverted indexes.

Examples::

    inverted-index index --lexicon array --stemming
    inverted-index query "recherche information, web"
    inverted-index evaluate
    inverted-index count-terms
"""

from __future__ import annotations

import argparse
from collections.abc import Sequence
import logging
from pathlib import Path
import sys
from typing import Any

from pydantic import ValidationError

from inverted_index.config import Settings
from inverted_index.corpus import file_names_from_postings, index_corpus
from inverted_index.evaluation import BooleanEvaluator, GroundTruth, MeasureName, write_performances
from inverted_index.lexicon import LexiconType
from inverted_index.observability.context import bind_fields
from inverted_index.observability.logging import configure_logging
from inverted_index.persistence import IndexFormatError, read_index, write_index
from inverted_index.query import ENGINES, create_engine
from inverted_index.term_counter import count_corpus_terms, write_counts


logger = logging.getLogger(__name__)


def _common_options() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--corpus", dest="corpus_name", help="Corpus name (overrides CORPUS_NAME)")
    common.add_argument("--data-dir", type=Path, help="Root data folder (overrides DATA_DIR)")
    common.add_argument(
        "--lexicon",
        dest="lexicon_type",
        choices=[kind.value for kind in LexiconType],
        help="Lexicon backend (overrides LEXICON_TYPE)",
    )
    common.add_argument(
        "--stemming",
        dest="stemming_tokens",
        action="store_true",
        default=None,
        help="Stem terms while normalizing",
    )
    common.add_argument(
        "--stop-words",
        dest="filtering_stop_words",
        action="store_true",
        default=None,
        help="Filter stop-words while normalizing",
    )
    common.add_argument("--stop-words-file", type=Path, help="Stop-word list, one word per line")
    common.add_argument("--log-level", help="Logging level (overrides LOG_LEVEL)")
    return common


def build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="inverted-index",
        description="Build and query boolean inverted indexes over a text corpus",
    )
    common = _common_options()
    subparsers = parser.add_subparsers(dest="command", required=True)

    index_parser = subparsers.add_parser("index", parents=[common], help="Index the corpus and write the index file")
    index_parser.add_argument("--corpus-dir", type=Path, help="Folder of documents (defaults to the corpus folder)")
    index_parser.add_argument("--output", type=Path, help="Index file to write (defaults to the configured path)")

    query_parser = subparsers.add_parser("query", parents=[common], help="Answer boolean queries from a written index")
    query_parser.add_argument("queries", nargs="+", metavar="QUERY", help="Comma separated OR-groups of AND-terms")
    query_parser.add_argument("--engine", choices=sorted(ENGINES), default="and-or", help="Query engine")
    query_parser.add_argument("--index", type=Path, help="Index file to read (defaults to the configured path)")

    evaluate_parser = subparsers.add_parser(
        "evaluate", parents=[common], help="Measure an engine against the ground truth"
    )
    evaluate_parser.add_argument("--engine", choices=sorted(ENGINES), default="and", help="Query engine")
    evaluate_parser.add_argument("--index", type=Path, help="Index file to read (defaults to the configured path)")
    evaluate_parser.add_argument("--ground-truth", type=Path, help="Ground truth XML file")
    evaluate_parser.add_argument("--output", type=Path, help="Performance file to write")

    count_parser = subparsers.add_parser("count-terms", parents=[common], help="Count normalized term occurrences")
    count_parser.add_argument("--corpus-dir", type=Path, help="Folder of documents (defaults to the corpus folder)")
    count_parser.add_argument("--output", type=Path, help="CSV file to write")

    return parser


def load_settings(args: argparse.Namespace) -> Settings:
    """Environment settings with command line overrides applied."""

    overrides: dict[str, Any] = {}
    for name in (
        "corpus_name",
        "data_dir",
        "lexicon_type",
        "stemming_tokens",
        "filtering_stop_words",
        "stop_words_file",
        "log_level",
    ):
        value = getattr(args, name, None)
        if value is not None:
            overrides[name] = value
    return Settings(**overrides)


def _run_index(args: argparse.Namespace, settings: Settings) -> int:
    folder = args.corpus_dir or settings.corpus_folder()
    index = index_corpus(folder, settings.lexicon_type, settings.build_normalizer())
    write_index(index, args.output or settings.index_file())
    return 0


def _run_query(args: argparse.Namespace, settings: Settings) -> int:
    index = read_index(args.index or settings.index_file())
    engine = create_engine(args.engine, index)
    for query in args.queries:
        names = file_names_from_postings(engine.process_query(query), index.document_names)
        print(f"{query}\t{len(names)}\t{' '.join(names)}")
    return 0


def _run_evaluate(args: argparse.Namespace, settings: Settings) -> int:
    index = read_index(args.index or settings.index_file())
    ground_truth = GroundTruth.from_file(args.ground_truth or settings.ground_truth_file(), index.document_names)
    rows = BooleanEvaluator(ground_truth).evaluate_engine(create_engine(args.engine, index))

    print("\t".join(["QUERY", *(name.name for name in MeasureName)]))
    labels = [*ground_truth.queries, "MEAN"]
    for label, row in zip(labels, rows):
        print("\t".join([label, *(f"{row[name]:.4f}" for name in MeasureName)]))

    write_performances(rows, args.output or settings.performance_file())
    return 0


def _run_count_terms(args: argparse.Namespace, settings: Settings) -> int:
    folder = args.corpus_dir or settings.corpus_folder()
    counts = count_corpus_terms(folder, settings.build_normalizer())
    write_counts(counts, args.output or settings.term_count_file())
    return 0


_COMMANDS = {
    "index": _run_index,
    "query": _run_query,
    "evaluate": _run_evaluate,
    "count-terms": _run_count_terms,
}


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_argument_parser()
    args = parser.parse_args(argv)

    try:
        settings = load_settings(args)
    except ValidationError as exc:
        configure_logging("INFO", json_output=False)
        logger.error("Invalid configuration: %s", exc)
        return 1

    configure_logging(settings.log_level, json_output=settings.log_json)
    bind_fields(corpus=settings.corpus_name)

    try:
        return _COMMANDS[args.command](args, settings)
    except FileNotFoundError as exc:
        logger.error("File not found: %s", exc)
        return 1
    except IndexFormatError as exc:
        logger.error("Invalid index file: %s", exc)
        return 1
    except (OSError, ValueError) as exc:
        logger.error("%s failed: %s", args.command, exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
