"""Save and load built indexes as JSON documents.

Layout (short keys keep large lexicons compact)::

    {"v": 1, "k": "tree", "n": 3, "d": ["a.txt", ...],
     "z": {"stemming": false, "stop_words": null},
     "e": [{"t": "term", "p": [[doc_id, frequency], ...]}, ...]}

Entries are written in ascending term order and re-inserted with sequential
ranks, which keeps an array lexicon searchable after loading.
"""

from __future__ import annotations

from collections.abc import Mapping
import logging
from pathlib import Path
from typing import Any

import orjson

from inverted_index.analysis import Normalizer
from inverted_index.index import InvertedIndex
from inverted_index.models import IndexEntry


logger = logging.getLogger(__name__)

FORMAT_VERSION = 1


class IndexFormatError(ValueError):
    """Raised when a persisted index cannot be decoded."""


def index_to_dict(index: InvertedIndex) -> dict[str, Any]:
    entries = sorted(index.entries())
    return {
        "v": FORMAT_VERSION,
        "k": index.lexicon_type.value,
        "n": index.document_count,
        "d": list(index.document_names),
        "z": index.normalizer.to_dict(),
        "e": [entry.to_dict() for entry in entries],
    }


def index_from_dict(data: Mapping[str, Any]) -> InvertedIndex:
    version = data.get("v")
    if version != FORMAT_VERSION:
        msg = f"Unsupported index format version: {version!r} (expected {FORMAT_VERSION})"
        raise IndexFormatError(msg)

    try:
        raw_entries = data["e"]
        index = InvertedIndex.create(
            data["k"],
            len(raw_entries),
            normalizer=Normalizer.from_dict(data.get("z") or {}),
            document_names=data.get("d") or (),
            document_count=int(data["n"]),
        )
        previous_term: str | None = None
        for rank, raw_entry in enumerate(raw_entries):
            entry = IndexEntry.from_dict(raw_entry)
            if previous_term is not None and entry.term <= previous_term:
                msg = f"Entries are not in ascending term order: {previous_term!r} then {entry.term!r}"
                raise ValueError(msg)
            index.add_entry(entry, rank)
            previous_term = entry.term
    except (KeyError, TypeError, ValueError) as exc:
        msg = f"Malformed index payload: {exc}"
        raise IndexFormatError(msg) from exc
    return index.freeze()


def save(index: InvertedIndex) -> bytes:
    return orjson.dumps(index_to_dict(index))


def load(payload: bytes) -> InvertedIndex:
    try:
        data = orjson.loads(payload)
    except orjson.JSONDecodeError as exc:
        msg = f"Index payload is not valid JSON: {exc}"
        raise IndexFormatError(msg) from exc
    if not isinstance(data, dict):
        msg = f"Index payload must be a JSON object, got {type(data).__name__}"
        raise IndexFormatError(msg)
    return index_from_dict(data)


def write_index(index: InvertedIndex, path: Path) -> Path:
    """Write ``index`` to ``path`` through a temporary file."""

    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(path.name + ".tmp")
    tmp_path.write_bytes(save(index))
    tmp_path.replace(path)
    logger.info("Wrote %d terms to %s", index.get_size(), path)
    return path


def read_index(path: Path) -> InvertedIndex:
    index = load(path.read_bytes())
    logger.info("Loaded %d terms from %s", index.get_size(), path)
    return index
