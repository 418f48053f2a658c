"""
Boolean inverted index package.

This package provides an in-memory inverted file and its tooling:
- models: Token, Posting and IndexEntry value types
- analysis: Tokenizer and normalizer filters (diacritics, lowercase, stop, stemming)
- lexicon: Array, hash and tree lexicon backends
- index: The inverted index wrapping a lexicon backend
- builder: Sort, deduplicate and posting-list assembly
- query: AND / AND-OR query engines over sorted posting merges
- corpus: Corpus enumeration and indexing
- persistence: JSON save/load of built indexes
- evaluation: Precision, recall and F-measure against a ground truth
- term_counter: Term occurrence counts
"""

from inverted_index.builder import Builder, build_index
from inverted_index.index import InvertedIndex
from inverted_index.lexicon import LexiconType
from inverted_index.models import IndexEntry, Posting, Token
from inverted_index.query import AndOrQueryEngine, AndQueryEngine


__all__ = [
    "AndOrQueryEngine",
    "AndQueryEngine",
    "Builder",
    "IndexEntry",
    "InvertedIndex",
    "LexiconType",
    "Posting",
    "Token",
    "build_index",
]
