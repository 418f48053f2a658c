"""Configuration for inverted-index using Pydantic Settings."""

from __future__ import annotations

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from inverted_index.analysis import Normalizer, build_normalizer
from inverted_index.lexicon import LexiconType


_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Settings(BaseSettings):
    """Typed configuration loaded from environment variables and ``.env``.

    Every file the tools read or write lives under ``data_dir/corpus_name``::

        <data_dir>/<corpus_name>/docs/                  corpus documents
        <data_dir>/<corpus_name>/groundtruth.xml        evaluation queries
        <data_dir>/<corpus_name>/index/<variant>_<lexicon>.json   built index
        <data_dir>/<corpus_name>/perf/<variant>.tsv     evaluation results
        <data_dir>/<corpus_name>/counts/<variant>.csv   term counts

    ``variant`` combines the corpus name with the normalization toggles so
    differently normalized indexes never overwrite each other.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_default=True,
        extra="ignore",
    )

    data_dir: Path = Field(default=Path("data"), description="Root folder holding every corpus")
    corpus_name: str = Field(default="wp", min_length=1, description="Corpus folder name under data_dir")
    lexicon_type: LexiconType = Field(default=LexiconType.TREE, description="Lexicon backend: array, hash or tree")

    # Normalization
    stemming_tokens: bool = Field(default=False, description="Stem terms after normalization")
    filtering_stop_words: bool = Field(default=False, description="Drop stop-words during normalization")
    stop_words_file: Path | None = Field(
        default=None,
        description="UTF-8 stop-word list, one word per line; the built-in English list when unset",
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_json: bool = Field(default=False, description="Emit structured JSON logs")

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in _LOG_LEVELS:
            msg = f"log_level must be one of {', '.join(_LOG_LEVELS)}, got '{value}'"
            raise ValueError(msg)
        return level

    @field_validator("corpus_name")
    @classmethod
    def _check_corpus_name(cls, value: str) -> str:
        if "/" in value or "\\" in value:
            msg = f"corpus_name must be a plain folder name, got '{value}'"
            raise ValueError(msg)
        return value

    def corpus_root(self) -> Path:
        return self.data_dir / self.corpus_name

    def corpus_folder(self) -> Path:
        return self.corpus_root() / "docs"

    def variant_name(self) -> str:
        """``<corpus>`` plus ``_stop`` and/or ``_stem`` suffixes."""
        parts = [self.corpus_name]
        if self.filtering_stop_words:
            parts.append("stop")
        if self.stemming_tokens:
            parts.append("stem")
        return "_".join(parts)

    def index_file(self) -> Path:
        return self.corpus_root() / "index" / f"{self.variant_name()}_{self.lexicon_type.value}.json"

    def ground_truth_file(self) -> Path:
        return self.corpus_root() / "groundtruth.xml"

    def performance_file(self) -> Path:
        return self.corpus_root() / "perf" / f"{self.variant_name()}.tsv"

    def term_count_file(self) -> Path:
        return self.corpus_root() / "counts" / f"{self.variant_name()}.csv"

    def build_normalizer(self) -> Normalizer:
        return build_normalizer(
            stemming=self.stemming_tokens,
            filtering_stop_words=self.filtering_stop_words,
            stop_words_file=self.stop_words_file,
        )
