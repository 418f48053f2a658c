"""Unit tests for the command line interface."""

from __future__ import annotations

import logging
from pathlib import Path
import shutil

import pytest

from inverted_index.cli import build_argument_parser, load_settings, main
from inverted_index.lexicon import LexiconType
from inverted_index.persistence import read_index


GROUND_TRUTH = """<groundtruth>
  <query expr="chat chien"><doc>001.txt</doc><doc>003.txt</doc></query>
  <query expr="souris"><doc>001.txt</doc><doc>002.txt</doc></query>
</groundtruth>
"""


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    yield
    root.handlers[:] = saved_handlers
    root.setLevel(saved_level)


@pytest.fixture
def data_dir(tmp_path: Path, corpus_dir: Path) -> Path:
    root = tmp_path / "data"
    shutil.copytree(corpus_dir, root / "wp" / "docs")
    (root / "wp" / "groundtruth.xml").write_text(GROUND_TRUTH, encoding="utf-8")
    return root


@pytest.mark.unit
class TestArguments:
    def test_overrides_reach_settings(self, tmp_path: Path) -> None:
        args = build_argument_parser().parse_args(
            ["index", "--data-dir", str(tmp_path), "--lexicon", "array", "--stemming"]
        )

        settings = load_settings(args)

        assert settings.data_dir == tmp_path
        assert settings.lexicon_type is LexiconType.ARRAY
        assert settings.stemming_tokens is True
        assert settings.filtering_stop_words is False

    def test_command_is_required(self) -> None:
        with pytest.raises(SystemExit):
            build_argument_parser().parse_args([])

    def test_unknown_lexicon_is_rejected(self) -> None:
        with pytest.raises(SystemExit):
            build_argument_parser().parse_args(["index", "--lexicon", "btree"])


@pytest.mark.unit
class TestCommands:
    def test_index_then_query(self, data_dir: Path, capsys) -> None:
        assert main(["index", "--data-dir", str(data_dir), "--lexicon", "array"]) == 0
        index = read_index(data_dir / "wp" / "index" / "wp_array.json")
        assert index.lexicon_type is LexiconType.ARRAY
        assert index.document_count == 4

        capsys.readouterr()
        exit_code = main(["query", "--data-dir", str(data_dir), "--lexicon", "array", "chat chien", "souris, élève"])

        assert exit_code == 0
        lines = capsys.readouterr().out.splitlines()
        assert lines == ["chat chien\t2\t001.txt 003.txt", "souris, élève\t3\t001.txt 002.txt 004.txt"]

    def test_query_with_and_engine(self, data_dir: Path, capsys) -> None:
        main(["index", "--data-dir", str(data_dir)])
        capsys.readouterr()

        assert main(["query", "--data-dir", str(data_dir), "--engine", "and", "souris, chat"]) == 0
        assert capsys.readouterr().out == "souris, chat\t1\t001.txt\n"

    def test_evaluate_writes_performances(self, data_dir: Path, capsys) -> None:
        main(["index", "--data-dir", str(data_dir)])
        capsys.readouterr()

        assert main(["evaluate", "--data-dir", str(data_dir)]) == 0

        out = capsys.readouterr().out.splitlines()
        assert out[0] == "QUERY\tPRECISION\tRECALL\tF_MEASURE"
        assert out[-1].startswith("MEAN\t")
        perf_lines = (data_dir / "wp" / "perf" / "wp.tsv").read_text(encoding="utf-8").splitlines()
        assert len(perf_lines) == 3
        assert perf_lines[0] == "1.0\t1.0\t1.0"

    def test_count_terms(self, data_dir: Path) -> None:
        assert main(["count-terms", "--data-dir", str(data_dir), "--stop-words"]) == 0

        content = (data_dir / "wp" / "counts" / "wp_stop.csv").read_text(encoding="utf-8")
        assert '"chien",3' in content
        assert '"et",' in content

    def test_explicit_paths(self, tmp_path: Path, corpus_dir: Path, capsys) -> None:
        output = tmp_path / "custom.json"

        assert main(["index", "--corpus-dir", str(corpus_dir), "--output", str(output), "--lexicon", "hash"]) == 0
        capsys.readouterr()
        assert main(["query", "--index", str(output), "souris"]) == 0
        assert capsys.readouterr().out == "souris\t2\t001.txt 002.txt\n"


@pytest.mark.unit
class TestFailures:
    def test_missing_corpus(self, tmp_path: Path) -> None:
        assert main(["index", "--data-dir", str(tmp_path)]) == 1

    def test_missing_index(self, tmp_path: Path) -> None:
        assert main(["query", "--data-dir", str(tmp_path), "chat"]) == 1

    def test_corrupt_index(self, tmp_path: Path) -> None:
        path = tmp_path / "broken.json"
        path.write_bytes(b"{oops")

        assert main(["query", "--index", str(path), "chat"]) == 1

    def test_invalid_setting(self, monkeypatch) -> None:
        monkeypatch.setenv("LOG_LEVEL", "chatty")

        assert main(["count-terms"]) == 1

    def test_malformed_ground_truth(self, data_dir: Path) -> None:
        main(["index", "--data-dir", str(data_dir)])
        (data_dir / "wp" / "groundtruth.xml").write_text("<groundtruth>", encoding="utf-8")

        assert main(["evaluate", "--data-dir", str(data_dir)]) == 1
