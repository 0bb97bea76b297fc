"""
Test Suite for the Command-Line Interface
=========================================
"""

from __future__ import annotations

import json

import pytest
from click.testing import CliRunner

from exam_import import cache
from exam_import.cli import cli


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def exam_file(tmp_path, sample_text):
    path = tmp_path / "sample.txt"
    path.write_text(sample_text, encoding="utf-8")
    return path


class TestParseCommand:

    def test_json_output(self, runner, exam_file):
        result = runner.invoke(cli, ["parse", str(exam_file), "--json-output"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["pointsToSucceeded"] == 13
        assert [q["type"] for q in data["questions"]] == [
            "SINGLE_CHOICE",
            "MULTIPLE_CHOICE",
            "ASSIGNMENT",
        ]

    def test_exam_name_option(self, runner, exam_file):
        result = runner.invoke(
            cli,
            ["parse", str(exam_file), "--json-output", "--exam-name", "Math 101"],
        )
        assert json.loads(result.stdout)["name"] == "Math 101"

    def test_output_file(self, runner, exam_file, tmp_path):
        target = tmp_path / "out" / "exam.json"
        result = runner.invoke(
            cli, ["parse", str(exam_file), "--output", str(target)]
        )

        assert result.exit_code == 0
        assert json.loads(target.read_text(encoding="utf-8"))["name"] == (
            "Imported Certificate"
        )

    def test_rich_display(self, runner, exam_file):
        result = runner.invoke(cli, ["parse", str(exam_file)])

        assert result.exit_code == 0
        assert "Import Report" in result.output

    def test_unsupported_extension(self, runner, tmp_path):
        path = tmp_path / "exam.xml"
        path.write_text("<exam/>", encoding="utf-8")

        result = runner.invoke(cli, ["parse", str(path)])

        assert result.exit_code == 1
        assert "Unsupported file type" in result.output

    def test_media_type_override(self, runner, tmp_path, sample_text):
        path = tmp_path / "exam.dat"
        path.write_text(sample_text, encoding="utf-8")

        result = runner.invoke(
            cli,
            ["parse", str(path), "--media-type", "text/plain", "--json-output"],
        )

        assert result.exit_code == 0
        assert len(json.loads(result.stdout)["questions"]) == 3


class TestBatchCommand:

    def test_batch(self, runner, tmp_path, sample_text):
        source = tmp_path / "exams"
        source.mkdir()
        (source / "first.txt").write_text(sample_text, encoding="utf-8")
        (source / "second.json").write_text(
            json.dumps({"name": "Second", "questions": []}), encoding="utf-8"
        )
        (source / "broken.json").write_text("{", encoding="utf-8")
        (source / "notes.md").write_text("ignored", encoding="utf-8")
        output = tmp_path / "output"

        result = runner.invoke(
            cli, ["batch", str(source), "--output", str(output)]
        )

        assert result.exit_code == 0
        assert (output / "first_exam.json").exists()
        assert (output / "second_exam.json").exists()
        assert not (output / "broken_exam.json").exists()
        assert not (output / "notes_exam.json").exists()

    def test_batch_empty_directory(self, runner, tmp_path):
        result = runner.invoke(cli, ["batch", str(tmp_path)])

        assert result.exit_code == 0
        assert "No exam files found" in result.output


class TestCacheCommands:

    @pytest.fixture(autouse=True)
    def _cache_db(self, monkeypatch, db_path):
        monkeypatch.setenv("EXAM_IMPORT_DB_PATH", db_path)

    def test_list_empty(self, runner):
        result = runner.invoke(cli, ["cache", "list"])

        assert result.exit_code == 0
        assert "No rejected imports" in result.output

    def test_list(self, runner):
        cache.add_invalid_exam('{"name": "Rejected", "questions": []}')

        result = runner.invoke(cli, ["cache", "list"])
        assert "Rejected" in result.output

    def test_show(self, runner):
        cache_id = cache.add_invalid_exam('{"name": "Rejected"}')

        result = runner.invoke(cli, ["cache", "show", str(cache_id)])

        assert result.exit_code == 0
        assert json.loads(result.stdout) == {"name": "Rejected"}

    def test_show_missing(self, runner):
        result = runner.invoke(cli, ["cache", "show", "7"])
        assert result.exit_code == 1

    def test_delete_and_clear(self, runner):
        first = cache.add_invalid_exam("{}")
        cache.add_invalid_exam("{}")

        assert runner.invoke(cli, ["cache", "delete", str(first)]).exit_code == 0
        assert runner.invoke(cli, ["cache", "delete", str(first)]).exit_code == 1

        result = runner.invoke(cli, ["cache", "clear"])
        assert "Deleted 1 cached imports" in result.output
        assert cache.get_all_invalid_exams() == []

    def test_stats(self, runner):
        cache.add_invalid_exam("{}")

        result = runner.invoke(cli, ["cache", "stats"])

        assert result.exit_code == 0
        assert "Validation Errors" in result.output


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
