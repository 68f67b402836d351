"""
Tests for the command line: validate, compile and export subcommands and exit codes.
Run: pytest tests/test_cli.py -v
"""
import json

import pytest

from cutscene.cli import main, EXIT_OK, EXIT_FAILED, EXIT_BAD_INPUT


@pytest.fixture
def doc_file(tmp_path, runtime_document):
    path = tmp_path / "intro.json"
    path.write_text(json.dumps(runtime_document), encoding="utf-8")
    return path


@pytest.fixture
def write_doc(tmp_path):
    def _write(data, name="scene.json"):
        path = tmp_path / name
        path.write_text(json.dumps(data), encoding="utf-8")
        return path
    return _write


class TestValidateCommand:

    def test_clean_document(self, doc_file, capsys):
        assert main(["validate", str(doc_file)]) == EXIT_OK
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "0 error(s), 0 warning(s), 0 tip(s)" in captured.err

    def test_errors_exit_one(self, write_doc, runtime_document, capsys):
        runtime_document["nodes"] = [n for n in runtime_document["nodes"] if n["type"] != "start"]
        assert main(["validate", str(write_doc(runtime_document))]) == EXIT_FAILED
        assert 'error: Graph has no "start" node.' in capsys.readouterr().out

    def test_tips_hidden_by_default(self, write_doc, runtime_document, capsys):
        runtime_document["nodes"][1]["name"] = ""
        path = write_doc(runtime_document)

        assert main(["validate", str(path)]) == EXIT_OK
        assert "tip:" not in capsys.readouterr().out

        assert main(["validate", "--show-tips", str(path)]) == EXIT_OK
        assert "tip: [node A]" in capsys.readouterr().out

    def test_missing_file(self, tmp_path, capsys):
        assert main(["validate", str(tmp_path / "nope.json")]) == EXIT_BAD_INPUT
        assert "cannot read" in capsys.readouterr().err

    def test_bad_schema_version(self, write_doc, runtime_document, capsys):
        runtime_document["schemaVersion"] = 3
        assert main(["validate", str(write_doc(runtime_document))]) == EXIT_BAD_INPUT
        assert "schemaVersion" in capsys.readouterr().err

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{", encoding="utf-8")
        assert main(["validate", str(path)]) == EXIT_BAD_INPUT

    def test_non_utf8_file(self, tmp_path, capsys):
        path = tmp_path / "latin1.json"
        path.write_bytes(b'{"schemaVersion": 1, "title": "\xff\xfe"}')
        assert main(["validate", str(path)]) == EXIT_BAD_INPUT
        assert "not valid UTF-8" in capsys.readouterr().err


class TestCompileCommand:

    def test_prints_actions(self, doc_file, capsys):
        assert main(["compile", str(doc_file)]) == EXIT_OK
        actions = json.loads(capsys.readouterr().out)
        assert {"type": "wait", "seconds": 2.5} in actions
        assert {"type": "dialogue", "text": "Hello"} in actions

    def test_compile_error(self, write_doc, runtime_document, capsys):
        runtime_document["edges"].append({"id": "loop", "source": "A", "target": "start"})
        assert main(["compile", str(write_doc(runtime_document))]) == EXIT_FAILED
        err = capsys.readouterr().err
        assert "error (structural): [node A]" in err


class TestExportCommand:

    def test_prints_envelope(self, doc_file, capsys):
        assert main(["export", str(doc_file)]) == EXIT_OK
        data = json.loads(capsys.readouterr().out)
        assert data["cutscene_id"] == "intro_scene"
        assert data["settings"]["fps"] == 30

    def test_writes_output_file(self, doc_file, tmp_path):
        out = tmp_path / "build" / "intro.cutscene.json"
        assert main(["export", str(doc_file), "-o", str(out)]) == EXIT_OK
        data = json.loads(out.read_text(encoding="utf-8"))
        assert data["schema_version"] == 1

    def test_blocked(self, write_doc, runtime_document, tmp_path, capsys):
        runtime_document["nodes"] = [n for n in runtime_document["nodes"] if n["type"] != "end"]
        out = tmp_path / "never.json"
        assert main(["export", str(write_doc(runtime_document)), "-o", str(out)]) == EXIT_FAILED
        assert not out.exists()
        assert "Cannot export" in capsys.readouterr().err


class TestArguments:

    def test_command_required(self):
        with pytest.raises(SystemExit) as exc:
            main([])
        assert exc.value.code == 2

    def test_log_level_case_insensitive(self, doc_file):
        assert main(["--log-level", "debug", "validate", str(doc_file)]) == EXIT_OK

    def test_unknown_log_level(self, doc_file):
        with pytest.raises(SystemExit):
            main(["--log-level", "loud", "validate", str(doc_file)])
