"""
Tests for the command-line entry point.
"""

import json

import pytest
from mdlang.cli import main


@pytest.fixture
def program_file(tmp_path):
    path = tmp_path / "prog.md"
    path.write_text(
        "# main\n\n> name\n\n**Hello, {name}!**\n\n[0](#count)\n\n"
        "# count\n\n- n\n\n## *n < 3*\n\n**{n}**\n\n[n + 1](#count)\n",
        encoding="utf-8",
    )
    return path


def test_run_prints_each_value(program_file, capsys):
    assert main([str(program_file), "--input", "Ada"]) == 0
    assert capsys.readouterr().out.splitlines() == ["Hello, Ada!", "0", "1", "2"]


def test_entry_option(program_file, capsys):
    assert main([str(program_file), "--entry", "count"]) == 0
    # n is unbound, and undefined < 3 is false
    assert capsys.readouterr().out == ""


def test_error_exit_status(tmp_path, capsys):
    path = tmp_path / "bad.md"
    path.write_text("# main\n\n[](#nowhere)\n", encoding="utf-8")
    assert main([str(path)]) == 1
    assert "Error: Function 'nowhere' not found" in capsys.readouterr().err


def test_missing_file(tmp_path, capsys):
    assert main([str(tmp_path / "nope.md")]) == 1
    assert "not found" in capsys.readouterr().err


def test_dump_json(program_file, capsys):
    assert main([str(program_file), "--dump", "json"]) == 0
    dumped = json.loads(capsys.readouterr().out)
    assert [f["name"] for f in dumped["functions"]] == ["main", "count"]


def test_check(program_file, capsys):
    assert main([str(program_file), "--check"]) == 0
    assert "2 functions" in capsys.readouterr().out


def test_config_file(program_file, tmp_path, capsys):
    config = tmp_path / "cfg.yaml"
    config.write_text("max_call_depth: 2\ntail_calls: false\n", encoding="utf-8")
    assert main([str(program_file), "--config", str(config), "-i", "x"]) == 1
    assert "call depth" in capsys.readouterr().err


def test_output_before_error_is_printed(tmp_path, capsys):
    path = tmp_path / "half.md"
    path.write_text("# main\n\n**before**\n\n[](#nowhere)\n", encoding="utf-8")
    assert main([str(path)]) == 1
    captured = capsys.readouterr()
    assert captured.out.splitlines() == ["before"]
    assert "Error: Function 'nowhere' not found" in captured.err


def test_directory_argument(tmp_path, capsys):
    assert main([str(tmp_path)]) == 1
    assert "Error: Cannot read program file" in capsys.readouterr().err


def test_undecodable_file(tmp_path, capsys):
    path = tmp_path / "latin.md"
    path.write_bytes(b"# main\n\n**caf\xe9**\n")
    assert main([str(path)]) == 1
    assert "not valid utf-8" in capsys.readouterr().err
