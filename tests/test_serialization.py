"""
Tests for serialization and deserialization of Program objects.

These tests ensure lossless JSON/YAML round-trip using the explicit
serialization functions in `mdlang.serialization`.
"""

from mdlang.engine import run
from mdlang.serialization import (
    program_from_dict,
    program_from_json,
    program_from_yaml,
    program_to_dict,
    program_to_json,
    program_to_yaml,
    statement_to_dict,
)
from mdlang.model import InputStatement
from mdlang.transform import parse_program

SOURCE = """\
# main

- limit

name = 'x'

## *limit > 0 && name.length == 1*

**{name[0]}**

total += limit % 2

---

> answer

**Got {answer} and {undefined}**

[limit - 1, "a"](lib.md#next)

# helper

[](#main)
"""


def build_sample_program():
    return parse_program(SOURCE, base_dir="/tmp/project")


def test_json_roundtrip():
    program = build_sample_program()
    before = program_to_dict(program)
    restored = program_from_json(program_to_json(program))
    assert program_to_dict(restored) == before
    assert restored.functions == program.functions


def test_yaml_roundtrip():
    program = build_sample_program()
    before = program_to_dict(program)
    restored = program_from_yaml(program_to_yaml(program))
    assert program_to_dict(restored) == before
    assert restored.functions == program.functions


def test_dict_layout():
    d = program_to_dict(build_sample_program())
    assert d["base_dir"] == "/tmp/project"
    assert [f["name"] for f in d["functions"]] == ["main", "helper"]
    assert d["functions"][0]["parameters"] == ["limit"]
    assert statement_to_dict(InputStatement("answer")) == {"type": "input", "variable": "answer"}


def test_restored_program_runs():
    source = "# main\n\n- n\n\n## *n > 0*\n\n**{n}**\n\n[n - 1](#main)\n"
    program = program_from_dict(program_to_dict(parse_program(source)))
    assert run(program, arguments=[2]) == [2, 1]
