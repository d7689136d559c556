from pathlib import Path

import pytest

from tomasim.cli import main, read_instructions
from tomasim.instruction import InstructionType, parse_instruction


def _write(tmp_path: Path, text: str, name: str = "prog.txt") -> Path:
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return path


def test_read_instructions_skips_blank_and_comment_lines(tmp_path):
    path = _write(
        tmp_path,
        "# header comment\n\n   \nadd r1 r2 r3\n\t\nsub r4 r1 r2\n",
    )
    result = read_instructions(path)
    assert [inst.type for inst in result] == [InstructionType.ADD, InstructionType.SUB]


def test_read_instructions_strips_trailing_comments_and_blanks(tmp_path):
    path = _write(tmp_path, "   addi r1 r0 7   # set r1\r\nlw r2 4(r1)#load\n")
    result = read_instructions(path)
    assert result == [
        parse_instruction("addi r1 r0 7"),
        parse_instruction("lw r2 4(r1)"),
    ]


def test_read_instructions_comment_only_after_indent_is_skipped(tmp_path):
    path = _write(tmp_path, "    # indented comment\nj 0\n")
    result = read_instructions(path)
    assert len(result) == 1
    assert result[0].type is InstructionType.J


def test_read_instructions_round_trips_printed_form(tmp_path):
    lines = ["add r1 r2 r3", "muli r4 r1 3", "sw r4 8(r0)", "beq r1 r2 1", "jr r5"]
    path = _write(tmp_path, "\n".join(lines) + "\n")
    assert [str(inst) for inst in read_instructions(path)] == lines


def test_read_instructions_missing_file_raises(tmp_path):
    with pytest.raises(OSError):
        read_instructions(tmp_path / "absent.txt")


def test_read_instructions_bad_offset_raises(tmp_path):
    path = _write(tmp_path, "lw r1 x(r2)\n")
    with pytest.raises(ValueError):
        read_instructions(path)


def test_main_missing_file_reports_and_fails(tmp_path, capsys):
    missing = tmp_path / "absent.txt"
    code = main([str(missing)])
    err = capsys.readouterr().err
    assert code == 1
    assert f"Error opening file: {missing}" in err
    assert "No instructions found in file!" in err


def test_main_empty_program_fails(tmp_path, capsys):
    path = _write(tmp_path, "# nothing here\n\n")
    code = main([str(path)])
    assert code == 1
    assert "No instructions found in file!" in capsys.readouterr().err


def test_main_bad_offset_fails(tmp_path, capsys):
    path = _write(tmp_path, "sw r1 bad(r2)\n")
    code = main([str(path)])
    assert code == 1
    assert capsys.readouterr().err != ""
    assert "Instructions to be executed:" not in capsys.readouterr().out


def test_main_lists_program_and_runs(tmp_path, capsys):
    path = _write(tmp_path, "add r1 r2 r3\nsub r4 r1 r2 # tail\n")
    code = main([str(path)])
    out = capsys.readouterr().out
    assert code == 0
    listing = out.split("Instructions to be executed:\n", 1)[1]
    assert listing.startswith("add r1 r2 r3\nsub r4 r1 r2\n\n")
    assert "Execução finalizada em" in out


def test_main_computes_register_value(tmp_path, capsys):
    path = _write(tmp_path, "addi r1 r0 5\n")
    assert main([str(path)]) == 0
    out = capsys.readouterr().out
    final = out.rsplit("--- Valores dos Registradores ---\n", 1)[1]
    assert final.splitlines()[0] == "r0=0 r1=5 "


def test_main_uses_default_program_file(tmp_path, capsys, monkeypatch):
    _write(tmp_path, "addi r2 r0 1\n", name="instructions.txt")
    monkeypatch.chdir(tmp_path)
    assert main([]) == 0
    assert "addi r2 r0 1" in capsys.readouterr().out


def test_main_cycle_limit_aborts(tmp_path, capsys):
    path = _write(tmp_path, "j 0\n")
    assert main([str(path), "--max-cycles", "5"]) == 0
    captured = capsys.readouterr()
    assert "Abortando após 5 ciclos." in captured.err