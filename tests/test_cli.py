from __future__ import annotations

from pathlib import Path

import pytest

from epad import cli

PASSING_SNIPPET = 'def stringify(x, y):\n    return f"{x} {y}"\n'
FAILING_SNIPPET = 'def stringify(x, y):\n    return f"{x}{y}"\n'


@pytest.fixture
def test_file(tmp_path: Path) -> Path:
    from embedpad.embed import INITIAL_TEST

    path = tmp_path / "test_snippet.py"
    path.write_text(INITIAL_TEST, encoding="utf-8")
    return path


def _write(tmp_path: Path, name: str, text: str) -> Path:
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return path


def test_cli_run_passing_test(tmp_path: Path, test_file: Path, capsys: pytest.CaptureFixture[str]) -> None:
    snippet = _write(tmp_path, "snippet.py", PASSING_SNIPPET)
    code = cli.main(["run", str(snippet), "--test", str(test_file)])
    output = capsys.readouterr().out
    assert code == 0
    assert "PASSED: Test passed. Great job!" in output


def test_cli_run_failing_test(tmp_path: Path, test_file: Path, capsys: pytest.CaptureFixture[str]) -> None:
    snippet = _write(tmp_path, "snippet.py", FAILING_SNIPPET)
    code = cli.main(["run", str(snippet), "--test", str(test_file)])
    output = capsys.readouterr().out
    assert code == 1
    assert "forgot the space" in output


def test_cli_run_code_only(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    snippet = _write(tmp_path, "snippet.py", "print('hello from the sandbox')\n")
    code = cli.main(["run", str(snippet)])
    output = capsys.readouterr().out
    assert code == 0
    assert "hello from the sandbox" in output


def test_cli_run_compile_failure(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    snippet = _write(tmp_path, "snippet.py", "def broken(\n")
    code = cli.main(["run", str(snippet)])
    output = capsys.readouterr().out
    assert code == 1
    assert "Compile failed" in output


def test_cli_run_missing_file(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    code = cli.main(["run", str(tmp_path / "missing.py")])
    output = capsys.readouterr().out
    assert code == 2
    assert "Cannot read input" in output


def test_cli_settings(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    config = _write(tmp_path, "embed.toml", "[embed]\nreconcile_delay_ms = 400\n")
    code = cli.main(["settings", "--settings", str(config)])
    output = capsys.readouterr().out
    assert code == 0
    assert "400" in output


def test_cli_invalid_settings(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    config = _write(tmp_path, "embed.toml", "[embed]\ncompiler = \"wasm\"\n")
    code = cli.main(["settings", "--settings", str(config)])
    output = capsys.readouterr().out
    assert code == 2
    assert "Invalid settings" in output


def test_cli_top_level_help_examples(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as exc:
        cli.main(["--help"])
    output = capsys.readouterr().out
    assert exc.value.code == 0
    assert "Quick Examples:" in output
    assert "epad run snippet.py --test test_snippet.py" in output
