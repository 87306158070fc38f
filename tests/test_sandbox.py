import pytest

from embedpad import LocalSandbox, SandboxPolicy, Stderr, Stdout, TestResult
from embedpad.execution.sandbox import TEST_RESULT_DECORATION, parse_test_result


async def _collect(sandbox: LocalSandbox, code: str, entry_point: str = "") -> list:
    return [event async for event in sandbox.execute(entry_point, "", code)]


def test_parse_test_result_marker() -> None:
    assert parse_test_result("plain output") is None
    assert parse_test_result('__TESTRESULT__ {"success": true, "message": "ok"}') == TestResult(True, "ok")
    assert parse_test_result('__TESTRESULT__ {"success": false, "messages": ["a", "b"]}') == TestResult(
        False, "a, b"
    )


def test_parse_test_result_rejects_malformed_marker() -> None:
    with pytest.raises(ValueError, match="Malformed"):
        parse_test_result("__TESTRESULT__ {not json")
    with pytest.raises(ValueError, match="Malformed"):
        parse_test_result('__TESTRESULT__ {"success": "yes"}')


@pytest.mark.asyncio
async def test_stdout_lines_streamed_in_order() -> None:
    events = await _collect(LocalSandbox(), "print('a')\nprint('b')\n")
    assert events == [Stdout("a"), Stdout("b")]


@pytest.mark.asyncio
async def test_main_called_and_test_result_reported() -> None:
    code = (
        "def main():\n"
        "    print('running')\n"
        "    _result(True, 'Test passed. Great job!')\n"
        + TEST_RESULT_DECORATION
    )
    events = await _collect(LocalSandbox(), code)
    assert events == [Stdout("running"), TestResult(True, "Test passed. Great job!")]


@pytest.mark.asyncio
async def test_only_first_test_result_counts() -> None:
    code = "def main():\n    _result(False, 'first')\n    _result(True, 'second')\n" + TEST_RESULT_DECORATION
    events = await _collect(LocalSandbox(), code)
    assert events[0] == TestResult(False, "first")
    assert isinstance(events[1], Stdout)
    assert events[1].text.startswith("__TESTRESULT__")


@pytest.mark.asyncio
async def test_runtime_error_arrives_as_stderr() -> None:
    events = await _collect(LocalSandbox(), "x = 1 / 0\n")
    assert events
    assert all(isinstance(event, Stderr) for event in events)
    assert "ZeroDivisionError" in events[-1].text


@pytest.mark.asyncio
async def test_blocked_import_reported() -> None:
    sandbox = LocalSandbox(SandboxPolicy(blocked_imports=["os"]))
    events = await _collect(sandbox, "import os\n")
    assert any("blocked by policy" in event.text for event in events if isinstance(event, Stderr))


@pytest.mark.asyncio
async def test_missing_explicit_entry_point() -> None:
    events = await _collect(LocalSandbox(), "x = 1\n", entry_point="start")
    assert events == [Stderr("Entry point 'start' is not defined")]


@pytest.mark.asyncio
async def test_timeout_kills_run() -> None:
    sandbox = LocalSandbox(SandboxPolicy(timeout_seconds=0.5))
    events = await _collect(sandbox, "print('before')\nwhile True:\n    pass\n")
    assert events[0] == Stdout("before")
    assert events[-1] == Stderr("Execution timed out after 0.5s")


@pytest.mark.asyncio
async def test_worker_directory_not_importable() -> None:
    code = (
        "import sys, types\n"
        "print(any(path.endswith('execution') for path in sys.path))\n"
        "print(types.SimpleNamespace(a=1).a)\n"
    )
    events = await _collect(LocalSandbox(), code)
    assert events == [Stdout("False"), Stdout("1")]


@pytest.mark.asyncio
async def test_oversized_line_dropped_and_stream_continues() -> None:
    events = await _collect(LocalSandbox(), "print('x' * 2_000_000)\nprint('after')\n")

    dropped = [event for event in events if isinstance(event, Stderr) and "dropped" in event.text]
    assert len(dropped) == 1
    assert not any(isinstance(event, Stdout) and event.text.startswith("x") for event in events)
    assert events[-1] == Stdout("after")


@pytest.mark.asyncio
async def test_malformed_marker_reported_and_stream_continues() -> None:
    events = await _collect(LocalSandbox(), "print('__TESTRESULT__ {oops')\nprint('after')\n")

    assert isinstance(events[0], Stderr)
    assert events[0].text.startswith("Malformed test result")
    assert events[1:] == [Stdout("after")]
