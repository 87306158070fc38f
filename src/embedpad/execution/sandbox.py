from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path
from typing import AsyncIterator, Protocol

import structlog

from ..events import ExecutionEvent, Stderr, Stdout, TestResult
from ..settings import SandboxPolicy

logger = structlog.get_logger(__name__)

TEST_RESULT_PREFIX = "__TESTRESULT__"
STREAM_LIMIT_BYTES = 1024 * 1024

TEST_RESULT_DECORATION = f'''
def _result(success, message=""):
    import json
    print("{TEST_RESULT_PREFIX} " + json.dumps({{"success": bool(success), "message": str(message)}}))
'''


class Sandbox(Protocol):
    test_result_decoration: str

    def execute(self, entry_point: str, imports: str, artifact: str) -> AsyncIterator[ExecutionEvent]:
        """Run a compiled artifact and stream its events.

        Example:
            ```python
            async for event in sandbox.execute("", "", artifact):
                print(event)
            ```
        """
        ...


def _worker_path() -> Path:
    """Return the absolute path to the worker module file.

    Example:
        ```python
        path = _worker_path()
        ```
    """
    return Path(__file__).resolve().with_name("worker.py")


def parse_test_result(line: str) -> TestResult | None:
    """Decode a test-result marker line, or return None for ordinary output.

    Raises ValueError when the line carries the marker but a malformed body.

    Example:
        ```python
        result = parse_test_result('__TESTRESULT__ {"success": true, "message": "ok"}')
        ```
    """
    if not line.startswith(TEST_RESULT_PREFIX):
        return None
    body = line[len(TEST_RESULT_PREFIX):].strip()
    try:
        data = json.loads(body)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Malformed test result: {body!r}") from exc
    if not isinstance(data, dict) or not isinstance(data.get("success"), bool):
        raise ValueError(f"Malformed test result: {body!r}")
    message = data.get("message")
    if message is None and isinstance(data.get("messages"), list):
        message = ", ".join(str(m) for m in data["messages"])
    return TestResult(success=data["success"], message=str(message or ""))


class LocalSandbox:
    """Execute artifacts in a child interpreter guarded by a `SandboxPolicy`.

    Stdout and stderr lines are streamed as they arrive. The first test-result
    marker line of a run becomes a `TestResult` event.

    Example:
        ```python
        sandbox = LocalSandbox(SandboxPolicy(timeout_seconds=5))
        async for event in sandbox.execute("", "", "print('hi')"):
            print(event)
        ```
    """

    test_result_decoration = TEST_RESULT_DECORATION

    def __init__(
        self,
        policy: SandboxPolicy | None = None,
        *,
        python_executable: str | None = None,
    ) -> None:
        """Run children with `python_executable`, limited by `policy`.

        Example:
            ```python
            sandbox = LocalSandbox(SandboxPolicy(timeout_seconds=5))
            ```
        """
        self._policy = policy or SandboxPolicy()
        self._python = python_executable or sys.executable

    @property
    def policy(self) -> SandboxPolicy:
        """Policy applied to every run.

        Example:
            ```python
            print(sandbox.policy.timeout_seconds)
            ```
        """
        return self._policy

    async def execute(self, entry_point: str, imports: str, artifact: str) -> AsyncIterator[ExecutionEvent]:
        """Run one artifact in a fresh worker process.

        `imports` is accepted for interface compatibility and is not used.

        Example:
            ```python
            events = [event async for event in sandbox.execute("", "", artifact)]
            ```
        """
        payload = json.dumps(
            {
                "code": artifact,
                "entry_point": entry_point,
                "policy": self._policy.to_payload(),
            }
        )
        proc = await asyncio.create_subprocess_exec(
            self._python,
            # -P keeps the worker directory off sys.path, so execution/types.py
            # cannot shadow the stdlib types module
            "-P",
            "-u",
            str(_worker_path()),
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            limit=STREAM_LIMIT_BYTES,
        )
        queue: asyncio.Queue[ExecutionEvent | None] = asyncio.Queue()
        pumps = [
            asyncio.create_task(_pump(proc.stdout, Stdout, queue)),
            asyncio.create_task(_pump(proc.stderr, Stderr, queue)),
        ]
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._policy.timeout_seconds
        reported_result = False
        try:
            assert proc.stdin is not None
            proc.stdin.write(payload.encode("utf-8"))
            await proc.stdin.drain()
            proc.stdin.close()

            open_streams = len(pumps)
            while open_streams:
                remaining = deadline - loop.time()
                try:
                    event = await asyncio.wait_for(queue.get(), timeout=max(remaining, 0))
                except TimeoutError:
                    logger.warning("sandbox_timeout", timeout_seconds=self._policy.timeout_seconds)
                    yield Stderr(f"Execution timed out after {self._policy.timeout_seconds:g}s")
                    return
                if event is None:
                    open_streams -= 1
                    continue
                if isinstance(event, Stdout) and not reported_result:
                    try:
                        result = parse_test_result(event.text)
                    except ValueError as exc:
                        yield Stderr(str(exc))
                        continue
                    if result is not None:
                        reported_result = True
                        yield result
                        continue
                yield event

            returncode = await proc.wait()
            logger.debug("sandbox_exit", returncode=returncode)
        finally:
            for pump in pumps:
                pump.cancel()
            if proc.returncode is None:
                proc.kill()
                await proc.wait()


async def _pump(
    stream: asyncio.StreamReader | None,
    kind: type[Stdout] | type[Stderr],
    queue: asyncio.Queue[ExecutionEvent | None],
) -> None:
    """Forward each line of one child pipe to the queue, then a None sentinel.

    A line longer than `STREAM_LIMIT_BYTES` is reported once as `Stderr` and
    skipped. Reading continues with the next line.

    Example:
        ```python
        task = asyncio.create_task(_pump(proc.stdout, Stdout, queue))
        ```
    """
    if stream is None:
        await queue.put(None)
        return
    skipping = False
    while True:
        try:
            raw = await stream.readline()
        except ValueError as exc:
            # readline already discarded the buffered part of the long line
            if not skipping:
                await queue.put(Stderr(f"Output line longer than {STREAM_LIMIT_BYTES} bytes was dropped"))
            skipping = "not found" in str(exc)
            continue
        if not raw:
            break
        if skipping:
            # tail of the dropped line
            skipping = False
            continue
        await queue.put(kind(raw.decode("utf-8", errors="replace").rstrip("\r\n")))
    await queue.put(None)
