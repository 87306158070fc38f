from __future__ import annotations

import asyncio
import itertools
from contextlib import aclosing

import structlog

from ..errors import CompileFailed
from ..events import Broadcast, ExecutionEvent, Stderr
from ..settings import DEFAULT_COMPILE_TIMEOUT_SECONDS
from .compiler import Compiler
from .sandbox import Sandbox
from .types import CompileRequest

logger = structlog.get_logger(__name__)

# Reserved for future use; the sandbox receives them empty.
ENTRY_POINT = ""
IMPORTS = ""


class ExecutionPipeline:
    """Compile a source text, run the artifact and relay its events.

    Every event from the sandbox is emitted on `events`, in arrival order and
    unchanged. A failed or timed-out compile raises `CompileFailed` and never
    reaches the sandbox. Runs keep no shared state, so concurrent runs are
    allowed and interleave their events.

    Example:
        ```python
        pipeline = ExecutionPipeline(LocalCompiler(), LocalSandbox())
        pipeline.events.subscribe(print)
        await pipeline.run("print('hi')")
        ```
    """

    def __init__(
        self,
        compiler: Compiler,
        sandbox: Sandbox,
        *,
        compile_timeout_seconds: float = DEFAULT_COMPILE_TIMEOUT_SECONDS,
    ) -> None:
        """Bind the compile and execution collaborators.

        Example:
            ```python
            pipeline = ExecutionPipeline(compiler, sandbox, compile_timeout_seconds=20)
            ```
        """
        if compile_timeout_seconds <= 0:
            raise ValueError("compile_timeout_seconds must be positive")
        self._compiler = compiler
        self._sandbox = sandbox
        self._compile_timeout = compile_timeout_seconds
        self._run_ids = itertools.count(1)
        self.events: Broadcast[ExecutionEvent] = Broadcast()

    @property
    def compile_timeout_seconds(self) -> float:
        """Timeout applied to the compile phase.

        Example:
            ```python
            assert pipeline.compile_timeout_seconds == 60
            ```
        """
        return self._compile_timeout

    async def run(self, full_source: str) -> None:
        """Compile `full_source` and stream the execution events of the result.

        Example:
            ```python
            try:
                await pipeline.run(source)
            except CompileFailed as exc:
                console.append_error(exc.message)
            ```
        """
        log = logger.bind(run=next(self._run_ids))
        log.info("run_started", source_length=len(full_source))
        artifact = await self._compile(full_source, log)

        count = 0
        async with aclosing(self._sandbox.execute(ENTRY_POINT, IMPORTS, artifact)) as stream:
            while True:
                try:
                    event = await anext(stream)
                except StopAsyncIteration:
                    break
                except Exception as exc:
                    log.warning("sandbox_failed", error=repr(exc))
                    self.events.emit(Stderr(f"{type(exc).__name__}: {exc}"))
                    break
                count += 1
                self.events.emit(event)
        log.info("run_finished", events=count)

    async def _compile(self, full_source: str, log: structlog.typing.FilteringBoundLogger) -> str:
        """Await the compiler under the long-call timeout and return the artifact.

        Example:
            ```python
            artifact = await pipeline._compile("print(1)", logger)
            ```
        """
        try:
            result = await asyncio.wait_for(
                self._compiler.compile(CompileRequest(source=full_source)),
                timeout=self._compile_timeout,
            )
        except TimeoutError:
            log.warning("compile_failed", timed_out=True, timeout_seconds=self._compile_timeout)
            raise CompileFailed(
                f"Compilation timed out after {self._compile_timeout:g}s", timed_out=True
            ) from None
        except Exception as exc:
            log.warning("compile_failed", timed_out=False, error=repr(exc))
            raise CompileFailed(f"Compilation failed: {exc}") from exc

        if result.error is not None or result.artifact is None:
            log.warning("compile_failed", timed_out=False, error=result.error)
            raise CompileFailed(result.error or "Compilation produced no artifact")
        return result.artifact
