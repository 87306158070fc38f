from __future__ import annotations

import asyncio
from typing import AsyncIterator

import pytest

from embedpad import Embed, EmbedElements, EmbedSettings
from embedpad.events import ExecutionEvent
from embedpad.execution.types import CompileRequest, CompileResult


class FakeCompiler:
    def __init__(self, result: CompileResult | None = None) -> None:
        self.result = result
        self.requests: list[CompileRequest] = []

    async def compile(self, request: CompileRequest) -> CompileResult:
        self.requests.append(request)
        if self.result is not None:
            return self.result
        return CompileResult(artifact=f"compiled:{request.source}")


class HangingCompiler:
    def __init__(self) -> None:
        self.calls = 0

    async def compile(self, request: CompileRequest) -> CompileResult:
        self.calls += 1
        await asyncio.Event().wait()
        raise AssertionError("unreachable")


class ScriptedSandbox:
    test_result_decoration = "# decoration"

    def __init__(self, *events: ExecutionEvent, fail_with: Exception | None = None) -> None:
        self.events = list(events)
        self.fail_with = fail_with
        self.calls: list[tuple[str, str, str]] = []
        self.closed = False

    async def execute(self, entry_point: str, imports: str, artifact: str) -> AsyncIterator[ExecutionEvent]:
        self.calls.append((entry_point, imports, artifact))
        try:
            for event in self.events:
                await asyncio.sleep(0)
                yield event
            if self.fail_with is not None:
                raise self.fail_with
        finally:
            self.closed = True


@pytest.fixture
def elements() -> EmbedElements:
    return EmbedElements.create()


@pytest.fixture
def make_embed(elements: EmbedElements):
    created: list[Embed] = []

    def _make(compiler=None, sandbox=None, settings: EmbedSettings | None = None) -> Embed:
        embed = Embed(
            elements,
            compiler or FakeCompiler(),
            sandbox or ScriptedSandbox(),
            settings or EmbedSettings(reconcile_delay_ms=50, compile_timeout_seconds=1),
        )
        created.append(embed)
        return embed

    yield _make
    for embed in created:
        embed.close()
