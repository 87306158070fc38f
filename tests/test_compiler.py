import httpx
import pytest

from embedpad import EmbedSettings, HttpCompiler, LocalCompiler
from embedpad.execution import build_compiler
from embedpad.execution.types import CompileRequest, CompileResult


def test_compile_result_needs_exactly_one_side() -> None:
    with pytest.raises(ValueError):
        CompileResult()
    with pytest.raises(ValueError):
        CompileResult(artifact="a", error="b")
    assert CompileResult(artifact="a").ok
    assert not CompileResult(error="b").ok


@pytest.mark.asyncio
async def test_local_compiler_passes_source_through() -> None:
    result = await LocalCompiler().compile(CompileRequest(source="print(1)\n"))
    assert result.artifact == "print(1)\n"


@pytest.mark.asyncio
async def test_local_compiler_reports_syntax_error_line() -> None:
    result = await LocalCompiler().compile(CompileRequest(source="x = 1\ndef broken(\n"))
    assert result.artifact is None
    assert result.error is not None
    assert result.error.startswith("SyntaxError")
    assert "(line 2)" in result.error


@pytest.mark.asyncio
async def test_http_compiler_success() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"result": "compiled-js"})

    compiler = HttpCompiler("https://compile.test/api/v2", transport=httpx.MockTransport(handler))
    result = await compiler.compile(CompileRequest(source="void main() {}"))

    assert result.artifact == "compiled-js"
    assert str(seen[0].url) == "https://compile.test/api/v2/compile"
    assert seen[0].method == "POST"
    assert b'"source"' in seen[0].content


@pytest.mark.asyncio
async def test_http_compiler_error_body() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"error": {"code": 400, "message": "Compilation failed: line 1"}})

    compiler = HttpCompiler("https://compile.test/", transport=httpx.MockTransport(handler))
    result = await compiler.compile(CompileRequest(source="oops"))

    assert result.error == "Compilation failed: line 1"


@pytest.mark.asyncio
async def test_http_compiler_missing_result() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"status": "ok"})

    compiler = HttpCompiler("https://compile.test/", transport=httpx.MockTransport(handler))
    result = await compiler.compile(CompileRequest(source="x"))

    assert result.error == "Compile service response has no 'result'"


def test_http_compiler_requires_base_url() -> None:
    with pytest.raises(ValueError, match="base_url"):
        HttpCompiler("  ")


def test_build_compiler_follows_settings() -> None:
    assert isinstance(build_compiler(EmbedSettings()), LocalCompiler)
    http = build_compiler(EmbedSettings(compiler="http", compile_url="http://localhost:8080/api"))
    assert isinstance(http, HttpCompiler)
    assert http.base_url == "http://localhost:8080/api/"
