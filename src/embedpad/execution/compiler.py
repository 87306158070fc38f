from __future__ import annotations

from typing import Any, Protocol

import httpx
import structlog

from ..settings import EmbedSettings
from .types import CompileRequest, CompileResult

logger = structlog.get_logger(__name__)


class Compiler(Protocol):
    async def compile(self, request: CompileRequest) -> CompileResult:
        """Compile one request and return an artifact or an error.

        Example:
            ```python
            result = await compiler.compile(CompileRequest(source="print(1)"))
            ```
        """
        ...


class LocalCompiler:
    """Validate Python source in-process; the artifact is the source itself.

    Example:
        ```python
        result = await LocalCompiler().compile(CompileRequest(source="print(1)"))
        assert result.artifact == "print(1)"
        ```
    """

    def __init__(self, filename: str = "<snippet>") -> None:
        """Use `filename` in syntax error locations.

        Example:
            ```python
            compiler = LocalCompiler("<editor>")
            ```
        """
        self._filename = filename

    async def compile(self, request: CompileRequest) -> CompileResult:
        """Check the source for syntax errors.

        Example:
            ```python
            result = await LocalCompiler().compile(CompileRequest(source="def broken("))
            assert not result.ok
            ```
        """
        try:
            compile(request.source, self._filename, "exec", dont_inherit=True)
        except SyntaxError as exc:
            return CompileResult(error=f"SyntaxError: {exc.msg} (line {exc.lineno})")
        except ValueError as exc:
            # null bytes in source
            return CompileResult(error=f"ValueError: {exc}")
        return CompileResult(artifact=request.source)


def _error_message(response: httpx.Response) -> str:
    """Extract a readable message from a compile service error response.

    Example:
        ```python
        message = _error_message(response)
        ```
    """
    try:
        body: Any = response.json()
    except ValueError:
        return response.text.strip() or f"HTTP {response.status_code}"
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    if isinstance(error, str) and error:
        return error
    return response.text.strip() or f"HTTP {response.status_code}"


class HttpCompiler:
    """Compile through a remote service speaking `{source} -> {result} | {error}`.

    Example:
        ```python
        compiler = HttpCompiler("https://compile.example.com/api/v2/")
        result = await compiler.compile(CompileRequest(source=code))
        ```
    """

    def __init__(
        self,
        base_url: str,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        """Normalize `base_url` to end with a slash.

        Example:
            ```python
            compiler = HttpCompiler("https://compile.example/api", headers={"X-Key": "k"})
            ```
        """
        cleaned = base_url.strip()
        if not cleaned:
            raise ValueError("HttpCompiler requires a non-empty 'base_url'")
        if not cleaned.endswith("/"):
            cleaned += "/"
        self._base_url = cleaned
        self._transport = transport
        self._headers = headers or {}

    @property
    def base_url(self) -> str:
        """Normalized service root.

        Example:
            ```python
            assert HttpCompiler("http://h/api").base_url == "http://h/api/"
            ```
        """
        return self._base_url

    async def compile(self, request: CompileRequest) -> CompileResult:
        """POST the source to `<base_url>compile` and normalize the reply.

        Transport errors propagate to the caller.

        Example:
            ```python
            result = await compiler.compile(CompileRequest(source=code))
            ```
        """
        async with httpx.AsyncClient(
            base_url=self._base_url,
            transport=self._transport,
            headers=self._headers,
            timeout=None,
        ) as client:
            response = await client.post("compile", json={"source": request.source})
        if response.is_error:
            message = _error_message(response)
            logger.info("remote_compile_rejected", status=response.status_code, error=message)
            return CompileResult(error=message)
        body = response.json()
        if not isinstance(body, dict):
            return CompileResult(error="Compile service returned an unexpected payload")
        if body.get("error"):
            return CompileResult(error=_error_message(response))
        result = body.get("result")
        if not isinstance(result, str):
            return CompileResult(error="Compile service response has no 'result'")
        return CompileResult(artifact=result)


def build_compiler(settings: EmbedSettings) -> Compiler:
    """Create the compiler named by the settings.

    Example:
        ```python
        compiler = build_compiler(EmbedSettings())
        ```
    """
    if settings.compiler == "http":
        return HttpCompiler(settings.compile_url)
    return LocalCompiler()
