from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class CompileRequest:
    """Full source text submitted to a compiler.

    Example:
        ```python
        req = CompileRequest(source="print('hi')")
        ```
    """

    source: str


@dataclass(frozen=True, slots=True)
class CompileResult:
    """Either a compiled artifact or a compile error, never both.

    Example:
        ```python
        ok = CompileResult(artifact="print('hi')")
        failed = CompileResult(error="SyntaxError: invalid syntax (line 1)")
        ```
    """

    artifact: str | None = None
    error: str | None = None

    def __post_init__(self) -> None:
        """Require exactly one of artifact and error.

        Example:
            ```python
            CompileResult()  # ValueError
            ```
        """
        if (self.artifact is None) == (self.error is None):
            raise ValueError("CompileResult needs exactly one of 'artifact' or 'error'")

    @property
    def ok(self) -> bool:
        """True when the compile produced an artifact.

        Example:
            ```python
            if result.ok:
                run(result.artifact)
            ```
        """
        return self.error is None
