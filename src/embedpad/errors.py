from __future__ import annotations


class EmbedError(Exception):
    """Base class for embed orchestration errors.

    Example:
        ```python
        try:
            controller.select_tab("missing")
        except EmbedError as exc:
            print(exc)
        ```
    """


class CompileFailed(EmbedError):
    """Raised when the compile phase of a run ends without an artifact.

    Covers both compiler-reported errors and the long-call timeout.

    Example:
        ```python
        raise CompileFailed("Compilation timed out after 60s", timed_out=True)
        ```
    """

    def __init__(self, message: str, *, timed_out: bool = False) -> None:
        """Keep the message and whether the long-call timeout expired.

        Example:
            ```python
            exc = CompileFailed("SyntaxError: invalid syntax (line 1)")
            ```
        """
        super().__init__(message)
        self.message = message
        self.timed_out = timed_out


class TabNotFound(EmbedError, LookupError):
    """Raised when selecting a tab name that was never registered.

    Example:
        ```python
        raise TabNotFound("settings")
        ```
    """

    def __init__(self, name: str) -> None:
        """Record the unknown tab name.

        Example:
            ```python
            exc = TabNotFound("settings")
            ```
        """
        super().__init__(f"No tab registered with name '{name}'")
        self.name = name
