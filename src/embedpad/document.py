from __future__ import annotations

from .events import Broadcast


class SourceDocument:
    """Current text of the user's snippet plus a dirty flag.

    Assigning a different value to `text` marks the document dirty and
    notifies `on_change` with the new text. Only `mark_clean` clears the flag.

    Example:
        ```python
        doc = SourceDocument("print('hi')")
        doc.on_change.subscribe(print)
        doc.text = "print('bye')"
        assert doc.dirty
        ```
    """

    def __init__(self, text: str = "") -> None:
        """Start clean with the given text.

        Example:
            ```python
            doc = SourceDocument("x = 1")
            ```
        """
        self._text = text
        self._dirty = False
        self.on_change: Broadcast[str] = Broadcast()

    @property
    def text(self) -> str:
        """Current text.

        Example:
            ```python
            print(doc.text)
            ```
        """
        return self._text

    @text.setter
    def text(self, value: str) -> None:
        """Replace the text. Equal text is not a mutation.

        Example:
            ```python
            doc.text = "x = 2"
            ```
        """
        if value == self._text:
            return
        self._text = value
        self._dirty = True
        self.on_change.emit(value)

    @property
    def dirty(self) -> bool:
        """Whether the text changed since the last `mark_clean`.

        Example:
            ```python
            if doc.dirty:
                save(doc.text)
            ```
        """
        return self._dirty

    def mark_clean(self) -> None:
        """Record the current text as the clean baseline.

        Example:
            ```python
            doc.mark_clean()
            assert not doc.dirty
            ```
        """
        self._dirty = False

    def __repr__(self) -> str:
        """Show the text length and dirty flag.

        Example:
            ```python
            repr(SourceDocument("x"))  # SourceDocument(len=1, dirty=False)
            ```
        """
        return f"SourceDocument(len={len(self._text)}, dirty={self._dirty})"
