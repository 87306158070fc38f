from __future__ import annotations

import asyncio

from .document import SourceDocument
from .elements import Element
from .events import Broadcast
from .reconciler import DirtyTracker, Reconciler
from .settings import DEFAULT_RECONCILE_DELAY_MS
from .views import TestTabView


class SourceEditor:
    """Editing surface state: a document, a language mode and a cursor.

    Keystroke capture belongs to the concrete widget; this class only holds
    what the orchestration core reads and writes.

    Example:
        ```python
        editor = SourceEditor(SourceDocument("print(1)"), mode="python")
        editor.cursor = 5
        ```
    """

    def __init__(self, document: SourceDocument, *, mode: str = "python", element: Element | None = None) -> None:
        """Bind a document to a language mode, optionally backed by an element.

        Example:
            ```python
            editor = SourceEditor(SourceDocument(), mode="python")
            ```
        """
        self.document = document
        self.mode = mode
        self.cursor = 0
        self._element = element

    @classmethod
    def from_element(cls, element: Element, *, mode: str = "python") -> "SourceEditor":
        """Create an editor whose document mirrors a text area element.

        Example:
            ```python
            editor = SourceEditor.from_element(elements.editor)
            ```
        """
        document = SourceDocument(element.value)

        def _write_back(text: str) -> None:
            """Mirror a document change into the backing text area.

            Example:
                ```python
                _write_back("print(2)")
                ```
            """
            element.value = text

        document.on_change.subscribe(_write_back)
        return cls(document, mode=mode, element=element)

    def focus(self) -> None:
        """Give the backing element input focus, if there is one.

        Example:
            ```python
            editor.focus()
            ```
        """
        if self._element is not None:
            self._element.focus()


class EmbedContext:
    """Explicitly constructed editing context of one embed instance.

    Owns the reconciler keyed to the editor's document. `on_dirty` fires
    synchronously on every change, `on_reconcile` once per quiet period.

    Example:
        ```python
        context = EmbedContext(editor, test_view, reconcile_delay_ms=1250)
        context.on_reconcile.subscribe(lambda _: analyze(context.source))
        ```
    """

    def __init__(
        self,
        editor: SourceEditor,
        test_view: TestTabView,
        *,
        reconcile_delay_ms: int = DEFAULT_RECONCILE_DELAY_MS,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        """Wire the dirty tracker and the reconciler to the editor's document.

        Raises RuntimeError when no `loop` is given and none is running.

        Example:
            ```python
            context = EmbedContext(editor, test_view, reconcile_delay_ms=1250, loop=loop)
            ```
        """
        self.editor = editor
        self.test_view = test_view
        self._document = editor.document
        self._reconciler = Reconciler(self._document.on_change, reconcile_delay_ms, loop=loop)
        self._dirty = DirtyTracker(self._document.on_change)

    @property
    def document(self) -> SourceDocument:
        """The editor's document.

        Example:
            ```python
            context.document.mark_clean()
            ```
        """
        return self._document

    @property
    def source(self) -> str:
        """Current user source.

        Example:
            ```python
            text = context.source
            ```
        """
        return self._document.text

    @source.setter
    def source(self, value: str) -> None:
        """Replace the user source; a different value marks the document dirty.

        Example:
            ```python
            context.source = "print(2)"
            ```
        """
        self._document.text = value

    @property
    def test_method(self) -> str:
        """Test method currently shown in the test view.

        Example:
            ```python
            harness = context.test_method
            ```
        """
        return self.test_view.test_method

    @property
    def active_mode(self) -> str:
        """Language mode of the editor.

        Example:
            ```python
            assert context.active_mode == "python"
            ```
        """
        return self.editor.mode

    @property
    def on_dirty(self) -> Broadcast[None]:
        """Channel fired synchronously on every source change.

        Example:
            ```python
            context.on_dirty.subscribe(lambda _: show_unsaved_marker())
            ```
        """
        return self._dirty.on_dirty

    @property
    def on_reconcile(self) -> Broadcast[None]:
        """Channel fired once per quiet period after edits.

        Example:
            ```python
            context.on_reconcile.subscribe(lambda _: analyze(context.source))
            ```
        """
        return self._reconciler.on_reconcile

    @property
    def reconciler(self) -> Reconciler:
        """The debouncer keyed to the editor's document.

        Example:
            ```python
            context.reconciler.flush()
            ```
        """
        return self._reconciler

    def mark_clean(self) -> None:
        """Mark the source document clean.

        Example:
            ```python
            context.mark_clean()
            ```
        """
        self._document.mark_clean()

    def focus(self) -> None:
        """Restore focus to the editor.

        Example:
            ```python
            context.focus()
            ```
        """
        self.editor.focus()

    def cursor_position_is_whitespace(self) -> bool:
        """Return True if the character at the cursor is whitespace.

        Example:
            ```python
            if context.cursor_position_is_whitespace():
                hide_completions()
            ```
        """
        text = self._document.text
        cursor = self.editor.cursor
        if cursor < 0 or cursor >= len(text):
            return False
        return text[cursor].isspace()

    def close(self) -> None:
        """Cancel pending reconciliation and detach from the document.

        Example:
            ```python
            context.close()
            ```
        """
        self._reconciler.close()
        self._dirty.close()
