from __future__ import annotations

from typing import Protocol

from .elements import Element
from .events import ConsoleLine

SELECTED_ATTR = "selected"


class Selectable(Protocol):
    """The one capability a tab view exposes to the tab wiring.

    Example:
        ```python
        def show_only(view: Selectable, others: list[Selectable]) -> None:
            view.set_selected(True)
        ```
    """

    def set_selected(self, selected: bool) -> None:
        """Show or hide the view.

        Example:
            ```python
            view.set_selected(False)
            ```
        """
        ...


def _mark_selected(element: Element, selected: bool) -> None:
    """Set or clear the selected attribute on `element`.

    Example:
        ```python
        _mark_selected(elements.editor, True)
        ```
    """
    if selected:
        element.set_attr(SELECTED_ATTR)
    else:
        element.clear_attr(SELECTED_ATTR)


class EditorTabView:
    """View over the source editor area.

    Example:
        ```python
        EditorTabView(elements.editor).set_selected(True)
        ```
    """

    def __init__(self, element: Element) -> None:
        """Wrap the editor element.

        Example:
            ```python
            view = EditorTabView(elements.editor)
            ```
        """
        self.element = element

    @property
    def selected(self) -> bool:
        """Whether the editor view is shown.

        Example:
            ```python
            assert view.selected
            ```
        """
        return self.element.has_attr(SELECTED_ATTR)

    def set_selected(self, selected: bool) -> None:
        """Toggle the view's selected attribute.

        Example:
            ```python
            view.set_selected(False)
            ```
        """
        _mark_selected(self.element, selected)


class TestTabView:
    """View over the test-method text area.

    The tab area and the text area are separate parameters because the tab
    is expected to grow beyond the text area.

    Example:
        ```python
        view = TestTabView(elements.test_view, elements.test_view)
        view.test_method = "def main():\\n    _result(True, 'ok')\\n"
        ```
    """

    __test__ = False

    def __init__(self, element: Element, test_editor: Element) -> None:
        """Wrap the test area and the editor holding the test method.

        Example:
            ```python
            view = TestTabView(elements.test_view, elements.test_view)
            ```
        """
        self.element = element
        self.test_editor = test_editor

    @property
    def selected(self) -> bool:
        """Whether the test view is shown.

        Example:
            ```python
            assert not view.selected
            ```
        """
        return self.element.has_attr(SELECTED_ATTR)

    def set_selected(self, selected: bool) -> None:
        """Toggle the view's selected attribute.

        Example:
            ```python
            view.set_selected(True)
            ```
        """
        _mark_selected(self.element, selected)

    @property
    def test_method(self) -> str:
        """Text of the test method.

        Example:
            ```python
            harness = view.test_method
            ```
        """
        return self.test_editor.value

    @test_method.setter
    def test_method(self, value: str) -> None:
        """Replace the text of the test method.

        Example:
            ```python
            view.test_method = INITIAL_TEST
            ```
        """
        self.test_editor.value = value


class ConsoleTabView:
    """Append-only console output view.

    Example:
        ```python
        console = ConsoleTabView(elements.console_view)
        console.append_message("hello")
        console.append_error("boom")
        ```
    """

    def __init__(self, element: Element) -> None:
        """Wrap the console output element.

        Example:
            ```python
            console = ConsoleTabView(elements.console_view)
            ```
        """
        self.element = element
        self._lines: list[ConsoleLine] = []

    @property
    def selected(self) -> bool:
        """Whether the console view is shown.

        Example:
            ```python
            assert console.selected
            ```
        """
        return self.element.has_attr(SELECTED_ATTR)

    @property
    def lines(self) -> tuple[ConsoleLine, ...]:
        """Lines appended since the last clear.

        Example:
            ```python
            texts = [line.text for line in console.lines]
            ```
        """
        return tuple(self._lines)

    def set_selected(self, selected: bool) -> None:
        """Toggle the view's selected attribute.

        Example:
            ```python
            console.set_selected(True)
            ```
        """
        _mark_selected(self.element, selected)

    def append_message(self, msg: str) -> None:
        """Append a normal output line.

        Example:
            ```python
            console.append_message("done")
            ```
        """
        self._append(ConsoleLine(msg, kind="message"))

    def append_error(self, err: str) -> None:
        """Append an error output line.

        Example:
            ```python
            console.append_error("NameError: name 'x' is not defined")
            ```
        """
        self._append(ConsoleLine(err, kind="error"))

    def clear(self) -> None:
        """Remove every line from the console.

        Example:
            ```python
            console.clear()
            ```
        """
        self._lines.clear()
        self.element.clear()

    def _append(self, line: ConsoleLine) -> None:
        """Record `line` and render it on the element.

        Example:
            ```python
            console._append(ConsoleLine("hi"))
            ```
        """
        self._lines.append(line)
        self.element.append_line(line)
