from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Protocol

from .events import ConsoleLine


class Element(Protocol):
    """Minimal view capability set the orchestration core relies on.

    Example:
        ```python
        def show(element: Element) -> None:
            element.set_attr("selected")
        ```
    """

    text: str
    value: str

    def append_line(self, line: ConsoleLine) -> None:
        """Append one rendered console line.

        Example:
            ```python
            console.append_line(ConsoleLine("hi"))
            ```
        """
        ...

    def clear(self) -> None:
        """Remove all console lines.

        Example:
            ```python
            console.clear()
            ```
        """
        ...

    def set_attr(self, name: str) -> None:
        """Set a boolean attribute.

        Example:
            ```python
            tab.set_attr("selected")
            ```
        """
        ...

    def clear_attr(self, name: str) -> None:
        """Clear a boolean attribute.

        Example:
            ```python
            tab.clear_attr("selected")
            ```
        """
        ...

    def has_attr(self, name: str) -> bool:
        """Return whether a boolean attribute is set.

        Example:
            ```python
            tab.has_attr("selected")
            ```
        """
        ...

    def on_click(self, listener: Callable[[], object]) -> None:
        """Register a click listener.

        Example:
            ```python
            button.on_click(handle_run)
            ```
        """
        ...

    def click(self) -> None:
        """Deliver one click to the registered listeners.

        Example:
            ```python
            button.click()
            ```
        """
        ...

    def hide(self) -> None:
        """Hide the element.

        Example:
            ```python
            button.hide()
            ```
        """
        ...

    @property
    def hidden(self) -> bool:
        """Whether the element has been hidden.

        Example:
            ```python
            if button.hidden:
                return
            ```
        """
        ...

    def focus(self) -> None:
        """Give the element input focus.

        Example:
            ```python
            editor_area.focus()
            ```
        """
        ...


class MemoryElement:
    """In-process element used by tests and the command line front end.

    Example:
        ```python
        button = MemoryElement("test-code")
        button.on_click(lambda: print("clicked"))
        button.click()
        ```
    """

    def __init__(self, element_id: str, *, text: str = "", value: str = "") -> None:
        """Create a visible, unfocused element with no attributes.

        Example:
            ```python
            area = MemoryElement("editor", value="print(1)")
            ```
        """
        self.id = element_id
        self.text = text
        self.value = value
        self.lines: list[ConsoleLine] = []
        self.focused = False
        self._attrs: set[str] = set()
        self._hidden = False
        self._click_listeners: list[Callable[[], object]] = []

    def append_line(self, line: ConsoleLine) -> None:
        """Append one styled line to the element's children.

        Example:
            ```python
            console.append_line(ConsoleLine("hello"))
            ```
        """
        self.lines.append(line)

    def clear(self) -> None:
        """Remove all text and appended lines.

        Example:
            ```python
            console.clear()
            ```
        """
        self.text = ""
        self.lines.clear()

    def set_attr(self, name: str) -> None:
        """Set a boolean attribute.

        Example:
            ```python
            tab.set_attr("selected")
            ```
        """
        self._attrs.add(name)

    def clear_attr(self, name: str) -> None:
        """Clear a boolean attribute. Clearing an unset attribute is a no-op.

        Example:
            ```python
            tab.clear_attr("selected")
            ```
        """
        self._attrs.discard(name)

    def has_attr(self, name: str) -> bool:
        """Return whether a boolean attribute is set.

        Example:
            ```python
            assert tab.has_attr("selected")
            ```
        """
        return name in self._attrs

    def on_click(self, listener: Callable[[], object]) -> None:
        """Register a click listener.

        Example:
            ```python
            button.on_click(handle_run)
            ```
        """
        self._click_listeners.append(listener)

    def click(self) -> None:
        """Dispatch a click to every listener in registration order.

        Example:
            ```python
            button.click()
            ```
        """
        for listener in tuple(self._click_listeners):
            listener()

    def hide(self) -> None:
        """Hide the element. Hiding twice is a no-op.

        Example:
            ```python
            button.hide()
            ```
        """
        self._hidden = True

    @property
    def hidden(self) -> bool:
        """Whether `hide` has been called.

        Example:
            ```python
            assert not button.hidden
            ```
        """
        return self._hidden

    def focus(self) -> None:
        """Give the element input focus.

        Example:
            ```python
            editor_area.focus()
            ```
        """
        self.focused = True

    def __repr__(self) -> str:
        """Show the element id.

        Example:
            ```python
            repr(MemoryElement("run-code"))  # MemoryElement('run-code')
            ```
        """
        return f"MemoryElement({self.id!r})"


@dataclass(slots=True)
class EmbedElements:
    """Named elements making up one embed instance.

    Example:
        ```python
        elements = EmbedElements.create()
        elements.test_button.click()
        ```
    """

    editor_tab: Element
    test_tab: Element
    console_tab: Element
    editor: Element
    test_view: Element
    console_view: Element
    run_button: Element
    test_button: Element

    @classmethod
    def create(cls) -> "EmbedElements":
        """Build a fresh set of in-memory elements.

        Example:
            ```python
            elements = EmbedElements.create()
            ```
        """
        return cls(
            editor_tab=MemoryElement("editor-tab"),
            test_tab=MemoryElement("test-tab"),
            console_tab=MemoryElement("console-tab"),
            editor=MemoryElement("editor"),
            test_view=MemoryElement("test-view"),
            console_view=MemoryElement("console-view"),
            run_button=MemoryElement("run-code"),
            test_button=MemoryElement("test-code"),
        )

    def tab(self, name: str) -> Element:
        """Return the tab element for a tab name.

        Example:
            ```python
            elements.tab("console").click()
            ```
        """
        tabs = {
            "editor": self.editor_tab,
            "test": self.test_tab,
            "console": self.console_tab,
        }
        if name not in tabs:
            raise KeyError(name)
        return tabs[name]
