from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

import structlog

from .elements import Element
from .errors import TabNotFound

logger = structlog.get_logger(__name__)


@dataclass(slots=True)
class Tab:
    """A named, selectable tab.

    Whether the tab is selected is owned by `TabController`, not stored here.

    Example:
        ```python
        tab = Tab("console", on_select=lambda: console_view.set_selected(True))
        ```
    """

    name: str
    on_select: Callable[[], object]
    element: Element | None = None


class TabController:
    """Exclusive selection over an ordered set of registered tabs.

    Starts with no tab selected. Selecting a tab records it as the single
    selected tab and calls its `on_select`. Re-selecting the current tab
    calls `on_select` again.

    Example:
        ```python
        controller = TabController()
        controller.register_tab(Tab("editor", on_select=show_editor))
        controller.select_tab("editor")
        ```
    """

    def __init__(self) -> None:
        """Start with no tabs and nothing selected.

        Example:
            ```python
            controller = TabController()
            ```
        """
        self._tabs: list[Tab] = []
        self._selected: str | None = None

    @property
    def tabs(self) -> tuple[Tab, ...]:
        """Registered tabs in registration order.

        Example:
            ```python
            names = [tab.name for tab in controller.tabs]
            ```
        """
        return tuple(self._tabs)

    @property
    def selected(self) -> str | None:
        """Name of the selected tab, or None before the first selection.

        Example:
            ```python
            assert controller.selected == "editor"
            ```
        """
        return self._selected

    def register_tab(self, tab: Tab) -> None:
        """Append a tab. Does not select it.

        A tab carrying an element is selected when that element is clicked.

        Example:
            ```python
            controller.register_tab(Tab("test", on_select=show_test, element=test_tab_el))
            ```
        """
        if tab.name in self:
            raise ValueError(f"Tab '{tab.name}' is already registered")
        self._tabs.append(tab)
        if tab.element is not None:
            name = tab.name
            tab.element.on_click(lambda: self.select_tab(name))

    def select_tab(self, name: str) -> None:
        """Select the named tab and fire its `on_select` callback.

        Example:
            ```python
            controller.select_tab("console")
            ```
        """
        tab = self._find(name)
        self._selected = tab.name
        logger.debug("tab_selected", tab=tab.name)
        tab.on_select()

    def is_selected(self, name: str) -> bool:
        """Return whether the named tab is the selected one.

        Example:
            ```python
            assert controller.is_selected("editor")
            ```
        """
        return self._selected == name

    def __contains__(self, name: object) -> bool:
        """True when a tab with this name is registered.

        Example:
            ```python
            assert "console" in controller
            ```
        """
        return any(tab.name == name for tab in self._tabs)

    def _find(self, name: str) -> Tab:
        """Return the tab named `name` or raise TabNotFound.

        Example:
            ```python
            tab = controller._find("test")
            ```
        """
        for tab in self._tabs:
            if tab.name == name:
                return tab
        raise TabNotFound(name)
