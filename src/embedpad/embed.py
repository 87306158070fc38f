from __future__ import annotations

import asyncio
from dataclasses import dataclass

import structlog

from .context import EmbedContext, SourceEditor
from .elements import EmbedElements
from .errors import CompileFailed
from .events import ExecutionEvent, Stderr, Stdout, TestResult
from .execution.compiler import Compiler
from .execution.pipeline import ExecutionPipeline
from .execution.sandbox import Sandbox
from .reconciler import running_loop
from .settings import EmbedSettings
from .tabs import Tab, TabController
from .views import ConsoleTabView, EditorTabView, TestTabView

logger = structlog.get_logger(__name__)

TAB_NAMES = ("editor", "test", "console")

# TODO: load the initial snippet and test from a gist once gist loading exists.
INITIAL_TEST = '''\
def main():
    text = stringify(2, 3)
    if text == "2 3":
        _result(True, "Test passed. Great job!")
    elif text == "23":
        _result(False, "Test failed. It looks like you forgot the space!")
    elif text is None:
        _result(False, "Test failed. Did you forget to return a value?")
    else:
        _result(False, "That's not quite right. Keep trying!")
'''

INITIAL_CODE = '''\
def stringify(x, y):
    # Return a formatted string here
    pass
'''


@dataclass(slots=True)
class RunOutcome:
    """Summary of one run triggered through the embed.

    Example:
        ```python
        outcome = await embed.run_tests()
        if outcome.passed:
            print("done")
        ```
    """

    compiled: bool
    test_result: TestResult | None = None
    error: str | None = None

    @property
    def passed(self) -> bool:
        """True when the run reported a successful test result.

        Example:
            ```python
            if outcome.passed:
                print("done")
            ```
        """
        return self.test_result is not None and self.test_result.success


class Embed:
    """Embeddable editor that runs a snippet against its test.

    Wires the editor, test and console tabs into one `TabController`, routes
    pipeline events to the console view, and hides the test button after the
    first successful test run. Timers and click-triggered runs use the event loop
    bound at construction: `loop`, or the one running when the embed is built.

    Example:
        ```python
        embed = Embed(EmbedElements.create(), LocalCompiler(), LocalSandbox())
        outcome = await embed.run_tests()
        ```
    """

    def __init__(
        self,
        elements: EmbedElements,
        compiler: Compiler,
        sandbox: Sandbox,
        settings: EmbedSettings | None = None,
        *,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        """Build the views, tabs, pipeline and editing context, then wire the buttons.

        Raises RuntimeError before touching `elements` when no `loop` is given
        and none is running.

        Example:
            ```python
            embed = Embed(elements, LocalCompiler(), LocalSandbox(), EmbedSettings())
            ```
        """
        self._loop = loop or running_loop("Embed")
        self.settings = settings or EmbedSettings()
        self.elements = elements
        self._sandbox = sandbox
        self._tasks: set[asyncio.Task] = set()

        self.editor_tab_view = EditorTabView(elements.editor)
        self.test_tab_view = TestTabView(elements.test_view, elements.test_view)
        self.console_tab_view = ConsoleTabView(elements.console_view)

        self.tab_controller = TabController()
        for name in TAB_NAMES:
            self.tab_controller.register_tab(
                Tab(name, on_select=lambda name=name: self._show_tab(name), element=elements.tab(name))
            )
        self.tab_controller.select_tab("editor")

        self.test_tab_view.test_method = INITIAL_TEST
        elements.editor.value = INITIAL_CODE

        self.pipeline = ExecutionPipeline(
            compiler,
            sandbox,
            compile_timeout_seconds=self.settings.compile_timeout_seconds,
        )
        self.pipeline.events.subscribe(self._on_event)

        self.context = EmbedContext(
            SourceEditor.from_element(elements.editor),
            self.test_tab_view,
            reconcile_delay_ms=self.settings.reconcile_delay_ms,
            loop=self._loop,
        )

        elements.test_button.on_click(self._on_test_click)
        elements.run_button.on_click(lambda: self._schedule(self.run_code()))

    @property
    def test_button_disabled(self) -> bool:
        """Whether the test button has been hidden by a successful test.

        Example:
            ```python
            assert embed.test_button_disabled
            ```
        """
        return self.elements.test_button.hidden

    def test_source(self) -> str:
        """Return the full text submitted by a test run.

        User source, then the test method, then the test-result decoration.

        Example:
            ```python
            full = embed.test_source()
            ```
        """
        return f"{self.context.source}\n{self.context.test_method}\n{self._sandbox.test_result_decoration}"

    async def run_tests(self) -> RunOutcome:
        """Run the user source together with the test method.

        Example:
            ```python
            outcome = await embed.run_tests()
            ```
        """
        return await self._run(self.test_source())

    async def run_code(self) -> RunOutcome:
        """Run only the user source.

        Example:
            ```python
            outcome = await embed.run_code()
            ```
        """
        return await self._run(self.context.source)

    async def wait_idle(self) -> None:
        """Wait for runs started by button clicks to finish.

        Example:
            ```python
            embed.elements.test_button.click()
            await embed.wait_idle()
            ```
        """
        while True:
            pending = [task for task in self._tasks if not task.done()]
            if not pending:
                return
            await asyncio.gather(*pending)

    def close(self) -> None:
        """Release the editing context.

        Example:
            ```python
            embed.close()
            ```
        """
        self.context.close()

    async def _run(self, full_source: str) -> RunOutcome:
        """Run `full_source` and collect the first test result seen during the run.

        Example:
            ```python
            outcome = await embed._run(embed.test_source())
            ```
        """
        results: list[TestResult] = []
        subscription = self.pipeline.events.subscribe(
            lambda event: results.append(event) if isinstance(event, TestResult) else None
        )
        try:
            await self.pipeline.run(full_source)
        except CompileFailed as exc:
            logger.warning("run_compile_failed", error=exc.message, timed_out=exc.timed_out)
            self.console_tab_view.append_error(exc.message)
            return RunOutcome(compiled=False, error=exc.message)
        finally:
            subscription.cancel()
        return RunOutcome(compiled=True, test_result=results[0] if results else None)

    def _on_test_click(self) -> None:
        """Start a test run unless the test button is already disabled.

        Example:
            ```python
            elements.test_button.on_click(embed._on_test_click)
            ```
        """
        if self.test_button_disabled:
            logger.debug("test_click_ignored")
            return
        self._schedule(self.run_tests())

    def _schedule(self, coro) -> None:
        """Run `coro` as a task on the bound loop and track it for `wait_idle`.

        Example:
            ```python
            embed._schedule(embed.run_code())
            ```
        """
        task = self._loop.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _show_tab(self, name: str) -> None:
        """Select exactly the view matching the tab name.

        Example:
            ```python
            embed._show_tab("console")
            ```
        """
        self.editor_tab_view.set_selected(name == "editor")
        self.test_tab_view.set_selected(name == "test")
        self.console_tab_view.set_selected(name == "console")

    def _on_event(self, event: ExecutionEvent) -> None:
        """Route one execution event to the console view.

        Example:
            ```python
            embed._on_event(Stdout("hello"))
            ```
        """
        if isinstance(event, Stdout):
            self.console_tab_view.append_message(event.text)
        elif isinstance(event, Stderr):
            self.console_tab_view.append_error(event.text)
        elif isinstance(event, TestResult):
            self.console_tab_view.append_message(event.message)
            if event.success:
                self._disable_test_button()

    def _disable_test_button(self) -> None:
        """Hide the test button.

        Example:
            ```python
            embed._disable_test_button()
            ```
        """
        self.elements.test_button.hide()
        logger.info("test_button_disabled")
