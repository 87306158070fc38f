from __future__ import annotations

import argparse
import asyncio
from dataclasses import asdict
from functools import partial
from pathlib import Path
from typing import Any, Never, Sequence

from rich.console import Console
from rich.panel import Panel
from rich.pretty import Pretty
from rich.text import Text
from rich_argparse import RawTextRichHelpFormatter

from embedpad import Embed, EmbedElements, EmbedSettings, LocalSandbox
from embedpad.execution import build_compiler
from embedpad.log import configure_logging

_CONSOLE = Console(no_color=False)


class _CLIHelpFormatter(RawTextRichHelpFormatter):
    """Rich formatter with explicit high-contrast CLI styles.

    Example:
        ```python
        parser = argparse.ArgumentParser(formatter_class=_CLIHelpFormatter)
        ```
    """

    styles = {
        "argparse.args": "bold cyan",
        "argparse.groups": "bold magenta",
        "argparse.help": "white",
        "argparse.metavar": "bold yellow",
        "argparse.prog": "bold bright_blue",
        "argparse.syntax": "bold bright_white",
        "argparse.text": "bright_white",
    }


_HELP_FORMATTER = partial(
    _CLIHelpFormatter,
    max_help_position=34,
    width=120,
)


class _RichArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that renders errors via Rich.

    Example:
        ```python
        parser = _RichArgumentParser(prog="epad")
        ```
    """

    def error(self, message: str) -> Never:
        """Render parse errors with Rich and exit.

        Example:
            ```python
            # parser.error("invalid usage")
            ```
        """
        _CONSOLE.print(Panel.fit(f"[bold red]Error:[/bold red] {message}", border_style="red"))
        self.print_help()
        raise SystemExit(2)


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI parser for running snippets against tests.

    Example:
        ```python
        parser = build_parser()
        ```
    """
    parser = _RichArgumentParser(
        prog="epad",
        description=(
            "embedpad CLI\n"
            "Compile a snippet, run it in the local sandbox and show console output\n"
            "and the test verdict, exactly as the embed's run buttons do."
        ),
        epilog=(
            "Quick Examples:\n"
            "  epad run snippet.py\n"
            "  epad run snippet.py --test test_snippet.py\n"
            "  epad run snippet.py --test test_snippet.py --settings embed.toml\n"
            "  epad settings --settings embed.toml"
        ),
        formatter_class=_HELP_FORMATTER,
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log pipeline activity to stderr at debug level.",
    )
    sub = parser.add_subparsers(
        dest="command",
        required=True,
        parser_class=_RichArgumentParser,
    )

    run_cmd = sub.add_parser(
        "run",
        help="Run a snippet, optionally against a test method.",
        description=(
            "Run a snippet file through the compile and execution pipeline.\n"
            "With --test, the test method and the test-result decoration are appended\n"
            "and the run reports a pass/fail verdict."
        ),
        formatter_class=_HELP_FORMATTER,
    )
    run_cmd.add_argument("snippet", help="Path to the snippet source file.")
    run_cmd.add_argument(
        "--test",
        help=(
            "Path to a test method file.\n"
            "It should define main() and report with _result(success, message)."
        ),
    )
    run_cmd.add_argument("--settings", help="Path to a settings TOML file.")

    settings_cmd = sub.add_parser(
        "settings",
        help="Show the effective settings.",
        description="Print the bundled defaults, or the given settings file merged over them.",
        formatter_class=_HELP_FORMATTER,
    )
    settings_cmd.add_argument("--settings", help="Path to a settings TOML file.")

    return parser


def _load_settings(path: str | None) -> EmbedSettings:
    """Load settings from a file, or return the defaults.

    Example:
        ```python
        settings = _load_settings(None)
        ```
    """
    if path is None:
        return EmbedSettings()
    return EmbedSettings.from_file(path)


def build_embed(settings: EmbedSettings) -> Embed:
    """Create an embed over in-memory elements with configured collaborators.

    Example:
        ```python
        embed = build_embed(EmbedSettings())
        ```
    """
    return Embed(
        EmbedElements.create(),
        build_compiler(settings),
        LocalSandbox(settings.sandbox),
        settings,
    )


async def _run(snippet: str, test_method: str | None, settings: EmbedSettings) -> int:
    """Run the snippet through an embed and render its console.

    Example:
        ```python
        code = asyncio.run(_run("print(1)", None, EmbedSettings()))
        ```
    """
    embed = build_embed(settings)
    try:
        embed.context.source = snippet
        if test_method is None:
            outcome = await embed.run_code()
        else:
            embed.test_tab_view.test_method = test_method
            outcome = await embed.run_tests()
        embed.tab_controller.select_tab("console")
    finally:
        embed.close()

    for line in embed.console_tab_view.lines:
        _CONSOLE.print(Text(line.text, style="red" if line.kind == "error" else ""))

    if not outcome.compiled:
        _CONSOLE.print(Panel.fit(f"Compile failed: {outcome.error}", style="bold red"))
        return 1
    if test_method is None:
        return 0
    if outcome.test_result is None:
        _CONSOLE.print(Panel.fit("No test result was reported.", style="bold yellow"))
        return 1
    if outcome.passed:
        _CONSOLE.print(Panel.fit(f"PASSED: {outcome.test_result.message}", style="bold green"))
        return 0
    _CONSOLE.print(Panel.fit(f"FAILED: {outcome.test_result.message}", style="bold red"))
    return 1


def _read_text(path: str) -> str:
    """Read a UTF-8 source file.

    Example:
        ```python
        snippet = _read_text("snippet.py")
        ```
    """
    return Path(path).read_text(encoding="utf-8")


def _settings_payload(settings: EmbedSettings) -> dict[str, Any]:
    """Convert settings to a plain dictionary for display.

    Example:
        ```python
        _CONSOLE.print(Pretty(_settings_payload(EmbedSettings())))
        ```
    """
    return asdict(settings)


def main(argv: Sequence[str] | None = None) -> int:
    """Run the `epad` CLI command handler.

    Example:
        ```python
        code = main(["run", "snippet.py", "--test", "test_snippet.py"])
        ```
    """
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    configure_logging("DEBUG" if args.verbose else "WARNING")

    try:
        settings = _load_settings(args.settings)
    except ValueError as exc:
        _CONSOLE.print(Panel.fit(f"Invalid settings: {exc}", style="bold red"))
        return 2

    if args.command == "settings":
        _CONSOLE.print(Panel.fit(Pretty(_settings_payload(settings)), title="Settings", border_style="cyan"))
        return 0
    if args.command == "run":
        try:
            snippet = _read_text(args.snippet)
            test_method = _read_text(args.test) if args.test else None
        except OSError as exc:
            _CONSOLE.print(Panel.fit(f"Cannot read input: {exc}", style="bold red"))
            return 2
        return asyncio.run(_run(snippet, test_method, settings))

    parser.error("Unhandled command")
    return 2
