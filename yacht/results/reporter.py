"""Terminal reporting of test progress and results."""

import re
from typing import TYPE_CHECKING, Optional, Sequence

from rich.console import Console
from rich.markup import escape
from rich.text import Text

from ..core.enums import Outcome
from ..core.errors import ServerStartupError, YachtError
from ..core.types import RunResult, TestResult

if TYPE_CHECKING:
    from ..testing.suite import TestSuite

_OUTCOME_STYLES = {
    Outcome.PASS: ("[ pass ]", "green"),
    Outcome.FAIL: ("[ fail ]", "red"),
    Outcome.NEW: ("[ new  ]", "blue"),
}

_DIFF_IN = re.compile(r"^\+.*$")
_DIFF_OUT = re.compile(r"^-.*$")


def colorize_diff(diff: str) -> Text:
    """Color added lines green and removed lines red, skipping the file headers."""
    text = Text()
    for index, line in enumerate(diff.split("\n")):
        style = None
        if index >= 2:
            if _DIFF_IN.match(line):
                style = "green"
            elif _DIFF_OUT.match(line):
                style = "red"
        if index:
            text.append("\n")
        text.append(line, style=style)
    return text


class Reporter:
    """Prints harness progress to a rich console."""

    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or Console(highlight=False)

    def greeting(self, argv: Sequence[str]) -> None:
        self.console.print(f"Started {escape(' '.join(argv))}")

    def config_used(self, config_file) -> None:
        self.console.print(f"Using configuration from [bold]{escape(str(config_file))}[/bold]")

    def collected(self, suite: "TestSuite") -> None:
        name = f"'{suite.name[:12]}'"
        self.console.print(
            f"Collecting tests in {escape(name):<14} "
            f"(Found {len(suite.tests):3d} tests): {escape(suite.description[:26])}"
        )

    def suite_begin(self) -> None:
        header = Text("=" * 80 + "\nLANE ")
        header.append(f"{'TEST':<52}")
        header.append(f"{'MODE':<11}", style="yellow")
        header.append("RESULT", style="green")
        header.append("\n" + "-" * 75)
        self.console.print(header)

    def suite_end(self) -> None:
        self.console.print("-" * 75)

    def test_finished(self, lane_id: str, name: str, mode: str, result: TestResult) -> None:
        label, style = _OUTCOME_STYLES[result.outcome]
        line = Text(f"[{lane_id:>3}] {name:<50} ")
        line.append(f"{mode[:12]:<18}", style="yellow")
        line.append(f" {label}", style=style)
        self.console.print(line)
        if result.outcome is Outcome.FAIL and result.diff:
            self.console.print(colorize_diff(result.diff))

    def error(self, error: Exception) -> None:
        self.console.print(f"[red]Error: {escape(str(error))}[/red]")
        if isinstance(error, ServerStartupError) and error.log_file:
            self.console.print(f"Server log: [bold]{escape(str(error.log_file))}[/bold]")
        elif isinstance(error, YachtError) and error.details:
            for key, value in error.details.items():
                self.console.print(f"  {escape(str(key))}: {escape(str(value))}")

    def summary(self, result: RunResult) -> None:
        if not result.failed:
            if result.return_code == 0:
                self.console.print("[green]All tests passed.[/green]")
            return
        self.console.print(f"[red]Failed {len(result.failed)} test(s):[/red]")
        for failed in result.failed:
            self.console.print(f"  {escape(str(failed))}")
