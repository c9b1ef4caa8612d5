"""Console reporter with intelligent environment detection for report summaries."""

import json
import sys
from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .models import FileReport, GlobalInfo, StepRecord
from .output_config import OutputFormat, is_ci
from .status import status_emoji

STATUS_STYLES = {
    "success": "green",
    "failed": "bold red",
    "undefined": "yellow",
    "pending": "cyan",
    "skipped": "dim",
}


class ConsoleReporter:
    """
    Smart console reporter that adapts to environment.

    Automatically detects:
    - Interactive terminals (use rich tables and panels)
    - CI/CD environments (use plain text)
    - Pipe/redirect scenarios (use plain text)

    The JSON format prints one JSON document per report instead.
    """

    def __init__(self, output_format: OutputFormat = OutputFormat.AUTO, console: Optional[Console] = None):
        self.output_format = output_format
        self._detect_environment()
        self.console = console or Console()

    def _detect_environment(self) -> None:
        """Detect if we should use rich output or plain text."""
        if self.output_format == OutputFormat.RICH:
            self.use_rich = True
        elif self.output_format in (OutputFormat.PLAIN, OutputFormat.JSON):
            self.use_rich = False
        else:  # AUTO
            self.use_rich = sys.stdout.isatty() and not is_ci()

    def report_summary(
        self,
        report_file: str,
        title: str,
        info: GlobalInfo,
        conclusion: str,
        summary: str,
        failures: list[StepRecord],
        files: list[FileReport],
    ) -> None:
        """Display the outcome of one report file."""
        if self.output_format == OutputFormat.JSON:
            payload = {
                "report": report_file,
                "title": title,
                "conclusion": conclusion,
                "global_information": info.model_dump(by_alias=True),
                "failed_steps": [record.model_dump() for record in failures],
            }
            print(json.dumps(payload, ensure_ascii=False))
            return

        if not self.use_rich:
            print(f"{title} [{conclusion}] - {report_file}")
            print(summary)
            for record in failures:
                print(f"  ✗ {record.file}:{record.line} {record.title}: {record.step}")
                if record.error:
                    print(f"    Error: {record.error.splitlines()[0]}")
            return

        table = Table(show_header=True, header_style="bold cyan")
        table.add_column("Feature", width=30)
        table.add_column("Scenario", width=50)
        table.add_column("Status", width=14)
        for file_report in files:
            for scenario in file_report.scenarios:
                table.add_row(
                    file_report.name or file_report.file,
                    scenario.name,
                    Text(
                        f"{status_emoji(scenario.status)} {scenario.status}",
                        style=STATUS_STYLES.get(scenario.status, "white"),
                    ),
                )

        failed = info.failed_scenario_number > 0
        self.console.print(table)
        for record in failures:
            self.console.print(
                f"[bold red]✗[/] {record.file}:{record.line} [bold]{record.title}[/] - {record.step}"
            )
            if record.error:
                self.console.print(Text(f"    {record.error.splitlines()[0]}", style="red"))
        self.console.print(
            Panel(
                Text(summary.strip("\n")),
                title=Text(f"{title} - {conclusion}", style="bold red" if failed else "bold green"),
                subtitle=report_file,
                border_style="red" if failed else "green",
            )
        )

    def print_error(self, message: str) -> None:
        """Print an error message."""
        if self.use_rich:
            self.console.print(f"[bold red]Error:[/] {message}")
        else:
            print(f"Error: {message}", file=sys.stderr)

    def print_info(self, message: str) -> None:
        """Print an info message."""
        if self.output_format == OutputFormat.JSON:
            return
        if self.use_rich:
            self.console.print(f"[cyan]{message}[/]")
        else:
            print(message)
