#!/usr/bin/env python3
"""
KUBEPRISM CLI FORMATTER - Terminal Rendering
--------------------------------------------
Renders rendering intents and formatted outputs with rich: an intent report
table, syntax panels for manifests and JSON, and per-type layouts for
FormattedOutput data.

Author: KubePrism Team
Date: 2026-10-17
"""

import json
from typing import List

from rich.console import Console
from rich.markup import escape
from rich.markdown import Markdown as RichMarkdown
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from kubeprism.core.models import (
    JsonEnvelope, KubernetesYaml, LogViewer, Markdown, RawJson, RenderingIntent, StructuredOutput,
)
from kubeprism.formatting.schema import (
    ErrorData, FormattedOutput, ListData, MetricsData, TableData, TextData,
)

console = Console()

STATUS_STYLES = {"normal": "green", "warning": "yellow", "error": "red", "critical": "bold red"}


def _preview(text: str, width: int = 60) -> str:
    first = text.strip().splitlines()[0] if text.strip() else ""
    return first if len(first) <= width else first[:width - 3] + "..."


class IntentFormatter:
    """
    The visual side of the CLI. Keeps all rich calls out of the command
    routing so the classifier output can be rendered from anywhere.
    """

    def __init__(self, target: Console = None):
        self.console = target or console

    def describe(self, intent: RenderingIntent) -> str:
        """One-line summary used in the report table."""
        if isinstance(intent, KubernetesYaml):
            return f"{intent.descriptor.title} (ns: {intent.descriptor.namespace})"
        if isinstance(intent, LogViewer):
            return f"{intent.resource_type}/{intent.resource_name} (ns: {intent.namespace})"
        if isinstance(intent, StructuredOutput):
            return f"{intent.output.type.value}: {intent.output.title}"
        if isinstance(intent, JsonEnvelope):
            return f"{intent.kind}: {_preview(intent.message)}"
        if isinstance(intent, RawJson):
            return _preview(intent.pretty())
        return _preview(intent.text)

    def print_intent_table(self, intents: List[RenderingIntent], source: str):
        table = Table(title=f"Classification Report: {source}", show_lines=True, header_style="bold magenta")
        table.add_column("#", justify="right", style="dim")
        table.add_column("Intent", style="cyan")
        table.add_column("Details", style="white")

        for index, intent in enumerate(intents, start=1):
            table.add_row(str(index), intent.intent, escape(self.describe(intent)))
        self.console.print(table)

    def show_intent(self, intent: RenderingIntent):
        """Full rendering of a single intent."""
        if isinstance(intent, KubernetesYaml):
            syntax = Syntax(intent.yaml, "yaml", theme="monokai", line_numbers=True)
            self.console.print(Panel(syntax, title=f"[bold green]{intent.descriptor.title}[/bold green]",
                                     border_style="green"))
        elif isinstance(intent, LogViewer):
            title = f"Logs: {intent.resource_type}/{intent.resource_name}"
            if intent.container_name:
                title += f" ({intent.container_name})"
            self.console.print(Panel(escape(intent.logs), title=escape(title), border_style="blue"))
        elif isinstance(intent, StructuredOutput):
            self.show_output(intent.output)
        elif isinstance(intent, JsonEnvelope):
            style = "red" if intent.kind == "error" else "green"
            self.console.print(Panel(escape(intent.message), title=intent.kind.upper(), border_style=style))
        elif isinstance(intent, RawJson):
            self.console.print(Syntax(intent.pretty(), "json", theme="monokai"))
        elif isinstance(intent, Markdown):
            self.console.print(RichMarkdown(intent.text))

    def show_output(self, output: FormattedOutput):
        self.console.print(Panel.fit(f"[bold white]{output.title}[/bold white]\n{output.summary}",
                                     border_style="cyan"))
        data = output.data

        if isinstance(data, TableData):
            table = Table(header_style="bold magenta")
            for header in data.headers:
                table.add_column(escape(str(header)))
            for index, row in enumerate(data.rows):
                style = "bold yellow" if data.highlight_rows and index in data.highlight_rows else None
                table.add_row(*["" if cell is None else escape(str(cell)) for cell in row], style=style)
            self.console.print(table)
        elif isinstance(data, MetricsData):
            table = Table(show_header=False)
            for entry in (data.primary or []) + (data.secondary or []):
                colour = STATUS_STYLES.get(entry.status, "white")
                table.add_row(entry.label, f"[{colour}]{entry.value}[/{colour}]")
            self.console.print(table)
        elif isinstance(data, ListData):
            for item in data.items:
                colour = STATUS_STYLES.get(item.status, "white")
                suffix = f" [dim]({escape(str(item.metadata))})[/dim]" if item.metadata else ""
                self.console.print(f"[{colour}]•[/{colour}] {escape(item.text)}{suffix}")
        elif isinstance(data, TextData):
            if data.language == "markdown":
                self.console.print(RichMarkdown(data.content))
            else:
                self.console.print(Syntax(data.content, data.language or "text", theme="monokai"))
        elif isinstance(data, ErrorData):
            body = data.message + (f"\n\n{data.details}" if data.details else "")
            self.console.print(Panel(escape(body), title="[bold red]Error[/bold red]", border_style="red"))
            for suggestion in data.suggestions or []:
                self.console.print(f"  💡 {suggestion}")
        else:
            pretty = json.dumps(data.to_dict(), indent=2, ensure_ascii=False, default=str)
            self.console.print(Syntax(pretty, "json", theme="monokai"))

        for warning in output.warnings:
            self.console.print(f"[bold yellow]⚠️  {escape(warning)}[/bold yellow]")
        for insight in output.insights:
            self.console.print(f"[cyan]ℹ {insight}[/cyan]")
        for action in output.actionable_items:
            self.console.print(f"[green]→ {action}[/green]")
