#!/usr/bin/env python3
"""
KUBEPRISM CLI - Classification & Formatting Console
---------------------------------------------------
Command-line front end over the classifier and the output formatter:

    kubeprism classify reply.md --show
    kubeprism format pods.json --tool kubectl_get --export csv
    kubectl get pod web -o yaml | kubeprism normalize -

Author: KubePrism Team
Date: 2026-10-17
"""

import sys
import logging
import argparse
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax

from kubeprism.cli.formatter import IntentFormatter
from kubeprism.core.config import ConfigError, PrismConfig, load_config
from kubeprism.core.dispatcher import ContentClassifier
from kubeprism.formatting.exporter import EXPORT_FORMATS, export_output
from kubeprism.formatting.formatter import OutputFormatter
from kubeprism.normalize.normalizer import normalize_yaml

console = Console()
logger = logging.getLogger("kubeprism.cli")

VERSION = "1.0.0"


class KubePrismCLI:
    """
    Translates user commands into classifier / formatter calls and hands the
    results to IntentFormatter for display.
    """

    def __init__(self):
        self.parser = argparse.ArgumentParser(
            prog="kubeprism",
            description="KubePrism - Classify and format Kubernetes assistant output",
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )
        self.view = IntentFormatter(console)
        self._setup_args()

    def _setup_args(self):
        self.parser.add_argument("-V", "--version", action="version", version=f"kubeprism v{VERSION}")
        self.parser.add_argument("-c", "--config", help="YAML/JSON file overriding the default limits")
        self.parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
        subparsers = self.parser.add_subparsers(dest="command", metavar="Command")

        classify_parser = subparsers.add_parser("classify", help="🔍 Classify assistant output into rendering intents")
        classify_parser.add_argument("path", help="File to classify, or '-' for stdin")
        classify_parser.add_argument("--show", action="store_true", help="Render every intent after the report")

        format_parser = subparsers.add_parser("format", help="📊 Format raw tool output")
        format_parser.add_argument("path", help="Raw tool output file, or '-' for stdin")
        format_parser.add_argument("--tool", required=True, help="Name of the tool that produced the output")
        format_parser.add_argument("--ai-response", help="File holding the AI formatter's JSON reply")
        format_parser.add_argument("--export", choices=sorted(EXPORT_FORMATS), help="Print an export artifact instead")

        normalize_parser = subparsers.add_parser("normalize", help="🧹 Clean up and dedent a YAML snippet")
        normalize_parser.add_argument("path", help="YAML file, or '-' for stdin")

    def print_header(self, subtitle: str):
        console.print(Panel.fit(
            f"[bold cyan]KubePrism v{VERSION}[/bold cyan]",
            title=f"[bold white]{subtitle}[/bold white]",
            border_style="cyan"
        ))

    def _read_source(self, path: str) -> str:
        if path == "-":
            return sys.stdin.read()
        return Path(path).read_text(encoding="utf-8-sig")

    def _load_config(self, path: Optional[str]) -> PrismConfig:
        return load_config(path) if path else PrismConfig()

    def _run_classify(self, args: argparse.Namespace, config: PrismConfig):
        content = self._read_source(args.path)
        detected = []
        intents = ContentClassifier(config).classify(content, on_detected=detected.append)

        self.view.print_intent_table(intents, "stdin" if args.path == "-" else args.path)
        if detected:
            console.print(f"[bold green]✅ {len(detected)} Kubernetes resource(s) detected[/bold green]")
        if args.show:
            for intent in intents:
                self.view.show_intent(intent)

    def _run_format(self, args: argparse.Namespace, config: PrismConfig):
        raw = self._read_source(args.path)
        ai_response = Path(args.ai_response).read_text(encoding="utf-8-sig") if args.ai_response else None
        output = OutputFormatter(config).format(raw, args.tool, ai_response=ai_response)

        if args.export:
            artifact = export_output(output, args.export, raw=raw)
            logger.info(f"Export artifact {artifact.filename} ({artifact.mime_type})")
            sys.stdout.write(artifact.content + "\n")
            return
        self.view.show_output(output)

    def _run_normalize(self, args: argparse.Namespace):
        normalized = normalize_yaml(self._read_source(args.path))
        console.print(Syntax(normalized, "yaml", theme="monokai"))

    def run(self, argv=None) -> int:
        """Primary routing entry point. Returns the process exit code."""
        args = self.parser.parse_args(argv)
        logging.basicConfig(
            level=logging.DEBUG if args.verbose else logging.WARNING,
            format="%(levelname)s %(name)s: %(message)s",
        )

        if not args.command:
            self.print_header("Assistant Output Classifier")
            self.parser.print_help()
            return 0

        try:
            config = self._load_config(args.config)
            if args.command == "classify":
                self._run_classify(args, config)
            elif args.command == "format":
                self._run_format(args, config)
            elif args.command == "normalize":
                self._run_normalize(args)
        except ConfigError as e:
            console.print(f"[bold red]Configuration error:[/bold red] {e}")
            return 1
        except OSError as e:
            console.print(f"[bold red]Error:[/bold red] {e}")
            return 1
        return 0


def main():
    """Application entry point with interrupt handling."""
    try:
        sys.exit(KubePrismCLI().run())
    except KeyboardInterrupt:
        console.print("\n[bold red]Terminated by user.[/bold red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
