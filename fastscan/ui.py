from rich.console import Console
from rich.table import Table
from rich.panel import Panel

from .retry import OutcomeKind

# Presentation goes to stderr; stdout carries the SUCCESS lines
console = Console(stderr=True)

OUTCOME_LABELS = {
    OutcomeKind.SUCCESS: ("Open", "green"),
    OutcomeKind.REFUSED: ("Refused", "yellow"),
    OutcomeKind.TIMED_OUT: ("Timed out", "blue"),
    OutcomeKind.OTHER_ERROR: ("Errors", "red"),
}


class ScannerUI:
    def __init__(self):
        self.console = console

    def display_start(self, target, port_count, workers):
        self.console.print(Panel.fit(
            f"[bold green]Scanning {port_count} ports on {target} with {workers} workers[/bold green]",
            border_style="blue"))

    def display_results(self, summary):
        """
        Displays the outcome counts in a Rich table.
        """
        table = Table(title=f"Scan Results for {summary.target}", show_header=True,
                      header_style="bold magenta")
        table.add_column("Outcome", style="cyan")
        table.add_column("Ports", justify="right")

        for kind, (label, style) in OUTCOME_LABELS.items():
            table.add_row(f"[{style}]{label}[/{style}]", str(summary.counts.get(kind, 0)))

        self.console.print(table)
        self.console.print(f"\n[bold]Scan completed in {summary.duration:.2f} seconds.[/bold]")
        self.console.print(f"[bold]Open ports found: {summary.open_count}[/bold]")
