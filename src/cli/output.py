"""Terminal output handling using Rich library.

This module provides the OutputHandler class for all CLI terminal output:
colored status messages, a spinner for network operations, the article
table, and result summaries.
"""

from contextlib import contextmanager
from typing import Iterable, Iterator, List, Optional

from rich.console import Console
from rich.live import Live
from rich.spinner import Spinner
from rich.table import Table
from rich.text import Text

from src.models.article import Article, CellStyle
from src.sync.models import SyncResult, SyncStatus

# Rich has no fixed row height; rows taller than this get blank padding lines
_BASE_ROW_HEIGHT = 20


class OutputHandler:
    """Handles all terminal output using Rich library.

    Attributes:
        verbosity: Verbosity level (0=summary, 1=info, 2=debug)
        console: Rich Console instance for output
        stripe_color: Background of every second table row
        row_height: Configured row height, mapped to table padding

    Example:
        >>> handler = OutputHandler(verbosity=1, no_color=False)
        >>> handler.success("Operation completed")
        >>> with handler.spinner("Contacting server..."):
        ...     pass
    """

    def __init__(
        self,
        verbosity: int = 0,
        no_color: bool = False,
        stripe_color: str = "#F0F0F0",
        row_height: int = 25,
        console: Optional[Console] = None,
    ):
        """Initialize output handler.

        Args:
            verbosity: Verbosity level (0=summary, 1=info, 2=debug)
            no_color: Disable color output if True
            stripe_color: Background color of alternating table rows
            row_height: Table row height from the configuration
            console: Console to write to (created if omitted)
        """
        self.verbosity = verbosity
        self.no_color = no_color
        self.stripe_color = stripe_color
        self.row_height = row_height
        self.console = console or Console(
            no_color=no_color,
            highlight=False,
        )

    def success(self, message: str) -> None:
        self.console.print(f"[green]✓[/green] {message}")

    def error(self, message: str) -> None:
        self.console.print(f"[red]✗[/red] {message}", style="red")

    def warning(self, message: str) -> None:
        self.console.print(f"[yellow]⚠[/yellow] {message}", style="yellow")

    def info(self, message: str) -> None:
        """Display info message (only if verbosity >= 1)."""
        if self.verbosity >= 1:
            self.console.print(message)

    def debug(self, message: str) -> None:
        """Display debug message (only if verbosity >= 2)."""
        if self.verbosity >= 2:
            self.console.print(f"[dim]{message}[/dim]")

    def print(self, message: str) -> None:
        """Display message without markup processing."""
        self.console.print(message, markup=False)

    @contextmanager
    def spinner(self, message: str) -> Iterator[None]:
        """Display spinner while a blocking operation runs.

        Example:
            >>> with handler.spinner("Saving changes..."):
            ...     engine.save_changes()
        """
        spinner = Spinner("dots", text=message)
        with Live(spinner, console=self.console, refresh_per_second=10, transient=True):
            yield

    def print_articles(
        self,
        articles: Iterable[Article],
        dirty_ids: Iterable[int] = (),
        title: Optional[str] = None,
    ) -> None:
        """Render articles as a striped table with their cell formatting.

        Args:
            articles: Articles to show, in order
            dirty_ids: Ids of unsaved articles, marked with "*"
            title: Optional table title
        """
        dirty = set(dirty_ids)
        extra_lines = max(0, (self.row_height - _BASE_ROW_HEIGHT) // _BASE_ROW_HEIGHT)
        table = Table(
            title=title,
            show_lines=False,
            row_styles=["", f"on {self.stripe_color}"] if not self.no_color else None,
            padding=(0, 1, extra_lines, 1),
        )
        table.add_column("", width=1)
        table.add_column("ID", justify="right")
        table.add_column("Name")
        table.add_column("Type")
        table.add_column("Stock", justify="right")
        table.add_column("Unit")
        table.add_column("Price", justify="right")
        table.add_column("Location")
        table.add_column("Status")
        table.add_column("Link")

        count = 0
        for article in articles:
            count += 1
            table.add_row(
                "*" if article.id in dirty else "",
                self._cell(article, "id", str(article.id)),
                self._cell(article, "name", article.name),
                self._cell(article, "type", article.type),
                self._cell(article, "stock", str(article.stock)),
                self._cell(article, "unit", article.unit),
                self._cell(article, "price", f"{article.price:.2f}"),
                self._cell(article, "location", article.location),
                self._cell(article, "status", article.status),
                self._cell(article, "link", article.link),
            )

        if count == 0:
            self.console.print("[yellow]No articles[/yellow]")
            return
        self.console.print(table)

    def _cell(self, article: Article, column: str, value: str) -> Text:
        style: Optional[CellStyle] = article.styles.get(column)
        if style is None or self.no_color:
            return Text(value)
        parts: List[str] = []
        if style.bold:
            parts.append("bold")
        if style.italic:
            parts.append("italic")
        if style.underline:
            parts.append("underline")
        parts.append(style.valid_color)
        return Text(value, style=" ".join(parts))

    def print_article(self, article: Article, is_dirty: bool = False) -> None:
        """Display a single article with all its fields."""
        marker = " [yellow](unsaved)[/yellow]" if is_dirty else ""
        self.console.print(f"[bold]Article #{article.id}[/bold]{marker}")
        for label, value in (
            ("Name", article.name),
            ("Type", article.type),
            ("Stock", f"{article.stock} {article.unit}"),
            ("Price", f"{article.price:.2f}"),
            ("Location", article.location),
            ("Status", article.status),
            ("Link", article.link),
            ("Timestamp", article.timestamp),
        ):
            self.console.print(f"  {label + ':':<10} {value}", markup=False)
        for column, style in sorted(article.styles.items()):
            flags = [name for name in ("bold", "italic", "underline") if getattr(style, name)]
            self.console.print(
                f"  style[{column}]: {', '.join(flags) or 'plain'} {style.valid_color}",
                markup=False,
            )

    def print_descriptions(self, descriptions: List[str], heading: str) -> None:
        """Display diff descriptions under a heading."""
        self.console.print(f"\n[bold]{heading}[/bold]")
        if not descriptions:
            self.console.print("  [green]No differences[/green]")
            return
        for description in descriptions:
            self.console.print(description, markup=False)

    def print_result(self, result: SyncResult) -> None:
        """Display an engine result with color coding."""
        if result.status == SyncStatus.SUCCESS:
            self.success(result.message)
        elif result.status == SyncStatus.NO_CHANGES:
            self.console.print(f"[dim]─[/dim] {result.message}")
        elif result.status == SyncStatus.CANCELLED:
            self.warning(result.message)
        else:
            self.error(result.message)

        for error in result.errors:
            self.console.print(Text.assemble(("  • ", "red"), error))
        if self.verbosity >= 1:
            for detail in result.details:
                self.console.print(detail, markup=False)

        if result.pushed_count or result.created_count or result.pulled_count or result.conflict_count:
            self.print_summary(
                pushed_count=result.pushed_count,
                created_count=result.created_count,
                pulled_count=result.pulled_count,
                conflict_count=result.conflict_count,
            )

    def print_summary(
        self,
        pushed_count: int = 0,
        created_count: int = 0,
        pulled_count: int = 0,
        conflict_count: int = 0,
    ) -> None:
        """Display sync summary with color coding.

        Args:
            pushed_count: Number of articles updated on the server
            created_count: Number of articles created on the server
            pulled_count: Number of articles loaded from the server
            conflict_count: Number of conflicts detected
        """
        self.console.print("\n[bold]Sync Summary:[/bold]")

        if pushed_count > 0:
            self.console.print(f"  [green]↑[/green] Updated: {pushed_count} article(s)")

        if created_count > 0:
            self.console.print(f"  [green]+[/green] Created: {created_count} article(s)")

        if pulled_count > 0:
            self.console.print(f"  [blue]↓[/blue] Loaded: {pulled_count} article(s)")

        if conflict_count > 0:
            self.console.print(f"  [red]⚡[/red] Conflicts: {conflict_count} article(s)")
