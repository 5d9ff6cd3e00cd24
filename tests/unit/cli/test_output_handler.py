"""Unit tests for cli.output module."""

import io

from rich.console import Console
from rich.table import Table

from src.cli.output import OutputHandler
from src.models.article import CellStyle
from src.sync.models import SyncResult, SyncStatus
from tests.fixtures.sample_articles import make_article, make_styled_article, sample_collection


def create_handler(**kwargs) -> OutputHandler:
    """Create an OutputHandler writing to an in-memory console."""
    console = Console(file=io.StringIO(), width=140, color_system=None)
    return OutputHandler(console=console, **kwargs)


def printed(handler: OutputHandler) -> str:
    return handler.console.file.getvalue()


class TestOutputHandlerInit:
    """Test cases for OutputHandler initialization."""

    def test_init_defaults(self):
        handler = OutputHandler()

        assert handler.verbosity == 0
        assert handler.console is not None
        assert handler.stripe_color == "#F0F0F0"
        assert handler.row_height == 25

    def test_init_no_color_true(self):
        """Initialize with no_color=True disables colors."""
        handler = OutputHandler(no_color=True)

        assert handler.console.no_color is True


class TestMessages:
    """Test cases for status messages."""

    def test_success_error_warning_markers(self):
        handler = create_handler()

        handler.success("saved")
        handler.error("failed")
        handler.warning("careful")

        output = printed(handler)
        assert "✓ saved" in output
        assert "✗ failed" in output
        assert "⚠ careful" in output

    def test_info_requires_verbosity_1(self):
        quiet = create_handler(verbosity=0)
        chatty = create_handler(verbosity=1)

        quiet.info("loading")
        chatty.info("loading")

        assert printed(quiet) == ""
        assert "loading" in printed(chatty)

    def test_debug_requires_verbosity_2(self):
        handler = create_handler(verbosity=1)

        handler.debug("details")

        assert printed(handler) == ""

    def test_print_does_not_interpret_markup(self):
        handler = create_handler()

        handler.print("[bold]literal[/bold]")

        assert "[bold]literal[/bold]" in printed(handler)


class TestPrintArticles:
    """Test cases for the article table."""

    def test_table_lists_articles_and_marks_dirty(self):
        handler = create_handler()

        handler.print_articles(sample_collection(), dirty_ids=[2], title="Articles (online)")

        output = printed(handler)
        assert "Articles (online)" in output
        assert "Cable" in output
        assert "Screw" in output
        assert "7.90" in output
        screw_line = [line for line in output.splitlines() if "Screw" in line][0]
        assert "*" in screw_line
        cable_line = [line for line in output.splitlines() if "Cable" in line][0]
        assert "*" not in cable_line

    def test_empty_collection(self):
        handler = create_handler()

        handler.print_articles([])

        assert "No articles" in printed(handler)

    def test_row_height_maps_to_padding(self):
        """Rows taller than the base height get blank padding lines."""
        handler = create_handler(row_height=45)
        handler.console.print = lambda renderable, **kwargs: setattr(handler, "table", renderable)

        handler.print_articles([make_article(1)])

        assert isinstance(handler.table, Table)
        assert handler.table.padding == (0, 1, 1, 1)

    def test_cell_styles(self):
        handler = create_handler()
        article = make_styled_article(1)

        name_cell = handler._cell(article, "name", article.name)
        stock_cell = handler._cell(article, "stock", str(article.stock))
        plain_cell = handler._cell(article, "unit", article.unit)

        assert str(name_cell.style) == "bold #FF0000"
        assert str(stock_cell.style) == "italic underline #000000"
        assert str(plain_cell.style) == ""

    def test_no_color_drops_cell_styles(self):
        handler = create_handler(no_color=True)
        article = make_article(1, styles={"name": CellStyle(bold=True)})

        assert str(handler._cell(article, "name", article.name).style) == ""


class TestPrintArticle:
    """Test cases for the single article view."""

    def test_shows_fields_and_styles(self):
        handler = create_handler()

        handler.print_article(make_styled_article(4), is_dirty=True)

        output = printed(handler)
        assert "Article #4 (unsaved)" in output
        assert "10 pcs" in output
        assert "style[name]: bold #FF0000" in output
        assert "style[stock]: italic, underline #000000" in output


class TestPrintResult:
    """Test cases for engine result output."""

    def test_success_with_summary(self):
        handler = create_handler()
        result = SyncResult(SyncStatus.SUCCESS, "Saved 2 change(s)", pushed_count=1, created_count=1)

        handler.print_result(result)

        output = printed(handler)
        assert "✓ Saved 2 change(s)" in output
        assert "Sync Summary:" in output
        assert "Updated: 1 article(s)" in output
        assert "Created: 1 article(s)" in output
        assert "Loaded" not in output

    def test_errors_are_printed_verbatim(self):
        """Server bodies with brackets are not treated as markup."""
        handler = create_handler()
        result = SyncResult(
            SyncStatus.FAILED, "Some changes could not be saved",
            errors=["Error saving article #1: [red]bad[/red]"],
        )

        handler.print_result(result)

        output = printed(handler)
        assert "✗ Some changes could not be saved" in output
        assert "• Error saving article #1: [red]bad[/red]" in output

    def test_details_only_with_verbosity(self):
        result = SyncResult(SyncStatus.CANCELLED, "Save cancelled", details=["Changes for article #1"])
        quiet = create_handler(verbosity=0)
        chatty = create_handler(verbosity=1)

        quiet.print_result(result)
        chatty.print_result(result)

        assert "Changes for article #1" not in printed(quiet)
        assert "Changes for article #1" in printed(chatty)
        assert "⚠ Save cancelled" in printed(quiet)

    def test_no_changes(self):
        handler = create_handler()

        handler.print_result(SyncResult(SyncStatus.NO_CHANGES, "No changes to save"))

        assert "No changes to save" in printed(handler)
        assert "Sync Summary" not in printed(handler)


class TestPrintDescriptions:
    """Test cases for diff descriptions."""

    def test_no_differences(self):
        handler = create_handler()

        handler.print_descriptions([], "Conflicts:")

        assert "No differences" in printed(handler)

    def test_descriptions_printed_in_order(self):
        handler = create_handler()

        handler.print_descriptions(["New local article: Drill", "Deleted on server: Oil"], "Review")

        output = printed(handler)
        assert output.index("Drill") < output.index("Oil")


class TestSpinner:
    """Test cases for the spinner context manager."""

    def test_spinner_runs_block(self):
        handler = create_handler()
        ran = []

        with handler.spinner("Working..."):
            ran.append(True)

        assert ran == [True]
